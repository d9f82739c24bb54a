"""Fixed-timestep wave integration of the surface height field."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.ndimage import laplace

from tidepool.config import PhysicsConfig, SourceProperties
from tidepool.fields import FieldStore
from tidepool.gravity import compute_gravity


def border_mask(grid_size: int, margin: int) -> np.ndarray:
    """Boolean mask of cells within ``margin`` cells of any grid edge."""

    mask = np.zeros((grid_size, grid_size), dtype=bool)
    if margin <= 0:
        return mask
    m = min(margin, grid_size)
    mask[:m, :] = True
    mask[-m:, :] = True
    mask[:, :m] = True
    mask[:, -m:] = True
    return mask


def step_wave(fields: FieldStore, source: SourceProperties, *, config: PhysicsConfig | None = None) -> None:
    """Advance height and velocity by one fixed step, in place.

    The committed height field always has zero mean.
    """

    cfg = config or PhysicsConfig()
    dt = cfg.fixed_dt

    compute_gravity(
        fields.height,
        source.mass_kg,
        source.radius_m,
        source.center_height_m,
        config=cfg,
        out=fields.gravity_z,
    )

    # Edge neighbours clamp to the cell itself.
    lap = laplace(fields.height, mode="nearest") / (cfg.cell_meters * cfg.cell_meters)
    acceleration = cfg.wave_speed_m_s**2 * lap + fields.gravity_z

    velocity = (fields.velocity + acceleration * dt) * (1.0 - cfg.damping)
    next_height = fields.height + velocity * dt

    border = border_mask(fields.grid_size, cfg.border_margin)
    velocity[border] *= cfg.border_velocity_factor
    next_height[border] *= cfg.border_height_factor

    fields.velocity[...] = velocity
    fields.next_height[...] = next_height
    np.subtract(next_height, next_height.mean(), out=fields.height)


@dataclass
class StepAccumulator:
    """Converts elapsed wall time into a whole number of fixed steps."""

    fixed_dt: float
    max_steps_per_tick: int | None = None
    pending_s: float = 0.0

    def consume(self, elapsed_s: float) -> int:
        """Bank ``elapsed_s`` and return how many fixed steps are now due."""

        if not np.isfinite(elapsed_s) or elapsed_s <= 0.0:
            return 0
        self.pending_s += elapsed_s

        steps = int(self.pending_s // self.fixed_dt)
        self.pending_s = max(self.pending_s - steps * self.fixed_dt, 0.0)

        if self.max_steps_per_tick is not None and steps > self.max_steps_per_tick:
            # Drop the backlog past the catch-up cap.
            steps = self.max_steps_per_tick
            self.pending_s = 0.0
        return steps

    def clear(self) -> None:
        self.pending_s = 0.0
