"""Simulation context: the single owner of fields, camera and parameters."""

from __future__ import annotations

import math

from tidepool.camera import OrbitCamera, Viewport
from tidepool.compositor import Frame, compose_frame
from tidepool.config import SimulationConfig, SimulationParameters, SourceProperties
from tidepool.controller import OrbitController
from tidepool.fields import FieldStore, GridSizeError
from tidepool.integrator import StepAccumulator, step_wave
from tidepool.mesher import surface_z_units


def _accepts(value: float | None, bounds: tuple[float, float]) -> bool:
    if value is None or not math.isfinite(value):
        return False
    return bounds[0] <= value <= bounds[1]


class Simulation:
    """Explicit replacement for module-level simulation state.

    One thread drives it: input handlers mutate the camera or parameters,
    ``advance`` runs the fixed steps due and ``compose`` renders once.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        grid_size: int | None = None,
        parameters: SimulationParameters | None = None,
    ) -> None:
        self.config = config or SimulationConfig()
        ranges = self.config.ranges
        size = ranges.default_grid_size if grid_size is None else grid_size
        self._check_grid_size(size)

        self.parameters = parameters or SimulationParameters(
            mass_exponent=ranges.default_mass_exponent,
            volume_exponent=ranges.default_volume_exponent,
            height_km=ranges.default_height_km,
        )
        self.fields = FieldStore.create(size)
        target = (0.0, 0.0, float(surface_z_units(0.0, self.config)))
        self.camera = OrbitCamera.from_config(self.config.camera, size, target=target)
        self.controller = OrbitController.from_config(self.camera, self.config.camera)
        self.accumulator = StepAccumulator(
            fixed_dt=self.config.physics.fixed_dt,
            max_steps_per_tick=self.config.physics.max_steps_per_tick,
        )
        self.steps_taken = 0

    @property
    def grid_size(self) -> int:
        return self.fields.grid_size

    @property
    def grid_dimensions(self) -> tuple[int, int]:
        return (self.fields.grid_size, self.fields.grid_size)

    @property
    def simulated_seconds(self) -> float:
        return self.steps_taken * self.config.physics.fixed_dt

    def source(self) -> SourceProperties:
        return self.parameters.derive()

    def set_parameters(
        self,
        *,
        mass_exponent: float | None = None,
        volume_exponent: float | None = None,
        height_km: float | None = None,
    ) -> SimulationParameters:
        """Apply each finite in-range value; anything else leaves state untouched."""

        ranges = self.config.ranges
        current = self.parameters
        self.parameters = SimulationParameters(
            mass_exponent=mass_exponent if _accepts(mass_exponent, ranges.mass_exponent) else current.mass_exponent,
            volume_exponent=(
                volume_exponent if _accepts(volume_exponent, ranges.volume_exponent) else current.volume_exponent
            ),
            height_km=height_km if _accepts(height_km, ranges.height_km) else current.height_km,
        )
        return self.parameters

    def _check_grid_size(self, grid_size: int) -> None:
        if grid_size not in self.config.ranges.grid_sizes:
            supported = ", ".join(str(size) for size in self.config.ranges.grid_sizes)
            raise GridSizeError(f"unsupported grid size {grid_size}; supported sizes: {supported}")

    def set_grid_size(self, grid_size: float) -> bool:
        """Rebuild every field array at a new resolution.

        Returns ``False`` for a non-finite, fractional or unchanged value. Unsupported
        sizes raise :class:`GridSizeError` before anything is replaced.
        """

        if not math.isfinite(grid_size) or grid_size != int(grid_size):
            return False
        size = int(grid_size)
        if size == self.fields.grid_size:
            return False
        self._check_grid_size(size)

        self.fields = FieldStore.create(size)
        self.camera.update_limits(size, self.config.camera)
        return True

    def reset(self) -> None:
        """Flatten the surface; parameters and camera are kept."""

        self.fields.reset()

    def step(self, count: int = 1) -> None:
        source = self.source()
        for _ in range(count):
            step_wave(self.fields, source, config=self.config.physics)
        self.steps_taken += count

    def advance(self, elapsed_s: float) -> int:
        """Run the fixed steps due after ``elapsed_s`` of wall time."""

        steps = self.accumulator.consume(elapsed_s)
        if steps:
            self.step(steps)
        return steps

    def compose(self, viewport: Viewport) -> Frame:
        return compose_frame(self.fields, self.camera, viewport, self.source(), self.config)
