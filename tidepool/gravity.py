"""Vertical gravitational forcing from the hovering point mass."""

from __future__ import annotations

import numpy as np

from tidepool.config import PhysicsConfig


def cell_center_offsets_m(grid_size: int, cell_meters: float) -> tuple[np.ndarray, np.ndarray]:
    """Horizontal offsets (x, y) of every cell midpoint from the grid centre, in meters."""

    half = grid_size / 2.0
    coords = (np.arange(grid_size, dtype=np.float64) - half + 0.5) * cell_meters
    dx = np.broadcast_to(coords[None, :], (grid_size, grid_size))
    dy = np.broadcast_to(coords[:, None], (grid_size, grid_size))
    return dx, dy


def acceleration_factor(
    r: np.ndarray,
    mass_kg: float,
    radius_m: float,
    *,
    gravitational_constant: float,
    interior_exponent: float = 0.0,
) -> np.ndarray:
    """Return ``a / dz`` for each separation ``r``.

    Inside the source radius the factor is ``G*m/R^3 * (r/R)**k``; outside it is
    ``G*m/r^3``. Both agree at ``r == R`` for any exponent ``k``.
    """

    if radius_m <= 0.0:
        raise ValueError("radius_m must be positive")

    r = np.asarray(r, dtype=np.float64)
    gm = gravitational_constant * mass_kg
    interior = gm / radius_m**3
    if interior_exponent:
        interior = interior * np.power(np.clip(r / radius_m, 0.0, 1.0), interior_exponent)
    exterior = gm / np.power(r, 3)
    return np.where(r < radius_m, interior, exterior)


def compute_gravity(
    height_m: np.ndarray,
    mass_kg: float,
    radius_m: float,
    center_height_m: float,
    *,
    config: PhysicsConfig | None = None,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Signed vertical acceleration (m/s^2) on every cell; positive points toward the mass."""

    if height_m.ndim != 2 or height_m.shape[0] != height_m.shape[1]:
        raise ValueError("height_m must be a square 2D array")

    cfg = config or PhysicsConfig()
    dx, dy = cell_center_offsets_m(height_m.shape[0], cfg.cell_meters)
    dz = center_height_m - height_m
    r = np.sqrt(dx * dx + dy * dy + dz * dz) + cfg.distance_epsilon

    factor = acceleration_factor(
        r,
        mass_kg,
        radius_m,
        gravitational_constant=cfg.gravitational_constant,
        interior_exponent=cfg.interior_exponent,
    )
    if out is None:
        return factor * dz
    np.multiply(factor, dz, out=out)
    return out
