"""Cell-to-node height averaging and per-frame surface projection."""

from __future__ import annotations

import numpy as np

from tidepool.camera import CameraBasis, Viewport, project_points
from tidepool.config import SimulationConfig
from tidepool.fields import FieldStore


def z_scale(config: SimulationConfig) -> float:
    """World units per vertical meter."""

    return config.scene.vertical_exaggeration / config.physics.cell_meters


def surface_z_units(height_m: np.ndarray | float, config: SimulationConfig) -> np.ndarray | float:
    return (height_m + config.scene.water_depth_m) * z_scale(config)


def build_surface_nodes(height_m: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
    """Average the up-to-four cells bordering each node."""

    if height_m.ndim != 2:
        raise ValueError("height_m must be a 2D array")

    rows, cols = height_m.shape
    padded = np.zeros((rows + 2, cols + 2), dtype=np.float64)
    padded[1:-1, 1:-1] = height_m
    present = np.zeros_like(padded)
    present[1:-1, 1:-1] = 1.0

    total = padded[:-1, :-1] + padded[:-1, 1:] + padded[1:, :-1] + padded[1:, 1:]
    count = present[:-1, :-1] + present[:-1, 1:] + present[1:, :-1] + present[1:, 1:]
    nodes = total / np.maximum(count, 1.0)
    if out is None:
        return nodes
    out[...] = nodes
    return out


def node_world_positions(fields: FieldStore, config: SimulationConfig) -> np.ndarray:
    """World-space ``(N+1, N+1, 3)`` positions of the surface nodes."""

    coords = np.arange(fields.node_size, dtype=np.float64) - fields.half
    xx, yy = np.meshgrid(coords, coords)
    zz = surface_z_units(fields.surface_nodes, config)
    return np.stack((xx, yy, zz), axis=-1)


def project_surface(
    fields: FieldStore,
    basis: CameraBasis,
    viewport: Viewport,
    config: SimulationConfig,
) -> None:
    """Rebuild node heights and project every node into the store."""

    build_surface_nodes(fields.height, out=fields.surface_nodes)
    positions = node_world_positions(fields, config)
    sx, sy, depth = project_points(positions, basis, viewport, near_depth=config.camera.near_depth)
    fields.node_screen_x[...] = sx
    fields.node_screen_y[...] = sy
    fields.node_depth[...] = depth
