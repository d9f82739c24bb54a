"""Grid-resolution field arrays shared by the simulation and renderer."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

FIELD_DTYPE = np.float64


class GridSizeError(ValueError):
    """Raised when a grid size is outside the supported set."""


@dataclass
class FieldStore:
    """All per-cell and per-node arrays for one grid resolution.

    Cell arrays are ``(grid_size, grid_size)`` indexed ``[y, x]``; node arrays
    are ``(grid_size + 1, grid_size + 1)``. ``cell_order`` is a flat
    permutation of cell indices ``x + y * grid_size``.
    """

    grid_size: int
    height: np.ndarray
    velocity: np.ndarray
    next_height: np.ndarray
    gravity_z: np.ndarray
    surface_nodes: np.ndarray
    node_screen_x: np.ndarray
    node_screen_y: np.ndarray
    node_depth: np.ndarray
    cell_depth: np.ndarray
    cell_order: np.ndarray

    @classmethod
    def create(cls, grid_size: int) -> "FieldStore":
        """Allocate a zeroed store; old arrays are never reused."""

        if grid_size <= 0 or grid_size % 2:
            raise GridSizeError(f"grid size must be a positive even integer, got {grid_size}")

        cells = (grid_size, grid_size)
        nodes = (grid_size + 1, grid_size + 1)
        return cls(
            grid_size=grid_size,
            height=np.zeros(cells, dtype=FIELD_DTYPE),
            velocity=np.zeros(cells, dtype=FIELD_DTYPE),
            next_height=np.zeros(cells, dtype=FIELD_DTYPE),
            gravity_z=np.zeros(cells, dtype=FIELD_DTYPE),
            surface_nodes=np.zeros(nodes, dtype=FIELD_DTYPE),
            node_screen_x=np.zeros(nodes, dtype=FIELD_DTYPE),
            node_screen_y=np.zeros(nodes, dtype=FIELD_DTYPE),
            node_depth=np.zeros(nodes, dtype=FIELD_DTYPE),
            cell_depth=np.zeros(cells, dtype=FIELD_DTYPE),
            cell_order=np.arange(grid_size * grid_size, dtype=np.int64),
        )

    @property
    def half(self) -> float:
        return self.grid_size / 2.0

    @property
    def node_size(self) -> int:
        return self.grid_size + 1

    def reset(self) -> None:
        """Zero the dynamic state in place."""

        self.height.fill(0.0)
        self.velocity.fill(0.0)
        self.next_height.fill(0.0)
