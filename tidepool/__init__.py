"""Gravity-well fluid surface simulation with a software 3D painter."""

from .config import DEFAULT_GRID_SIZE, SUPPORTED_GRID_SIZES, SimulationConfig, SimulationParameters
from .simulation import Simulation

__all__ = [
    "DEFAULT_GRID_SIZE",
    "SUPPORTED_GRID_SIZES",
    "SimulationConfig",
    "SimulationParameters",
    "Simulation",
]
