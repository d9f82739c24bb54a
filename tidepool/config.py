"""Configuration models for the gravity-well surface simulation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import math
from typing import Any


DEFAULT_GRID_SIZE = 60
SUPPORTED_GRID_SIZES: tuple[int, ...] = tuple(range(20, 130, 10))


@dataclass(frozen=True)
class PhysicsConfig:
    """Constants of the wave integrator and gravity model (SI units)."""

    gravitational_constant: float = 6.674e-11
    cell_meters: float = 10000.0
    wave_speed_m_s: float = 80.0
    damping: float = 0.02
    fixed_dt: float = 0.035
    distance_epsilon: float = 1e-6
    border_margin: int = 2
    border_velocity_factor: float = 0.65
    border_height_factor: float = 0.98
    interior_exponent: float = 0.0
    max_steps_per_tick: int = 64


@dataclass(frozen=True)
class SceneConfig:
    """Scene geometry and flat-shading palette."""

    water_depth_m: float = 20000.0
    seabed_thickness_m: float = 4000.0
    vertical_exaggeration: float = 1.0
    surface_hue_deg: float = 196.0
    surface_saturation: float = 0.62
    surface_alpha: float = 0.55
    lightness_base: float = 66.0
    lightness_height_gain: float = 0.015
    lightness_depth_gain: float = 10.0
    lightness_min: float = 50.0
    lightness_max: float = 74.0
    depth_shade_distance_scale: float = 1.8
    side_right_color: str = "#6ec3e1"
    side_left_color: str = "#5faacd"
    side_front_color: str = "#82d2eb"
    side_back_color: str = "#569bbe"
    side_alpha: float = 0.35
    seabed_top_color: str = "#4b3a2d"
    seabed_right_color: str = "#3a2a1f"
    seabed_front_color: str = "#2f2218"
    seabed_left_color: str = "#544031"
    seabed_back_color: str = "#3a2d23"
    sphere_gradient: tuple[tuple[float, str], ...] = (
        (0.0, "#ffe0be"),
        (0.6, "#e6a058"),
        (1.0, "#78421c"),
    )
    sphere_highlight_offset: tuple[float, float] = (-0.3, -0.4)
    sphere_highlight_radius: float = 0.3
    sphere_outline_color: str = "#78421c"
    sphere_outline_alpha: float = 0.65
    sphere_outline_width: float = 1.2
    outline_color: str = "#b4e6f5"
    outline_alpha: float = 0.35
    outline_width: float = 1.0
    background_color: str = "#0b1722"


@dataclass(frozen=True)
class CameraConfig:
    """Orbit camera defaults, bounds and projection constants."""

    yaw: float = math.pi * 0.72
    pitch: float = 0.55
    distance: float = 72.0
    min_pitch: float = 0.2
    max_pitch: float = 1.25
    min_distance_floor: float = 18.0
    min_distance_per_cell: float = 0.8
    max_distance_floor: float = 120.0
    max_distance_per_cell: float = 4.0
    drag_sensitivity: float = 0.006
    zoom_sensitivity: float = 0.0012
    fov_deg: float = 50.0
    focal_fill: float = 0.92
    center_x_ratio: float = 0.5
    center_y_ratio: float = 0.58
    near_depth: float = 0.05


@dataclass(frozen=True)
class ParameterRanges:
    """Accepted slider ranges for the live simulation parameters."""

    mass_exponent: tuple[float, float] = (18.0, 26.0)
    volume_exponent: tuple[float, float] = (3.0, 9.0)
    height_km: tuple[float, float] = (0.0, 500.0)
    grid_sizes: tuple[int, ...] = SUPPORTED_GRID_SIZES
    default_mass_exponent: float = 24.0
    default_volume_exponent: float = 7.0
    default_height_km: float = 50.0
    default_grid_size: int = DEFAULT_GRID_SIZE


@dataclass(frozen=True)
class SimulationConfig:
    """Primary simulation configuration."""

    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    ranges: ParameterRanges = field(default_factory=ParameterRanges)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceProperties:
    """Physical quantities derived from the live parameters."""

    mass_kg: float
    volume_km3: float
    radius_m: float
    center_height_m: float


@dataclass(frozen=True)
class SimulationParameters:
    """Live slider values: log10 mass (kg), log10 volume (km^3), clearance (km)."""

    mass_exponent: float = 24.0
    volume_exponent: float = 7.0
    height_km: float = 50.0

    def derive(self) -> SourceProperties:
        """Recompute mass, radius and centre height from the exponents."""

        mass_kg = 10.0**self.mass_exponent
        volume_km3 = 10.0**self.volume_exponent
        volume_m3 = volume_km3 * 1e9
        radius_m = float(math.pow((3.0 * volume_m3) / (4.0 * math.pi), 1.0 / 3.0))
        return SourceProperties(
            mass_kg=mass_kg,
            volume_km3=volume_km3,
            radius_m=radius_m,
            center_height_m=self.height_km * 1000.0 + radius_m,
        )
