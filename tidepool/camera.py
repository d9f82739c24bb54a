"""Orbit camera, viewport and pinhole projection."""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from tidepool.config import CameraConfig


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


@dataclass(frozen=True)
class CameraBasis:
    """Eye position and orthonormal view axes for one frame."""

    eye: np.ndarray
    forward: np.ndarray
    right: np.ndarray
    up: np.ndarray


@dataclass
class OrbitCamera:
    """Yaw/pitch/distance camera orbiting a fixed target without roll."""

    yaw: float
    pitch: float
    distance: float
    target: tuple[float, float, float]
    min_pitch: float
    max_pitch: float
    min_distance: float
    max_distance: float

    @classmethod
    def from_config(
        cls,
        config: CameraConfig,
        grid_size: int,
        target: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "OrbitCamera":
        camera = cls(
            yaw=config.yaw,
            pitch=clamp(config.pitch, config.min_pitch, config.max_pitch),
            distance=config.distance,
            target=target,
            min_pitch=config.min_pitch,
            max_pitch=config.max_pitch,
            min_distance=config.min_distance_floor,
            max_distance=config.max_distance_floor,
        )
        camera.update_limits(grid_size, config)
        return camera

    def update_limits(self, grid_size: int, config: CameraConfig) -> None:
        """Rescale distance bounds so a grid of ``grid_size`` stays framed."""

        self.min_distance = max(config.min_distance_floor, grid_size * config.min_distance_per_cell)
        self.max_distance = max(config.max_distance_floor, grid_size * config.max_distance_per_cell)
        self.distance = clamp(self.distance, self.min_distance, self.max_distance)

    def set_pitch(self, pitch: float) -> None:
        self.pitch = clamp(pitch, self.min_pitch, self.max_pitch)

    def set_distance(self, distance: float) -> None:
        self.distance = clamp(distance, self.min_distance, self.max_distance)

    def basis(self) -> CameraBasis:
        cos_pitch = math.cos(self.pitch)
        sin_pitch = math.sin(self.pitch)
        target = np.asarray(self.target, dtype=np.float64)
        eye = target + self.distance * np.array(
            [cos_pitch * math.cos(self.yaw), cos_pitch * math.sin(self.yaw), sin_pitch],
            dtype=np.float64,
        )

        forward = target - eye
        forward /= np.linalg.norm(forward) or 1.0

        # Horizontal right vector, equal to normalize(forward x world_up).
        right = np.array([forward[1], -forward[0], 0.0], dtype=np.float64)
        right /= math.hypot(right[0], right[1]) or 1.0

        up = np.cross(right, forward)
        return CameraBasis(eye=eye, forward=forward, right=right, up=up)


@dataclass(frozen=True)
class Viewport:
    """Drawing surface size and the derived pinhole constants."""

    width: float
    height: float
    focal_length: float
    center_x: float
    center_y: float
    pixel_ratio: float = 1.0

    @classmethod
    def from_size(
        cls,
        width: float,
        height: float,
        config: CameraConfig | None = None,
        *,
        pixel_ratio: float = 1.0,
    ) -> "Viewport":
        if width <= 0 or height <= 0:
            raise ValueError("viewport width and height must be positive")
        if pixel_ratio <= 0:
            raise ValueError("pixel_ratio must be positive")

        cfg = config or CameraConfig()
        fov = math.radians(cfg.fov_deg)
        return cls(
            width=float(width),
            height=float(height),
            focal_length=cfg.focal_fill * min(width, height) / math.tan(fov / 2.0),
            center_x=width * cfg.center_x_ratio,
            center_y=height * cfg.center_y_ratio,
            pixel_ratio=float(pixel_ratio),
        )


@dataclass(frozen=True)
class ProjectedPoint:
    x: float
    y: float
    depth: float


def view_depth(points: np.ndarray, basis: CameraBasis, *, near_depth: float = 0.05) -> np.ndarray:
    """Camera-space depth along ``forward``, clamped to the near plane."""

    rel = np.asarray(points, dtype=np.float64) - basis.eye
    return np.maximum(rel @ basis.forward, near_depth)


def project_points(
    points: np.ndarray,
    basis: CameraBasis,
    viewport: Viewport,
    *,
    near_depth: float = 0.05,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Project world points of shape ``(..., 3)`` to screen x, screen y and depth."""

    rel = np.asarray(points, dtype=np.float64) - basis.eye
    cam_x = rel @ basis.right
    cam_y = rel @ basis.up
    depth = np.maximum(rel @ basis.forward, near_depth)
    scale = viewport.focal_length / depth
    screen_x = viewport.center_x + cam_x * scale
    screen_y = viewport.center_y - cam_y * scale
    return screen_x, screen_y, depth


def project_point(
    point: tuple[float, float, float],
    basis: CameraBasis,
    viewport: Viewport,
    *,
    near_depth: float = 0.05,
) -> ProjectedPoint:
    sx, sy, depth = project_points(np.asarray(point, dtype=np.float64), basis, viewport, near_depth=near_depth)
    return ProjectedPoint(float(sx), float(sy), float(depth))
