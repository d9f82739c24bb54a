"""Pointer-drag and wheel input mapped onto the orbit camera."""

from __future__ import annotations

from dataclasses import dataclass
import math

from tidepool.camera import OrbitCamera
from tidepool.config import CameraConfig


@dataclass
class OrbitController:
    """Drag rotates, wheel zooms. No inertia after release."""

    camera: OrbitCamera
    drag_sensitivity: float = 0.006
    zoom_sensitivity: float = 0.0012
    dragging: bool = False
    last_x: float = 0.0
    last_y: float = 0.0

    @classmethod
    def from_config(cls, camera: OrbitCamera, config: CameraConfig) -> "OrbitController":
        return cls(
            camera=camera,
            drag_sensitivity=config.drag_sensitivity,
            zoom_sensitivity=config.zoom_sensitivity,
        )

    def pointer_down(self, x: float, y: float) -> None:
        self.dragging = True
        self.last_x = x
        self.last_y = y

    def pointer_move(self, x: float, y: float) -> None:
        if not self.dragging:
            return
        dx = x - self.last_x
        dy = y - self.last_y
        self.last_x = x
        self.last_y = y
        self.drag(dx, dy)

    def pointer_up(self) -> None:
        self.dragging = False

    # Leaving the surface or a cancelled gesture ends the drag the same way.
    pointer_leave = pointer_up
    pointer_cancel = pointer_up

    def drag(self, dx: float, dy: float) -> None:
        """Apply a pointer delta in pixels."""

        if not (math.isfinite(dx) and math.isfinite(dy)):
            return
        self.camera.yaw -= dx * self.drag_sensitivity
        self.camera.set_pitch(self.camera.pitch + dy * self.drag_sensitivity)

    def wheel(self, delta_y: float) -> None:
        if not math.isfinite(delta_y):
            return
        self.camera.set_distance(self.camera.distance * math.exp(delta_y * self.zoom_sensitivity))
