from __future__ import annotations

import math

import numpy as np
import pytest

from tidepool.camera import OrbitCamera, Viewport, project_point, project_points, view_depth
from tidepool.config import CameraConfig
from tidepool.controller import OrbitController
from tidepool.simulation import Simulation


def _camera(grid_size: int = 60) -> OrbitCamera:
    return OrbitCamera.from_config(CameraConfig(), grid_size, target=(0.0, 0.0, 2.0))


def test_basis_is_orthonormal_and_roll_free() -> None:
    camera = _camera()
    for yaw in np.linspace(-4.0, 4.0, 9):
        for pitch in (camera.min_pitch, 0.7, camera.max_pitch):
            camera.yaw = float(yaw)
            camera.set_pitch(pitch)
            basis = camera.basis()

            for axis in (basis.forward, basis.right, basis.up):
                assert np.linalg.norm(axis) == pytest.approx(1.0)
            assert float(basis.forward @ basis.right) == pytest.approx(0.0, abs=1e-12)
            assert float(basis.forward @ basis.up) == pytest.approx(0.0, abs=1e-12)
            assert float(basis.right @ basis.up) == pytest.approx(0.0, abs=1e-12)
            assert basis.right[2] == 0.0
            assert basis.up[2] > 0.0
            assert np.linalg.norm(basis.eye - np.array(camera.target)) == pytest.approx(camera.distance)


def test_point_along_forward_projects_to_viewport_center() -> None:
    camera = _camera()
    basis = camera.basis()
    for width, height in ((800, 600), (320, 900)):
        viewport = Viewport.from_size(width, height)
        point = tuple(basis.eye + basis.forward)
        projected = project_point(point, basis, viewport)

        assert projected.x == pytest.approx(viewport.center_x)
        assert projected.y == pytest.approx(viewport.center_y)
        assert projected.depth == pytest.approx(1.0)
        assert projected.depth >= CameraConfig().near_depth


def test_points_behind_the_eye_clamp_to_near_plane() -> None:
    basis = _camera().basis()
    behind = basis.eye - 3.0 * basis.forward

    assert float(view_depth(behind, basis, near_depth=0.05)) == pytest.approx(0.05)
    _, _, depth = project_points(np.stack([behind, basis.eye]), basis, Viewport.from_size(100, 100))
    assert np.all(depth >= 0.05)


def test_screen_y_grows_downward() -> None:
    camera = _camera()
    basis = camera.basis()
    viewport = Viewport.from_size(400, 400)
    center = basis.eye + 10.0 * basis.forward

    above = project_point(tuple(center + basis.up), basis, viewport)
    right = project_point(tuple(center + basis.right), basis, viewport)
    assert above.y < viewport.center_y
    assert right.x > viewport.center_x


def test_viewport_focal_length_follows_fov() -> None:
    cfg = CameraConfig()
    viewport = Viewport.from_size(1000, 500, cfg)

    assert viewport.focal_length == pytest.approx(0.92 * 500 / math.tan(math.radians(25.0)))
    assert viewport.center_x == 500.0
    assert viewport.center_y == pytest.approx(290.0)
    with pytest.raises(ValueError):
        Viewport.from_size(0, 100)


def test_drag_and_wheel_stay_within_bounds() -> None:
    camera = _camera()
    controller = OrbitController.from_config(camera, CameraConfig())
    rng = np.random.default_rng(3)

    controller.pointer_down(0.0, 0.0)
    x = y = 0.0
    for dx, dy, wheel in rng.uniform(-800.0, 800.0, size=(300, 3)):
        x += dx
        y += dy
        controller.pointer_move(x, y)
        controller.wheel(wheel * 3.0)
        assert camera.min_pitch <= camera.pitch <= camera.max_pitch
        assert camera.min_distance <= camera.distance <= camera.max_distance


def test_drag_only_applies_while_dragging() -> None:
    camera = _camera()
    controller = OrbitController.from_config(camera, CameraConfig())
    yaw, pitch = camera.yaw, camera.pitch

    controller.pointer_move(50.0, 50.0)
    assert (camera.yaw, camera.pitch) == (yaw, pitch)

    controller.pointer_down(10.0, 10.0)
    controller.pointer_move(20.0, 15.0)
    assert camera.yaw == pytest.approx(yaw - 10.0 * 0.006)
    assert camera.pitch == pytest.approx(pitch + 5.0 * 0.006)

    controller.pointer_leave()
    assert not controller.dragging
    controller.pointer_move(500.0, 500.0)
    assert camera.yaw == pytest.approx(yaw - 10.0 * 0.006)


def test_wheel_zoom_is_exponential() -> None:
    camera = _camera()
    controller = OrbitController.from_config(camera, CameraConfig())
    start = camera.distance

    controller.wheel(100.0)
    assert camera.distance == pytest.approx(start * math.exp(0.12))


def test_distance_bounds_follow_grid_size() -> None:
    sim = Simulation(grid_size=60)
    assert (sim.camera.min_distance, sim.camera.max_distance) == pytest.approx((48.0, 240.0))

    sim.set_grid_size(120)
    assert (sim.camera.min_distance, sim.camera.max_distance) == pytest.approx((96.0, 480.0))
    assert sim.camera.distance == pytest.approx(96.0)

    sim.set_grid_size(20)
    assert (sim.camera.min_distance, sim.camera.max_distance) == pytest.approx((18.0, 120.0))
    assert sim.camera.distance == pytest.approx(96.0)
