from __future__ import annotations

import numpy as np
import pytest

from tidepool.camera import Viewport
from tidepool.compositor import (
    Polygon,
    Polyline,
    Sphere,
    TriangleBatch,
    hsl_to_rgba,
    sphere_insertion_index,
    surface_lightness,
)
from tidepool.config import SceneConfig, SimulationParameters
from tidepool.simulation import Simulation


def _sim(grid_size: int = 20, steps: int = 30) -> Simulation:
    sim = Simulation(grid_size=grid_size, parameters=SimulationParameters(24.0, 7.0, 50.0))
    sim.step(steps)
    return sim


def _non_increasing(values: list[float]) -> bool:
    return all(later <= earlier for earlier, later in zip(values, values[1:]))


def test_static_scene_order_is_stable_and_back_to_front() -> None:
    sim = _sim()
    sim.fields.velocity.fill(0.0)
    viewport = Viewport.from_size(640, 480)

    first = sim.compose(viewport)
    second = sim.compose(viewport)

    assert first.face_depths() == second.face_depths()
    assert first.surface_depths() == second.surface_depths()
    assert _non_increasing(first.face_depths())
    assert _non_increasing(first.surface_depths())


def test_frame_layout_faces_then_surface_then_outline() -> None:
    sim = _sim()
    frame = sim.compose(Viewport.from_size(640, 480))
    kinds = [type(cmd) for cmd in frame.commands]

    n = sim.grid_size
    assert kinds[: 5 + 4 * n] == [Polygon] * (5 + 4 * n)
    assert kinds.count(Sphere) == 1
    assert kinds[-1] is Polyline
    triangles = sum(len(cmd.depths) for cmd in frame.commands if isinstance(cmd, TriangleBatch))
    assert triangles == 2 * n * n
    assert frame.grid_size == n


def test_sphere_sits_between_farther_and_nearer_cells() -> None:
    sim = _sim()
    frame = sim.compose(Viewport.from_size(640, 480))
    sphere = next(cmd for cmd in frame.commands if isinstance(cmd, Sphere))
    batches = [cmd for cmd in frame.commands if isinstance(cmd, TriangleBatch)]
    cell_depths = sim.fields.cell_depth.ravel()[sim.fields.cell_order]
    k = frame.sphere_index()

    assert np.all(cell_depths[:k] > sphere.depth)
    assert np.all(cell_depths[k:] <= sphere.depth)
    assert sum(len(batch.depths) for batch in batches) == 2 * cell_depths.size


def test_sphere_insertion_index_extremes() -> None:
    depths = np.array([5.0, 4.0, 3.0])

    assert sphere_insertion_index(depths, 10.0) == 0
    assert sphere_insertion_index(depths, 4.0) == 1
    assert sphere_insertion_index(depths, 3.5) == 2
    assert sphere_insertion_index(depths, 0.1) == 3
    assert sphere_insertion_index(np.array([]), 1.0) == 0


def test_far_sphere_is_drawn_before_the_surface() -> None:
    sim = _sim(steps=0)
    sim.camera.set_pitch(sim.camera.min_pitch)
    sim.camera.yaw = 0.0
    sim.set_parameters(height_km=500.0, volume_exponent=3.0)
    frame = sim.compose(Viewport.from_size(640, 480))
    sphere = next(cmd for cmd in frame.commands if isinstance(cmd, Sphere))
    cell_depths = sim.fields.cell_depth.ravel()[sim.fields.cell_order]

    assert frame.sphere_index() == sphere_insertion_index(cell_depths, sphere.depth)
    assert sphere.radius_px > 0.0


def test_cell_order_is_sorted_far_to_near() -> None:
    sim = _sim()
    sim.compose(Viewport.from_size(320, 240))
    ordered = sim.fields.cell_depth.ravel()[sim.fields.cell_order]

    assert _non_increasing(ordered.tolist())
    assert np.allclose(
        sim.fields.cell_depth,
        (
            sim.fields.node_depth[:-1, :-1]
            + sim.fields.node_depth[:-1, 1:]
            + sim.fields.node_depth[1:, 1:]
            + sim.fields.node_depth[1:, :-1]
        )
        / 4.0,
    )


def test_surface_lightness_clamps() -> None:
    scene = SceneConfig()
    heights = np.array([0.0, 1.0e6, -1.0e6, 0.0])
    depths = np.array([0.0, 0.0, 0.0, 1.0e6])
    lightness = surface_lightness(heights, depths, 72.0, scene)

    assert lightness[0] == pytest.approx(66.0)
    assert lightness[1] == 74.0
    assert lightness[2] == 50.0
    assert lightness[3] == pytest.approx(56.0)


def test_hsl_conversion_matches_reference_colors() -> None:
    gray = hsl_to_rgba(0.0, 0.0, np.array([0.5]), 1.0)
    red = hsl_to_rgba(0.0, 1.0, np.array([0.5]), 0.25)
    water = hsl_to_rgba(196.0, 0.62, np.array([0.66]), 0.55)

    assert np.allclose(gray[0], [0.5, 0.5, 0.5, 1.0])
    assert np.allclose(red[0], [1.0, 0.0, 0.0, 0.25])
    # hsl(196, 62%, 66%) is roughly rgb(115, 193, 222)
    assert np.allclose(water[0, :3] * 255.0, [115.0, 193.0, 222.0], atol=1.5)


def test_outline_traces_the_perimeter_once() -> None:
    sim = _sim(grid_size=20, steps=0)
    frame = sim.compose(Viewport.from_size(320, 240))
    outline = frame.commands[-1]

    assert isinstance(outline, Polyline)
    assert outline.closed
    assert outline.points.shape == (4 * 20, 2)
    assert outline.points[0, 0] == sim.fields.node_screen_x[0, 0]
    assert outline.points[20, 0] == sim.fields.node_screen_x[0, 20]
