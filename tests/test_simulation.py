from __future__ import annotations

import numpy as np
import pytest

from tidepool.config import SimulationParameters
from tidepool.fields import GridSizeError
from tidepool.metrics import surface_metrics
from tidepool.simulation import Simulation


def test_reference_run_forms_bounded_feature_under_the_mass() -> None:
    params = SimulationParameters(mass_exponent=24.0, volume_exponent=7.0, height_km=50.0)
    sim = Simulation(grid_size=60, parameters=params)
    source = sim.source()

    assert source.mass_kg == pytest.approx(1.0e24)
    assert source.radius_m == pytest.approx(1.3365e5, rel=1e-3)
    assert source.center_height_m == pytest.approx(50_000.0 + source.radius_m)

    sim.step(500)
    metrics = surface_metrics(sim.fields.height)

    assert metrics.finite
    assert np.isfinite(sim.fields.velocity).all()
    assert metrics.peak_cell[0] in (29, 30) and metrics.peak_cell[1] in (29, 30)
    assert metrics.center_height_m > 0.0
    assert metrics.max_height_m == pytest.approx(metrics.peak_abs_height_m)
    assert metrics.peak_abs_height_m < source.center_height_m
    assert metrics.peak_abs_height_m < 60_000.0
    assert abs(metrics.mean_height_m) < 1e-6 * metrics.peak_abs_height_m


def test_reset_zeroes_fields_and_keeps_parameters_and_camera() -> None:
    sim = Simulation(grid_size=40)
    sim.set_parameters(mass_exponent=25.0)
    sim.controller.pointer_down(0.0, 0.0)
    sim.controller.pointer_move(40.0, -25.0)
    sim.controller.pointer_up()
    sim.controller.wheel(-120.0)
    sim.step(40)
    assert np.any(sim.fields.height)

    params = sim.parameters
    camera_state = (sim.camera.yaw, sim.camera.pitch, sim.camera.distance)
    sim.reset()

    assert not np.any(sim.fields.height)
    assert not np.any(sim.fields.velocity)
    assert sim.parameters == params
    assert (sim.camera.yaw, sim.camera.pitch, sim.camera.distance) == camera_state
    assert sim.grid_size == 40


def test_invalid_parameters_are_ignored() -> None:
    sim = Simulation()
    before = sim.parameters

    after = sim.set_parameters(mass_exponent=float("nan"), volume_exponent=99.0, height_km=float("inf"))
    assert after == before

    updated = sim.set_parameters(mass_exponent=22.0, height_km=-5.0)
    assert updated.mass_exponent == 22.0
    assert updated.height_km == before.height_km
    assert updated.volume_exponent == before.volume_exponent


def test_grid_size_changes() -> None:
    sim = Simulation(grid_size=60)
    sim.step(3)
    height = sim.fields.height

    assert sim.set_grid_size(float("nan")) is False
    assert sim.set_grid_size(60) is False
    assert sim.set_grid_size(40.7) is False
    assert sim.set_grid_size(60.0) is False
    assert sim.fields.height is height

    with pytest.raises(GridSizeError):
        sim.set_grid_size(62)
    assert sim.fields.height is height
    assert sim.grid_size == 60

    assert sim.set_grid_size(40) is True
    assert sim.grid_dimensions == (40, 40)
    assert sim.fields.height.shape == (40, 40)
    assert sim.fields.surface_nodes.shape == (41, 41)


def test_unsupported_initial_grid_size_is_rejected() -> None:
    with pytest.raises(GridSizeError):
        Simulation(grid_size=64)


def test_advance_tracks_simulated_time() -> None:
    sim = Simulation(grid_size=20)

    assert sim.advance(0.0) == 0
    assert sim.advance(0.07) == 2
    assert sim.steps_taken == 2
    assert sim.simulated_seconds == pytest.approx(0.07)
