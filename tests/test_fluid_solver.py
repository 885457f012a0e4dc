import numpy as np
import pytest

from dyeflow import api
from dyeflow.config import SimulationParams
from dyeflow.geometry.grid import Grid
from dyeflow.physics.elements import DyeSource, Force, Attractor
from dyeflow.physics.fluid_solver import FluidSolver2D
from dyeflow.physics.perturbation import Footprint
from dyeflow.physics.simulation_state import SimulationCorruptedError
from dyeflow.utils.initial_conditions import vortex_pair, dye_disc


def _mass(state):
    return state.dye_field.sum(axis=(0, 1))


def test_dye_mass_conserved_over_fifty_steps(stirred_state):
    initial = _mass(stirred_state)
    for _ in range(50):
        api.step(stirred_state)
    drift = np.abs(_mass(stirred_state) - initial) / initial
    assert np.all(drift < 1e-5)
    assert np.any(stirred_state.velocity_field != 0.0)


def test_mass_conserved_under_strong_flow_with_attractor():
    state = vortex_pair(48, 48, strength=20.0)
    dye_disc(state, (20.0, 24.0), 6.0, (1.0, 2.0, 0.5))
    api.add_persistent_element(state, Attractor((30.0, 24.0), 10.0, 50.0))
    api.add_persistent_element(state, Force((10.0, 10.0), 4.0, (3.0, 1.0), 5.0))
    initial = _mass(state)

    for _ in range(50):
        api.step(state)

    np.testing.assert_allclose(_mass(state), initial, rtol=1e-5)


def test_boundary_velocity_zero_after_every_step(stirred_state):
    api.add_persistent_element(stirred_state, Force((1.0, 1.0), 5.0, (4.0, 4.0), 3.0))
    api.add_persistent_element(stirred_state, Attractor((38.0, 20.0), 8.0, 30.0))
    mask = stirred_state.grid.boundary_mask()
    for _ in range(10):
        api.step(stirred_state)
        assert np.all(stirred_state.velocity_field[mask] == 0.0)


def test_injection_raises_target_by_injected_mass(stirred_state):
    api.step(stirred_state)
    before = _mass(stirred_state)

    pos, radius, color, intensity = (12.3, 17.8), 3.0, (1.0, 0.5, 0.0), 2.0
    api.inject_dye(stirred_state, pos, radius, color, intensity)
    result = api.step(stirred_state)

    fp = Footprint(stirred_state.grid, pos, radius)
    expected = fp.weights.sum() * intensity * np.array(color)
    np.testing.assert_allclose(result.injected_mass, expected)
    np.testing.assert_allclose(result.target_mass, before + expected)
    np.testing.assert_allclose(_mass(stirred_state), before + expected, rtol=1e-5)


def test_injection_into_empty_channel(state):
    api.inject_dye(state, (20.0, 20.0), 2.0, (0.0, 0.0, 1.0), 3.0)
    result = api.step(state)
    assert _mass(state)[0] == 0.0
    assert _mass(state)[2] == pytest.approx(result.injected_mass[2])
    assert result.injected_mass[2] > 0.0


def test_zero_dt_step_changes_nothing(stirred_state):
    for _ in range(3):
        api.step(stirred_state)
    velocity = stirred_state.velocity.snapshot()
    dye = stirred_state.dye.snapshot()

    result = api.step(stirred_state, 0.0)

    np.testing.assert_allclose(stirred_state.velocity_field, velocity, rtol=0, atol=1e-12)
    np.testing.assert_allclose(stirred_state.dye_field, dye, rtol=0, atol=1e-12)
    assert result.projection.iterations == 0


def test_zero_dt_with_persistent_elements(stirred_state):
    api.step(stirred_state)
    api.add_persistent_element(stirred_state, DyeSource((20.0, 20.0), 3.0, (1.0, 1.0, 1.0), 5.0))
    api.add_persistent_element(stirred_state, Attractor((20.0, 20.0), 10.0, 5.0))
    dye = stirred_state.dye.snapshot()
    api.step(stirred_state, 0.0)
    np.testing.assert_allclose(stirred_state.dye_field, dye, rtol=0, atol=1e-12)


def test_persistent_source_reapplied_every_step(state):
    api.add_persistent_element(state, DyeSource((20.0, 20.0), 3.0, (1.0, 0.0, 0.0), 4.0))
    masses = []
    for _ in range(3):
        result = api.step(state)
        masses.append(_mass(state)[0])
        assert result.injected_mass[0] > 0.0
    assert masses[0] < masses[1] < masses[2]
    np.testing.assert_allclose(np.diff(masses), masses[0], rtol=1e-9)


def test_force_moves_dye_downstream(state):
    dye_disc(state, (12.5, 20.5), 3.0, (1.0, 0.0, 0.0))
    api.add_persistent_element(state, Force((12.5, 20.5), 6.0, (1.0, 0.0), 20.0))
    x, _ = state.grid.cell_centers()

    def centroid():
        r = state.dye_field[..., 0]
        return (r * x).sum() / r.sum()

    start = centroid()
    for _ in range(20):
        api.step(state)
    assert centroid() > start + 0.5


def test_transient_input_consumed_once(state):
    api.apply_force(state, (20.0, 20.0), 3.0, (1.0, 0.0), 5.0)
    assert len(state.pending) == 1
    api.step(state)
    assert state.pending == []
    assert np.any(state.velocity_field != 0.0)


def test_time_and_counter_advance(state):
    api.step(state, 0.05)
    api.step(state)
    assert state.step_count == 2
    assert state.time == pytest.approx(0.05 + state.params.dt)


def test_negative_dt_rejected(state):
    with pytest.raises(ValueError):
        api.step(state, -0.1)


def test_non_finite_step_corrupts_state(state):
    dye = np.zeros((40, 40, 3))
    dye[20, 20, 0] = np.inf
    state.load_dye(dye)

    with pytest.raises(SimulationCorruptedError):
        api.step(state)
    assert state.corrupted
    with pytest.raises(SimulationCorruptedError):
        api.step(state)

    state.reset()
    api.step(state)
    assert state.step_count == 1


def test_solver_rejects_foreign_grid(state):
    solver = FluidSolver2D(Grid(10, 10))
    with pytest.raises(ValueError):
        solver.step(state)


def test_parameters_are_read_each_step(state):
    api.apply_force(state, (20.0, 20.0), 5.0, (1.0, 1.0), 10.0)
    state.params.max_iterations = 1
    state.params.tolerance = 1e-12
    result = api.step(state)
    assert result.projection.iterations == 1


def test_runs_with_custom_params():
    state = api.create(30, 20, SimulationParams(dt=0.05, viscosity=0.0, diffusion_rate=0.0))
    dye_disc(state, (15.0, 10.0), 4.0)
    api.apply_force(state, (15.0, 10.0), 4.0, (0.0, 2.0), 5.0)
    initial = _mass(state)
    for _ in range(10):
        api.step(state)
    np.testing.assert_allclose(_mass(state), initial, rtol=1e-9)
