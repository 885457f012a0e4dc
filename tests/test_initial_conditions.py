import numpy as np
import pytest

from dyeflow.geometry.grid import Grid
from dyeflow.numerics.projection import divergence
from dyeflow.utils.initial_conditions import taylor_green_vortex, vortex_pair, shear_flow, dye_disc


def _walls_zero(field):
    return (np.all(field[0] == 0) and np.all(field[-1] == 0)
            and np.all(field[:, 0] == 0) and np.all(field[:, -1] == 0))


def test_taylor_green_is_nearly_divergence_free():
    state = taylor_green_vortex(32, 32, amplitude=1.0)
    div = divergence(state.velocity_field)
    assert np.max(np.abs(div[2:-2, 2:-2])) < 1e-2
    assert np.max(state.speed()) > 0.5
    assert _walls_zero(state.velocity_field)


@pytest.mark.parametrize("factory", [vortex_pair, shear_flow])
def test_flows_respect_walls(factory):
    state = factory(24, 20)
    assert state.velocity_field.shape == (20, 24, 2)
    assert _walls_zero(state.velocity_field)
    assert state.solver is not None


def test_shear_flow_is_reproducible():
    a = shear_flow(16, 16, seed=3).velocity_snapshot()
    b = shear_flow(16, 16, seed=3).velocity_snapshot()
    np.testing.assert_array_equal(a, b)


def test_dye_disc_mass():
    state = taylor_green_vortex(30, 30)
    dye_disc(state, (15.0, 15.0), 4.0, color=(1.0, 0.5, 0.0))

    x, y = Grid(30, 30).cell_centers()
    n_inside = np.count_nonzero((x - 15.0)**2 + (y - 15.0)**2 <= 16.0)
    np.testing.assert_allclose(state.total_dye_mass, [n_inside, 0.5 * n_inside, 0.0])


def test_dye_disc_survives_steps():
    state = dye_disc(taylor_green_vortex(30, 30), (15.0, 15.0), 5.0)
    before = state.total_dye_mass.copy()
    for _ in range(10):
        state.solver.step(state)
    np.testing.assert_allclose(state.dye_snapshot().sum(axis=(0, 1)), before, rtol=1e-6)
