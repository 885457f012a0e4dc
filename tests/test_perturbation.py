import numpy as np
import pytest

from dyeflow.geometry.grid import Grid
from dyeflow.physics.elements import DyeSource, Force, Attractor
from dyeflow.physics.perturbation import (
    Footprint, PerturbationEngine, attractor_velocity, sponge_damping
)


@pytest.fixture
def grid():
    return Grid(41, 41)


@pytest.fixture
def engine(grid):
    return PerturbationEngine(grid)


def test_footprint_falloff(grid):
    fp = Footprint(grid, (20.5, 20.5), 3.0)
    rows, cols = fp.window
    center = (20 - rows.start, 20 - cols.start)
    assert fp.weights[center] == 1.0
    assert np.all(fp.weights[fp.dist >= 3.0] == 0.0)
    assert np.all((fp.weights >= 0.0) & (fp.weights <= 1.0))


def test_sub_cell_radius_hits_containing_cell(grid):
    fp = Footprint(grid, (10.0, 10.0), 0.1)
    assert np.count_nonzero(fp.weights) == 1
    assert fp.weights.sum() == 1.0


def test_out_of_range_positions_are_clamped(grid, engine):
    velocity = grid.zeros(2)
    engine.apply_force(velocity, (-50.0, 500.0), 2.0, (1.0, 0.0), 1.0)
    assert velocity[40, 0, 0] > 0.0


def test_force_is_additive(grid, engine):
    velocity = grid.zeros(2)
    engine.apply_force(velocity, (20.5, 20.5), 3.0, (1.0, 2.0), 2.0)
    engine.apply_force(velocity, (20.5, 20.5), 3.0, (1.0, 2.0), 2.0)
    np.testing.assert_allclose(velocity[20, 20], [4.0, 8.0])


def test_inject_dye_reports_added_mass(grid, engine):
    dye = grid.zeros(3)
    added = engine.inject_dye(dye, (12.3, 30.9), 4.0, (1.0, 0.5, 0.0), 2.0)
    np.testing.assert_allclose(added, dye.sum(axis=(0, 1)))
    assert added[0] > 0.0 and added[2] == 0.0
    np.testing.assert_allclose(added[1], 0.5 * added[0])


def test_drain_never_goes_negative(grid, engine):
    dye = np.full((41, 41, 3), 1.0)
    change = engine.drain_dye(dye, (20.5, 20.5), 2.0, 3.0)
    assert dye[20, 20, 0] == 0.0
    assert np.all(dye >= 0.0)
    np.testing.assert_allclose(change, dye.sum(axis=(0, 1)) - 41 * 41)


def test_attractor_speed_follows_point_sink_law(grid):
    strength = 5.0
    radius = 15.0
    fp = Footprint(grid, (20.5, 20.5), radius)
    v = attractor_velocity(fp, strength)
    speed = np.hypot(v[..., 0], v[..., 1])

    ring = (fp.dist >= 1.0) & (fp.dist < 0.8 * radius)
    expected = strength / (2 * np.pi * fp.dist[ring]**2)
    np.testing.assert_allclose(speed[ring], expected)

    order = np.argsort(fp.dist[ring])
    assert np.all(np.diff(speed[ring][order]) <= 1e-12)

    # Points inward
    inward = v[..., 0] * fp.dx + v[..., 1] * fp.dy
    assert np.all(inward[ring] < 0.0)
    assert np.all(speed[fp.dist >= radius] == 0.0)


def test_attractor_center_is_finite(grid):
    fp = Footprint(grid, (20.5, 20.5), 5.0)
    v = attractor_velocity(fp, 100.0)
    assert np.all(np.isfinite(v))
    rows, cols = fp.window
    np.testing.assert_array_equal(v[20 - rows.start, 20 - cols.start], [0.0, 0.0])


def test_sponge_only_damps_the_rim(grid):
    fp = Footprint(grid, (20.5, 20.5), 10.0)
    damping = sponge_damping(fp, rate=2.0, dt=0.1)
    assert np.all(damping[fp.dist <= 8.0] == 1.0)
    assert np.all(damping[fp.dist >= 10.0] == 1.0)
    band = (fp.dist > 8.0) & (fp.dist < 10.0)
    assert np.all((damping[band] < 1.0) & (damping[band] > 0.0))
    assert np.all(sponge_damping(fp, rate=2.0, dt=0.0) == 1.0)


def test_element_application_is_order_independent(grid, engine):
    elements = [
        Force((18.0, 20.0), 4.0, (1.0, 0.0), 3.0),
        Attractor((21.0, 21.0), 8.0, 10.0),
        DyeSource((20.0, 19.0), 3.0, (0.2, 0.4, 0.6), 2.0),
        Force((22.0, 20.0), 4.0, (0.0, -1.0), 2.0),
    ]
    results = []
    for ordering in (elements, list(reversed(elements))):
        velocity = grid.zeros(2)
        dye = grid.zeros(3)
        injected = engine.apply_elements(velocity, dye, ordering, 0.1)
        results.append((velocity, dye, injected))

    np.testing.assert_allclose(results[0][0], results[1][0], atol=1e-12)
    np.testing.assert_allclose(results[0][1], results[1][1], atol=1e-12)
    np.testing.assert_allclose(results[0][2], results[1][2])


def test_persistent_rates_scale_with_dt(grid, engine):
    source = DyeSource((20.5, 20.5), 2.0, (1.0, 1.0, 1.0), 4.0)
    dye = grid.zeros(3)
    assert np.all(engine.apply_elements(grid.zeros(2), dye, [source], 0.0) == 0.0)
    assert np.all(dye == 0.0)

    half = engine.apply_elements(grid.zeros(2), grid.zeros(3), [source], 0.5)
    full = engine.apply_elements(grid.zeros(2), grid.zeros(3), [source], 1.0)
    np.testing.assert_allclose(full, 2.0 * half)


def test_black_source_drains_only_when_persistent(grid, engine):
    black = DyeSource((20.5, 20.5), 2.0, (0.0, 0.0, 0.0), 1.0)

    dye = np.full((41, 41, 3), 0.5)
    change = engine.apply_elements(grid.zeros(2), dye, [black], 1.0)
    assert np.all(change < 0.0)

    dye = np.full((41, 41, 3), 0.5)
    change = engine.apply_transient(grid.zeros(2), dye, [black])
    assert np.all(change == 0.0)
    assert np.all(dye == 0.5)


def test_transient_rejects_attractors(grid, engine):
    with pytest.raises(TypeError):
        engine.apply_transient(grid.zeros(2), grid.zeros(3),
                               [Attractor((5.0, 5.0), 2.0, 1.0)])


def test_persistent_attractor_is_a_rate(engine):
    velocity = Grid(41, 41).zeros(2)
    attractor = Attractor((20.5, 20.5), 10.0, 4.0)
    engine.apply_elements(velocity, Grid(41, 41).zeros(3), [attractor], 0.5)

    # Three cells right of the center, inside the undamped core
    expected = -4.0 * 0.5 / (2.0 * np.pi * 9.0)
    assert velocity[20, 23, 0] == pytest.approx(expected)
    assert velocity[20, 23, 1] == pytest.approx(0.0)
