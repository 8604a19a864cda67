"""
Unit tests for the walk generators.
"""

import math

import numpy as np
import pytest

from walk_sim import WALK_TYPES, WalkParams, generate_walk, generate_walks
from walk_sim.prng import Mulberry32
from walk_sim.walk import LATTICE_DIRECTIONS, LEVY_MIN_UNIFORM


def _step_lengths(points):
    return np.hypot(*np.diff(points, axis=0).T)


@pytest.mark.parametrize("walk_type", WALK_TYPES)
def test_deterministic(walk_type):
    params = WalkParams(seed=17, steps=1000, step_length=3.0, walk_type=walk_type)
    w1 = generate_walk(params)
    w2 = generate_walk(params)
    assert np.array_equal(w1.points, w2.points)
    assert w1.params == w2.params


@pytest.mark.parametrize("walk_type", WALK_TYPES)
def test_starts_at_origin_with_expected_length(walk_type):
    params = WalkParams(seed=3, steps=200, step_length=2.0, walk_type=walk_type)
    walk = generate_walk(params)
    assert walk.points.shape == (walk.params.steps + 1, 2)
    assert tuple(walk.points[0]) == (0.0, 0.0)
    assert not walk.points.flags.writeable


def test_different_seeds_give_different_walks():
    w1 = generate_walk(WalkParams(seed=1, steps=50))
    w2 = generate_walk(WalkParams(seed=2, steps=50))
    assert not np.array_equal(w1.points, w2.points)


def test_zero_steps():
    walk = generate_walk(WalkParams(seed=1, steps=0, walk_type="lattice"))
    assert walk.points.shape == (1, 2)
    assert walk.params.steps == 0


@pytest.mark.parametrize("walk_type", ["isotropic", "lattice"])
def test_fixed_step_length(walk_type):
    """Isotropic and lattice steps are exactly step_length long."""
    params = WalkParams(seed=11, steps=2000, step_length=2.5, walk_type=walk_type)
    walk = generate_walk(params)
    assert np.allclose(_step_lengths(walk.points), 2.5, atol=1e-9, rtol=0)


def test_lattice_is_axis_aligned():
    walk = generate_walk(WalkParams(seed=8, steps=500, step_length=4.0, walk_type="lattice"))
    scaled = walk.points / 4.0
    assert np.array_equal(scaled, np.round(scaled))
    deltas = np.abs(np.diff(scaled, axis=0))
    assert np.all(deltas.sum(axis=1) == 1.0)


def test_lattice_first_step_uses_floor_of_draw():
    """First direction is LATTICE_DIRECTIONS[floor(u * 4)] for the first draw u."""
    rng = Mulberry32(7)
    k = int(math.floor(rng.random() * 4))
    walk = generate_walk(WalkParams(seed=7, steps=1, step_length=3.0, walk_type="lattice"))
    assert np.array_equal(walk.points[1], LATTICE_DIRECTIONS[k] * 3.0)


def test_isotropic_first_step_angle():
    rng = Mulberry32(21)
    angle = rng.random() * math.pi * 2
    walk = generate_walk(WalkParams(seed=21, steps=1, step_length=1.5))
    assert walk.points[1, 0] == pytest.approx(math.cos(angle) * 1.5)
    assert walk.points[1, 1] == pytest.approx(math.sin(angle) * 1.5)


def test_levy_step_lengths_bounded():
    """Levy steps are at least step_length and at most the 0.01-floor cap."""
    alpha = 1.2
    params = WalkParams(seed=5, steps=5000, step_length=1.0, walk_type="levy", levy_alpha=alpha)
    lengths = _step_lengths(generate_walk(params).points)
    cap = LEVY_MIN_UNIFORM ** (-1.0 / alpha)
    assert np.all(lengths >= 1.0 - 1e-9)
    assert np.all(lengths <= cap + 1e-9)
    # Heavy tail: some steps well beyond the base length
    assert lengths.max() > 5.0


def test_levy_default_alpha():
    default = generate_walk(WalkParams(seed=9, steps=100, walk_type="levy"))
    explicit = generate_walk(WalkParams(seed=9, steps=100, walk_type="levy", levy_alpha=1.5))
    assert np.array_equal(default.points, explicit.points)
    assert default.params.alpha == 1.5


def test_levy_uses_two_draws_per_step():
    rng = Mulberry32(4)
    angle = rng.random() * math.pi * 2
    u = max(rng.random(), LEVY_MIN_UNIFORM)
    length = 2.0 * u ** (-1.0 / 1.5)
    walk = generate_walk(WalkParams(seed=4, steps=1, step_length=2.0, walk_type="levy"))
    assert walk.points[1, 0] == pytest.approx(math.cos(angle) * length)
    assert walk.points[1, 1] == pytest.approx(math.sin(angle) * length)


def test_self_avoiding_points_distinct():
    walk = generate_walk(
        WalkParams(seed=13, steps=3000, step_length=1.7, walk_type="self-avoiding")
    )
    sites = {tuple(np.round(p / 1.7).astype(int)) for p in walk.points}
    assert len(sites) == walk.num_points
    assert np.allclose(_step_lengths(walk.points), 1.7, atol=1e-9, rtol=0)


def test_self_avoiding_early_termination_corrects_steps():
    """Trapped walks report the number of steps actually taken."""
    trapped = 0
    for seed in range(1, 11):
        walk = generate_walk(
            WalkParams(seed=seed, steps=5000, step_length=1.0, walk_type="self-avoiding")
        )
        assert walk.params.steps == walk.num_points - 1
        if walk.num_points - 1 < 5000:
            trapped += 1
    assert trapped > 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"steps": -1},
        {"step_length": 0.0},
        {"step_length": -2.0},
        {"walk_type": "brownian"},
        {"walk_type": "levy", "levy_alpha": 0.0},
    ],
)
def test_invalid_params_rejected(kwargs):
    with pytest.raises(ValueError):
        WalkParams(**kwargs)


def test_generate_walks_offsets_seeds():
    params = WalkParams(seed=100, steps=50, walk_type="lattice")
    walks = generate_walks(params, 3)
    assert [w.params.seed for w in walks] == [100, 101, 102]
    single = generate_walk(WalkParams(seed=102, steps=50, walk_type="lattice"))
    assert np.array_equal(walks[2].points, single.points)


def test_generate_walks_requires_positive_count():
    with pytest.raises(ValueError):
        generate_walks(WalkParams(), 0)
