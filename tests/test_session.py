"""
Tests for the playback session, configuration loading and walk persistence.
"""

import json
import re

import numpy as np
import pytest

from walk_sim import (
    PlaybackSession,
    SimulationConfig,
    WalkParams,
    compute_heatmap_grid,
    compute_multi_walk_heatmap_grid,
    load_config,
    utils,
)


def test_play_runs_to_end():
    session = PlaybackSession(SimulationConfig(steps=47, draw_speed=5))
    frames = list(session.play())
    assert len(frames) == 10
    assert [f.step for f in frames[:3]] == [5, 10, 15]
    assert frames[-1].step == 47
    assert frames[-1].done
    assert not any(f.done for f in frames[:-1])
    assert frames[-1].stats.total_steps == 47


def test_play_restarts_when_finished():
    session = PlaybackSession(SimulationConfig(steps=10, draw_speed=4))
    list(session.play())
    frames = list(session.play())
    assert frames[0].step == 4
    assert frames[-1].step == 10


def test_seek_backward_matches_fresh_session():
    config = SimulationConfig(steps=300, walk_count=3, heatmap=True, walk_type="levy")
    session = PlaybackSession(config)
    session.seek(250)
    rewound = session.seek(80)

    fresh = PlaybackSession(config).seek(80)
    assert rewound.stats.total_path_length == pytest.approx(fresh.stats.total_path_length)
    assert rewound.stats.max_distance == pytest.approx(fresh.stats.max_distance)
    assert rewound.analytics.msd_curve == fresh.analytics.msd_curve
    assert rewound.analytics.step_length_histogram == fresh.analytics.step_length_histogram
    assert np.array_equal(rewound.heatmap.counts, fresh.heatmap.counts)


def test_seek_clamps_to_walk_range():
    session = PlaybackSession(SimulationConfig(steps=20))
    assert session.seek(-5).step == 0
    assert session.seek(500).step == 20


def test_heatmap_disabled_by_default():
    frame = PlaybackSession(SimulationConfig(steps=20)).seek(10)
    assert frame.heatmap is None


def test_heatmap_follows_primary_walk():
    config = SimulationConfig(steps=200, walk_count=2, heatmap=True, grid_cell_size=3.0)
    session = PlaybackSession(config)
    for step in (30, 120, 60):
        frame = session.seek(step)
        expected = compute_heatmap_grid(session.primary, 6.0, step)
        assert np.array_equal(frame.heatmap.counts, expected.counts)


def test_heatmap_all_walks():
    config = SimulationConfig(steps=100, walk_count=3, heatmap=True, heatmap_all_walks=True)
    session = PlaybackSession(config)
    frame = session.seek(70)
    expected = compute_multi_walk_heatmap_grid(session.walks, config.heatmap_cell_size, 70)
    assert np.array_equal(frame.heatmap.counts, expected.counts)


def test_regenerate_resets_cursor_and_walks():
    session = PlaybackSession(SimulationConfig(steps=50))
    session.seek(40)
    session.regenerate(WalkParams(seed=7, steps=80, walk_type="lattice"), walk_count=2)
    assert session.current_step == 0
    assert len(session.walks) == 2
    assert [w.params.seed for w in session.walks] == [7, 8]
    assert session.max_steps == 80
    assert session.stats.last_step == 0
    assert session.analytics.step_lengths == []


def test_self_avoiding_session_uses_longest_walk():
    config = SimulationConfig(steps=5000, walk_count=4, walk_type="self-avoiding")
    session = PlaybackSession(config)
    frame = session.seek(session.max_steps)
    assert frame.done
    assert frame.stats.total_steps == session.primary.params.steps
    assert frame.analytics.walk_count == 4


def test_regenerate_heatmap_cell_follows_step_length():
    session = PlaybackSession(SimulationConfig(steps=100, heatmap=True))
    session.seek(50)
    session.regenerate(WalkParams(seed=3, steps=200, step_length=20.0))
    assert session.config.grid_cell_size == 20.0
    assert session.config.heatmap_cell_size == 40.0
    frame = session.seek(150)
    expected = compute_heatmap_grid(session.primary, 40.0, 150)
    assert frame.heatmap.cell_size == 40.0
    assert np.array_equal(frame.heatmap.counts, expected.counts)


def test_grid_cell_size_change_mid_playback():
    session = PlaybackSession(SimulationConfig(steps=200, heatmap=True))
    session.seek(50)
    session.config.grid_cell_size = 4.0
    frame = session.seek(120)
    expected = compute_heatmap_grid(session.primary, 8.0, 120)
    assert np.array_equal(frame.heatmap.counts, expected.counts)


###############################################################################
# Configuration
###############################################################################


def test_config_clamps_ranges():
    config = SimulationConfig.from_dict(
        {"seed": 0, "steps": 99999, "step_length": 0.2, "walk_count": 500, "levy_alpha": 9}
    )
    assert config.seed == 1
    assert config.steps == 5000
    assert config.step_length == 1.0
    assert config.walk_count == 100
    assert config.levy_alpha == 3.0


def test_config_rounds_and_ignores_bad_values():
    config = SimulationConfig.from_dict(
        {"steps": "120.5", "seed": float("nan"), "colour": "red", "heatmap": 1}
    )
    assert config.steps == 121
    assert config.seed == 42
    assert config.heatmap is True


def test_config_rejects_unknown_walk_type():
    with pytest.raises(ValueError):
        SimulationConfig.from_dict({"walk_type": "brownian"})


def test_heatmap_cell_size_is_twice_grid():
    assert SimulationConfig(grid_cell_size=4.0).heatmap_cell_size == 8.0


def test_config_grid_cell_defaults_to_step_length():
    assert SimulationConfig.from_dict({"step_length": 8}).grid_cell_size == 8.0
    assert SimulationConfig.from_dict({"step_length": 50}).grid_cell_size == 20.0
    assert SimulationConfig.from_dict({}).grid_cell_size == 5.0
    explicit = SimulationConfig.from_dict({"step_length": 8, "grid_cell_size": 3})
    assert explicit.grid_cell_size == 3.0


def test_load_config_json(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"walk_type": "levy", "levy_alpha": 1.2, "walk_count": 4}))
    config = load_config(path)
    assert config.walk_type == "levy"
    assert config.levy_alpha == 1.2
    assert config.walk_params().alpha == 1.2


def test_load_config_toml(tmp_path):
    path = tmp_path / "params.toml"
    path.write_text('walk_type = "lattice"\nsteps = 300\nheatmap = true\n')
    config = load_config(path)
    assert (config.walk_type, config.steps, config.heatmap) == ("lattice", 300, True)


def test_load_params_unsupported_suffix(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("steps: 10\n")
    with pytest.raises(ValueError):
        utils.load_params(path)


def test_save_and_load_walks(tmp_path):
    session = PlaybackSession(SimulationConfig(steps=5000, walk_count=3, walk_type="self-avoiding"))
    path = tmp_path / "out" / "walks.npz"
    utils.save_walks(path, session.walks)
    loaded = utils.load_walks(path)
    assert [w.params for w in loaded] == [w.params for w in session.walks]
    for original, restored in zip(session.walks, loaded):
        assert np.array_equal(original.points, restored.points)
        assert not restored.points.flags.writeable


def test_default_walks_path_is_timestamped(tmp_path):
    path = utils.default_walks_path("levy", 4, 42, out_dir=tmp_path / "results")
    assert path.parent == tmp_path / "results"
    assert re.fullmatch(r"levy_W4_S42_\d{8}-\d{6}\.npz", path.name)
    session = PlaybackSession(SimulationConfig(steps=20))
    utils.save_walks(path, session.walks)
    assert path.exists()
