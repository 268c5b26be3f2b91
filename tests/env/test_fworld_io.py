import json
import logging

import numpy as np
import pytest

from fworld.config import ConfigError, FWorldConfig, load_config
from fworld.engine import FWorld


def test_configure_rejects_bad_settings():
    with pytest.raises(ConfigError):
        FWorld(FWorldConfig(size=(0, 10))).configure()
    with pytest.raises(ConfigError):
        FWorld(FWorldConfig(acts=["Forward", "Left"])).configure()
    with pytest.raises(ConfigError):
        FWorld(FWorldConfig(fov=100)).configure()
    with pytest.raises(ConfigError):
        FWorldConfig.from_dict({"colour": "red"})


@pytest.mark.parametrize("fov, inc, n_rays", [(180, 60, 4), (90, 30, 4), (180, 45, 5)])
def test_fov_accepts_any_whole_ray_count(fov, inc, n_rays):
    env = FWorld(FWorldConfig(size=(12, 12), resources_per_drive=1, fov=fov, vis_ang_inc=inc))
    env.configure()
    env.init(0)
    assert env.config.n_fov_rays == n_rays
    assert env.state("Depth").shape[1] == n_rays
    assert len(env.depth) == n_rays


def test_fov_must_be_even():
    with pytest.raises(ConfigError):
        FWorldConfig(fov=45, vis_ang_inc=15).validate()


def test_validate_requires_configuration():
    env = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0))
    with pytest.raises(ConfigError):
        env.validate()
    env.configure()
    env.validate()


def test_generated_world_has_border_and_resources():
    env = FWorld(FWorldConfig(), seed=11)
    env.configure()
    grid = env.grid
    pal = env.palette
    assert np.all(grid.cells[0, :] == pal.index("Wall"))
    assert np.all(grid.cells[:, -1] == pal.index("Wall"))
    for us in env.config.pos_uss:
        assert grid.count(pal.index(us)) == 10
    assert grid.get_cell((25, 25)) == 0


def test_world_file_is_written_and_reloaded(tmp_path):
    path = tmp_path / "world_0.tsv"
    env = FWorld(FWorldConfig(size=(12, 12), resources_per_drive=2, world_file=str(path)), seed=2)
    env.configure()
    assert path.exists()
    saved = env.grid.copy()
    env.init(0)
    env.grid.zero()
    env.init(0)
    np.testing.assert_array_equal(env.grid.cells, saved)


def test_open_world_failure_keeps_grid(tmp_path, caplog):
    env = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=1), seed=2)
    env.configure()
    before = env.grid.copy()
    with caplog.at_level(logging.ERROR, logger="fworld.engine"):
        assert env.open_world(tmp_path / "missing.tsv") is False
    np.testing.assert_array_equal(env.grid.cells, before)
    assert "missing.tsv" in caplog.text


def test_save_world_to_bad_path_returns_false(tmp_path):
    env = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0))
    env.configure()
    assert env.save_world(tmp_path / "no" / "such" / "dir" / "w.tsv") is False


def test_pattern_save_and_open(tmp_path):
    env = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0), seed=1)
    env.configure()
    path = tmp_path / "pats.json"
    assert env.save_pats(path) is True

    other = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0), seed=99)
    other.configure()
    assert other.open_pats(path) is True
    for name in env.pattern_names():
        np.testing.assert_array_equal(other.pats.get(name), env.pats.get(name))


def test_open_pats_with_missing_entries_keeps_old_set(tmp_path):
    env = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0), seed=1)
    env.configure()
    before = env.pats.get("Forward").copy()
    path = tmp_path / "pats.json"
    path.write_text(json.dumps({"Forward": np.zeros((5, 5)).tolist()}))
    assert env.open_pats(path) is False
    np.testing.assert_array_equal(env.pats.get("Forward"), before)


def test_configure_from_pattern_file(tmp_path):
    src = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0), seed=1)
    src.configure()
    path = tmp_path / "pats.json"
    src.save_pats(path)
    env = FWorld(FWorldConfig(size=(10, 10), resources_per_drive=0, pats_file=str(path)), seed=7)
    env.configure()
    np.testing.assert_array_equal(env.pats.get("Water"), src.pats.get("Water"))

    bad = FWorld(FWorldConfig(size=(10, 10), pats_file=str(tmp_path / "none.json")))
    with pytest.raises(ConfigError):
        bad.configure()


def test_load_config_from_json(tmp_path):
    path = tmp_path / "world.json"
    path.write_text(json.dumps({"name": "Tiny", "size": [8, 6], "params": {"BumpPain": 0.5}}))
    cfg = load_config(path)
    assert cfg.size == (8, 6)
    assert cfg.params["BumpPain"] == 0.5
    assert cfg.params["EnvRefresh"] == 100.0
    assert cfg.n_fov_rays == 5
    assert cfg.n_mot_angles == 25


def test_init_pos_layout():
    env = FWorld()
    env.init_pos(0)
    assert env.pos_i == (4, 8)
    env.init_pos(13)
    assert env.pos_i == (8, 25)
    env.init_pos(35)
    assert env.pos_i == (46, 42)
    assert env.pos_f == (46.0, 42.0)
    with pytest.raises(ValueError):
        env.init_pos(36)
