import json
import logging

import numpy as np
import pytest

from fworld.config import REQUIRED_ACTS, ConfigError
from fworld.patterns import PatternStore, correlation, decode_act
from fworld.rng import RNG

ACTS = list(REQUIRED_ACTS)


def one_hot_store():
    store = PatternStore((2, 3))
    for i, name in enumerate(ACTS):
        pat = np.zeros(6, dtype=np.float32)
        pat[i] = 1.0
        store.set(name, pat.reshape(2, 3))
    return store


def test_correlation_basics():
    a = np.array([1.0, 2.0, 3.0, 4.0])
    assert correlation(a, a) == pytest.approx(1.0)
    assert correlation(a, -a) == pytest.approx(-1.0)
    assert correlation(a, np.ones(4)) == 0.0
    with pytest.raises(ValueError):
        correlation(a, np.ones(3))


def test_decode_exact_pattern():
    store = one_hot_store()
    stream = RNG(1).stream("decode")
    for i, name in enumerate(ACTS):
        assert decode_act(store.get(name), store, ACTS, 2.0, stream) == i


def test_forward_margin_suppresses_forward():
    store = one_hot_store()
    stream = RNG(1).stream("decode")
    values = store.get("Left") + 0.9 * store.get("Forward")
    # Forward correlates slightly less than Left; with margin 2 Left wins
    assert ACTS[decode_act(values, store, ACTS, 2.0, stream)] == "Left"
    # a small margin lets Forward through
    assert ACTS[decode_act(values, store, ACTS, 0.5, stream)] == "Forward"


def test_decode_without_patterns_picks_random_valid_index():
    store = PatternStore((2, 3))
    stream = RNG(1).stream("decode")
    idx = decode_act(np.ones((2, 3)), store, ACTS, 2.0, stream)
    assert 0 <= idx < len(ACTS)


def test_generate_is_sparse_binary_and_deterministic():
    names = ["Wall", "Water", "Forward"]
    a = PatternStore((5, 5))
    b = PatternStore((5, 5))
    a.generate(names, RNG(9).stream("patterns"), n_on=6)
    b.generate(names, RNG(9).stream("patterns"), n_on=6)
    for name in names:
        assert a.get(name).shape == (5, 5)
        assert a.get(name).sum() == 6
        np.testing.assert_array_equal(a.get(name), b.get(name))


def test_validate_reports_missing():
    store = one_hot_store()
    store.validate(ACTS)
    with pytest.raises(ConfigError):
        store.validate(ACTS + ["Water"])


def test_set_rejects_wrong_shape():
    store = PatternStore((2, 3))
    with pytest.raises(ValueError):
        store.set("Forward", np.zeros((3, 2)))


def test_json_round_trip_and_unknown_names(tmp_path, caplog):
    store = one_hot_store()
    path = tmp_path / "pats.json"
    store.save_json(path)

    data = json.loads(path.read_text())
    data["Mystery"] = [[0, 0, 0], [0, 0, 0]]
    data["Left"] = [[1, 1], [1, 1]]
    path.write_text(json.dumps(data))

    loaded = PatternStore((2, 3))
    with caplog.at_level(logging.WARNING, logger="fworld.patterns"):
        loaded.load_json(path, ACTS)
    assert "Mystery" not in loaded
    assert "Left" not in loaded
    np.testing.assert_array_equal(loaded.get("Forward"), store.get("Forward"))
    assert "Mystery" in caplog.text


def test_load_json_requires_object(tmp_path):
    path = tmp_path / "pats.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        PatternStore((2, 3)).load_json(path, ACTS)
