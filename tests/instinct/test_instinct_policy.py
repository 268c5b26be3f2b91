import math

import pytest

from brain.contracts import InstinctDecision
from brain.instinct import InstinctParams, InstinctPolicy, read_fovea, read_full_field, turn_right_prob
from fworld.config import ConfigError, FWorldConfig
from fworld.engine import FWorld
from fworld.rng import RNG


def make_env(size=10, seed=5):
    env = FWorld(FWorldConfig(size=(size, size), resources_per_drive=0), seed=seed)
    env.configure()
    env.init(0)
    return env


def decide(env, just_gated=False, has_gated=False, seed=0):
    return InstinctPolicy().decide(env, just_gated, has_gated, RNG(seed).stream("instinct"))


def test_full_field_uses_minimum_per_side():
    left, right = read_full_field([0.2, 0.9, 0.9, 0.9, 0.9])
    assert left == pytest.approx(0.8)
    assert right == pytest.approx(0.1)
    assert turn_right_prob(left, right) > 0.99


def test_full_field_close_tie_switches_to_average():
    logs = [0.5, 0.9, 0.9, 1.0, 1.0, 1.0, 0.55, 0.55, 0.55]
    left, right = read_full_field(logs, tie_margin=0.1)
    assert left == pytest.approx(1 - (0.5 + 0.9 + 0.9) / 3)
    assert right == pytest.approx(0.45)
    left, right = read_full_field(logs, tie_margin=0.0)
    assert left == pytest.approx(0.5)
    assert right == pytest.approx(0.45)


def test_turn_right_prob_softmax():
    assert turn_right_prob(0.0, 0.0) == 0.5
    assert turn_right_prob(0.3, 0.3) == pytest.approx(0.5)
    expected = math.exp(5.0) / (math.exp(5.0) + math.exp(1.0))
    assert turn_right_prob(0.5, 0.1) == pytest.approx(expected)


def test_at_wall_turns_with_wall_urgency():
    env = make_env()
    env.place_agent((1, 5), 180)
    d = decide(env)
    assert d.act_name in ("Left", "Right")
    assert d.urgency == pytest.approx(0.9)
    assert d.trace.startswith("at wall")


def test_at_wall_keeps_turning_direction():
    env = make_env()
    env.place_agent((1, 5), 180)
    env.last_act = env.acts.index("Right")
    for seed in range(5):
        assert decide(env, seed=seed).act_name == "Right"


def test_at_resource_consumes_and_gates():
    env = make_env()
    env.grid.set_cell((5, 5), env.palette.index("Sugar"))
    env.place_agent((4, 5), 0)
    d = decide(env)
    assert d.act_name == "Consume"
    assert d.should_gate is True
    assert d.urgency == pytest.approx(0.8)


def test_has_gated_goes_forward():
    env = make_env(size=20)
    env.place_agent((10, 10), 0)
    d = decide(env, has_gated=True)
    assert d.act_name == "Forward"
    assert d.urgency == 0.0


def test_close_resource_in_fovea_approaches():
    env = make_env()
    env.grid.set_cell((7, 5), env.palette.index("Water"))
    env.place_agent((4, 5), 0)
    reading = read_fovea(env.fovea, env.palette)
    assert reading.winner() == env.palette.index("Water")
    d = decide(env)
    assert d.act_name == "Forward"
    assert d.urgency == pytest.approx(0.5)


def test_far_resource_has_no_urgency():
    env = make_env(size=20)
    env.grid.set_cell((17, 10), env.palette.index("Salt"))
    env.place_agent((4, 10), 0)
    d = decide(env)
    assert d.urgency == 0.0
    assert d.act_name in ("Forward", "Left", "Right")
    assert "far Salt" in d.trace


def test_equal_resource_weights_have_no_winner():
    env = make_env()
    pal = env.palette
    reading = read_fovea(env.fovea, pal)
    assert reading.winner() is None


def test_close_wall_in_fovea_turns():
    env = make_env()
    env.place_agent((2, 5), 180)
    d = decide(env)
    assert d.act_name in ("Left", "Right")
    assert d.urgency == pytest.approx(0.5)


def test_open_space_defaults_without_urgency():
    env = make_env(size=20)
    env.place_agent((10, 10), 0)
    d = decide(env)
    assert d.urgency == 0.0
    assert d.trace.startswith("looking at")


def test_decision_is_deterministic_and_draws_two_numbers():
    env = make_env()
    env.place_agent((2, 5), 180)
    s1 = RNG(4).stream("instinct")
    s2 = RNG(4).stream("instinct")
    a = InstinctPolicy().decide(env, False, False, s1)
    b = InstinctPolicy().decide(env, False, False, s2)
    assert a == b
    ref = RNG(4).stream("instinct")
    ref.random()
    ref.random()
    assert s1.random() == ref.random()


def test_env_instinct_act_updates_flags():
    env = make_env()
    env.grid.set_cell((5, 5), env.palette.index("Water"))
    env.place_agent((4, 5), 0)
    act, urgency = env.instinct_act(False, False)
    assert env.acts[act] == "Consume"
    assert env.should_gate is True
    assert env.urgency == urgency
    assert "consume" in env.trace_inst


def test_params_validation():
    with pytest.raises(ConfigError):
        InstinctParams.from_dict({"speed": 1})
    with pytest.raises(ConfigError):
        InstinctParams.from_dict({"rnd_exp_same": 0.8, "rnd_exp_turn": 0.5})
    assert InstinctParams.from_dict({"tie_margin": 0.2}).tie_margin == 0.2


def test_decision_contract():
    InstinctDecision(act=0, act_name="Forward", urgency=0.5).validate()
    with pytest.raises(ValueError):
        InstinctDecision(act=0, act_name="Forward", urgency=1.5).validate()
