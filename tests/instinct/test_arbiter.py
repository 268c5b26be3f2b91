from brain.arbiter import arbitrate
from brain.contracts import ArbitratedAction
from fworld.rng import RNG


def test_full_urgency_always_takes_instinct():
    stream = RNG(1).stream("arbiter")
    for _ in range(50):
        chosen = arbitrate(2, 1.0, 0, 1.0, stream)
        assert chosen.act == 2
        assert chosen.source == "instinct"


def test_zero_urgency_full_cortex_takes_network():
    stream = RNG(1).stream("arbiter")
    for _ in range(50):
        chosen = arbitrate(2, 0.0, 1, 1.0, stream)
        assert chosen.act == 1
        assert chosen.source == "network"
        assert chosen.act_match is False


def test_no_cortex_falls_back_to_instinct():
    stream = RNG(1).stream("arbiter")
    assert arbitrate(3, 0.0, 1, 0.0, stream).act == 3
    chosen = arbitrate(3, 0.0, None, 1.0, stream)
    assert chosen.act == 3
    assert chosen.net_act == -1


def test_mixed_rates_are_reproducible():
    a = [arbitrate(0, 0.5, 1, 0.5, RNG(7).stream("arbiter")).act for _ in range(3)]
    s1 = RNG(7).stream("arbiter")
    s2 = RNG(7).stream("arbiter")
    assert [arbitrate(0, 0.5, 1, 0.5, s1).act for _ in range(40)] == [
        arbitrate(0, 0.5, 1, 0.5, s2).act for _ in range(40)
    ]
    assert len(set(a)) == 1


def test_arbitrated_action_contract():
    ArbitratedAction(act=1, instinct_act=1, net_act=1, source="network").validate()
    assert ArbitratedAction(act=1, instinct_act=1, net_act=1, source="network").act_match
