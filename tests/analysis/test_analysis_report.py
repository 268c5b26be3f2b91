from pathlib import Path

import pandas as pd
import pytest

from analysis.extract import extract_data
from analysis.metrics import (
    calculate_act_match_rate,
    calculate_action_distribution,
    calculate_bump_rate,
    calculate_consumption_stats,
    run_all_metrics,
)
from analysis.report import generate_report, load_world
from experiments.runner import run

WORLD = {"world": {"size": [14, 14], "resources_per_drive": 3}}


@pytest.fixture
def processed(tmp_path):
    runs = tmp_path / "runs"
    run("foraging", seed=2, ticks=30, outdir=runs / "foraging_2", protocol_config=WORLD)
    run("exploration", seed=2, ticks=20, outdir=runs / "exploration_2", protocol_config=WORLD)
    out = tmp_path / "processed"
    extract_data(runs, out)
    return runs, out


def test_extract_flattens_ticks(processed):
    runs, out = processed
    ticks = pd.read_csv(out / "ticks.csv")
    episodes = pd.read_csv(out / "episodes.csv")
    assert len(ticks) == 50
    assert len(episodes) == 2
    for col in ["pos_x", "pos_y", "pos_us_total", "neg_us_total", "run_id", "protocol"]:
        assert col in ticks.columns
    assert "pos" not in ticks.columns
    assert set(episodes["run_id"]) == {"foraging_2", "exploration_2"}


def test_metrics_on_handmade_frame():
    df = pd.DataFrame(
        {
            "protocol": ["a", "a", "a", "a"],
            "action": ["Forward", "Forward", "Left", "Consume"],
            "instinct_action": ["Forward", "Left", "Left", "Consume"],
            "net_action": ["Forward", "Forward", "", "Consume"],
            "consumed": ["", "", "", "Water"],
            "neg_us_total": [0.0, 0.1, 0.0, 0.0],
        }
    )
    dist = calculate_action_distribution(df)
    assert dist.loc["a", "Forward"] == pytest.approx(0.5)
    assert calculate_consumption_stats(df) == {"Water": 1}
    assert calculate_bump_rate(df) == pytest.approx(0.25)
    assert calculate_act_match_rate(df) == pytest.approx(2 / 3)


def test_metrics_handle_empty_frames():
    empty = pd.DataFrame()
    assert calculate_action_distribution(empty).empty
    assert calculate_consumption_stats(empty) == {}
    assert calculate_bump_rate(empty) == 0.0


def test_run_all_metrics(processed):
    _, out = processed
    metrics = run_all_metrics(str(out))
    assert not metrics["action_distribution"].empty
    assert "urgent_rate" in metrics["urgency_stats"]
    assert "foraging" in metrics["score_distributions"].get("count", {})


def test_report_with_world_map(processed, tmp_path):
    runs, out = processed
    report_dir = tmp_path / "report"
    path = generate_report(out, report_dir, world_file=runs / "foraging_2" / "world.tsv")
    text = Path(path).read_text()
    assert "## Action Distribution" in text
    assert (report_dir / "action_hist.png").exists()
    assert (report_dir / "trajectory.png").exists()


def test_load_world_infers_size(processed):
    runs, _ = processed
    grid = load_world(runs / "foraging_2" / "world.tsv")
    assert grid.size == (14, 14)
    assert grid.count(grid.palette.index("Wall")) == 52
