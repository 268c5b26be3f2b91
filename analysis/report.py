import argparse
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.colors import ListedColormap

from analysis.extract import load_table
from analysis.metrics import (
    calculate_action_distribution,
    calculate_act_match_rate,
    calculate_bump_rate,
    calculate_consumption_stats,
    calculate_score_distributions,
    calculate_urgency_stats,
)
from fworld.config import FWorldConfig
from fworld.grid import WorldGrid

def load_world(world_file: Path, config: Optional[FWorldConfig] = None) -> WorldGrid:
    """Read a world.tsv snapshot; without a config the size is taken from the file."""
    if config is None:
        rows = [ln for ln in world_file.read_text().split("\n") if ln]
        ncols = max((ln.count("\t") for ln in rows), default=1)
        config = FWorldConfig(size=(max(ncols, 1), max(len(rows), 1)))
    grid = WorldGrid(config.size, config.palette())
    grid.load_text(world_file)
    return grid

def plot_trajectory(ticks_df: pd.DataFrame, grid: Optional[WorldGrid], path: Path):
    """Agent path drawn over the world, cells coloured by material."""
    plt.figure(figsize=(6, 6))
    if grid is not None:
        colors = [grid.palette.color(i) for i in range(len(grid.palette))]
        plt.imshow(grid.cells, cmap=ListedColormap(colors), vmin=0, vmax=len(colors) - 1,
                   origin="upper", interpolation="nearest")
    for run_id, run_df in ticks_df.groupby(ticks_df.get("run_id", pd.Series([""] * len(ticks_df)))):
        plt.plot(run_df["pos_x"], run_df["pos_y"], linewidth=1, label=str(run_id))
    plt.title("Agent Trajectory")
    plt.xlabel("X")
    plt.ylabel("Y")
    plt.savefig(path)
    plt.close()

def generate_report(processed_dir: Path, report_dir: Path, world_file: Optional[Path] = None):
    """
    Generates a markdown report with plots from the processed data.
    """
    report_dir.mkdir(parents=True, exist_ok=True)

    ticks_df = load_table(processed_dir / "ticks.csv")
    episodes_df = load_table(processed_dir / "episodes.csv")

    report_parts = ["# FWorld Analysis Report\n"]

    # --- Metadata ---
    report_parts.append("## Run Metadata\n")
    metadata = {
        "Processed Directory": f"`{processed_dir}`",
        "Protocols": episodes_df["protocol"].nunique() if "protocol" in episodes_df.columns else 0,
        "Episodes": len(episodes_df),
        "Ticks": len(ticks_df),
    }
    report_parts.append(pd.DataFrame([metadata]).to_string(index=False))
    report_parts.append("\n")

    # --- Actions ---
    report_parts.append("## Action Distribution\n")
    action_dist = calculate_action_distribution(ticks_df)
    if not action_dist.empty:
        report_parts.append(action_dist.round(3).to_string())

        plt.figure()
        ticks_df["action"].value_counts().sort_index().plot(kind="bar")
        plt.title("Actions Taken")
        plt.xlabel("Action")
        plt.ylabel("Ticks")
        plt.tight_layout()
        plt.savefig(report_dir / "action_hist.png")
        plt.close()
        report_parts.append(f"\n![Action Histogram](action_hist.png)\n")
    else:
        report_parts.append("No action data found.\n")

    # --- Instinct ---
    report_parts.append("## Instinct Urgency\n")
    urgency_stats = calculate_urgency_stats(ticks_df)
    if urgency_stats:
        urgency_stats["bump_rate"] = calculate_bump_rate(ticks_df)
        urgency_stats["act_match_rate"] = calculate_act_match_rate(ticks_df)
        report_parts.append(pd.DataFrame([urgency_stats]).to_string(index=False))
    else:
        report_parts.append("No urgency data found.")
    report_parts.append("\n")

    # --- Consumption ---
    report_parts.append("## Consumption\n")
    consumption = calculate_consumption_stats(ticks_df)
    if consumption:
        report_parts.append(pd.DataFrame([consumption]).to_string(index=False))
    else:
        report_parts.append("Nothing consumed.")
    report_parts.append("\n")

    # --- Trajectory ---
    report_parts.append("## Trajectory\n")
    if not ticks_df.empty and "pos_x" in ticks_df.columns:
        grid = None
        if world_file is not None and world_file.exists():
            grid = load_world(world_file)
        plot_trajectory(ticks_df, grid, report_dir / "trajectory.png")
        report_parts.append(f"\n![Trajectory](trajectory.png)\n")
    else:
        report_parts.append("No position data found.\n")

    # --- Scores ---
    report_parts.append("## Protocol Score Distributions\n")
    score_dist = calculate_score_distributions(episodes_df)
    if not score_dist.empty:
        report_parts.append(score_dist.to_string())
    else:
        report_parts.append("No score data found.\n")

    report_path = report_dir / "report.md"
    report_path.write_text("\n".join(report_parts))
    print(f"Report saved to {report_path}")
    return report_path


def main():
    parser = argparse.ArgumentParser(description="Generate analysis report from processed data.")
    parser.add_argument("--processed-dir", type=Path, default=Path("analysis/processed"), help="Directory with CSV tables.")
    parser.add_argument("--report-dir", type=Path, default=Path("analysis/report"), help="Directory to save the report and plots.")
    parser.add_argument("--world", type=Path, default=None, help="world.tsv to draw under the trajectory.")
    args = parser.parse_args()

    generate_report(args.processed_dir, args.report_dir, args.world)

if __name__ == "__main__":
    main()
