
import argparse
import json
from pathlib import Path
import pandas as pd

def _flatten_tick(tick: dict) -> dict:
    """Split list-valued fields so the table stays flat."""
    pos = tick.pop("pos", [0, 0])
    tick["pos_x"], tick["pos_y"] = int(pos[0]), int(pos[1])
    tick["pos_us_total"] = float(sum(tick.pop("pos_us", []) or [0.0]))
    tick["neg_us_total"] = float(sum(tick.pop("neg_us", []) or [0.0]))
    return tick

def extract_data(runs_dir: Path, output_dir: Path):
    """
    Extracts runner outputs (one sub-directory per run) into CSV tables.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    for f in output_dir.glob("*.csv"):
        f.unlink()

    # Episodes
    episode_summaries = []
    for summary_file in sorted(runs_dir.glob("**/summary.json")):
        summary_data = json.loads(summary_file.read_text())
        summary_data["run_id"] = summary_file.parent.name
        # nested dicts become JSON strings
        for key, value in list(summary_data.items()):
            if isinstance(value, dict):
                summary_data[key] = json.dumps(value, sort_keys=True)
        episode_summaries.append(summary_data)

    episodes_df = pd.DataFrame(episode_summaries)
    episodes_df.to_csv(output_dir / "episodes.csv", index=False)
    print(f"Episodes table saved to {output_dir / 'episodes.csv'} ({len(episodes_df)} rows)")

    # Ticks
    all_ticks = []
    for tick_file in sorted(runs_dir.glob("**/ticks.jsonl")):
        run_id = tick_file.parent.name
        with open(tick_file, "r") as f:
            for line in f:
                if not line.strip():
                    continue
                tick_data = _flatten_tick(json.loads(line))
                tick_data["run_id"] = run_id
                tick_data["protocol"] = tick_data.get("protocol_name", "")
                all_ticks.append(tick_data)

    ticks_df = pd.DataFrame(all_ticks)
    ticks_df.to_csv(output_dir / "ticks.csv", index=False)
    print(f"Ticks table saved to {output_dir / 'ticks.csv'} ({len(ticks_df)} rows)")
    return episodes_df, ticks_df

def load_table(path: Path) -> pd.DataFrame:
    """Read a CSV table; missing or empty files give an empty frame."""
    try:
        return pd.read_csv(path)
    except (FileNotFoundError, pd.errors.EmptyDataError):
        return pd.DataFrame()

def main():
    parser = argparse.ArgumentParser(description="Extract FWorld run outputs into CSV tables.")
    parser.add_argument("runs_dir", type=Path, help="Directory holding one or more run directories.")
    parser.add_argument("--output-dir", type=Path, default=Path("analysis/processed"), help="Directory to save the CSV tables.")
    args = parser.parse_args()

    extract_data(args.runs_dir, args.output_dir)

if __name__ == "__main__":
    main()
