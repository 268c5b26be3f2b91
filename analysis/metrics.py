
import pandas as pd
from pathlib import Path
from typing import Dict

from analysis.extract import load_table

def calculate_action_distribution(ticks_df: pd.DataFrame) -> pd.DataFrame:
    """Fraction of ticks spent on each action, per protocol."""
    if ticks_df.empty or "action" not in ticks_df.columns:
        return pd.DataFrame()
    group = ticks_df.get("protocol", pd.Series([""] * len(ticks_df)))
    counts = ticks_df.groupby([group, "action"]).size().unstack(fill_value=0)
    return counts.div(counts.sum(axis=1), axis=0)

def calculate_urgency_stats(ticks_df: pd.DataFrame) -> Dict[str, float]:
    """Statistics of the reflex urgency and how often it was non-zero."""
    if "urgency" not in ticks_df.columns or ticks_df.empty:
        return {}
    urg = ticks_df["urgency"]
    return {
        "mean": float(urg.mean()),
        "max": float(urg.max()),
        "urgent_rate": float((urg > 0).mean()),
    }

def calculate_consumption_stats(ticks_df: pd.DataFrame) -> Dict[str, int]:
    """Count of consumption ticks per US."""
    if "consumed" not in ticks_df.columns or ticks_df.empty:
        return {}
    consumed = ticks_df["consumed"].fillna("").astype(str)
    consumed = consumed[consumed != ""]
    return {str(k): int(v) for k, v in consumed.value_counts().sort_index().items()}

def calculate_bump_rate(ticks_df: pd.DataFrame) -> float:
    if "neg_us_total" not in ticks_df.columns or ticks_df.empty:
        return 0.0
    return float((ticks_df["neg_us_total"] > 0).mean())

def calculate_act_match_rate(ticks_df: pd.DataFrame) -> float:
    """Agreement between instinct and network proposals, where one existed."""
    if "net_action" not in ticks_df.columns or ticks_df.empty:
        return 0.0
    proposed = ticks_df[ticks_df["net_action"].fillna("").astype(str) != ""]
    if proposed.empty:
        return 0.0
    return float((proposed["net_action"] == proposed["instinct_action"]).mean())

def calculate_score_distributions(episodes_df: pd.DataFrame) -> pd.DataFrame:
    """Calculates score distributions per protocol."""
    if 'score' not in episodes_df.columns or 'protocol' not in episodes_df.columns or episodes_df.empty:
        return pd.DataFrame()

    return episodes_df.groupby("protocol")["score"].describe()

def run_all_metrics(processed_dir: str) -> Dict:
    """
    Runs all metric calculations and returns a dictionary of results.
    """
    ticks_df = load_table(Path(processed_dir) / "ticks.csv")
    episodes_df = load_table(Path(processed_dir) / "episodes.csv")

    return {
        "action_distribution": calculate_action_distribution(ticks_df),
        "urgency_stats": calculate_urgency_stats(ticks_df),
        "consumption": calculate_consumption_stats(ticks_df),
        "bump_rate": calculate_bump_rate(ticks_df),
        "act_match_rate": calculate_act_match_rate(ticks_df),
        "score_distributions": calculate_score_distributions(episodes_df).to_dict(),
    }
