# reporting.py
"""Tables consumed by the paper: duration summary, importance, metrics."""

from __future__ import annotations

import json
import logging
import os
from typing import Iterable

import pandas as pd

from config import REPORT_DIR, TARGET_COL
from evaluation import EvaluationReport


def summarize_duration(data: pd.DataFrame, duration_col: str = TARGET_COL) -> pd.Series:
    ser = data[duration_col].astype(float)
    return pd.Series(
        {
            "mean": ser.mean(),
            "median": ser.median(),
            "sd": ser.std(),
            "min": ser.min(),
            "q25": ser.quantile(0.25),
            "q75": ser.quantile(0.75),
            "max": ser.max(),
        },
        name=duration_col,
    )


def importance_table(reports: Iterable[EvaluationReport]) -> pd.DataFrame:
    frames = [r.importance_frame() for r in reports]
    if not frames:
        return pd.DataFrame(columns=["model", "feature", "importance"])
    return pd.concat(frames, ignore_index=True)


def write_report(
    summary: pd.Series,
    reports: Iterable[EvaluationReport],
    *,
    extra: dict | None = None,
    out_dir: str = REPORT_DIR,
) -> dict[str, str]:
    """Write duration_summary.csv, feature_importance.csv and metrics.json; return their paths."""
    reports = list(reports)
    os.makedirs(out_dir, exist_ok=True)
    paths = {
        "summary": os.path.join(out_dir, "duration_summary.csv"),
        "importance": os.path.join(out_dir, "feature_importance.csv"),
        "metrics": os.path.join(out_dir, "metrics.json"),
    }

    summary.rename("value").rename_axis("statistic").reset_index().to_csv(paths["summary"], index=False)
    importance_table(reports).to_csv(paths["importance"], index=False)

    payload = {"models": {r.model_kind: r.to_dict() for r in reports}}
    if extra:
        payload.update(extra)
    with open(paths["metrics"], "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=float)

    for key, path in paths.items():
        logging.info("Report %s saved => %s", key, path)
    return paths
