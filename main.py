#!/usr/bin/env python3
"""
main.py — end‑to‑end inspection‑duration pipeline controller
-----------------------------------------------------------
• Fetches (or simulates) the raw high-rise inspection records
• Runs clean → persist → validate → split → train (linear + forest)
  → evaluate → report
"""

from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

from config import (
    ANALYSIS_DATA_PATH,
    N_ESTIMATORS,
    PLOT_DIR,
    RANDOM_SEED,
    RAW_DATA_PATH,
    REPORT_DIR,
    SIMULATED_VIOLATION_CODES,
    SIMULATION_SEED,
    TRAIN_FRACTION,
    VALID_VIOLATION_CODES,
    VIOLATION_CODES_FROM_ENV,
)
from data_cleaning import data_cleaning
from data_loading import download_raw_data, load_analysis_table, load_data
from errors import InspectionPipelineError
from evaluation import comparison_frame, evaluate
from model_training import ModelKind, model_path, save_model, train_models
from plotting import plot_duration_hist, plot_feature_importance, plot_influence, plot_residuals
from reporting import summarize_duration, write_report
from simulate import check_simulated_data, save_simulated_data, simulate_raw_data
from splitting import split_train_test
from utils import create_directories, setup_logging
from validation import assert_valid


def _violation_codes(simulate: bool):
    if VIOLATION_CODES_FROM_ENV:
        return VALID_VIOLATION_CODES
    if simulate:
        return SIMULATED_VIOLATION_CODES
    logging.warning(
        "Violation-code membership is not enforced for source data; "
        "set VALID_VIOLATION_CODES to a comma-separated list to enable it."
    )
    return None


def main(
    *,
    loglevel: str = "INFO",
    simulate: bool = False,
    skip_download: bool = False,
    skip_train: bool = False,
    train_frac: float = TRAIN_FRACTION,
    seed: int = RANDOM_SEED,
    n_estimators: int = N_ESTIMATORS,
    plots: bool = True,
    analysis_path: str = ANALYSIS_DATA_PATH,
    report_dir: str = REPORT_DIR,
    plot_dir: str = PLOT_DIR,
    model_dir: str | None = None,
) -> int:
    setup_logging(loglevel)
    if not 0.0 < train_frac < 1.0:
        logging.error("Training fraction must lie strictly between 0 and 1, got %s", train_frac)
        return 1
    create_directories()

    try:
        # ---------- raw records ----------
        if simulate:
            logging.info("🧪 Simulating raw data (seed=%d)", SIMULATION_SEED)
            raw = simulate_raw_data(rng=np.random.default_rng(SIMULATION_SEED))
            check_simulated_data(raw)
            save_simulated_data(raw)
        elif skip_download:
            logging.info("🚚 Loading raw data from %s", RAW_DATA_PATH)
            raw = load_data(RAW_DATA_PATH)
        else:
            raw = download_raw_data()

        # ---------- clean + persist + validate ----------
        cleaned = data_cleaning(raw, analysis_path)
        if cleaned.normalization_failures:
            logging.warning("Normalization failures by field: %s", cleaned.normalization_failures)

        data = load_analysis_table(analysis_path)
        assert_valid(data, violation_codes=_violation_codes(simulate))
        logging.info("✅ Analysis table passed all checks (%d rows)", len(data))

        summary = summarize_duration(data)
        logging.info("Duration summary:\n%s", summary.round(2).to_string())

        if skip_train:
            logging.info("--skip-train flag set; stopping before model training.")
            write_report(summary, [], extra=_cleaning_extra(cleaned), out_dir=report_dir)
            return 0

        # ---------- split + train + evaluate ----------
        rng = np.random.default_rng(seed)
        split = split_train_test(data, train_frac, rng)
        models = train_models(split.train, list(ModelKind), rng, n_estimators=n_estimators)

        reports = []
        for kind, model in models.items():
            report = evaluate(model, split.test)
            reports.append(report)
            save_model(model, model_path(kind, model_dir) if model_dir else None)
            if plots:
                plot_residuals(comparison_frame(model, split.test), kind.value, plot_dir)
                plot_feature_importance(report.importance_frame(), kind.value, plot_dir)
                if kind is ModelKind.LINEAR:
                    plot_influence(model.diagnostics_, kind.value, plot_dir)
        if plots:
            plot_duration_hist(data, plot_dir)

        extra = _cleaning_extra(cleaned)
        extra["split"] = {"train": len(split.train), "test": len(split.test), "fraction": train_frac, "seed": seed}
        linear = models.get(ModelKind.LINEAR)
        if linear is not None and linear.diagnostics_ is not None:
            extra["linear_diagnostics"] = linear.diagnostics_.to_dict()
        write_report(summary, reports, extra=extra, out_dir=report_dir)

    except (InspectionPipelineError, FileNotFoundError) as e:
        logging.error("Pipeline aborted: %s", e)
        return 1

    logging.info("🏁 Pipeline finished.")
    return 0


def _train_fraction(text: str) -> float:
    value = float(text)
    if not 0.0 < value < 1.0:
        raise argparse.ArgumentTypeError(f"must lie strictly between 0 and 1, got {text}")
    return value


def _cleaning_extra(cleaned) -> dict:
    return {
        "cleaning": {
            "raw_rows": cleaned.n_raw,
            "kept_rows": int(len(cleaned.frame)),
            "normalization_failures": cleaned.normalization_failures,
            "rejected": cleaned.rejected,
        }
    }


# ────────────────────────── CLI ────────────────────────── #
if __name__ == "__main__":
    cli_parser = argparse.ArgumentParser(description="High-rise inspection duration pipeline")
    cli_parser.add_argument("--log-level", default="INFO", help="DEBUG | INFO | WARNING | ERROR")
    cli_parser.add_argument("--simulate", action="store_true", help="Use simulated raw data instead of downloading")
    cli_parser.add_argument("--skip-download", action="store_true", help="Reuse the raw CSV already on disk")
    cli_parser.add_argument("--skip-train", action="store_true", help="Stop after cleaning and validation")
    cli_parser.add_argument("--train-frac", type=_train_fraction, default=TRAIN_FRACTION, help="Training fraction (default 0.8)")
    cli_parser.add_argument("--seed", type=int, default=RANDOM_SEED, help="Seed for split and forest")
    cli_parser.add_argument("--n-estimators", type=int, default=N_ESTIMATORS, help="Trees in the random forest")
    cli_parser.add_argument("--no-plots", action="store_true", help="Skip diagnostic figures")
    args = cli_parser.parse_args()
    sys.exit(
        main(
            loglevel=args.log_level,
            simulate=args.simulate,
            skip_download=args.skip_download,
            skip_train=args.skip_train,
            train_frac=args.train_frac,
            seed=args.seed,
            n_estimators=args.n_estimators,
            plots=not args.no_plots,
        )
    )
