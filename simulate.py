#!/usr/bin/env python3
"""simulate.py – synthetic high-rise inspection records in the raw CSV layout.

Rows follow the shape of the Open Data Toronto extract (camelCase and
UPPER_CASE headers, everything as text) so the full cleaning pipeline can be
exercised without a download.
"""

from __future__ import annotations

import argparse
import logging
import os

import numpy as np
import pandas as pd

from config import SIMULATED_DATA_PATH, SIMULATION_SEED, VALID_PROPERTY_TYPES, WARD_RANGE

PROPERTY_TYPE_WEIGHTS = (0.05, 0.1, 0.1, 0.3, 0.05, 0.05, 0.2, 0.05, 0.05, 0.05)
ENFORCEMENT_LEVELS = ("Yes", "No")
ENFORCEMENT_WEIGHTS = (0.3, 0.7)
OPEN_DATE_RANGE = ("2020-01-01", "2023-01-01")
MAX_DURATION_DAYS = 100
VIOLATION_CODES = tuple(f"Code {i}" for i in range(1, 21))

RAW_COLUMNS = [
    "_id",
    "propertyAddress",
    "enforcementProceedings",
    "propertyType",
    "propertyWard",
    "INSPECTIONS_OPENDATE",
    "INSPECTIONS_CLOSEDDATE",
    "VIOLATION_FIRE_CODE",
    "VIOLATIONS_ITEM_NUMBER",
    "VIOLATION_DESCRIPTION",
]


def simulate_raw_data(n: int = 1000, rng: np.random.Generator | None = None) -> pd.DataFrame:
    """Draw *n* raw inspection rows.

    Wards are 1..25 with one extra equally likely "blank" outcome; violation
    codes are blank 10% of the time; closed dates fall 0..100 days after the
    open date.
    """
    rng = rng if rng is not None else np.random.default_rng(SIMULATION_SEED)
    lo, hi = WARD_RANGE

    wards = rng.choice(np.arange(lo, hi + 2), size=n)
    ward_text = np.where(wards > hi, "", wards.astype(str))

    days = pd.date_range(*OPEN_DATE_RANGE, freq="D")
    open_dates = pd.DatetimeIndex(rng.choice(days.to_numpy(), size=n))
    closed_dates = open_dates + pd.to_timedelta(rng.integers(0, MAX_DURATION_DAYS + 1, size=n), unit="D")

    code_probs = np.append(np.full(len(VIOLATION_CODES), 0.045), 0.1)
    codes = rng.choice(np.append(np.array(VIOLATION_CODES, dtype=object), ""), size=n, p=code_probs)

    data = pd.DataFrame({
        "_id": np.arange(1, n + 1).astype(str),
        "propertyAddress": [f"Address {i}" for i in range(1, n + 1)],
        "enforcementProceedings": rng.choice(ENFORCEMENT_LEVELS, size=n, p=ENFORCEMENT_WEIGHTS),
        "propertyType": rng.choice(VALID_PROPERTY_TYPES, size=n, p=PROPERTY_TYPE_WEIGHTS),
        "propertyWard": ward_text,
        "INSPECTIONS_OPENDATE": open_dates.strftime("%Y-%m-%d"),
        "INSPECTIONS_CLOSEDDATE": closed_dates.strftime("%Y-%m-%d"),
        "VIOLATION_FIRE_CODE": codes,
        "VIOLATIONS_ITEM_NUMBER": rng.integers(1, 40, size=n).astype(str),
        "VIOLATION_DESCRIPTION": [f"Description {i}" for i in rng.integers(1, 60, size=n)],
    })
    return data[RAW_COLUMNS]


def check_simulated_data(data: pd.DataFrame, n: int | None = None) -> None:
    """Assert the invariants the simulation promises; raises AssertionError on the first breach."""
    if n is not None and len(data) != n:
        raise AssertionError(f"expected {n} rows, got {len(data)}")
    if list(data.columns) != RAW_COLUMNS:
        raise AssertionError(f"unexpected columns {list(data.columns)}")
    if not data["enforcementProceedings"].isin(ENFORCEMENT_LEVELS).all():
        raise AssertionError("enforcementProceedings holds values other than Yes/No")
    if not data["propertyType"].isin(VALID_PROPERTY_TYPES).all():
        raise AssertionError("propertyType holds invalid property types")
    lo, hi = WARD_RANGE
    valid_wards = {str(w) for w in range(lo, hi + 1)} | {""}
    if not data["propertyWard"].fillna("").isin(valid_wards).all():
        raise AssertionError("propertyWard holds values outside the ward range")
    for col in ("propertyAddress", "INSPECTIONS_OPENDATE", "INSPECTIONS_CLOSEDDATE"):
        if data[col].replace("", np.nan).isna().any():
            raise AssertionError(f"missing values in essential column {col}")
    if not data["VIOLATION_FIRE_CODE"].fillna("").isin(VIOLATION_CODES + ("",)).all():
        raise AssertionError("VIOLATION_FIRE_CODE holds invalid codes")
    span = pd.to_datetime(data["INSPECTIONS_CLOSEDDATE"]) - pd.to_datetime(data["INSPECTIONS_OPENDATE"])
    if not span.dt.days.between(0, MAX_DURATION_DAYS).all():
        raise AssertionError(f"closed date not within 0..{MAX_DURATION_DAYS} days of open date")


def save_simulated_data(data: pd.DataFrame, file_path: str = SIMULATED_DATA_PATH) -> str:
    os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
    data.to_csv(file_path, index=False)
    logging.info("Simulated data (%d rows) saved => %s", len(data), file_path)
    return file_path


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Simulate raw high-rise inspection records")
    p.add_argument("--rows", type=int, default=1000)
    p.add_argument("--seed", type=int, default=SIMULATION_SEED)
    p.add_argument("--out", default=SIMULATED_DATA_PATH)
    args = p.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    sim = simulate_raw_data(args.rows, np.random.default_rng(args.seed))
    check_simulated_data(sim, args.rows)
    save_simulated_data(sim, args.out)
