#!/usr/bin/env python3
"""validation.py – invariant checks for the persisted analysis table.

Each check is a plain function ``check_x(df) -> None`` that raises
``ValidationFailure`` naming itself when its invariant is broken, so tests and
the command line can exercise every invariant on its own. The checks only read
the frame.

    python validation.py [path/to/analysis_data.parquet] [--fail-fast]
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable

import pandas as pd

from config import (
    ANALYSIS_COLUMNS,
    ANALYSIS_DATA_PATH,
    DATE_COLUMNS,
    NON_EMPTY_TEXT_COLUMNS,
    NUMERIC_COLUMNS,
    TEXT_COLUMNS,
    VALID_ENFORCEMENT,
    VALID_PROPERTY_TYPES,
    VALID_VIOLATION_CODES,
    WARD_RANGE,
    parse_codes,
)
from errors import ValidationFailure
from utils import setup_logging

__all__ = [
    "CHECKS",
    "CheckResult",
    "ValidationReport",
    "validate_analysis_table",
    "assert_valid",
    "cli",
]


def _require(df: pd.DataFrame, cols: Iterable[str], check: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValidationFailure(check, f"missing column(s): {', '.join(missing)}")


def _sample(values, k: int = 5) -> str:
    uniq = pd.unique(pd.Series(list(values), dtype="object"))
    shown = ", ".join(repr(v) for v in uniq[:k])
    return shown + (", ..." if len(uniq) > k else "")


# ───────────────────────────── checks ───────────────────────────── #

def check_column_count(df: pd.DataFrame, expected: int = len(ANALYSIS_COLUMNS)) -> None:
    if df.shape[1] != expected:
        raise ValidationFailure(
            "column_count", f"expected {expected} columns, found {df.shape[1]}: {list(df.columns)}"
        )


def check_column_types(df: pd.DataFrame) -> None:
    _require(df, NUMERIC_COLUMNS + DATE_COLUMNS + TEXT_COLUMNS, "column_types")
    wrong = []
    for col in NUMERIC_COLUMNS:
        dtype = df[col].dtype
        if not pd.api.types.is_numeric_dtype(dtype) or pd.api.types.is_bool_dtype(dtype):
            wrong.append(f"{col} should be numeric (is {dtype})")
    for col in DATE_COLUMNS:
        ser = df[col]
        if not pd.api.types.is_datetime64_any_dtype(ser.dtype):
            wrong.append(f"{col} should be a date (is {ser.dtype})")
        elif (ser.dropna() != ser.dropna().dt.normalize()).any():
            wrong.append(f"{col} carries a time-of-day component")
    for col in TEXT_COLUMNS:
        if not pd.api.types.is_string_dtype(df[col].dtype):
            wrong.append(f"{col} should be text (is {df[col].dtype})")
        elif df[col].dtype == object and not df[col].dropna().map(lambda v: isinstance(v, str)).all():
            wrong.append(f"{col} mixes text with non-text values")
    if wrong:
        raise ValidationFailure("column_types", "; ".join(wrong))


def check_enforcement_domain(df: pd.DataFrame, allowed: Iterable[str] = VALID_ENFORCEMENT) -> None:
    _require(df, ["enforcement_proceedings"], "enforcement_domain")
    ser = df["enforcement_proceedings"].dropna()
    bad = ser[~ser.isin(list(allowed))]
    if len(bad):
        raise ValidationFailure(
            "enforcement_domain", f"{len(bad)} value(s) outside {tuple(allowed)}: {_sample(bad)}"
        )


def check_property_type_domain(df: pd.DataFrame, allowed: Iterable[str] = VALID_PROPERTY_TYPES) -> None:
    _require(df, ["property_type"], "property_type_domain")
    ser = df["property_type"].dropna()
    bad = ser[~ser.isin(list(allowed))]
    if len(bad):
        raise ValidationFailure(
            "property_type_domain", f"{len(bad)} invalid property type(s): {_sample(bad)}"
        )


def check_violation_code_domain(df: pd.DataFrame, allowed: Iterable[str] | None = VALID_VIOLATION_CODES) -> None:
    """Codes must come from the configured set; with no set configured only presence is required."""
    _require(df, ["violation_code"], "violation_code_domain")
    if allowed is None:
        return
    ser = df["violation_code"].dropna()
    bad = ser[~ser.isin(list(allowed))]
    if len(bad):
        raise ValidationFailure(
            "violation_code_domain", f"{len(bad)} code(s) outside the configured set: {_sample(bad)}"
        )


def check_ward_range(df: pd.DataFrame, bounds: tuple[int, int] = WARD_RANGE) -> None:
    _require(df, ["property_ward"], "ward_range")
    ser = df["property_ward"].dropna()
    lo, hi = bounds
    bad = ser[~ser.between(lo, hi)]
    if len(bad):
        raise ValidationFailure("ward_range", f"{len(bad)} ward(s) outside {lo}..{hi}: {_sample(bad)}")


def check_date_order(df: pd.DataFrame) -> None:
    _require(df, DATE_COLUMNS, "date_order")
    opened, closed = df["inspection_open_date"], df["inspection_closed_date"]
    bad = closed < opened
    if bad.any():
        first = df.loc[bad].iloc[0]
        raise ValidationFailure(
            "date_order",
            f"{int(bad.sum())} row(s) close before they open "
            f"(e.g. id={first.get('id')}: {first['inspection_open_date']:%Y-%m-%d} > "
            f"{first['inspection_closed_date']:%Y-%m-%d})",
        )


def check_duration_consistency(df: pd.DataFrame) -> None:
    _require(df, DATE_COLUMNS + ("inspection_duration",), "duration_consistency")
    expected = (df["inspection_closed_date"] - df["inspection_open_date"]).dt.days
    both = expected.notna() & df["inspection_duration"].notna()
    bad = both & (expected != df["inspection_duration"])
    if bad.any():
        raise ValidationFailure(
            "duration_consistency",
            f"{int(bad.sum())} row(s) where inspection_duration != closed - open (days)",
        )


def check_no_nulls(df: pd.DataFrame) -> None:
    nulls = df.isna().sum()
    nulls = nulls[nulls > 0]
    if len(nulls):
        raise ValidationFailure("no_nulls", f"missing values found: {nulls.to_dict()}")


def check_no_empty_strings(df: pd.DataFrame, cols: Iterable[str] = NON_EMPTY_TEXT_COLUMNS) -> None:
    cols = list(cols)
    _require(df, cols, "no_empty_strings")
    empty = {}
    for col in cols:
        n = int((df[col].dropna().astype("string").str.strip() == "").sum())
        if n:
            empty[col] = n
    if empty:
        raise ValidationFailure("no_empty_strings", f"empty strings found: {empty}")


def check_enforcement_variety(df: pd.DataFrame, minimum: int = 2) -> None:
    _require(df, ["enforcement_proceedings"], "enforcement_variety")
    n = df["enforcement_proceedings"].nunique(dropna=True)
    if n < minimum:
        raise ValidationFailure(
            "enforcement_variety", f"expected at least {minimum} distinct values, found {n}"
        )


def check_unique_ids(df: pd.DataFrame) -> None:
    _require(df, ["id"], "unique_ids")
    dup = df["id"][df["id"].duplicated(keep=False)]
    if len(dup):
        raise ValidationFailure("unique_ids", f"{dup.nunique()} id(s) repeated: {_sample(dup)}")


CHECKS: dict[str, Callable[[pd.DataFrame], None]] = {
    "column_count": check_column_count,
    "column_types": check_column_types,
    "enforcement_domain": check_enforcement_domain,
    "property_type_domain": check_property_type_domain,
    "violation_code_domain": check_violation_code_domain,
    "ward_range": check_ward_range,
    "date_order": check_date_order,
    "duration_consistency": check_duration_consistency,
    "no_nulls": check_no_nulls,
    "no_empty_strings": check_no_empty_strings,
    "enforcement_variety": check_enforcement_variety,
    "unique_ids": check_unique_ids,
}


# ───────────────────────────── report ───────────────────────────── #

@dataclass(frozen=True)
class CheckResult:
    name: str
    passed: bool
    message: str = ""


@dataclass(frozen=True)
class ValidationReport:
    results: tuple[CheckResult, ...]

    @property
    def ok(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if not r.passed]

    def __getitem__(self, name: str) -> CheckResult:
        for r in self.results:
            if r.name == name:
                return r
        raise KeyError(name)


def _bound_checks(violation_codes) -> dict[str, Callable[[pd.DataFrame], None]]:
    bound = dict(CHECKS)
    bound["violation_code_domain"] = partial(check_violation_code_domain, allowed=violation_codes)
    return bound


def validate_analysis_table(
    df: pd.DataFrame,
    checks: Iterable[str] | None = None,
    *,
    violation_codes: Iterable[str] | None = VALID_VIOLATION_CODES,
) -> ValidationReport:
    """Run every (or the named) check independently and collect the outcomes."""
    bound = _bound_checks(violation_codes)
    names = list(checks) if checks is not None else list(bound)
    results = []
    for name in names:
        try:
            bound[name](df)
        except ValidationFailure as e:
            logging.error("Test Failed: %s", e)
            results.append(CheckResult(name, False, e.message))
        else:
            logging.info("Test Passed: %s", name)
            results.append(CheckResult(name, True))
    return ValidationReport(tuple(results))


def assert_valid(
    df: pd.DataFrame,
    *,
    fail_fast: bool = False,
    violation_codes: Iterable[str] | None = VALID_VIOLATION_CODES,
) -> None:
    """Raise ValidationFailure unless the table passes every check.

    With *fail_fast* the first failing check is raised as-is; otherwise one
    failure is raised whose message lists each failing check.
    """
    if fail_fast:
        for check in _bound_checks(violation_codes).values():
            check(df)
        return
    report = validate_analysis_table(df, violation_codes=violation_codes)
    if not report.ok:
        names = ",".join(r.name for r in report.failures)
        lines = "; ".join(f"[{r.name}] {r.message}" for r in report.failures)
        raise ValidationFailure(names, lines)


def cli(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Validate the persisted analysis table")
    p.add_argument("path", nargs="?", default=ANALYSIS_DATA_PATH)
    p.add_argument("--fail-fast", action="store_true", help="Stop at the first failing check")
    p.add_argument("--violation-codes", help="Comma-separated allowed codes, or * to accept any code")
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args(argv)

    setup_logging(args.log_level)
    codes = parse_codes(args.violation_codes) if args.violation_codes else VALID_VIOLATION_CODES
    df = pd.read_parquet(args.path, engine="pyarrow")
    if args.fail_fast:
        try:
            assert_valid(df, fail_fast=True, violation_codes=codes)
        except ValidationFailure as e:
            logging.error("Validation aborted: %s", e)
            return 1
        logging.info("All %d checks passed for %s", len(CHECKS), args.path)
        return 0

    report = validate_analysis_table(df, violation_codes=codes)
    if not report.ok:
        logging.error("%d of %d checks failed for %s", len(report.failures), len(report.results), args.path)
        return 1
    logging.info("All %d checks passed for %s", len(report.results), args.path)
    return 0


if __name__ == "__main__":
    sys.exit(cli())
