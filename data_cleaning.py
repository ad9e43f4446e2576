# data_cleaning.py

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime

import numpy as np
import pandas as pd

from config import ANALYSIS_COLUMNS, ANALYSIS_DATA_PATH, DATE_FORMAT, VALID_PROPERTY_TYPES
from data_loading import save_analysis_table
from errors import NormalizationError
from utils import clean_names


_ALIAS_MAP = {
    "violation_fire_code": "violation_code",
}

_TEXT_FIELDS = (
    "property_address",
    "enforcement_proceedings",
    "property_type",
    "inspections_opendate",
    "inspections_closeddate",
    "violation_code",
    "violation_description",
)

_PROPERTY_TYPE_CANONICAL = {label.lower(): label for label in VALID_PROPERTY_TYPES}

_INT_COLUMNS = ("id", "property_ward", "inspection_duration")


def _is_blank(value: object) -> bool:
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return not str(value).strip()


def parse_inspection_date(value: object) -> pd.Timestamp:
    """Parse the leading YYYY-MM-DD of *value*; NaT when blank or unparsable."""
    if _is_blank(value):
        return pd.NaT
    text = str(value).strip()[:10]
    try:
        return pd.Timestamp(datetime.strptime(text, DATE_FORMAT))
    except ValueError:
        return pd.NaT


def _to_float(value: object) -> float:
    if _is_blank(value):
        return np.nan
    try:
        return float(str(value).strip())
    except ValueError:
        return np.nan


def coerce_ward(value: object):
    """Return the ward as int, or pd.NA when the text is not a whole number."""
    if _is_blank(value):
        return pd.NA
    try:
        num = float(str(value).strip())
    except ValueError:
        return pd.NA
    if not np.isfinite(num) or not num.is_integer():
        return pd.NA
    return int(num)


def _canonicalize_property_type(value: object):
    """Map case/spacing variants onto the canonical label; unknown labels pass through trimmed."""
    if _is_blank(value):
        return pd.NA
    text = " ".join(str(value).split())
    return _PROPERTY_TYPE_CANONICAL.get(text.lower(), text)


def _clean_text(series: pd.Series) -> pd.Series:
    ser = series.astype("string").str.strip()
    return ser.mask((ser == "").fillna(False))


def _empty_ledger() -> pd.DataFrame:
    return pd.DataFrame(columns=["row", "field", "value", "reason"])


@dataclass
class NormalizationResult:
    """Normalized frame plus a ledger of fields that could not be coerced."""

    frame: pd.DataFrame
    failures: pd.DataFrame = field(default_factory=_empty_ledger)

    @property
    def counts(self) -> dict[str, int]:
        if self.failures.empty:
            return {}
        return {str(k): int(v) for k, v in self.failures["field"].value_counts().sort_index().items()}

    @property
    def n_failures(self) -> int:
        return int(len(self.failures))

    def errors(self) -> list[NormalizationError]:
        return [
            NormalizationError(r.field, r.value, r.reason, row=r.row)
            for r in self.failures.itertuples(index=False)
        ]


def _ledger(raw: pd.Series, coerced: pd.Series, field_name: str, reason: str) -> pd.DataFrame:
    bad = (~raw.map(_is_blank).astype(bool) & coerced.isna()).to_numpy(dtype=bool)
    return pd.DataFrame({
        "row": raw.index[bad],
        "field": field_name,
        "value": raw[bad].astype(str).to_numpy(),
        "reason": reason,
    })


def normalize_fields(raw: pd.DataFrame) -> NormalizationResult:
    """Canonical column names and per-field types. Never raises on malformed values."""
    df = raw.copy()
    df.columns = clean_names(df.columns)
    df = df.rename(columns=_ALIAS_MAP)

    source_cols = [c for c in ANALYSIS_COLUMNS if not c.startswith("inspection_")]
    missing_cols = [c for c in source_cols if c not in df.columns]
    if missing_cols:
        logging.warning("Raw data lacks columns %s; filled as missing", missing_cols)
        for col in missing_cols:
            df[col] = pd.NA

    ledgers = []

    for col in _TEXT_FIELDS:
        df[col] = _clean_text(df[col])
    df["property_type"] = df["property_type"].map(_canonicalize_property_type).astype("string")

    raw_id = df["id"]
    df["id"] = raw_id.map(_to_float).astype("float64")
    whole = df["id"].isna() | (df["id"] % 1 == 0)
    df["id"] = df["id"].where(whole).astype("Int64")
    ledgers.append(_ledger(raw_id, df["id"], "id", "not an integer identifier"))

    raw_ward = df["property_ward"]
    df["property_ward"] = raw_ward.map(coerce_ward).astype("Int64")
    ledgers.append(_ledger(raw_ward, df["property_ward"], "property_ward", "ward is not a whole number"))

    raw_item = df["violations_item_number"]
    df["violations_item_number"] = raw_item.map(_to_float).astype("float64")
    ledgers.append(_ledger(raw_item, df["violations_item_number"], "violations_item_number", "not numeric"))

    for src, dst in (("inspections_opendate", "inspection_open_date"),
                     ("inspections_closeddate", "inspection_closed_date")):
        df[dst] = pd.to_datetime(df[src].map(parse_inspection_date)).astype("datetime64[ns]")
        ledgers.append(_ledger(df[src], df[dst], dst, f"date not in {DATE_FORMAT} format"))

    ledgers = [lg for lg in ledgers if not lg.empty]
    failures = pd.concat(ledgers, ignore_index=True) if ledgers else _empty_ledger()
    if len(failures):
        logging.warning("Normalization: %d field values could not be coerced %s",
                        len(failures), failures["field"].value_counts().to_dict())
    return NormalizationResult(frame=df, failures=failures)


def derive_fields(df: pd.DataFrame) -> pd.DataFrame:
    """Add inspection_duration (whole days) and case-normalize enforcement_proceedings."""
    out = df.copy()
    out["enforcement_proceedings"] = out["enforcement_proceedings"].astype("string").str.strip().str.lower()
    delta = out["inspection_closed_date"] - out["inspection_open_date"]
    out["inspection_duration"] = delta.dt.days.astype("Int64")
    negative = int((out["inspection_duration"] < 0).fillna(False).sum())
    if negative:
        logging.warning("%d rows close before they open; left for the completeness filter", negative)
    return out


@dataclass
class FilterResult:
    frame: pd.DataFrame
    rejected: dict[str, int]

    @property
    def n_rejected(self) -> int:
        return sum(self.rejected.values())


def completeness_filter(df: pd.DataFrame) -> FilterResult:
    """Keep only complete rows with a known ward and closed >= open.

    Rejection reasons are attributed in a fixed precedence (unknown ward,
    closed before open, missing field) so counts do not depend on row order.
    """
    unknown_ward = df["property_ward"].isna().to_numpy()
    closed_before_open = (df["inspection_duration"] < 0).fillna(False).to_numpy(dtype=bool)
    any_missing = df[list(ANALYSIS_COLUMNS)].isna().any(axis=1).to_numpy()

    rejected = {
        "unknown_ward": int(unknown_ward.sum()),
        "closed_before_open": int((closed_before_open & ~unknown_ward).sum()),
        "missing_field": int((any_missing & ~unknown_ward & ~closed_before_open).sum()),
    }
    keep = ~(unknown_ward | closed_before_open | any_missing)
    kept = df.loc[keep, list(ANALYSIS_COLUMNS)].copy()
    for col in _INT_COLUMNS:
        kept[col] = kept[col].astype("int64")
    kept = kept.reset_index(drop=True)
    logging.info("Completeness filter kept %d of %d rows; rejected %s", len(kept), len(df), rejected)
    return FilterResult(frame=kept, rejected=rejected)


@dataclass
class CleaningResult:
    frame: pd.DataFrame
    normalization_failures: dict[str, int]
    rejected: dict[str, int]
    n_raw: int


def data_cleaning(data: pd.DataFrame, output_path: str | None = ANALYSIS_DATA_PATH) -> CleaningResult:
    """
    Cleans the raw inspections table by:
      - snake_casing column names and coercing per-field types,
      - computing inspection_duration and lower-casing enforcement_proceedings,
      - dropping rows with an unknown ward, closed-before-open dates or any
        missing field.

    Saves the 13-column analysis table to *output_path* (parquet) unless None.
    """
    logging.info("Starting data cleaning on %d raw rows...", len(data))
    try:
        normalized = normalize_fields(data)
        derived = derive_fields(normalized.frame)
        filtered = completeness_filter(derived)

        logging.info(f"Final data shape: {filtered.frame.shape}")
        if output_path:
            save_analysis_table(filtered.frame, output_path)

        return CleaningResult(
            frame=filtered.frame,
            normalization_failures=normalized.counts,
            rejected=filtered.rejected,
            n_raw=len(data),
        )
    except Exception as e:
        logging.error(f"Error during data cleaning: {e}")
        logging.error(traceback.format_exc())
        raise
