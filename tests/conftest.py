import numpy as np
import pandas as pd
import pytest

from data_cleaning import data_cleaning
from simulate import simulate_raw_data


RAW_HEADER = [
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


def raw_row(_id="1", address="1 Main St", enforcement="Yes", ptype="High Rise", ward="10",
            opened="2021-03-01", closed="2021-03-15", code="4.1.5.8", item="1", desc="Exit sign"):
    return dict(zip(RAW_HEADER, [_id, address, enforcement, ptype, ward, opened, closed, code, item, desc]))


@pytest.fixture
def make_raw():
    def _make(rows):
        return pd.DataFrame([raw_row(**r) for r in rows], columns=RAW_HEADER)
    return _make


@pytest.fixture(scope="session")
def simulated_raw():
    return simulate_raw_data(1000, np.random.default_rng(853))


@pytest.fixture(scope="session")
def analysis_table(simulated_raw):
    return data_cleaning(simulated_raw, output_path=None).frame


@pytest.fixture
def small_table():
    """Twenty rows covering both enforcement levels and three property types."""
    rng = np.random.default_rng(0)
    n = 20
    ptypes = ["High Rise", "Low Rise", "Group Home"]
    opened = pd.Timestamp("2021-01-01") + pd.to_timedelta(np.arange(n), unit="D")
    duration = rng.integers(0, 60, size=n)
    closed = opened + pd.to_timedelta(duration, unit="D")
    return pd.DataFrame({
        "id": np.arange(1, n + 1, dtype="int64"),
        "property_address": pd.array([f"{i} King St" for i in range(n)], dtype="string"),
        "enforcement_proceedings": pd.array(["yes" if i % 4 == 0 else "no" for i in range(n)], dtype="string"),
        "property_type": pd.array([ptypes[i % 3] for i in range(n)], dtype="string"),
        "property_ward": rng.integers(1, 26, size=n).astype("int64"),
        "inspections_opendate": pd.array(opened.strftime("%Y-%m-%d"), dtype="string"),
        "inspections_closeddate": pd.array(closed.strftime("%Y-%m-%d"), dtype="string"),
        "violation_code": pd.array(["Code 3"] * n, dtype="string"),
        "violations_item_number": np.ones(n, dtype="float64"),
        "violation_description": pd.array(["Fire door"] * n, dtype="string"),
        "inspection_open_date": pd.Series(opened).astype("datetime64[ns]").to_numpy(),
        "inspection_closed_date": pd.Series(closed).astype("datetime64[ns]").to_numpy(),
        "inspection_duration": duration.astype("int64"),
    })
