"""Project configuration (single source of truth).

This file defines default paths and knobs used across cleaning, validation,
training and reporting. Modelling knobs can be overridden through environment
variables; they are read once at import time.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

DATA_DIR = os.path.join(BASE_DIR, "data")
SIMULATED_DATA_DIR = os.path.join(DATA_DIR, "00-simulated_data")
RAW_DATA_DIR = os.path.join(DATA_DIR, "01-raw_data")
ANALYSIS_DATA_DIR = os.path.join(DATA_DIR, "02-analysis_data")

SIMULATED_DATA_PATH = os.path.join(SIMULATED_DATA_DIR, "simulated_data.csv")
RAW_DATA_PATH = os.path.join(RAW_DATA_DIR, "raw_data.csv")
ANALYSIS_DATA_PATH = os.path.join(ANALYSIS_DATA_DIR, "analysis_data.parquet")

MODEL_DIR = os.path.join(BASE_DIR, "models")
REPORT_DIR = os.path.join(BASE_DIR, "reports")
PLOT_DIR = os.path.join(REPORT_DIR, "figures")

# Open Data Toronto – Highrise Inspections
SOURCE_URL = (
    "https://ckan0.cf.opendata.inter.prod-toronto.ca/dataset/"
    "f816b362-778a-4480-b9ed-9b240e0fe9c2/resource/"
    "98fddf20-5c46-49fc-a1b4-eadd1877acec/download/Highrise%20Inspections%20Data.csv"
)
SOURCE_TIMEOUT_SEC = float(os.getenv("SOURCE_TIMEOUT_SEC", "60"))

# Columns the raw CSV must carry (after snake_case normalization)
REQUIRED_RAW_COLUMNS = (
    "id",
    "property_address",
    "enforcement_proceedings",
    "property_type",
    "property_ward",
    "inspections_opendate",
    "inspections_closeddate",
    "violation_fire_code",
    "violations_item_number",
    "violation_description",
)

DATE_FORMAT = "%Y-%m-%d"

# -------------------- Analysis table schema -------------------- #
ANALYSIS_COLUMNS = (
    "id",
    "property_address",
    "enforcement_proceedings",
    "property_type",
    "property_ward",
    "inspections_opendate",
    "inspections_closeddate",
    "violation_code",
    "violations_item_number",
    "violation_description",
    "inspection_open_date",
    "inspection_closed_date",
    "inspection_duration",
)
NUMERIC_COLUMNS = ("id", "property_ward", "violations_item_number", "inspection_duration")
DATE_COLUMNS = ("inspection_open_date", "inspection_closed_date")
TEXT_COLUMNS = (
    "property_address",
    "enforcement_proceedings",
    "property_type",
    "inspections_opendate",
    "inspections_closeddate",
    "violation_code",
    "violation_description",
)
NON_EMPTY_TEXT_COLUMNS = ("property_address", "enforcement_proceedings", "property_type")

VALID_ENFORCEMENT = ("yes", "no")
VALID_PROPERTY_TYPES = (
    "Detention",
    "Group Home",
    "Group Home (VO)",
    "High Rise",
    "Hospital",
    "Hotel & Motel",
    "Low Rise",
    "Nursing Home",
    "Residential Care",
    "Rooming House",
)
WARD_RANGE = (1, 25)


SIMULATED_VIOLATION_CODES = tuple(f"Code {i}" for i in range(1, 21))


def parse_codes(env_value):
    if env_value is None:
        return SIMULATED_VIOLATION_CODES
    env_value = env_value.strip()
    if env_value == "*":
        return None
    return tuple(s.strip() for s in env_value.split(",") if s.strip())


# None disables the membership check (any non-empty code is accepted)
VALID_VIOLATION_CODES = parse_codes(os.getenv("VALID_VIOLATION_CODES"))
VIOLATION_CODES_FROM_ENV = os.getenv("VALID_VIOLATION_CODES") is not None

# -------------------- Modelling knobs -------------------- #
TARGET_COL = "inspection_duration"
CATEGORICAL_PREDICTORS = ("enforcement_proceedings", "property_type")
NUMERIC_PREDICTORS = ("property_ward",)
PREDICTORS = CATEGORICAL_PREDICTORS + NUMERIC_PREDICTORS

TRAIN_FRACTION = float(os.getenv("TRAIN_FRACTION", "0.8"))
RANDOM_SEED = int(os.getenv("SPLIT_SEED", "123"))
SIMULATION_SEED = 853
STRATA_GROUPS = 5

N_ESTIMATORS = int(os.getenv("N_ESTIMATORS", "500"))
MAX_FEATURES = int(os.getenv("MAX_FEATURES", "3"))
FOREST_N_JOBS = int(os.getenv("FOREST_N_JOBS", "-1"))

EXTRA_DIRS = [
    SIMULATED_DATA_DIR,
    RAW_DATA_DIR,
    ANALYSIS_DATA_DIR,
    MODEL_DIR,
    REPORT_DIR,
    PLOT_DIR,
]
