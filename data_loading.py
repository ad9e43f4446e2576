# data_loading.py

import io
import logging
import os

import pandas as pd
import requests

from config import ANALYSIS_DATA_PATH, RAW_DATA_PATH, REQUIRED_RAW_COLUMNS, SOURCE_TIMEOUT_SEC, SOURCE_URL
from errors import SourceFetchError
from utils import clean_names


def load_data(file_path):
    """Load raw inspection records from a CSV file, keeping every field as text."""
    try:
        data = pd.read_csv(file_path, encoding='utf-8-sig', dtype=str, keep_default_na=False, na_values=[""])
        logging.info(f"Data loaded successfully from {file_path}")
        logging.info(f"Columns in loaded data: {data.columns.tolist()}")
        return data
    except FileNotFoundError:
        logging.error(f"File not found at path: {file_path}")
        raise


def check_raw_shape(data):
    """Raise SourceFetchError unless every required raw column is present."""
    present = set(clean_names(data.columns))
    missing = [c for c in REQUIRED_RAW_COLUMNS if c not in present]
    if missing:
        raise SourceFetchError(
            f"Raw table is missing expected columns: {', '.join(missing)} "
            f"(got {list(data.columns)})"
        )
    if data.empty:
        raise SourceFetchError("Raw table has no rows")
    return data


def download_raw_data(url=SOURCE_URL, dest_path=RAW_DATA_PATH, *, session=None, timeout=SOURCE_TIMEOUT_SEC):
    """Fetch the inspections CSV, check its shape and save a copy to *dest_path*."""
    session = session or requests.Session()
    logging.info("Downloading raw data from %s", url)
    try:
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        logging.error("Download failed: %s", e)
        raise SourceFetchError(f"Could not download {url}: {e}") from e

    try:
        data = pd.read_csv(
            io.StringIO(resp.content.decode("utf-8-sig")),
            dtype=str,
            keep_default_na=False,
            na_values=[""],
        )
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise SourceFetchError(f"Response from {url} is not a readable CSV: {e}") from e

    check_raw_shape(data)

    if dest_path:
        os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)
        data.to_csv(dest_path, index=False)
        logging.info("Raw data (%d rows) saved => %s", len(data), dest_path)
    return data


def save_analysis_table(data, file_path=ANALYSIS_DATA_PATH):
    os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
    data.to_parquet(file_path, engine="pyarrow", index=False)
    logging.info("Analysis table (%d rows x %d cols) saved => %s", data.shape[0], data.shape[1], file_path)
    return file_path


def load_analysis_table(file_path=ANALYSIS_DATA_PATH):
    data = pd.read_parquet(file_path, engine="pyarrow")
    logging.info("Analysis table loaded from %s: %s", file_path, data.shape)
    return data
