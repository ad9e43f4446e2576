# utils.py

import os
import re
import logging
os.environ.setdefault("MPLBACKEND", "Agg")
import matplotlib.pyplot as plt  # noqa: E402
from config import EXTRA_DIRS  # noqa: E402


def clean_name(name):
    """snake_case a column label: 'propertyWard' -> 'property_ward', '_id' -> 'id'."""
    text = str(name).strip()
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    text = re.sub(r"[^0-9a-zA-Z]+", "_", text)
    return text.strip("_").lower()


def clean_names(columns):
    """snake_case every label, suffixing repeats with _2, _3, ..."""
    seen = {}
    out = []
    for col in columns:
        base = clean_name(col) or "x"
        seen[base] = seen.get(base, 0) + 1
        out.append(base if seen[base] == 1 else f"{base}_{seen[base]}")
    return out


def setup_logging(level="INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        force=True,
    )


def create_directories(directories=None):
    """Create necessary directories if they don't exist."""
    for directory in directories or EXTRA_DIRS:
        if not os.path.exists(directory):
            os.makedirs(directory)
            logging.info(f"Created directory: {directory}")


def save_plot(fig, filename, plot_dir):
    """Save a Matplotlib figure as PNG and close it. Returns the path."""
    os.makedirs(plot_dir, exist_ok=True)
    file_path = os.path.join(plot_dir, f"{filename}.png")
    try:
        fig.savefig(file_path, bbox_inches='tight', dpi=160)
        logging.info(f"Plot saved: {file_path}")
    except Exception as e:
        logging.error(f"Error saving plot '{filename}': {e}")
        raise
    finally:
        plt.close(fig)
    return file_path
