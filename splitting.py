# splitting.py

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
import pandas as pd

from config import RANDOM_SEED, STRATA_GROUPS, TARGET_COL, TRAIN_FRACTION
from errors import EmptyPartitionError


class TrainTestSplit(NamedTuple):
    train: pd.DataFrame
    test: pd.DataFrame


def outcome_strata(y: pd.Series, groups: int = STRATA_GROUPS) -> np.ndarray:
    """Quantile-bin the outcome into at most *groups* strata (ties share a bin)."""
    y = pd.Series(np.asarray(y, dtype=float))
    n_groups = max(1, min(int(groups), len(y)))
    if n_groups < 2 or y.nunique() < 2:
        return np.zeros(len(y), dtype=int)
    bins = pd.qcut(y, q=n_groups, labels=False, duplicates="drop")
    return bins.fillna(0).astype(int).to_numpy()


def allocate_train_counts(sizes, fraction: float) -> np.ndarray:
    """Training rows per stratum, summing to ``round(fraction * N)``.

    Each stratum gets ``floor(fraction * n)`` rows and the leftover quota goes
    to the largest fractional remainders. A stratum of two or more rows always
    keeps at least one row for testing.
    """
    sizes = np.asarray(sizes, dtype=int)
    total = int(sizes.sum())
    target = min(int(round(fraction * total)), total - 1)
    caps = np.where(sizes >= 2, sizes - 1, sizes)
    quota = fraction * sizes
    counts = np.minimum(np.floor(quota).astype(int), caps)
    remaining = target - int(counts.sum())
    for i in np.argsort(-(quota - np.floor(quota)), kind="stable"):
        if remaining <= 0:
            break
        if counts[i] < caps[i]:
            counts[i] += 1
            remaining -= 1
    return counts


def split_train_test(
    df: pd.DataFrame,
    fraction: float = TRAIN_FRACTION,
    rng: np.random.Generator | None = None,
    *,
    target_col: str = TARGET_COL,
    groups: int = STRATA_GROUPS,
) -> TrainTestSplit:
    """Stratified random train/test partition.

    The training size is ``round(fraction * N)``, shared across outcome
    strata by ``allocate_train_counts``; rows are then drawn within each
    stratum with *rng* and the rest form the test set. Both subsets keep the
    input's row order, are disjoint and together hold every input row.
    """
    if not 0.0 < fraction < 1.0:
        raise ValueError(f"fraction must lie strictly between 0 and 1, got {fraction}")
    if df.empty:
        raise EmptyPartitionError("cannot split an empty table")
    rng = rng if rng is not None else np.random.default_rng(RANDOM_SEED)

    strata = outcome_strata(df[target_col], groups)
    labels, sizes = np.unique(strata, return_counts=True)
    in_train = np.zeros(len(df), dtype=bool)
    for label, take in zip(labels, allocate_train_counts(sizes, fraction)):
        members = np.flatnonzero(strata == label)
        in_train[rng.choice(members, size=take, replace=False)] = True

    train, test = df.iloc[in_train], df.iloc[~in_train]
    if train.empty or test.empty:
        raise EmptyPartitionError(
            f"split of {len(df)} rows at fraction={fraction} left "
            f"train={len(train)} / test={len(test)} rows"
        )
    logging.info("Split %d rows → train %d | test %d (fraction=%.2f, strata=%d)",
                 len(df), len(train), len(test), fraction, len(np.unique(strata)))
    return TrainTestSplit(train.copy(), test.copy())
