#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
model_training.py — inspection-duration regressors

Two interchangeable model kinds share one fit / predict / feature_importance
contract and are chosen by configuration:

• linear  – OLS on one-hot enforcement_proceedings + property_type and the
            numeric property_ward (first level of each factor is the baseline)
• forest  – random forest (500 bootstrapped trees, 3 candidate predictors per
            split, unlimited depth) on ordinal-coded factors + ward

Randomness comes only from the numpy Generator handed to ``make_model``.

This file exports:
  - ModelKind, DurationModel, LinearDurationModel, ForestDurationModel
  - make_model, train_models, save_model, load_model, cli
"""

from __future__ import annotations

import argparse
import logging
import os
from enum import Enum
from typing import Iterable

import joblib
import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, OrdinalEncoder

from config import (
    CATEGORICAL_PREDICTORS,
    FOREST_N_JOBS,
    MAX_FEATURES,
    MODEL_DIR,
    N_ESTIMATORS,
    NUMERIC_PREDICTORS,
    RANDOM_SEED,
    TARGET_COL,
    TRAIN_FRACTION,
)
from diagnostics import LinearDiagnostics, ols_diagnostics
from errors import EmptyPartitionError, UnseenCategoryError


class ModelKind(str, Enum):
    LINEAR = "linear"
    FOREST = "forest"


# ─────────────────────────── Base contract ─────────────────────────── #

class DurationModel:
    """fit(train) → self; predict(frame) → durations; feature_importance() → Series."""

    kind: ModelKind

    def __init__(
        self,
        categorical: Iterable[str] = CATEGORICAL_PREDICTORS,
        numeric: Iterable[str] = NUMERIC_PREDICTORS,
        target_col: str = TARGET_COL,
    ):
        self.categorical = list(categorical)
        self.numeric = list(numeric)
        self.target_col = target_col
        self.pipeline_: Pipeline | None = None
        self.levels_: dict[str, set[str]] = {}

    @property
    def predictors(self) -> list[str]:
        return self.categorical + self.numeric

    def _build_pipeline(self) -> Pipeline:
        raise NotImplementedError

    def _design(self, df: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.predictors if c not in df.columns]
        if missing:
            raise KeyError(f"Predictor column(s) missing: {', '.join(missing)}")
        X = df[self.predictors].copy()
        for col in self.categorical:
            X[col] = X[col].astype(str)
        for col in self.numeric:
            X[col] = X[col].astype(float)
        return X

    def fit(self, train: pd.DataFrame) -> "DurationModel":
        if train is None or train.empty:
            raise EmptyPartitionError(f"cannot fit {self.kind.value} model on an empty training set")
        X = self._design(train)
        y = train[self.target_col].astype(float).to_numpy()
        self.levels_ = {col: set(X[col].unique()) for col in self.categorical}
        self.pipeline_ = self._build_pipeline()
        self.pipeline_.fit(X, y)
        logging.info("Fitted %s model on %d rows", self.kind.value, len(X))
        return self

    def _check_fitted(self) -> None:
        if self.pipeline_ is None:
            raise RuntimeError(f"{type(self).__name__} is not fitted yet")

    def unseen_levels(self, df: pd.DataFrame) -> dict[str, set[str]]:
        self._check_fitted()
        X = self._design(df)
        out = {}
        for col in self.categorical:
            extra = set(X[col].unique()) - self.levels_.get(col, set())
            if extra:
                out[col] = extra
        return out

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        self._check_fitted()
        return np.asarray(self.pipeline_.predict(self._design(df)), dtype=float)

    def feature_names(self) -> list[str]:
        self._check_fitted()
        return list(self.pipeline_[:-1].get_feature_names_out())

    def feature_importance(self) -> pd.Series:
        raise NotImplementedError


# ─────────────────────────── Linear variant ─────────────────────────── #

class LinearDurationModel(DurationModel):
    """OLS with treatment-coded factors; importance is |t| per design column."""

    kind = ModelKind.LINEAR

    def __init__(self, categorical=CATEGORICAL_PREDICTORS, numeric=NUMERIC_PREDICTORS, target_col=TARGET_COL):
        super().__init__(categorical, numeric, target_col)
        self.diagnostics_: LinearDiagnostics | None = None

    def _build_pipeline(self) -> Pipeline:
        pre = ColumnTransformer(
            [
                ("cat", OneHotEncoder(drop="first", handle_unknown="error", sparse_output=False), self.categorical),
                ("num", "passthrough", self.numeric),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        )
        return Pipeline([("pre", pre), ("model", LinearRegression())])

    def fit(self, train: pd.DataFrame) -> "LinearDurationModel":
        super().fit(train)
        design = pd.DataFrame(
            self.pipeline_[:-1].transform(self._design(train)),
            columns=self.feature_names(),
            index=train.index,
        )
        self.diagnostics_ = ols_diagnostics(design, train[self.target_col])
        return self

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        unseen = self.unseen_levels(df)
        if unseen:
            col, levels = next(iter(unseen.items()))
            raise UnseenCategoryError(col, levels)
        return super().predict(df)

    def coefficients(self) -> pd.Series:
        self._check_fitted()
        reg = self.pipeline_.named_steps["model"]
        coefs = pd.Series(reg.coef_, index=self.feature_names(), name="coefficient")
        return pd.concat([pd.Series({"(Intercept)": float(reg.intercept_)}), coefs])

    def feature_importance(self) -> pd.Series:
        self._check_fitted()
        t = self.diagnostics_.t_values.drop("const", errors="ignore")
        return t.abs().rename("importance").sort_values(ascending=False)


# ─────────────────────────── Forest variant ─────────────────────────── #

class ForestDurationModel(DurationModel):
    """Random forest; importance is the mean impurity decrease per predictor."""

    kind = ModelKind.FOREST

    def __init__(
        self,
        categorical=CATEGORICAL_PREDICTORS,
        numeric=NUMERIC_PREDICTORS,
        target_col=TARGET_COL,
        *,
        n_estimators: int = N_ESTIMATORS,
        max_features: int = MAX_FEATURES,
        random_state: int = RANDOM_SEED,
        n_jobs: int = FOREST_N_JOBS,
    ):
        super().__init__(categorical, numeric, target_col)
        self.n_estimators = n_estimators
        self.max_features = max_features
        self.random_state = random_state
        self.n_jobs = n_jobs

    def _build_pipeline(self) -> Pipeline:
        pre = ColumnTransformer(
            [
                ("cat", OrdinalEncoder(handle_unknown="use_encoded_value", unknown_value=-1), self.categorical),
                ("num", "passthrough", self.numeric),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        )
        forest = RandomForestRegressor(
            n_estimators=self.n_estimators,
            max_features=min(self.max_features, len(self.predictors)),
            max_depth=None,
            bootstrap=True,
            random_state=self.random_state,
            n_jobs=self.n_jobs,
        )
        return Pipeline([("pre", pre), ("model", forest)])

    def feature_importance(self) -> pd.Series:
        self._check_fitted()
        forest = self.pipeline_.named_steps["model"]
        imp = pd.Series(forest.feature_importances_, index=self.feature_names(), name="importance")
        return imp.sort_values(ascending=False)


# ─────────────────────────── Factory / persistence ─────────────────────────── #

def make_model(kind: ModelKind | str, rng: np.random.Generator | None = None, **params) -> DurationModel:
    """Instantiate a model kind; the forest's random_state is drawn from *rng*."""
    kind = ModelKind(kind)
    if kind is ModelKind.LINEAR:
        return LinearDurationModel(**params)
    rng = rng if rng is not None else np.random.default_rng(RANDOM_SEED)
    params.setdefault("random_state", int(rng.integers(0, 2**31 - 1)))
    return ForestDurationModel(**params)


def train_models(
    train: pd.DataFrame,
    kinds: Iterable[ModelKind | str] = (ModelKind.LINEAR, ModelKind.FOREST),
    rng: np.random.Generator | None = None,
    **forest_params,
) -> dict[ModelKind, DurationModel]:
    rng = rng if rng is not None else np.random.default_rng(RANDOM_SEED)
    models = {}
    for kind in kinds:
        kind = ModelKind(kind)
        params = forest_params if kind is ModelKind.FOREST else {}
        models[kind] = make_model(kind, rng, **params).fit(train)
    return models


def model_path(kind: ModelKind | str, model_dir: str = MODEL_DIR) -> str:
    return os.path.join(model_dir, f"{ModelKind(kind).value}_model.joblib")


def save_model(model: DurationModel, path: str | None = None) -> str:
    path = path or model_path(model.kind)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    joblib.dump(model, path, compress=3)
    logging.info("Saved %s model => %s", model.kind.value, path)
    return path


def load_model(path: str) -> DurationModel:
    model = joblib.load(path)
    if not isinstance(model, DurationModel):
        raise TypeError(f"{path} does not hold a DurationModel (got {type(model).__name__})")
    return model


def cli() -> None:
    from data_loading import load_analysis_table
    from splitting import split_train_test
    from utils import setup_logging

    p = argparse.ArgumentParser(description="Train inspection-duration models")
    p.add_argument("parquet_path", nargs="?", default=None)
    p.add_argument("--kind", choices=[k.value for k in ModelKind], action="append")
    p.add_argument("--train-frac", type=float, default=TRAIN_FRACTION)
    p.add_argument("--seed", type=int, default=RANDOM_SEED)
    p.add_argument("--n-estimators", type=int, default=N_ESTIMATORS)
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args()

    setup_logging(args.log_level)
    df = load_analysis_table(args.parquet_path) if args.parquet_path else load_analysis_table()
    rng = np.random.default_rng(args.seed)
    split = split_train_test(df, args.train_frac, rng)
    models = train_models(split.train, args.kind or list(ModelKind), rng, n_estimators=args.n_estimators)
    for model in models.values():
        save_model(model)


if __name__ == "__main__":
    cli()
