# evaluation.py

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, r2_score

from errors import EmptyPartitionError
from model_training import DurationModel


@dataclass(frozen=True)
class EvaluationReport:
    model_kind: str
    rmse: float
    r2: float
    n_test: int
    feature_importance: tuple[tuple[str, float], ...]

    def importance_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(self.model_kind, name, score) for name, score in self.feature_importance],
            columns=["model", "feature", "importance"],
        )

    def to_dict(self) -> dict:
        return {"model": self.model_kind, "rmse": self.rmse, "r2": self.r2, "n_test": self.n_test}


def rmse(y_true, y_pred) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def residuals(model: DurationModel, test: pd.DataFrame) -> np.ndarray:
    """predicted − actual, the sign convention used by every diagnostic here."""
    return model.predict(test) - test[model.target_col].to_numpy(dtype=float)


def comparison_frame(model: DurationModel, test: pd.DataFrame) -> pd.DataFrame:
    actual = test[model.target_col].to_numpy(dtype=float)
    predicted = model.predict(test)
    return pd.DataFrame(
        {"Actual": actual, "Predicted": predicted, "Residual": predicted - actual},
        index=test.index,
    )


def evaluate(model: DurationModel, test: pd.DataFrame) -> EvaluationReport:
    """Held-out RMSE and R² (about the test-set mean) plus the model's importance scores."""
    if test is None or test.empty:
        raise EmptyPartitionError("cannot evaluate on an empty test set")
    y_true = test[model.target_col].to_numpy(dtype=float)
    y_pred = model.predict(test)

    report = EvaluationReport(
        model_kind=model.kind.value,
        rmse=rmse(y_true, y_pred),
        r2=float(r2_score(y_true, y_pred)),
        n_test=int(len(test)),
        feature_importance=tuple((str(k), float(v)) for k, v in model.feature_importance().items()),
    )
    logging.info("%s model → RMSE: %.3f, R²: %.4f (n_test=%d)",
                 report.model_kind, report.rmse, report.r2, report.n_test)
    return report
