# diagnostics.py
"""OLS inference summary for the linear duration model.

Covers the fit statistics (R², AIC, BIC), per-coefficient t, the variance
inflation factors and the influence measures behind the usual four
``lm`` diagnostic panels (fitted values, standardized residuals, Cook's
distance).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.stats.outliers_influence import variance_inflation_factor


@dataclass(frozen=True)
class LinearDiagnostics:
    n_obs: int
    r_squared: float
    adj_r_squared: float
    aic: float
    bic: float
    coefficients: pd.Series
    t_values: pd.Series
    p_values: pd.Series
    vif: pd.Series
    fitted: pd.Series
    std_residuals: pd.Series
    cooks_distance: pd.Series

    @property
    def cooks_threshold(self) -> float:
        return 4.0 / self.n_obs if self.n_obs else float("inf")

    @property
    def influential(self) -> pd.Series:
        """Cook's distance of the rows above the 4/n rule of thumb."""
        return self.cooks_distance[self.cooks_distance > self.cooks_threshold]

    def to_dict(self) -> dict:
        return {
            "n_obs": self.n_obs,
            "r_squared": self.r_squared,
            "adj_r_squared": self.adj_r_squared,
            "aic": self.aic,
            "bic": self.bic,
            "coefficients": {k: float(v) for k, v in self.coefficients.items()},
            "t_values": {k: float(v) for k, v in self.t_values.items()},
            "vif": {k: float(v) for k, v in self.vif.items()},
            "cooks_threshold": self.cooks_threshold,
            "n_influential": int(len(self.influential)),
            "max_cooks_distance": float(self.cooks_distance.max()) if len(self.cooks_distance) else 0.0,
        }


def vif_table(X: pd.DataFrame) -> pd.Series:
    """Variance inflation factor per design column (constant added internally)."""
    exog = sm.add_constant(X.astype(float), has_constant="add")
    values = {}
    with np.errstate(divide="ignore", invalid="ignore"):
        for i, col in enumerate(exog.columns):
            if col == "const":
                continue
            values[col] = float(variance_inflation_factor(exog.to_numpy(), i))
    return pd.Series(values, name="vif", dtype=float)


def ols_diagnostics(X: pd.DataFrame, y) -> LinearDiagnostics:
    """Refit the design matrix with statsmodels OLS and collect inference statistics."""
    exog = sm.add_constant(X.astype(float), has_constant="add")
    res = sm.OLS(np.asarray(y, dtype=float), exog).fit()
    influence = res.get_influence()
    diag = LinearDiagnostics(
        n_obs=int(res.nobs),
        r_squared=float(res.rsquared),
        adj_r_squared=float(res.rsquared_adj),
        aic=float(res.aic),
        bic=float(res.bic),
        coefficients=res.params.rename("coefficient"),
        t_values=res.tvalues.rename("t_value"),
        p_values=res.pvalues.rename("p_value"),
        vif=vif_table(X),
        fitted=pd.Series(np.asarray(res.fittedvalues), index=X.index, name="fitted"),
        std_residuals=pd.Series(influence.resid_studentized_internal, index=X.index, name="std_residual"),
        cooks_distance=pd.Series(influence.cooks_distance[0], index=X.index, name="cooks_distance"),
    )
    logging.info("OLS diagnostics: R²=%.4f AIC=%.1f BIC=%.1f (n=%d)",
                 diag.r_squared, diag.aic, diag.bic, diag.n_obs)
    high = diag.vif[diag.vif > 10]
    if len(high):
        logging.warning("High multicollinearity (VIF > 10): %s", high.round(2).to_dict())
    if len(diag.influential):
        logging.info("%d influential rows (Cook's distance > %.4f)",
                     len(diag.influential), diag.cooks_threshold)
    return diag
