# plotting.py

import logging
import traceback
import numpy as np
import pandas as pd
from utils import save_plot  # sets the headless backend before pyplot loads
import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats

###############################################################################
# Diagnostic figures written next to the report tables
###############################################################################


def plot_duration_hist(data, plot_dir, duration_col='inspection_duration'):
    """Histogram of inspection duration (days)."""
    try:
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.histplot(data[duration_col], bins=50, ax=ax)
        ax.set_xlabel('Inspection duration (days)', fontsize=12)
        ax.set_ylabel('Count', fontsize=12)
        ax.set_title('Distribution of Inspection Duration', fontsize=14)
        return save_plot(fig, 'duration_hist', plot_dir)
    except Exception as e:
        logging.error(f"Error in plot_duration_hist: {str(e)}")
        logging.error(traceback.format_exc())
        return None


def plot_residuals(comparison: pd.DataFrame, model_name: str, plot_dir: str):
    """
    Residuals vs fitted (left) and normal Q-Q of residuals (right).
    Residuals are predicted − actual, as in evaluation.comparison_frame.
    """
    try:
        fitted = comparison['Predicted'].to_numpy()
        resid = comparison['Residual'].to_numpy()

        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(16, 6))
        sns.scatterplot(x=fitted, y=resid, alpha=0.5, ax=ax1)
        ax1.axhline(y=0, color='r', linestyle='--')
        ax1.set_xlabel('Fitted', fontsize=12)
        ax1.set_ylabel('Residual (predicted − actual)', fontsize=12)
        ax1.set_title('Residuals vs Fitted', fontsize=14)
        ax1.grid(True)

        stats.probplot(resid, dist='norm', plot=ax2)
        ax2.set_title('Normal Q-Q', fontsize=14)
        ax2.grid(True)

        rmse = float(np.sqrt(np.mean(resid ** 2)))
        plt.suptitle(f"{model_name} residual diagnostics (RMSE={rmse:.2f})", fontsize=14)
        plt.tight_layout()
        return save_plot(fig, f'residuals_{model_name}', plot_dir)
    except Exception as e:
        logging.error(f"Error in plot_residuals: {str(e)}")
        logging.error(traceback.format_exc())
        return None


def plot_feature_importance(importance: pd.DataFrame, model_name: str, plot_dir: str, top_n: int = 20):
    """Horizontal bars of one model's importance table (columns: feature, importance)."""
    try:
        df_imp = importance.sort_values('importance', ascending=False).head(top_n)
        if df_imp.empty:
            logging.error("Feature importance DataFrame is empty.")
            return None
        fig, ax = plt.subplots(figsize=(12, 8))
        sns.barplot(x='importance', y='feature', data=df_imp, ax=ax)
        ax.set_xlabel('Importance', fontsize=14)
        ax.set_ylabel('Feature', fontsize=14)
        ax.set_title(f'{model_name} feature importance', fontsize=16)
        return save_plot(fig, f'feature_importance_{model_name}', plot_dir)
    except Exception as e:
        logging.error(f"Error in plot_feature_importance: {str(e)}")
        logging.error(traceback.format_exc())
        return None


def plot_influence(diagnostics, model_name: str, plot_dir: str):
    """
    Scale-Location (left) and Cook's distance per training row (right),
    from a fitted model's LinearDiagnostics.
    """
    try:
        fitted = diagnostics.fitted.to_numpy()
        root_std = np.sqrt(np.abs(diagnostics.std_residuals.to_numpy()))
        cooks = diagnostics.cooks_distance.to_numpy()

        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(16, 6))
        sns.regplot(x=fitted, y=root_std, lowess=True, scatter_kws={'alpha': 0.5},
                    line_kws={'color': 'r'}, ax=ax1)
        ax1.set_xlabel('Fitted', fontsize=12)
        ax1.set_ylabel('√|Standardized residual|', fontsize=12)
        ax1.set_title('Scale-Location', fontsize=14)
        ax1.grid(True)

        ax2.stem(np.arange(len(cooks)), cooks, markerfmt=' ', basefmt=' ')
        ax2.axhline(y=diagnostics.cooks_threshold, color='r', linestyle='--', label='4/n')
        ax2.set_xlabel('Observation', fontsize=12)
        ax2.set_ylabel("Cook's distance", fontsize=12)
        ax2.set_title("Cook's Distance", fontsize=14)
        ax2.legend()

        plt.suptitle(f"{model_name} influence diagnostics", fontsize=14)
        plt.tight_layout()
        return save_plot(fig, f'influence_{model_name}', plot_dir)
    except Exception as e:
        logging.error(f"Error in plot_influence: {str(e)}")
        logging.error(traceback.format_exc())
        return None
