import os
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .utils.logger import get_logger


class ThresholdAnalyzer:
    """
    Chooses the decision cut-off applied to positive-class probabilities.

    Provides:
      - sweep: precision / recall / F1 / flagged share at every candidate cut-off
      - best_threshold: the lowest cut-off reaching the maximum F1
      - run: sweep, pick, and optionally save the trade-off plot
    """

    def __init__(
        self,
        output_dir: str = "artifacts",
        positive_label: str = "yes",
        step: float = 0.05,
        filename: str = "threshold_sweep.png",
        verbose: bool = True,
    ):
        if not 0 < step < 0.5:
            raise ValueError(f"step must be in (0, 0.5), got {step}")
        self.output_dir = output_dir
        self.positive_label = positive_label
        self.step = step
        self.filename = filename
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def candidates(self) -> np.ndarray:
        """Cut-offs from step to 1 - step, rounded to avoid float drift."""
        grid = np.arange(self.step, 1.0 - self.step / 2, self.step)
        return np.round(grid, 6)

    def sweep(self, y_true: Sequence, y_proba: Sequence) -> pd.DataFrame:
        is_pos = np.asarray(y_true) == self.positive_label
        proba = np.asarray(y_proba, dtype=float)
        if len(is_pos) != len(proba):
            raise ValueError(
                f"y_true and y_proba differ in length ({len(is_pos)} vs {len(proba)})"
            )

        thresholds = self.candidates()
        # rows: cut-offs, columns: records
        flagged = proba[np.newaxis, :] >= thresholds[:, np.newaxis]
        tp = (flagged & is_pos).sum(axis=1)
        n_flagged = flagged.sum(axis=1)
        n_pos = int(is_pos.sum())

        with np.errstate(divide="ignore", invalid="ignore"):
            precision = np.where(n_flagged > 0, tp / n_flagged, 0.0)
            recall = np.where(n_pos > 0, tp / max(n_pos, 1), 0.0)
            f1 = np.where(precision + recall > 0, 2 * precision * recall / (precision + recall), 0.0)

        return pd.DataFrame(
            {
                "threshold": thresholds,
                "precision": precision,
                "recall": recall,
                "f1": f1,
                "flagged_rate": n_flagged / max(len(proba), 1),
            }
        )

    def best_threshold(self, table: pd.DataFrame) -> float:
        if table["f1"].max() <= 0:
            raise ValueError("No cut-off flags a single true positive; F1 is zero everywhere")
        # idxmax keeps the first (lowest) cut-off among ties, favouring recall
        return float(table.loc[table["f1"].idxmax(), "threshold"])

    def _plot(self, table: pd.DataFrame, best: float) -> str:
        long = table.melt(
            id_vars="threshold",
            value_vars=["precision", "recall", "f1", "flagged_rate"],
            var_name="metric",
            value_name="score",
        )
        plt.figure(figsize=(7, 5))
        sns.lineplot(data=long, x="threshold", y="score", hue="metric")
        plt.axvline(best, color="grey", linestyle="--", label=f"chosen={best:.2f}")
        plt.xlabel("Cut-off on P(fracture)")
        plt.ylabel("Score")
        plt.title("Decision Threshold Trade-off")
        plt.legend()

        os.makedirs(self.output_dir, exist_ok=True)
        path = os.path.join(self.output_dir, self.filename)
        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()

        if self.verbose:
            self.logger.info(f"Saved threshold plot: {path}")
        return path

    def run(self, y_true: Sequence, y_proba: Sequence, plot: bool = True) -> float:
        table = self.sweep(y_true, y_proba)
        best = self.best_threshold(table)
        row = table.loc[table["threshold"] == best].iloc[0]

        if plot:
            self._plot(table, best)
        if self.verbose:
            self.logger.info(
                f"Chosen cut-off {best:.2f}: F1={row['f1']:.3f}, "
                f"precision={row['precision']:.3f}, recall={row['recall']:.3f}, "
                f"flagged={row['flagged_rate']:.3f}"
            )
        return best


def resolve_threshold(setting, default: float = 0.5) -> Optional[float]:
    """
    Read the model.threshold setting. Returns the fixed cut-off, or None when the
    cut-off is to be chosen from out-of-fold probabilities ("best_f1").
    """
    if setting is None:
        return default
    if isinstance(setting, str):
        if setting == "best_f1":
            return None
        raise ValueError(f"model.threshold must be a number or 'best_f1', got {setting!r}")
    value = float(setting)
    if not 0 < value < 1:
        raise ValueError(f"model.threshold must be in (0, 1), got {value}")
    return value
