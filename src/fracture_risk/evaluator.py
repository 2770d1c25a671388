import json
import os
from typing import Dict, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
)

from .utils.logger import get_logger


class Evaluator:
    """Per-class match breakdown of predictions, plus saved metrics and confusion matrix."""

    def __init__(
        self,
        positive_label: str = "yes",
        negative_label: str = "no",
        metrics_path: Optional[str] = None,
        figures_dir: Optional[str] = None,
        verbose: bool = True,
    ):
        self.positive_label = positive_label
        self.negative_label = negative_label
        self.metrics_path = metrics_path
        self.figures_dir = figures_dir
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def summarize(self, y_true: Sequence, y_pred: Sequence) -> pd.DataFrame:
        """
        Count and share of matching/mismatching predictions inside each true-label group.

        The result is indexed by (actual, match) for every observed true label,
        with zero counts where no prediction falls in a cell. For the positive group the
        True row is the true-positive rate and the False row the false-negative
        rate; for the negative group they are the true-negative and
        false-positive rates.
        """
        y_true = np.asarray(y_true)
        y_pred = np.asarray(y_pred)
        if len(y_true) != len(y_pred):
            raise ValueError(
                f"y_true and y_pred differ in length ({len(y_true)} vs {len(y_pred)})"
            )

        frame = pd.DataFrame({"actual": y_true, "match": y_true == y_pred})
        cells = pd.MultiIndex.from_product(
            [sorted(pd.unique(y_true)), [True, False]], names=["actual", "match"]
        )
        counts = (
            frame.groupby(["actual", "match"]).size().reindex(cells, fill_value=0).rename("count")
        )
        group_sizes = counts.groupby(level="actual").transform("sum")
        summary = counts.to_frame()
        summary["proportion"] = counts / group_sizes
        return summary

    def _plot_confusion_matrix(self, y_true: np.ndarray, y_pred: np.ndarray) -> str:
        """Plot a row-normalised confusion matrix into figures_dir. Returns saved path."""
        labels = [self.negative_label, self.positive_label]
        cm = confusion_matrix(y_true, y_pred, labels=labels).astype(float)
        row_sums = cm.sum(axis=1, keepdims=True)
        row_sums[row_sums == 0] = 1.0
        cm = cm / row_sums

        plt.figure(figsize=(6, 5))
        sns.heatmap(cm, annot=True, fmt=".2f", cmap="Blues", xticklabels=labels, yticklabels=labels)
        plt.xlabel("Predicted")
        plt.ylabel("Actual")
        plt.title("Confusion Matrix (Normalized)")

        os.makedirs(self.figures_dir, exist_ok=True)
        path = os.path.join(self.figures_dir, "confusion_matrix.png")

        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()

        if self.verbose:
            self.logger.info(f"Saved confusion matrix: {path}")

        return path

    def evaluate(
        self,
        y_true: Sequence,
        y_pred: Sequence,
        y_proba: Optional[Sequence] = None,
    ) -> Dict[str, float]:
        """Compute label metrics (and ROC-AUC when probabilities are given), save JSON + figure."""
        y_true = np.asarray(y_true)
        y_pred = np.asarray(y_pred)
        pos = self.positive_label

        metrics: Dict[str, float] = {
            "Accuracy": float(accuracy_score(y_true, y_pred)),
            "Balanced_Accuracy": float(balanced_accuracy_score(y_true, y_pred)),
            "Precision": float(precision_score(y_true, y_pred, pos_label=pos, zero_division=0)),
            "Recall": float(recall_score(y_true, y_pred, pos_label=pos, zero_division=0)),
            "F1": float(f1_score(y_true, y_pred, pos_label=pos, zero_division=0)),
        }
        if y_proba is not None and len(np.unique(y_true)) == 2:
            metrics["ROC_AUC"] = float(roc_auc_score(y_true == pos, np.asarray(y_proba, dtype=float)))

        if self.metrics_path:
            os.makedirs(os.path.dirname(self.metrics_path) or ".", exist_ok=True)
            with open(self.metrics_path, "w") as f:
                json.dump(metrics, f, indent=4)
            if self.verbose:
                self.logger.info(f"Saved metrics: {self.metrics_path}")

        if self.figures_dir:
            self._plot_confusion_matrix(y_true, y_pred)

        return metrics
