import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .utils.logger import get_logger


@dataclass
class Profile:
    """Summary of a raw dataset before cleaning."""
    n_rows: int
    n_cols: int
    null_counts: Dict[str, int]
    label_counts: Dict[str, int]
    positive_rate: float
    category_counts: Dict[str, Dict[str, int]]
    duplicate_ids: List[str] = field(default_factory=list)
    figures: List[str] = field(default_factory=list)


class Profiler:
    """Exploratory checks: nulls, label balance, categorical levels, repeated identifiers."""

    def __init__(
        self,
        label_col: str,
        categorical_cols: Sequence[str] = (),
        id_col: Optional[str] = "id",
        positive_label: str = "yes",
        figures_dir: Optional[str] = None,
        numeric_cols: Sequence[str] = (),
    ):
        self.label_col = label_col
        self.categorical_cols = list(categorical_cols)
        self.id_col = id_col
        self.positive_label = positive_label
        self.figures_dir = figures_dir
        self.numeric_cols = list(numeric_cols)
        self.logger = get_logger(self.__class__.__name__)

    def profile(self, df: pd.DataFrame) -> Profile:
        nulls = df.isna().sum()
        null_counts = {str(k): int(v) for k, v in nulls[nulls > 0].items()}

        labels = df[self.label_col].value_counts()
        label_counts = {str(k): int(v) for k, v in labels.items()}
        positive_rate = label_counts.get(self.positive_label, 0) / max(len(df), 1)

        category_counts = {
            col: {str(k): int(v) for k, v in df[col].value_counts(dropna=False).items()}
            for col in self.categorical_cols
            if col in df.columns
        }

        duplicate_ids: List[str] = []
        if self.id_col and self.id_col in df.columns:
            dup = df[self.id_col].duplicated(keep=False)
            duplicate_ids = sorted(df.loc[dup, self.id_col].astype(str).unique().tolist())

        profile = Profile(
            n_rows=len(df),
            n_cols=df.shape[1],
            null_counts=null_counts,
            label_counts=label_counts,
            positive_rate=float(positive_rate),
            category_counts=category_counts,
            duplicate_ids=duplicate_ids,
        )

        self.logger.info(f"Dataset: {profile.n_rows:,} rows x {profile.n_cols} cols")
        self.logger.info(f"Columns with nulls: {null_counts or 'none'}")
        self.logger.info(f"Label counts: {label_counts} (positive rate {positive_rate:.4f})")
        for col, counts in category_counts.items():
            self.logger.info(f"Levels of '{col}': {counts}")
        if duplicate_ids:
            self.logger.warning(f"{len(duplicate_ids)} identifiers occur more than once")

        if self.figures_dir:
            profile.figures = self._plot(df)
        return profile

    def _plot(self, df: pd.DataFrame) -> List[str]:
        os.makedirs(self.figures_dir, exist_ok=True)
        paths = []

        plt.figure(figsize=(5, 4))
        sns.countplot(x=df[self.label_col].astype(str))
        plt.title(f"Distribution of '{self.label_col}'")
        plt.tight_layout()
        path = os.path.join(self.figures_dir, f"{self.label_col}_distribution.png")
        plt.savefig(path, dpi=150)
        plt.close()
        paths.append(path)

        for col in self.numeric_cols:
            if col not in df.columns:
                continue
            plt.figure(figsize=(6, 4))
            sns.histplot(df[col].dropna(), bins=30)
            plt.title(f"Distribution of '{col}'")
            plt.tight_layout()
            path = os.path.join(self.figures_dir, f"{col}_hist.png")
            plt.savefig(path, dpi=150)
            plt.close()
            paths.append(path)

        self.logger.info(f"Saved {len(paths)} profile figures to {self.figures_dir}")
        return paths
