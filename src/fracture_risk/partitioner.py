from dataclasses import dataclass
from typing import Union

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from .errors import InsufficientSampleError
from .utils.logger import get_logger


@dataclass(frozen=True)
class Split:
    """Disjoint train/test subsets of one dataset."""
    train: pd.DataFrame
    test: pd.DataFrame


class Partitioner:
    """Stratified train/test split on the outcome label."""

    def __init__(
        self,
        label_col: str,
        train_fraction: float,
        random_state: Union[int, np.random.RandomState] = 42,
    ):
        if not 0 < train_fraction < 1:
            raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
        self.label_col = label_col
        self.train_fraction = train_fraction
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def split(self, df: pd.DataFrame) -> Split:
        try:
            train, test = train_test_split(
                df,
                train_size=self.train_fraction,
                stratify=df[self.label_col],
                random_state=self.random_state,
            )
        except ValueError as e:
            counts = df[self.label_col].value_counts().to_dict()
            raise InsufficientSampleError(
                f"Cannot stratify {len(df):,} rows (label counts {counts}) "
                f"at train_fraction={self.train_fraction}: {e}",
                stage="partitioning",
            ) from e
        # keep record order inside each subset
        train, test = train.sort_index(), test.sort_index()

        self.logger.info(
            f"Split {len(df):,} rows -> train {len(train):,} / test {len(test):,} "
            f"(label rates: full={self._rate(df):.4f}, "
            f"train={self._rate(train):.4f}, test={self._rate(test):.4f})"
        )
        return Split(train=train, test=test)

    def _rate(self, df: pd.DataFrame) -> float:
        counts = df[self.label_col].value_counts(normalize=True)
        # the rarer label is the one worth watching
        return float(counts.min()) if len(counts) > 1 else 0.0
