from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .utils.logger import get_logger


class FeatureFilter:
    """Drops categorical columns that carry a single observed value.

    Decisions are learned with ``fit`` on the training frame and replayed by
    ``transform`` on every frame the model sees, so fit and inference share
    one feature set.
    """

    def __init__(
        self,
        categorical_cols: Optional[Sequence[str]] = None,
        keep_cols: Iterable[str] = (),
    ):
        """
        Parameters
        ----------
        categorical_cols:
            Columns to inspect. When None, object/category/bool columns are used.
        keep_cols:
            Columns never dropped (label, identifier).
        """
        self.categorical_cols = list(categorical_cols) if categorical_cols is not None else None
        self.keep_cols = set(keep_cols)
        self.logger = get_logger(self.__class__.__name__)
        self.dropped_: Optional[List[str]] = None

    def _candidates(self, df: pd.DataFrame) -> List[str]:
        if self.categorical_cols is None:
            cols = df.select_dtypes(include=["object", "string", "category", "bool"]).columns.tolist()
        else:
            cols = [c for c in self.categorical_cols if c in df.columns]
        return [c for c in cols if c not in self.keep_cols]

    def fit(self, df: pd.DataFrame) -> "FeatureFilter":
        self.dropped_ = [c for c in self._candidates(df) if df[c].nunique(dropna=True) <= 1]
        self.logger.info(
            f"{len(self.dropped_)} single-valued categorical columns to drop"
            + (f": {self.dropped_}" if self.dropped_ else "")
        )
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.dropped_ is None:
            raise RuntimeError("Call fit() before transform().")
        return df.drop(columns=[c for c in self.dropped_ if c in df.columns])

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)
