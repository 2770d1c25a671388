from typing import Dict, Optional, Sequence

import pandas as pd

from .errors import MissingDataError, SchemaMismatchError
from .schema import ANOMALOUS_GENDER, GENDER_COLUMN
from .utils.logger import get_logger


class Cleaner:
    """Median-imputes numeric columns, forward-fills categorical ones and
    drops rows carrying the anomalous gender code."""

    def __init__(
        self,
        numeric_cols: Sequence[str],
        ffill_cols: Sequence[str] = (),
        gender_col: Optional[str] = GENDER_COLUMN,
        anomalous_gender=ANOMALOUS_GENDER,
    ):
        self.numeric_cols = list(numeric_cols)
        self.ffill_cols = list(ffill_cols)
        self.gender_col = gender_col
        self.anomalous_gender = anomalous_gender
        self.logger = get_logger(self.__class__.__name__)
        self.medians_: Dict[str, float] = {}

    def _impute_medians(self, out: pd.DataFrame) -> None:
        self.medians_ = {}
        for col in self.numeric_cols:
            n_missing = int(out[col].isna().sum())
            if n_missing == 0:
                continue
            median = out[col].median()
            if pd.isna(median):
                raise MissingDataError(f"Column '{col}' has no values to take a median from")
            out[col] = out[col].fillna(median)
            self.medians_[col] = float(median)
            self.logger.info(f"Imputed {n_missing} missing '{col}' values with median {median:g}")

    def _forward_fill(self, out: pd.DataFrame) -> None:
        for col in self.ffill_cols:
            n_missing = int(out[col].isna().sum())
            if n_missing == 0:
                continue
            if pd.isna(out[col].iloc[0]):
                raise MissingDataError(
                    f"Cannot forward-fill '{col}': the first record has no value to carry"
                )
            out[col] = out[col].ffill()
            self.logger.info(f"Carried forward {n_missing} missing '{col}' values")

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.numeric_cols + self.ffill_cols if c not in df.columns]
        if missing:
            raise SchemaMismatchError(f"Columns to clean not found: {missing}", stage="cleaning")

        out = df.copy()
        self._impute_medians(out)
        self._forward_fill(out)

        if self.gender_col is not None and self.gender_col in out.columns:
            anomalous = out[self.gender_col] == self.anomalous_gender
            n_dropped = int(anomalous.sum())
            out = out.loc[~anomalous]
            if n_dropped:
                self.logger.info(
                    f"Dropped {n_dropped} rows with {self.gender_col}={self.anomalous_gender}"
                )

        return out
