from __future__ import annotations

from typing import Optional, Sequence

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import KBinsDiscretizer, OneHotEncoder, StandardScaler

from .utils.logger import get_logger

MODEL_KINDS = ("naive_bayes", "logistic", "random_forest")


class Preprocessor:
    """Builds a ColumnTransformer for the numeric/categorical features of one model kind."""

    def __init__(
        self,
        kind: str = "logistic",
        categorical_cols: Optional[Sequence[str]] = None,
        n_bins: int = 4,
        verbose: bool = False,
    ):
        """
        Parameters
        ----------
        kind:
            naive_bayes bins numeric columns so every feature is binary;
            logistic scales them; random_forest leaves them as they are.
        categorical_cols:
            Columns to one-hot encode even if numeric (e.g. a 1/2 gender code).
        n_bins:
            Quantile bins per numeric column for naive_bayes.
        verbose:
            If True, logs detected feature groups.
        """
        if kind not in MODEL_KINDS:
            raise ValueError(f"Unknown model kind: {kind}")
        self.kind = kind
        self.categorical_cols = list(categorical_cols or [])
        self.n_bins = n_bins
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)
        self.transformer: Optional[ColumnTransformer] = None

    def _numeric_pipe(self) -> Pipeline:
        steps = [("imputer", SimpleImputer(strategy="median"))]
        if self.kind == "naive_bayes":
            steps.append(
                ("binner", KBinsDiscretizer(n_bins=self.n_bins, encode="onehot", strategy="quantile"))
            )
        elif self.kind == "logistic":
            steps.append(("scaler", StandardScaler()))
        return Pipeline(steps=steps)

    def build(self, X: pd.DataFrame) -> ColumnTransformer:
        """Build (but do not fit) the preprocessing transformer."""
        forced = [c for c in self.categorical_cols if c in X.columns]
        categorical_cols = forced + [
            c for c in X.select_dtypes(include=["object", "string", "category", "bool"]).columns
            if c not in forced
        ]
        numeric_cols = [
            c for c in X.select_dtypes(include=["number"]).columns if c not in categorical_cols
        ]

        # categorical gaps are filled upstream by the cleaner
        cat_pipe = Pipeline(steps=[("encoder", OneHotEncoder(handle_unknown="ignore"))])

        self.transformer = ColumnTransformer(
            transformers=[
                ("num", self._numeric_pipe(), numeric_cols),
                ("cat", cat_pipe, categorical_cols),
            ],
            remainder="drop",
        )

        if self.verbose:
            self.logger.info(
                f"Columns detected: numeric={len(numeric_cols)}, categorical={len(categorical_cols)}"
            )

        return self.transformer
