import os
import warnings
from typing import Any, Optional, Sequence

import joblib
import numpy as np
import pandas as pd
from sklearn.base import ClassifierMixin
from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import StratifiedKFold
from sklearn.naive_bayes import BernoulliNB
from sklearn.pipeline import Pipeline

from .balancer import Balancer
from .errors import ModelFitError
from .preprocessor import Preprocessor
from .utils.logger import get_logger


class ModelTrainer:
    """
    Fits one of the supported classifiers behind its preprocessing pipeline.

    Provides:
      - fit / predict_proba / predict: train on a labelled frame and score another
      - cross_validate: stratified CV AUC and out-of-fold probabilities, balancing
        applied inside training folds only
      - save: dump the fitted pipeline with joblib
    """

    def __init__(
        self,
        kind: str,
        label_col: str,
        params: Optional[dict[str, Any]] = None,
        model_path: Optional[str] = None,
        positive_label: str = "yes",
        negative_label: str = "no",
        threshold: float = 0.5,
        categorical_cols: Optional[Sequence[str]] = None,
        exclude_cols: Sequence[str] = (),
        n_splits: int = 5,
        random_state: int = 42,
    ):
        self.kind = kind
        self.label_col = label_col
        self.params = dict(params or {})
        self.model_path = model_path
        self.positive_label = positive_label
        self.negative_label = negative_label
        self.threshold = threshold
        self.categorical_cols = list(categorical_cols or [])
        self.exclude_cols = list(exclude_cols)
        self.n_splits = n_splits
        self.random_state = random_state

        self.logger = get_logger(self.__class__.__name__)
        self.model: Pipeline | None = None

    def _make_estimator(self) -> ClassifierMixin:
        params = dict(self.params)
        if self.kind == "naive_bayes":
            return BernoulliNB(**params)
        if self.kind == "logistic":
            params.setdefault("max_iter", 1000)
            params.setdefault("random_state", self.random_state)
            return LogisticRegression(**params)
        if self.kind == "random_forest":
            params.setdefault("n_estimators", 300)
            params.setdefault("random_state", self.random_state)
            params.setdefault("n_jobs", -1)
            return RandomForestClassifier(**params)
        raise ValueError(f"Unknown model kind: {self.kind}")

    def _split_xy(self, df: pd.DataFrame) -> tuple[pd.DataFrame, np.ndarray]:
        drop = [self.label_col] + [c for c in self.exclude_cols if c in df.columns]
        X = df.drop(columns=drop)
        y = (df[self.label_col] == self.positive_label).astype(int).to_numpy()
        return X, y

    def _fit_pipeline(self, X: pd.DataFrame, y: np.ndarray) -> Pipeline:
        if len(np.unique(y)) < 2:
            raise ModelFitError("Training data holds a single outcome class")

        transformer = Preprocessor(self.kind, categorical_cols=self.categorical_cols).build(X)
        pipe = Pipeline(steps=[("preprocessor", transformer), ("model", self._make_estimator())])

        with warnings.catch_warnings():
            warnings.simplefilter("error", category=ConvergenceWarning)
            try:
                pipe.fit(X, y)
            except ConvergenceWarning as e:
                raise ModelFitError(f"{self.kind} did not converge: {e}") from e
            except ValueError as e:
                raise ModelFitError(f"{self.kind} could not be fitted: {e}") from e
        return pipe

    def fit(self, train: pd.DataFrame) -> "ModelTrainer":
        X, y = self._split_xy(train)
        self.logger.info(f"Fitting {self.kind} on {len(X):,} rows x {X.shape[1]} cols")
        self.model = self._fit_pipeline(X, y)
        return self

    def predict_proba(self, df: pd.DataFrame) -> np.ndarray:
        """Positive-class probability for every row of df."""
        if self.model is None:
            raise RuntimeError("Call fit() before predict_proba().")
        X = df.drop(columns=[c for c in [self.label_col] + self.exclude_cols if c in df.columns])
        return self.model.predict_proba(X)[:, 1]

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        proba = self.predict_proba(df)
        return np.where(proba >= self.threshold, self.positive_label, self.negative_label)

    def cross_validate(
        self, train: pd.DataFrame, balancer: Optional[Balancer] = None
    ) -> tuple[float, np.ndarray]:
        """
        Stratified CV with balancing applied to training folds only, so that
        validation folds keep the natural class ratio. Returns:
          - mean ROC-AUC across folds
          - out-of-fold positive-class probabilities, aligned with the rows of train
        """
        folds = StratifiedKFold(n_splits=self.n_splits, shuffle=True, random_state=self.random_state)
        labels = train[self.label_col].to_numpy()
        aucs: list[float] = []
        oof_proba = np.zeros(len(train), dtype=float)

        for fold, (train_idx, val_idx) in enumerate(folds.split(train, labels), start=1):
            fold_train = train.iloc[train_idx]
            if balancer is not None:
                fold_train = balancer.balance(fold_train)
            X_train, y_train = self._split_xy(fold_train)
            X_val, y_val = self._split_xy(train.iloc[val_idx])

            pipe = self._fit_pipeline(X_train, y_train)
            val_proba = pipe.predict_proba(X_val)[:, 1]
            oof_proba[val_idx] = val_proba
            auc = roc_auc_score(y_val, val_proba)
            aucs.append(float(auc))
            self.logger.info(f"Fold {fold}/{self.n_splits} ROC-AUC: {auc:.4f}")

        return float(np.mean(aucs)), oof_proba

    def save(self) -> None:
        if self.model is None:
            raise RuntimeError("Call fit() before save().")
        if not self.model_path:
            raise ValueError("model_path is not set")
        os.makedirs(os.path.dirname(self.model_path) or ".", exist_ok=True)
        joblib.dump(self.model, self.model_path)
        self.logger.info(f"Saved model: {self.model_path}")
