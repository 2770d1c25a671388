import warnings
from dataclasses import dataclass, field
from textwrap import indent
from typing import Dict, Optional

import pandas as pd

from .balancer import Balancer
from .cleaner import Cleaner
from .config import Config
from .data_loader import DataLoader
from .errors import ModelFitError, PipelineError
from .evaluator import Evaluator
from .feature_engineer import FeatureEngineer
from .feature_filter import FeatureFilter
from .hyper_tuner import HyperTuner
from .model_trainer import ModelTrainer
from .partitioner import Partitioner
from .profiler import Profile, Profiler
from .report_writer import build_predictions, write_predictions
from .schema import DatasetValidator
from .threshold_analyzer import ThresholdAnalyzer, resolve_threshold
from .utils.logger import get_logger


@dataclass
class RunResult:
    """What a finished run produced."""
    summary: pd.DataFrame
    metrics: Dict[str, float]
    predictions: pd.DataFrame
    predictions_path: str
    threshold: float = 0.5
    profile: Optional[Profile] = None
    dropped_features: list = field(default_factory=list)


class PipelineRunner:
    """End-to-end pathological fracture prediction pipeline.

    Steps:
      1. Load the visit table and validate its schema
      2. Profile it (nulls, label balance, categorical levels)
      3. Collapse condition status flags into one column per condition
      4. Clean (median / forward-fill imputation, anomalous gender rows)
      5. Stratified train/test split
      6. Optionally tune the classifier and under-sampling ratio with Optuna
      7. Balance the training split
      8. Drop single-valued categorical features (decided on train)
      9. Choose the decision cut-off from out-of-fold probabilities (threshold: best_f1)
     10. Fit the classifier and score the test split
     11. Evaluate (per-class match table, metrics, confusion matrix)
     12. Save predictions and the fitted model"""

    def __init__(self, config_path: str):
        self.config = Config.from_yaml(config_path)
        self.logger = get_logger(self.__class__.__name__)
        # None means: pick the cut-off from out-of-fold probabilities
        self.fixed_threshold = resolve_threshold(self.config.model.get("threshold"))
        warnings.filterwarnings(
            "ignore",
            message="Bins whose width are too small",
            category=UserWarning,
            module="sklearn",
        )

    def run(self) -> RunResult:
        try:
            return self._run()
        except PipelineError as e:
            self.logger.error(f"{e.stage} failed: {e}")
            raise

    def _make_balancer(self, ratio: float) -> Balancer:
        cfg = self.config
        return Balancer(
            label_col=cfg.data["label_col"],
            strategy=cfg.sampling.get("strategy", "undersample"),
            ratio=ratio,
            positive_label=cfg.data["positive_label"],
            random_state=cfg.random_state,
        )

    def _make_trainer(self, params: dict) -> ModelTrainer:
        cfg = self.config
        return ModelTrainer(
            kind=cfg.model.get("kind", "logistic"),
            label_col=cfg.data["label_col"],
            params=params,
            model_path=cfg.output.get("model_path"),
            positive_label=cfg.data["positive_label"],
            negative_label=cfg.data["negative_label"],
            threshold=0.5 if self.fixed_threshold is None else self.fixed_threshold,
            categorical_cols=[cfg.data["gender_col"]] + list(cfg.data["categorical_cols"]),
            exclude_cols=[cfg.data["id_col"]],
            n_splits=cfg.model.get("n_splits", 5),
            random_state=cfg.random_state,
        )

    def _choose_threshold(self, trainer: ModelTrainer, train: pd.DataFrame, balancer: Balancer) -> float:
        """Best-F1 cut-off on out-of-fold probabilities of the unbalanced training split."""
        cfg = self.config
        figures_dir = cfg.output.get("figures_dir")
        _, oof_proba = trainer.cross_validate(train, balancer)
        analyzer = ThresholdAnalyzer(
            figures_dir or "artifacts",
            positive_label=cfg.data["positive_label"],
            filename="threshold_oof.png",
        )
        try:
            threshold = analyzer.run(
                train[cfg.data["label_col"]].to_numpy(), oof_proba, plot=figures_dir is not None
            )
        except ValueError as e:
            raise ModelFitError(f"Cannot choose a decision threshold: {e}", stage="thresholding") from e
        self.logger.info(f"Decision threshold set from out-of-fold F1: {threshold:.2f}")
        return threshold

    def _run(self) -> RunResult:
        cfg = self.config
        data = cfg.data
        label_col = data["label_col"]
        id_col = data["id_col"]
        numeric_cols = list(data["numeric_cols"])
        categorical_cols = list(data["categorical_cols"])
        figures_dir = cfg.output.get("figures_dir")

        self.logger.info("Starting fracture prediction pipeline")

        df = DataLoader(
            data["path"], data.get("sample_size"), id_col=id_col, random_state=cfg.random_state
        ).load()
        self.logger.info(f"Loaded dataset: {df.shape[0]:,} rows x {df.shape[1]} cols")

        df = DatasetValidator(
            id_col=id_col,
            label_col=label_col,
            gender_col=data["gender_col"],
            numeric_cols=numeric_cols,
            categorical_cols=categorical_cols,
            label_values=[data["positive_label"], data["negative_label"]],
        ).validate(df)

        profile = None
        if cfg.preprocessing.get("profile", True):
            profile = Profiler(
                label_col=label_col,
                categorical_cols=[data["gender_col"]] + categorical_cols,
                id_col=id_col,
                positive_label=data["positive_label"],
                figures_dir=figures_dir,
                numeric_cols=numeric_cols,
            ).profile(df)

        engineer = FeatureEngineer()
        df = engineer.transform(df)
        self.logger.info(f"Collapsed condition flags into {len(engineer.condition_columns_)} columns")

        df = Cleaner(
            numeric_cols=numeric_cols,
            ffill_cols=cfg.preprocessing.get("ffill_cols", []),
            gender_col=data["gender_col"],
            anomalous_gender=cfg.preprocessing.get("anomalous_gender", 2),
        ).clean(df)

        split = Partitioner(
            label_col, cfg.sampling["train_fraction"], random_state=cfg.random_state
        ).split(df)

        params = dict(cfg.model.get("params") or {})
        ratio = cfg.sampling.get("ratio", 1)
        if cfg.model.get("tune", False):
            tuner = HyperTuner(
                n_trials=cfg.model.get("n_trials", 30),
                n_splits=cfg.model.get("n_splits", 5),
                random_state=cfg.random_state,
            )
            best_params, ratio = tuner.tune(
                split.train,
                make_trainer=self._make_trainer,
                make_balancer=self._make_balancer,
                kind=cfg.model.get("kind", "logistic"),
                base_params=params,
            )
            params.update(best_params)
            self.logger.info("Model parameters and ratio updated with tuned values")
        else:
            self.logger.info("Hyperparameter tuning disabled")

        train = self._make_balancer(ratio).balance(split.train)

        feature_filter = FeatureFilter(
            categorical_cols=[data["gender_col"]] + categorical_cols + engineer.condition_columns_,
            keep_cols=[label_col, id_col],
        )
        train = feature_filter.fit_transform(train)
        test = feature_filter.transform(split.test)

        trainer = self._make_trainer(params)
        if self.fixed_threshold is None:
            trainer.threshold = self._choose_threshold(
                trainer, feature_filter.transform(split.train), self._make_balancer(ratio)
            )
        trainer.fit(train)
        y_proba = trainer.predict_proba(test)
        y_pred = trainer.predict(test)
        y_true = test[label_col].to_numpy()

        evaluator = Evaluator(
            positive_label=data["positive_label"],
            negative_label=data["negative_label"],
            metrics_path=cfg.output.get("metrics_path"),
            figures_dir=figures_dir,
        )
        summary = evaluator.summarize(y_true, y_pred)
        self.logger.info(f"Per-class prediction summary:\n{indent(summary.to_string(), ' ' * 4)}")

        metrics = evaluator.evaluate(y_true, y_pred, y_proba)
        metrics_str = indent("\n".join(f"{k}: {v:.4f}" for k, v in metrics.items()), " " * 4)
        self.logger.info(f"Test metrics:\n{metrics_str}")

        if cfg.model.get("analyze_thresholds", False):
            analyzer = ThresholdAnalyzer(figures_dir or "artifacts", positive_label=data["positive_label"])
            try:
                best_thr = analyzer.run(y_true, y_proba, plot=figures_dir is not None)
                self.logger.info(f"Best F1 threshold (test, advisory): {best_thr:.2f}")
            except ValueError as e:
                self.logger.warning(f"Threshold sweep skipped: {e}")

        predictions = build_predictions(test[id_col], y_true, y_pred)
        predictions_path = write_predictions(predictions, cfg.output["predictions_path"])
        self.logger.info(f"Predictions saved: {predictions_path} ({len(predictions):,} rows)")

        if cfg.output.get("model_path"):
            trainer.save()

        self.logger.info("Pipeline finished")
        return RunResult(
            summary=summary,
            metrics=metrics,
            predictions=predictions,
            predictions_path=predictions_path,
            threshold=trainer.threshold,
            profile=profile,
            dropped_features=list(feature_filter.dropped_),
        )
