"""
Pathological Fracture Prediction — Modular Analysis Pipeline

This package loads a visit-level medical table, cleans it, rebalances the
rare fracture outcome and fits a classifier (Naive Bayes, logistic
regression or random forest) to predict it.

Modules:
    config              — Load YAML configuration safely.
    errors              — Fatal pipeline error types.
    schema              — Column layout and pandera validation.
    data_loader         — Read and optionally sample CSV data.
    profiler            — Exploratory summary and distribution plots.
    feature_engineer    — Collapse condition status flags.
    cleaner             — Median / forward-fill imputation, anomaly removal.
    partitioner         — Stratified train/test split.
    balancer            — Under- and oversampling of the training split.
    feature_filter      — Drop single-valued categorical features.
    preprocessor        — Encode, bin and scale features per model kind.
    model_trainer       — Fit and score the classifier, cross-validate.
    hyper_tuner         — Tune hyperparameters with Optuna.
    evaluator           — Per-class match table, metrics, confusion matrix.
    threshold_analyzer  — Sweep decision cut-offs, pick the best-F1 one.
    report_writer       — Write the predictions CSV.
    pipeline            — Orchestrates all components.
    utils.logger        — Unified timestamped console logger.
"""

from .config import Config
from .errors import (
    InsufficientSampleError,
    MissingDataError,
    ModelFitError,
    PipelineError,
    SchemaMismatchError,
)
from .schema import DatasetValidator
from .data_loader import DataLoader
from .profiler import Profiler
from .feature_engineer import FeatureEngineer
from .cleaner import Cleaner
from .partitioner import Partitioner, Split
from .balancer import Balancer
from .feature_filter import FeatureFilter
from .preprocessor import Preprocessor
from .model_trainer import ModelTrainer
from .evaluator import Evaluator
from .threshold_analyzer import ThresholdAnalyzer
from .hyper_tuner import HyperTuner
from .pipeline import PipelineRunner

__all__ = [
    "Config",
    "PipelineError",
    "MissingDataError",
    "SchemaMismatchError",
    "InsufficientSampleError",
    "ModelFitError",
    "DatasetValidator",
    "DataLoader",
    "Profiler",
    "FeatureEngineer",
    "Cleaner",
    "Partitioner",
    "Split",
    "Balancer",
    "FeatureFilter",
    "Preprocessor",
    "ModelTrainer",
    "Evaluator",
    "ThresholdAnalyzer",
    "HyperTuner",
    "PipelineRunner",
]
