import logging
from typing import Any, Callable

import optuna
import pandas as pd

from .balancer import Balancer
from .errors import InsufficientSampleError, ModelFitError
from .model_trainer import ModelTrainer
from .utils.logger import get_logger


class HyperTuner:
    """Optuna tuning of the classifier and the under-sampling ratio, using fold-wise balancing."""

    def __init__(
        self,
        n_trials: int = 30,
        n_splits: int = 5,
        random_state: int = 42,
        max_ratio: float = 5.0,
    ):
        self.n_trials = n_trials
        self.n_splits = n_splits
        self.random_state = random_state
        self.max_ratio = max_ratio
        self.logger = get_logger(self.__class__.__name__)
        self.best_params_: dict[str, Any] | None = None
        self.best_ratio_: float | None = None
        self.best_value_: float | None = None

    def _suggest_params(self, trial: optuna.Trial, kind: str) -> dict[str, Any]:
        """Define Optuna search space per model kind."""
        if kind == "naive_bayes":
            return {"alpha": trial.suggest_float("alpha", 1e-3, 10.0, log=True)}
        if kind == "logistic":
            return {"C": trial.suggest_float("C", 1e-3, 100.0, log=True)}
        if kind == "random_forest":
            return {
                "n_estimators": trial.suggest_int("n_estimators", 100, 500, step=100),
                "max_depth": trial.suggest_int("max_depth", 3, 16),
                "min_samples_leaf": trial.suggest_int("min_samples_leaf", 1, 20),
            }
        raise ValueError(f"Unknown model kind: {kind}")

    def tune(
        self,
        train: pd.DataFrame,
        make_trainer: Callable[[dict[str, Any]], ModelTrainer],
        make_balancer: Callable[[float], Balancer],
        kind: str,
        base_params: dict[str, Any] | None = None,
    ) -> tuple[dict[str, Any], float]:
        """
        Run Optuna optimization and return (best estimator params, best ratio).
        Each trial scores with ModelTrainer.cross_validate so balancing never leaks
        into validation folds.
        """
        self.logger.info(
            f"Starting Optuna tuning ({self.n_trials} trials, {self.n_splits}-fold CV)"
        )

        sampler = optuna.samplers.TPESampler(seed=self.random_state)
        study = optuna.create_study(direction="maximize", sampler=sampler)

        def objective(trial: optuna.Trial) -> float:
            params = dict(base_params or {})
            params.update(self._suggest_params(trial, kind))
            ratio = trial.suggest_float("ratio", 1.0, self.max_ratio)

            trainer = make_trainer(params)
            trainer.n_splits = self.n_splits
            balancer = make_balancer(ratio)
            # reduce log noise during tuning
            trainer.logger.setLevel(logging.WARNING)
            balancer.logger.setLevel(logging.WARNING)
            try:
                mean_auc, _ = trainer.cross_validate(train, balancer)
                return mean_auc
            except (InsufficientSampleError, ModelFitError) as e:
                self.logger.warning(f"Trial {trial.number} pruned: {e}")
                raise optuna.TrialPruned() from e
            finally:
                trainer.logger.setLevel(logging.INFO)
                balancer.logger.setLevel(logging.INFO)

        study.optimize(objective, n_trials=self.n_trials)

        completed = study.get_trials(states=(optuna.trial.TrialState.COMPLETE,))
        if not completed:
            raise ModelFitError("No tuning trial completed", stage="tuning")

        best = dict(study.best_params)
        self.best_ratio_ = float(best.pop("ratio"))
        self.best_params_ = best
        self.best_value_ = float(study.best_value)

        self.logger.info(f"Best CV ROC-AUC: {self.best_value_:.4f}")
        self.logger.info(f"Best parameters: {self.best_params_}, ratio={self.best_ratio_:.2f}")

        return dict(self.best_params_), self.best_ratio_
