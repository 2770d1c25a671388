import numpy as np
import pandas as pd
import pytest

from fracture_risk.balancer import Balancer
from fracture_risk.cleaner import Cleaner
from fracture_risk.errors import ModelFitError
from fracture_risk.feature_engineer import FeatureEngineer
from fracture_risk.model_trainer import ModelTrainer

NUMERIC = ["age", "alkaline_phosphatase", "phosphate", "vitamin_d"]


@pytest.fixture
def prepared(visits):
    df = FeatureEngineer().transform(visits)
    return Cleaner(numeric_cols=NUMERIC, ffill_cols=["calcium"]).clean(df)


def _trainer(kind, **kwargs):
    return ModelTrainer(
        kind=kind,
        label_col="result",
        categorical_cols=["gender"],
        exclude_cols=["id"],
        **kwargs,
    )


@pytest.mark.parametrize("kind", ["naive_bayes", "logistic", "random_forest"])
def test_model_trainer_fit_and_predict_labels(kind, prepared):
    train = Balancer("result").balance(prepared)
    trainer = _trainer(kind).fit(train)

    proba = trainer.predict_proba(prepared)
    pred = trainer.predict(prepared)

    assert proba.shape == (len(prepared),)
    assert ((proba >= 0) & (proba <= 1)).all()
    assert set(pred).issubset({"yes", "no"})


def test_model_trainer_threshold_controls_labels(prepared):
    train = Balancer("result").balance(prepared)
    trainer = _trainer("logistic", threshold=0.5).fit(train)
    proba = trainer.predict_proba(prepared)

    assert (trainer.predict(prepared) == np.where(proba >= 0.5, "yes", "no")).all()
    trainer.threshold = 1.01
    assert (trainer.predict(prepared) == "no").all()


def test_model_trainer_learns_the_planted_signal(prepared):
    train = Balancer("result").balance(prepared)
    trainer = _trainer("logistic").fit(train)
    proba = trainer.predict_proba(prepared)

    is_pos = (prepared["result"] == "yes").to_numpy()
    assert proba[is_pos].mean() > proba[~is_pos].mean()


def test_model_trainer_single_class_raises_model_fit_error(prepared):
    only_no = prepared[prepared["result"] == "no"]
    with pytest.raises(ModelFitError):
        _trainer("naive_bayes").fit(only_no)


def test_model_trainer_wraps_estimator_errors(prepared):
    train = Balancer("result").balance(prepared)
    with pytest.raises(ModelFitError):
        _trainer("naive_bayes", params={"alpha": -1.0}).fit(train)


def test_model_trainer_cross_validate_returns_auc_and_out_of_fold_proba(prepared):
    trainer = _trainer("naive_bayes", n_splits=3)
    auc, oof = trainer.cross_validate(prepared, Balancer("result"))

    assert 0.0 <= auc <= 1.0
    # every row is scored once, by a model that never saw it
    assert oof.shape == (len(prepared),)
    assert ((oof >= 0) & (oof <= 1)).all()
    assert trainer.model is None


def test_model_trainer_one_hot_encodes_integer_coded_categoricals(prepared):
    coded = prepared.assign(calcium=prepared["calcium"].map({"low": 1, "normal": 2, "high": 3}))
    trainer = ModelTrainer(
        kind="logistic",
        label_col="result",
        categorical_cols=["gender", "calcium"],
        exclude_cols=["id"],
    ).fit(Balancer("result").balance(coded))

    transformer = trainer.model.named_steps["preprocessor"]
    name, cat_pipe, cat_cols = transformer.transformers_[1]
    assert name == "cat" and cat_cols == ["gender", "calcium"]
    # levels are encoded, not treated as an ordered magnitude
    assert cat_pipe.named_steps["encoder"].categories_[1].tolist() == [1, 2, 3]


def test_model_trainer_save_writes_joblib(prepared, tmp_path):
    train = Balancer("result").balance(prepared)
    path = tmp_path / "artifacts" / "model.joblib"
    trainer = _trainer("naive_bayes", model_path=str(path)).fit(train)
    trainer.save()
    assert path.exists()


def test_model_trainer_requires_fit_before_use(prepared):
    trainer = _trainer("logistic")
    with pytest.raises(RuntimeError):
        trainer.predict_proba(prepared)
    with pytest.raises(RuntimeError):
        trainer.save()


def test_model_trainer_rejects_unknown_kind(prepared):
    with pytest.raises(ValueError):
        _trainer("svm").fit(prepared)
