import numpy as np
import pytest

from fracture_risk.threshold_analyzer import ThresholdAnalyzer, resolve_threshold


def test_threshold_analyzer_finds_separating_threshold(tmp_path):
    y_true = ["no", "no", "no", "yes", "yes"]
    y_proba = [0.1, 0.2, 0.3, 0.7, 0.8]

    best = ThresholdAnalyzer(str(tmp_path), verbose=False).run(y_true, y_proba, plot=False)

    # lowest cut-off with perfect F1 lies just above the negatives
    assert best == pytest.approx(0.35)
    assert list(tmp_path.iterdir()) == []


def test_threshold_analyzer_saves_plot(tmp_path):
    analyzer = ThresholdAnalyzer(str(tmp_path / "figs"), filename="sweep.png")
    best = analyzer.run(["no", "yes", "yes"], np.array([0.12, 0.6, 0.9]))

    assert (tmp_path / "figs" / "sweep.png").exists()
    assert best == pytest.approx(0.15)


def test_threshold_analyzer_sweep_table():
    y_true = ["yes", "yes", "no", "no"]
    y_proba = [0.9, 0.4, 0.6, 0.1]
    table = ThresholdAnalyzer(step=0.25).sweep(y_true, y_proba)

    assert list(table.columns) == ["threshold", "precision", "recall", "f1", "flagged_rate"]
    assert table["threshold"].tolist() == [0.25, 0.5, 0.75]

    at_half = table.set_index("threshold").loc[0.5]
    # flags 0.9 and 0.6: one hit, one false alarm
    assert at_half["precision"] == pytest.approx(0.5)
    assert at_half["recall"] == pytest.approx(0.5)
    assert at_half["flagged_rate"] == pytest.approx(0.5)

    # recall never rises as the cut-off rises
    assert (np.diff(table["recall"].to_numpy()) <= 0).all()


def test_threshold_analyzer_rejects_scores_without_any_hit():
    analyzer = ThresholdAnalyzer(verbose=False)
    table = analyzer.sweep(["no", "no", "yes"], [0.5, 0.6, 0.01])
    with pytest.raises(ValueError):
        analyzer.best_threshold(table)


def test_threshold_analyzer_rejects_misaligned_inputs():
    with pytest.raises(ValueError):
        ThresholdAnalyzer().sweep(["yes", "no"], [0.5])


@pytest.mark.parametrize(
    "setting, expected",
    [(None, 0.5), (0.3, 0.3), ("best_f1", None)],
)
def test_resolve_threshold(setting, expected):
    assert resolve_threshold(setting) == expected


@pytest.mark.parametrize("setting", ["f1", 0, 1, 1.5])
def test_resolve_threshold_rejects_bad_settings(setting):
    with pytest.raises(ValueError):
        resolve_threshold(setting)
