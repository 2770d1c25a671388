import pandas as pd

from fracture_risk.feature_engineer import FeatureEngineer


def _make_flags():
    return pd.DataFrame(
        {
            "id": ["a", "b", "c", "d"],
            "age": [70.0, 55.0, 81.0, 64.0],
            "M80_current": [1, 0, 0, 1],
            "M80_historic": [0, 1, 0, 1],
            "M80_negated": [0, 0, 0, 0],
            "M80_uncertain": [0, 0, 0, 0],
            "M80_surgical": [0, 0, 0, 0],
            "C79_current": [0, 0, 0, 0],
            "C79_surgical": [0, 0, 1, 0],
        }
    )


def test_feature_engineer_collapses_flags_into_one_column_per_condition():
    out = FeatureEngineer().transform(_make_flags())

    assert {"M80", "C79"}.issubset(out.columns)
    assert not [c for c in out.columns if c.startswith("M80_") or c.startswith("C79_")]
    assert out["M80"].tolist()[:3] == ["current", "historic", "absent"]
    assert out["C79"].tolist() == ["absent", "absent", "surgical", "absent"]


def test_feature_engineer_first_status_wins_when_several_flags_are_set():
    out = FeatureEngineer().transform(_make_flags())
    # row 'd' has both current and historic set
    assert out.loc[3, "M80"] == "current"


def test_feature_engineer_records_condition_columns():
    engineer = FeatureEngineer()
    engineer.transform(_make_flags())
    assert sorted(engineer.condition_columns_) == ["C79", "M80"]


def test_feature_engineer_keeps_other_columns_and_row_count():
    df = _make_flags()
    out = FeatureEngineer().transform(df)
    assert len(out) == len(df)
    assert out["id"].tolist() == df["id"].tolist()
    assert out["age"].tolist() == df["age"].tolist()


def test_feature_engineer_does_not_mutate_input_df():
    df = _make_flags()
    df_before = df.copy(deep=True)
    _ = FeatureEngineer().transform(df)
    pd.testing.assert_frame_equal(df, df_before)


def test_feature_engineer_without_flag_columns_is_a_copy():
    df = pd.DataFrame({"id": ["a"], "age": [50.0]})
    out = FeatureEngineer().transform(df)
    pd.testing.assert_frame_equal(out, df)
