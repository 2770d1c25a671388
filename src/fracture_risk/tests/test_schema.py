import numpy as np
import pytest

from fracture_risk.errors import SchemaMismatchError
from fracture_risk.schema import DatasetValidator, flag_columns


def test_validator_accepts_well_formed_visits(visits):
    out = DatasetValidator().validate(visits)
    assert len(out) == len(visits)
    assert out["age"].dtype == float


def test_validator_reports_missing_columns(visits):
    with pytest.raises(SchemaMismatchError, match="Missing required columns"):
        DatasetValidator().validate(visits.drop(columns=["calcium"]))


def test_validator_rejects_non_binary_flag(visits):
    bad = visits.copy()
    bad.loc[3, "M80_current"] = 2
    with pytest.raises(SchemaMismatchError, match="M80_current"):
        DatasetValidator().validate(bad)


def test_validator_rejects_unknown_label(visits):
    bad = visits.copy()
    bad.loc[0, "result"] = "maybe"
    with pytest.raises(SchemaMismatchError, match="result"):
        DatasetValidator().validate(bad)


def test_validator_rejects_unknown_gender_code(visits):
    bad = visits.copy()
    bad.loc[0, "gender"] = 3
    with pytest.raises(SchemaMismatchError, match="gender"):
        DatasetValidator().validate(bad)


def test_validator_rejects_text_in_numeric_column(visits):
    bad = visits.copy()
    bad["phosphate"] = bad["phosphate"].astype(object)
    bad.loc[5, "phosphate"] = "n/a"
    with pytest.raises(SchemaMismatchError, match="phosphate"):
        DatasetValidator().validate(bad)


def test_validator_allows_missing_values_where_expected(visits):
    assert visits["age"].isna().any() and visits["calcium"].isna().any()
    DatasetValidator().validate(visits)


def test_validator_raises_schema_error_type_with_stage(visits):
    with pytest.raises(SchemaMismatchError) as exc:
        DatasetValidator().validate(visits.drop(columns=["result"]))
    assert exc.value.stage == "validation"


def test_flag_columns_groups_by_condition_code_in_status_order():
    cols = ["id", "M80_surgical", "M80_current", "C79_negated", "age", "M80_historic", "C79_other"]
    groups = flag_columns(cols)
    assert groups == {
        "M80": ["M80_current", "M80_historic", "M80_surgical"],
        "C79": ["C79_negated"],
    }


def test_flag_columns_keeps_underscores_inside_codes():
    assert flag_columns(["E11_9_current"]) == {"E11_9": ["E11_9_current"]}
    assert flag_columns([np.nan, "x"]) == {}
