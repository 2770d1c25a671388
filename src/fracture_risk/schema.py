"""Column layout of the fracture dataset and input validation."""

import re
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd
import pandera as pa
from pandera import Check, Column, DataFrameSchema

from .errors import SchemaMismatchError

ID_COLUMN = "id"
AGE_COLUMN = "age"
GENDER_COLUMN = "gender"
LABEL_COLUMN = "result"
CALCIUM_COLUMN = "calcium"
TEST_COLUMNS = ["alkaline_phosphatase", "phosphate", "vitamin_d"]

LABEL_VALUES = ("yes", "no")
POSITIVE_LABEL = "yes"
GENDER_VALUES = (1, 2)
ANOMALOUS_GENDER = 2

# Order matters: when several flags of one condition are set, the first wins.
STATUS_SUFFIXES = ("current", "historic", "negated", "uncertain", "surgical")
ABSENT_STATUS = "absent"


def flag_columns(
    columns: Iterable[str], suffixes: Sequence[str] = STATUS_SUFFIXES
) -> Dict[str, List[str]]:
    """Group `<code>_<status>` flag columns by condition code, in suffix order."""
    pattern = re.compile(r"^(?P<code>.+)_(?P<suffix>" + "|".join(map(re.escape, suffixes)) + r")$")
    groups: Dict[str, Dict[str, str]] = {}
    for col in columns:
        match = pattern.match(str(col))
        if match:
            groups.setdefault(match["code"], {})[match["suffix"]] = col
    return {
        code: [by_suffix[s] for s in suffixes if s in by_suffix]
        for code, by_suffix in groups.items()
    }


class DatasetValidator:
    """Validates a raw visit table before any cleaning happens."""

    def __init__(
        self,
        id_col: str = ID_COLUMN,
        label_col: str = LABEL_COLUMN,
        gender_col: str = GENDER_COLUMN,
        numeric_cols: Optional[Sequence[str]] = None,
        categorical_cols: Optional[Sequence[str]] = None,
        label_values: Sequence[str] = LABEL_VALUES,
    ):
        self.id_col = id_col
        self.label_values = list(label_values)
        self.label_col = label_col
        self.gender_col = gender_col
        self.numeric_cols = list(numeric_cols) if numeric_cols is not None else [AGE_COLUMN] + TEST_COLUMNS
        self.categorical_cols = list(categorical_cols) if categorical_cols is not None else [CALCIUM_COLUMN]

    @property
    def required_columns(self) -> List[str]:
        return [self.id_col, self.label_col, self.gender_col] + self.numeric_cols + self.categorical_cols

    def _build_schema(self, flag_cols: Sequence[str]) -> DataFrameSchema:
        columns = {
            self.id_col: Column(nullable=False),
            self.label_col: Column(checks=Check.isin(self.label_values), nullable=False),
            self.gender_col: Column(checks=Check.isin(GENDER_VALUES), nullable=False),
        }
        for col in self.numeric_cols:
            columns[col] = Column(float, nullable=True, coerce=True)
        for col in self.categorical_cols:
            columns[col] = Column(nullable=True)
        for col in flag_cols:
            columns[col] = Column(checks=Check.isin([0, 1]), nullable=False)
        return DataFrameSchema(columns, strict=False)

    def validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a validated copy of df, or raise SchemaMismatchError."""
        missing = [c for c in self.required_columns if c not in df.columns]
        if missing:
            raise SchemaMismatchError(f"Missing required columns: {missing}")

        flags = [col for group in flag_columns(df.columns).values() for col in group]
        schema = self._build_schema(flags)
        try:
            return schema.validate(df.copy(), lazy=True)
        except pa.errors.SchemaErrors as e:
            failures = e.failure_cases[["column", "check"]].drop_duplicates()
            details = "; ".join(f"{row.column}: {row.check}" for row in failures.itertuples())
            raise SchemaMismatchError(f"Schema validation failed: {details}") from e
