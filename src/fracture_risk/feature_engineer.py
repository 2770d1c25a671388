from typing import List, Sequence

import numpy as np
import pandas as pd

from .schema import ABSENT_STATUS, STATUS_SUFFIXES, flag_columns


class FeatureEngineer:
    """Collapses `<code>_<status>` flag groups into one status column per condition."""

    def __init__(self, flag_suffixes: Sequence[str] = STATUS_SUFFIXES):
        self.flag_suffixes = tuple(flag_suffixes)
        self.condition_columns_: List[str] = []

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        out = df.copy()
        groups = flag_columns(out.columns, self.flag_suffixes)

        collapsed = {}
        for code, cols in groups.items():
            flags = out[cols].fillna(0).astype(int).to_numpy()
            statuses = np.array([c[len(code) + 1:] for c in cols], dtype=object)
            any_set = flags.any(axis=1)
            # argmax picks the first set flag, i.e. the earliest suffix
            first = flags.argmax(axis=1)
            collapsed[code] = np.where(any_set, statuses[first], ABSENT_STATUS)

        flag_cols = [c for cols in groups.values() for c in cols]
        out = out.drop(columns=flag_cols)
        if collapsed:
            out = pd.concat(
                [out, pd.DataFrame(collapsed, index=out.index).astype("category")],
                axis=1,
            )

        self.condition_columns_ = list(collapsed)
        return out
