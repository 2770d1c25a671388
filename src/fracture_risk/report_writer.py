import os
from typing import Sequence

import numpy as np
import pandas as pd


def build_predictions(ids: Sequence, y_true: Sequence, y_pred: Sequence) -> pd.DataFrame:
    """One row per scored record: id, actual label, predicted label and whether they agree."""
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if not len(ids) == len(y_true) == len(y_pred):
        raise ValueError("ids, y_true and y_pred must have the same length")
    return pd.DataFrame(
        {
            "id": np.asarray(ids),
            "actual": y_true,
            "predicted": y_pred,
            "match": y_true == y_pred,
        }
    )


def write_predictions(predictions: pd.DataFrame, path: str) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    predictions.to_csv(path, index=False)
    return path
