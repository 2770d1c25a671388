from typing import Literal, Union

import numpy as np
import pandas as pd
from sklearn.utils import check_random_state

from .errors import InsufficientSampleError
from .utils.logger import get_logger


class Balancer:
    """
    Handles class imbalance in a training frame via undersampling or oversampling.

    The positive label is treated as the minority class. With ``ratio=r`` the
    balanced frame holds ``r`` majority rows for every minority row.

    Example:
        balancer = Balancer("result", strategy="undersample", ratio=1)
        balanced = balancer.balance(train)
    """

    def __init__(
        self,
        label_col: str,
        strategy: Literal["none", "undersample", "oversample"] = "undersample",
        ratio: float = 1,
        positive_label: str = "yes",
        random_state: Union[int, np.random.RandomState] = 42,
    ):
        if ratio <= 0:
            raise ValueError(f"ratio must be positive, got {ratio}")
        self.label_col = label_col
        self.strategy = strategy
        self.ratio = ratio
        self.positive_label = positive_label
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def balance(self, train: pd.DataFrame) -> pd.DataFrame:
        if self.strategy == "none":
            return train.copy()
        if self.strategy not in ("undersample", "oversample"):
            raise ValueError(f"Unknown balancing strategy: {self.strategy}")

        self.logger.info(f"Applying class balancing: {self.strategy} (ratio={self.ratio})")

        y = train[self.label_col].to_numpy()
        pos_idx = np.flatnonzero(y == self.positive_label)
        neg_idx = np.flatnonzero(y != self.positive_label)

        if len(pos_idx) == 0 or len(neg_idx) == 0:
            raise InsufficientSampleError(
                f"Training set holds a single class ({len(pos_idx)} positive, {len(neg_idx)} negative)"
            )

        rng = check_random_state(self.random_state)

        if self.strategy == "undersample":
            n_keep = int(round(self.ratio * len(pos_idx)))
            if n_keep > len(neg_idx):
                raise InsufficientSampleError(
                    f"Need {n_keep} majority rows for ratio {self.ratio}, only {len(neg_idx)} available"
                )
            keep_neg = rng.choice(neg_idx, size=n_keep, replace=False)
            keep_idx = np.concatenate([pos_idx, keep_neg])
        else:
            n_target = int(round(len(neg_idx) / self.ratio))
            n_to_add = max(n_target - len(pos_idx), 0)
            add_pos = rng.choice(pos_idx, size=n_to_add, replace=True)
            keep_idx = np.concatenate([np.arange(len(y)), add_pos])

        rng.shuffle(keep_idx)
        out = train.iloc[keep_idx]

        n_pos = int((out[self.label_col] == self.positive_label).sum())
        self.logger.info(f"Balanced training set: {n_pos} positive / {len(out) - n_pos} negative")
        return out
