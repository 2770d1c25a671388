import numpy as np
import pandas as pd
import pytest

CODES = ["M80", "M84", "C79"]
STATUSES = ["current", "historic", "negated", "uncertain", "surgical"]


def make_visits(n_rows: int = 400, n_pos: int = 40, n_gender_2: int = 4, seed: int = 0) -> pd.DataFrame:
    """Synthetic visit table shaped like the real input file."""
    rng = np.random.RandomState(seed)

    result = np.array(["no"] * n_rows, dtype=object)
    result[rng.choice(n_rows, size=n_pos, replace=False)] = "yes"
    is_pos = result == "yes"

    age = rng.normal(65, 12, n_rows).round()
    age[rng.choice(np.arange(1, n_rows), size=10, replace=False)] = np.nan

    gender = np.ones(n_rows, dtype=int)
    gender[rng.choice(np.flatnonzero(~is_pos)[1:], size=n_gender_2, replace=False)] = 2

    calcium = rng.choice(["low", "normal", "high"], size=n_rows).astype(object)
    calcium[0] = "normal"
    calcium[rng.choice(np.arange(1, n_rows), size=15, replace=False)] = np.nan

    df = pd.DataFrame(
        {
            "id": [f"P{i:05d}" for i in range(n_rows)],
            "age": age,
            "gender": gender,
            "alkaline_phosphatase": rng.normal(90, 20, n_rows) + 60 * is_pos,
            "phosphate": rng.normal(1.1, 0.2, n_rows),
            "vitamin_d": rng.normal(60, 15, n_rows) - 15 * is_pos,
            "calcium": calcium,
            "result": result,
        }
    )

    for code in CODES:
        picks = rng.randint(-1, len(STATUSES), size=n_rows)
        for j, status in enumerate(STATUSES):
            df[f"{code}_{status}"] = (picks == j).astype(int)
    # a condition nobody has
    for status in STATUSES:
        df[f"Z99_{status}"] = 0

    return df


@pytest.fixture
def visits() -> pd.DataFrame:
    return make_visits()
