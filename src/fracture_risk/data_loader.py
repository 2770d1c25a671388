from typing import Optional
import pandas as pd


class DataLoader:
    """Loads the visit CSV and optionally samples rows."""

    def __init__(
        self,
        path: str,
        sample_size: Optional[int] = None,
        id_col: str = "id",
        random_state: int = 42,
    ):
        self.path = path
        self.sample_size = sample_size
        self.id_col = id_col
        self.random_state = random_state

    def load(self) -> pd.DataFrame:
        # identifiers carry meaningful trailing characters, keep them as text
        df = pd.read_csv(self.path, dtype={self.id_col: str})
        if self.sample_size:
            df = df.sample(self.sample_size, random_state=self.random_state).sort_index()
        return df
