"""Calendar-year split of the encoded table (no shuffle across seasons)."""
from typing import Tuple

import pandas as pd

from f1podium.config.config import PipelineConfig


def training_pool(df: pd.DataFrame, years: Tuple[int, int]) -> pd.DataFrame:
    lo, hi = years
    return df[(df["RACE_YEAR"] >= lo) & (df["RACE_YEAR"] <= hi)].reset_index(drop=True)


def holdout_pool(df: pd.DataFrame, year: int) -> pd.DataFrame:
    return df[df["RACE_YEAR"] == year].reset_index(drop=True)


def split_by_year(df: pd.DataFrame, config: PipelineConfig) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return (training pool, held-out pool) for the configured years."""
    return training_pool(df, config.train_years), holdout_pool(df, config.holdout_year)
