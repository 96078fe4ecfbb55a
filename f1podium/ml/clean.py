"""
Race-result cleaning: year window, pit-stop fill, constructor renames,
reliability ratios and active flags.

All functions are pure: they take a DataFrame (and the lookup data they need)
and return a new one. Nothing here reads files or prints.
"""

from typing import Dict

import numpy as np
import pandas as pd

from f1podium.config.config import PipelineConfig
from f1podium.ml.errors import PipelineError, UnknownEntityError
from f1podium.ml.load import REQUIRED_COLUMNS, check_columns


def filter_years(df: pd.DataFrame, start_year: int, end_year: int) -> pd.DataFrame:
    """Keep rows with start_year <= RACE_YEAR <= end_year."""
    mask = df["RACE_YEAR"].between(start_year, end_year, inclusive="both")
    return df[mask].reset_index(drop=True)


def remap_constructors(names: pd.Series, renames: Dict[str, str]) -> pd.Series:
    """
    Replace superseded constructor names with their current identity.

    Names missing from the table pass through unchanged. The table must map
    straight to final names so that applying it twice equals applying it once.
    """
    chained = sorted(src for src, dst in renames.items() if dst in renames and renames[dst] != dst)
    if chained:
        raise PipelineError(
            f"Constructor rename table is chained (target is itself renamed) for: {', '.join(chained)}"
        )
    return names.replace(renames)


def _reliability(dnfs: pd.Series, races: pd.Series, default: float) -> pd.Series:
    ratio = np.where(races > 0, 1.0 - dnfs / races.where(races > 0, 1), default)
    return pd.Series(ratio, index=races.index, dtype=float).clip(0.0, 1.0)


def reliability_by(df: pd.DataFrame, key: str, default: float = 1.0) -> pd.Series:
    """
    1 - (DNF count / race count) per value of `key`.

    A missing DNF flag counts as a finish. Keys with zero races get `default`.
    """
    flags = df["DNF_FLAG"].fillna(0).astype(float)
    grouped = flags.groupby(df[key], sort=True)
    return _reliability(grouped.sum(), grouped.size(), default)


def _lookup(keys: pd.Series, table: pd.Series, column: str) -> pd.Series:
    missing = set(keys[~keys.isin(table.index)].tolist())
    if missing:
        raise UnknownEntityError(column, missing)
    return keys.map(table).astype(float)


def clean_results(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    """
    Full cleaning stage.

    Rows outside the configured year window are dropped; every other row is
    kept, in input order, with DRIVER_CONFIDENCE, CONSTRUCTOR_RELIABILITY,
    ACTIVE_DRIVER and ACTIVE_CONSTRUCTOR added.
    """
    check_columns(df, REQUIRED_COLUMNS, source="results")
    out = filter_years(df, config.start_year, config.end_year)

    out["TOTAL_PIT_STOPS_PER_RACE"] = out["TOTAL_PIT_STOPS_PER_RACE"].fillna(0).astype(int)
    out["CONSTRUCTOR_NAME"] = remap_constructors(out["CONSTRUCTOR_NAME"], config.constructor_renames)

    driver_confidence = reliability_by(out, "DRIVER", config.default_reliability)
    constructor_reliability = reliability_by(out, "CONSTRUCTOR_NAME", config.default_reliability)
    out["DRIVER_CONFIDENCE"] = _lookup(out["DRIVER"], driver_confidence, "DRIVER")
    out["CONSTRUCTOR_RELIABILITY"] = _lookup(
        out["CONSTRUCTOR_NAME"], constructor_reliability, "CONSTRUCTOR_NAME"
    )

    out["ACTIVE_DRIVER"] = out["DRIVER"].isin(list(config.active_drivers))
    out["ACTIVE_CONSTRUCTOR"] = out["CONSTRUCTOR_NAME"].isin(list(config.active_constructors))
    return out
