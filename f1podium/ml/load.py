"""
Load the race-results table that feeds the podium pipeline.

The table is the flat export built by f1podium.scripts.build_results (or an
equivalent warehouse query). Headers are normalized to upper case so exports
from either source line up.
"""

from pathlib import Path
from typing import Optional

import pandas as pd

from f1podium.config.config import PROJECT_ROOT, RESULTS_PATH
from f1podium.ml.errors import MissingColumnsError

REQUIRED_COLUMNS = [
    "RACE_YEAR",
    "CIRCUIT_NAME",
    "GRID",
    "CONSTRUCTOR_NAME",
    "DRIVER",
    "DRIVERS_AGE_YEARS",
    "DNF_FLAG",
    "POSITION",
    "TOTAL_PIT_STOPS_PER_RACE",
]
NUMERIC_COLUMNS = [
    "RACE_YEAR",
    "GRID",
    "DRIVERS_AGE_YEARS",
    "DNF_FLAG",
    "POSITION",
    "TOTAL_PIT_STOPS_PER_RACE",
]


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.columns = [
        str(c).strip().upper().replace(" ", "_").replace("-", "_") for c in out.columns
    ]
    return out


def check_columns(df: pd.DataFrame, required=REQUIRED_COLUMNS, source: str = "results") -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MissingColumnsError(missing, source=source)


def load_results(path: Optional[Path] = None) -> pd.DataFrame:
    """
    Read the results CSV and return it with normalized headers and numeric dtypes.

    Raises FileNotFoundError when the file is absent and MissingColumnsError
    when a required column is not present.
    """
    path = Path(path) if path else PROJECT_ROOT / RESULTS_PATH
    if not path.exists():
        raise FileNotFoundError(
            f"Results table not found: {path}. Build it with: python -m f1podium.scripts.run_pipeline --build"
        )
    df = normalize_columns(pd.read_csv(path, na_values=["\\N"]))
    check_columns(df, source=path.name)

    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    for col in ("DRIVER", "CONSTRUCTOR_NAME", "CIRCUIT_NAME"):
        df[col] = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)
    return df.reset_index(drop=True)
