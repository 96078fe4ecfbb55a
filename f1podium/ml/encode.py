"""
Covariate encoding: fixed projection, active-entity filter, position label and
a persisted label encoding for the categorical columns.

The encoding is fitted once on the training window and reused by lookup for
every later table, so a driver or circuit gets the same code in the training
and held-out pools.
"""

from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import joblib
import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from f1podium.config.config import PipelineConfig
from f1podium.ml.errors import ArtifactNotFoundError, PipelineError, UnseenCategoryError
from f1podium.ml.load import check_columns

COVARIATE_COLUMNS = [
    "RACE_YEAR",
    "CIRCUIT_NAME",
    "GRID",
    "CONSTRUCTOR_NAME",
    "DRIVER",
    "DRIVERS_AGE_YEARS",
    "DRIVER_CONFIDENCE",
    "CONSTRUCTOR_RELIABILITY",
    "TOTAL_PIT_STOPS_PER_RACE",
    "ACTIVE_DRIVER",
    "ACTIVE_CONSTRUCTOR",
    "POSITION",
]
CATEGORICAL_COLUMNS = ["CIRCUIT_NAME", "CONSTRUCTOR_NAME", "DRIVER", "TOTAL_PIT_STOPS_PER_RACE"]
HELPER_COLUMNS = ["POSITION", "ACTIVE_DRIVER", "ACTIVE_CONSTRUCTOR"]
TARGET = "POSITION_LABEL"

UNSEEN_CODE = -1
UNSEEN_POLICIES = ("error", "sentinel")

# Position label classes
PODIUM = 1
POINTS = 2
NO_POINTS = 3


def position_label(position) -> int:
    """Bucket a finishing position: 1-3 podium, 4-10 points, 11+ (or unclassified) none."""
    if pd.isna(position):
        return NO_POINTS
    if position < 4:
        return PODIUM
    if position > 10:
        return NO_POINTS
    return POINTS


def select_covariates(df: pd.DataFrame) -> pd.DataFrame:
    """Project covariates, keep active driver+constructor rows, swap POSITION for POSITION_LABEL."""
    check_columns(df, COVARIATE_COLUMNS, source="cleaned results")
    covariates = df[COVARIATE_COLUMNS]
    active = covariates["ACTIVE_DRIVER"].astype(bool) & covariates["ACTIVE_CONSTRUCTOR"].astype(bool)
    covariates = covariates[active].copy()
    covariates[TARGET] = covariates["POSITION"].map(position_label).astype(int)
    return covariates.drop(columns=HELPER_COLUMNS).reset_index(drop=True)


def _native(value):
    return value.item() if isinstance(value, np.generic) else value


class CategoryEncoding:
    """One fitted LabelEncoder per categorical column, reusable across tables."""

    def __init__(self, encoders: Optional[Dict[str, LabelEncoder]] = None):
        self.encoders = dict(encoders or {})

    @property
    def columns(self):
        return list(self.encoders)

    @property
    def is_fitted(self) -> bool:
        return bool(self.encoders)

    def fit(self, df: pd.DataFrame, columns: Iterable[str] = CATEGORICAL_COLUMNS) -> "CategoryEncoding":
        columns = list(columns)
        check_columns(df, columns, source="encoding input")
        if df.empty:
            raise PipelineError("Cannot fit a category encoding on an empty table")
        encoders = {}
        for col in columns:
            if df[col].isna().any():
                raise PipelineError(f"{col} has missing values; fill them before encoding")
            le = LabelEncoder()
            le.fit(df[col].to_numpy())
            encoders[col] = le
        self.encoders = encoders
        return self

    def transform(self, df: pd.DataFrame, unseen: str = "error") -> pd.DataFrame:
        """
        Replace each categorical column by its integer code.

        unseen="error" raises UnseenCategoryError for values absent at fit time;
        unseen="sentinel" codes them -1 and prints a warning.
        """
        if unseen not in UNSEEN_POLICIES:
            raise ValueError(f"unseen must be one of {UNSEEN_POLICIES}, got {unseen!r}")
        if not self.is_fitted:
            raise PipelineError("Category encoding is not fitted")
        check_columns(df, self.columns, source="encoding input")

        out = df.copy()
        for col, le in self.encoders.items():
            values = out[col].to_numpy()
            known = np.isin(values, le.classes_)
            if not known.all():
                new_values = pd.unique(values[~known])
                if unseen == "error":
                    raise UnseenCategoryError(col, new_values)
                print(f"  [WARN] {col}: {len(new_values)} unseen categories coded {UNSEEN_CODE}: "
                      f"{', '.join(sorted(str(v) for v in new_values))}")
            codes = np.full(len(values), UNSEEN_CODE, dtype=int)
            if known.any():
                codes[known] = le.transform(values[known])
            out[col] = codes
        return out

    def inverse(self, column: str, codes) -> np.ndarray:
        """Codes back to categories; the unseen code maps to None."""
        if column not in self.encoders:
            raise KeyError(f"{column} is not an encoded column")
        classes = self.encoders[column].classes_
        codes = np.asarray(codes, dtype=int)
        out = np.full(len(codes), None, dtype=object)
        known = (codes >= 0) & (codes < len(classes))
        out[known] = [_native(v) for v in classes[codes[known]]]
        return out

    def mapping(self) -> Dict[str, Dict]:
        """{column: {category: code}} with plain Python keys, for reports and the API."""
        return {
            col: {_native(cls): int(code) for code, cls in enumerate(le.classes_)}
            for col, le in self.encoders.items()
        }

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump({"encoders": self.encoders}, path)
        return path

    @classmethod
    def load(cls, path: Path) -> "CategoryEncoding":
        path = Path(path)
        if not path.exists():
            raise ArtifactNotFoundError(f"Category encoding not found: {path}")
        return cls(joblib.load(path)["encoders"])


def encode_covariates(
    df: pd.DataFrame,
    config: PipelineConfig,
    encoding: Optional[CategoryEncoding] = None,
) -> Tuple[pd.DataFrame, CategoryEncoding]:
    """
    Encoding stage: select covariates, fit the encoding on the training window
    when none is supplied, and encode every row with it. With no active rows the
    result is an empty table and an unfitted encoding (or the one passed in).
    """
    covariates = select_covariates(df)
    if covariates.empty:
        for col in CATEGORICAL_COLUMNS:
            covariates[col] = covariates[col].astype(int)
        return covariates, encoding if encoding is not None else CategoryEncoding()
    if encoding is None:
        lo, hi = config.train_years
        training_rows = covariates[covariates["RACE_YEAR"].between(lo, hi)]
        if training_rows.empty:
            raise PipelineError(f"No active rows in training years {lo}-{hi} to fit the encoding")
        encoding = CategoryEncoding().fit(training_rows)
    encoded = encoding.transform(covariates, unseen=config.unseen_policy)
    return encoded, encoding
