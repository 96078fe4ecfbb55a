"""
F1 Podium inference: load the trained classifier and label the held-out pool.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import joblib
import numpy as np
import pandas as pd

from f1podium.ml.encode import PODIUM
from f1podium.ml.errors import ArtifactNotFoundError
from f1podium.ml.load import check_columns
from f1podium.ml.train import MODEL_FILE, OUTPUT_DIR

PREDICTION_COLUMN = "PREDICTED_POSITION_LABEL"
PODIUM_PROBABILITY_COLUMN = "PODIUM_PROBABILITY"


def load_artifact(output_dir: Optional[Path] = None) -> Dict[str, Any]:
    path = Path(output_dir or OUTPUT_DIR) / MODEL_FILE
    if not path.exists():
        raise ArtifactNotFoundError(
            f"Model not found: {path}. Run training first (python -m f1podium.scripts.run_pipeline --train-only)"
        )
    return joblib.load(path)


def predict_positions(
    df: pd.DataFrame,
    output_dir: Optional[Path] = None,
    artifact: Optional[Dict[str, Any]] = None,
) -> pd.DataFrame:
    """
    Return a copy of `df` (already encoded) with PREDICTED_POSITION_LABEL and,
    when the model exposes probabilities, PODIUM_PROBABILITY.
    """
    artifact = artifact or load_artifact(output_dir)
    model = artifact["model"]
    feature_columns = artifact["feature_columns"]
    check_columns(df, feature_columns, source="prediction input")

    out = df.copy()
    if out.empty:
        out[PREDICTION_COLUMN] = pd.Series(dtype=int)
        return out

    X = out[feature_columns].replace([np.inf, -np.inf], np.nan).fillna(0)
    out[PREDICTION_COLUMN] = model.predict(X).astype(int)
    if hasattr(model, "predict_proba") and PODIUM in list(model.classes_):
        podium_idx = list(model.classes_).index(PODIUM)
        out[PODIUM_PROBABILITY_COLUMN] = model.predict_proba(X)[:, podium_idx]
    return out
