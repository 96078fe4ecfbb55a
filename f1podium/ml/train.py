"""
F1 Podium training: position-label classifier on the training pool.

- Multinomial logistic regression over the encoded covariates
- Random (stratified where possible) train/test split inside the 2010-2019 pool
- Artifacts: model.joblib (model + feature columns + encoding) and evaluation_report.json
"""

from datetime import datetime
from math import ceil
from pathlib import Path
from typing import Optional
import json
import time
import warnings

import joblib
import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score, confusion_matrix, f1_score
from sklearn.model_selection import train_test_split

from f1podium.config.config import MODEL_OUTPUT_DIR, PROJECT_ROOT, PipelineConfig, load_config
from f1podium.ml.encode import NO_POINTS, PODIUM, POINTS, TARGET, CategoryEncoding
from f1podium.ml.errors import PipelineError
from f1podium.ml.load import check_columns

OUTPUT_DIR = PROJECT_ROOT / MODEL_OUTPUT_DIR
MODEL_FILE = "model.joblib"
REPORT_FILE = "evaluation_report.json"
MODEL_VERSION = "1.0.0"

# RACE_YEAR is left out: the held-out year never appears in training
FEATURE_COLUMNS = [
    "CIRCUIT_NAME",
    "GRID",
    "CONSTRUCTOR_NAME",
    "DRIVER",
    "DRIVERS_AGE_YEARS",
    "DRIVER_CONFIDENCE",
    "CONSTRUCTOR_RELIABILITY",
    "TOTAL_PIT_STOPS_PER_RACE",
]
LABELS = [PODIUM, POINTS, NO_POINTS]


def _prepare_xy(df: pd.DataFrame):
    check_columns(df, FEATURE_COLUMNS + [TARGET], source="training pool")
    X = df[FEATURE_COLUMNS].replace([np.inf, -np.inf], np.nan).fillna(0)
    y = df[TARGET].astype(int)
    return X, y


def _stratify_on(y: pd.Series, test_size: float):
    """Stratify only when every class can appear on both sides of the split."""
    counts = y.value_counts()
    n_test = ceil(len(y) * test_size)
    n_classes = len(counts)
    if counts.min() >= 2 and n_test >= n_classes and len(y) - n_test >= n_classes:
        return y
    return None


def _make_model(config: PipelineConfig) -> LogisticRegression:
    return LogisticRegression(max_iter=1000, random_state=config.random_state)


def run_training(
    train_df: pd.DataFrame,
    output_dir: Optional[Path] = None,
    config: Optional[PipelineConfig] = None,
    encoding: Optional[CategoryEncoding] = None,
) -> dict:
    output_dir = Path(output_dir) if output_dir else OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    config = config or load_config()
    start_time = time.time()

    print("=" * 60)
    print("F1 PODIUM TRAINING")
    print("=" * 60)

    X, y = _prepare_xy(train_df)
    if y.nunique() < 2:
        raise PipelineError(f"Training pool needs at least two position labels, found {sorted(y.unique())}")

    X_tr, X_te, y_tr, y_te = train_test_split(
        X, y,
        test_size=config.test_size,
        random_state=config.random_state,
        stratify=_stratify_on(y, config.test_size),
    )
    if y_tr.nunique() < 2:
        raise PipelineError("Training split holds a single position label; add more seasons")
    print(f"  Dataset: {len(X_tr)} train, {len(X_te)} test rows, {len(FEATURE_COLUMNS)} features")

    model = _make_model(config)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        model.fit(X_tr, y_tr)

    pred_tr = model.predict(X_tr)
    pred_te = model.predict(X_te)
    report = {
        "model_version": MODEL_VERSION,
        "trained_at": datetime.now().isoformat(),
        "train_years": f"{config.train_years[0]}-{config.train_years[1]}",
        "holdout_year": config.holdout_year,
        "data_summary": {
            "pool_rows": int(len(train_df)),
            "train_rows": int(len(X_tr)),
            "test_rows": int(len(X_te)),
            "features": FEATURE_COLUMNS,
            "label_support": {str(k): int(v) for k, v in y.value_counts().sort_index().items()},
        },
        "classification": {
            "train_accuracy": float(accuracy_score(y_tr, pred_tr)),
            "test_accuracy": float(accuracy_score(y_te, pred_te)),
            "test_f1_macro": float(f1_score(y_te, pred_te, labels=LABELS, average="macro", zero_division=0)),
            "confusion_matrix": {
                "labels": LABELS,
                "matrix": confusion_matrix(y_te, pred_te, labels=LABELS).tolist(),
            },
        },
    }
    if hasattr(model, "coef_"):
        report["coefficients"] = {
            str(label): dict(zip(FEATURE_COLUMNS, map(float, row)))
            for label, row in zip(model.classes_, model.coef_)
        }

    artifact = {
        "version": MODEL_VERSION,
        "model": model,
        "feature_columns": FEATURE_COLUMNS,
        "target": TARGET,
        "encoders": encoding.encoders if encoding is not None else None,
        "train_years": config.train_years,
        "holdout_year": config.holdout_year,
    }
    joblib.dump(artifact, output_dir / MODEL_FILE)
    with open(output_dir / REPORT_FILE, "w") as f:
        json.dump(report, f, indent=2)

    elapsed = time.time() - start_time
    print(f"  Test accuracy: {report['classification']['test_accuracy']:.4f}")
    print(f"  Test macro F1: {report['classification']['test_f1_macro']:.4f}")
    print(f"Model and report written to: {output_dir.absolute()} ({elapsed:.1f}s)")
    return report
