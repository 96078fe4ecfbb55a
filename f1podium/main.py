from fastapi import FastAPI, HTTPException, Query
from dotenv import load_dotenv
load_dotenv()
import pandas as pd

from f1podium.config.config import load_config
from f1podium.ml.encode import CategoryEncoding, TARGET
from f1podium.ml.errors import ArtifactNotFoundError, PipelineError
from f1podium.ml.inference import PODIUM_PROBABILITY_COLUMN, PREDICTION_COLUMN, load_artifact, predict_positions
from f1podium.scripts.run_pipeline import (
    ENCODING_FILE,
    HOLDOUT_FILE,
    OUTPUT_DIR,
    PROCESSED_DIR,
    RESULTS_FILE,
    TRAINING_FILE,
    build_pools,
)

app = FastAPI(title="F1 Podium")


@app.get("/")
async def root():
    return {"message": "F1 Podium position-label predictions", "docs": "/docs"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/api/summary")
def summary():
    """Row counts of the prepared pools and the size of each fitted category encoding."""
    training_path = PROCESSED_DIR / TRAINING_FILE
    holdout_path = PROCESSED_DIR / HOLDOUT_FILE
    if not training_path.exists() or not holdout_path.exists():
        raise HTTPException(status_code=503, detail="Pools not prepared. Run: python -m f1podium.scripts.run_pipeline --prepare-only")
    training = pd.read_csv(training_path)
    holdout = pd.read_csv(holdout_path)
    config = load_config()
    out = {
        "train_years": list(config.train_years),
        "holdout_year": config.holdout_year,
        "training_rows": len(training),
        "holdout_rows": len(holdout),
        "training_label_support": {str(k): int(v) for k, v in training[TARGET].value_counts().sort_index().items()},
    }
    try:
        encoding = CategoryEncoding.load(PROCESSED_DIR / ENCODING_FILE)
        out["categories"] = {col: len(m) for col, m in encoding.mapping().items()}
    except ArtifactNotFoundError:
        out["categories"] = {}
    return out


@app.get("/api/predictions")
def predictions(season: int = Query(..., ge=1950, le=2100)):
    """
    Predicted position labels for every held-out row of a season.

    The held-out pool is rebuilt from the results table with the encoding stored
    in the model artifact, so codes and decoded names always match the model.
    """
    try:
        artifact = load_artifact(OUTPUT_DIR)
    except ArtifactNotFoundError as e:
        raise HTTPException(status_code=503, detail=str(e))

    try:
        if artifact.get("encoders"):
            encoding = CategoryEncoding(artifact["encoders"])
        else:
            encoding = CategoryEncoding.load(PROCESSED_DIR / ENCODING_FILE)
        _, _, holdout, _ = build_pools(load_config(), RESULTS_FILE, encoding=encoding)
    except FileNotFoundError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except PipelineError as e:
        raise HTTPException(status_code=500, detail=str(e))

    rows = holdout[holdout["RACE_YEAR"] == season]
    if rows.empty:
        raise HTTPException(status_code=404, detail=f"No held-out rows for season {season}")

    try:
        predicted = predict_positions(rows, artifact=artifact)
    except PipelineError as e:
        raise HTTPException(status_code=500, detail=str(e))

    drivers = encoding.inverse("DRIVER", predicted["DRIVER"])
    constructors = encoding.inverse("CONSTRUCTOR_NAME", predicted["CONSTRUCTOR_NAME"])
    items = []
    for i, (_, row) in enumerate(predicted.iterrows()):
        item = {
            "driver": drivers[i],
            "constructor": constructors[i],
            "grid": int(row["GRID"]) if pd.notna(row["GRID"]) else None,
            "predicted_position_label": int(row[PREDICTION_COLUMN]),
            "position_label": int(row[TARGET]) if TARGET in row.index else None,
        }
        if PODIUM_PROBABILITY_COLUMN in row.index:
            item["podium_probability"] = float(row[PODIUM_PROBABILITY_COLUMN])
        items.append(item)
    return {"season": season, "predictions": items}
