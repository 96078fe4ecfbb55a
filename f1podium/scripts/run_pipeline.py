"""
F1 Podium full pipeline: optional build -> clean -> encode -> split -> train -> predict.
"""
import argparse
import sys
from pathlib import Path
from typing import Optional, Tuple

import pandas as pd

from f1podium.config.config import (
    MODEL_OUTPUT_DIR,
    PROCESSED_DATASET_DIR,
    PROJECT_ROOT,
    RAW_DATASET_DIR,
    RESULTS_PATH,
    PipelineConfig,
    load_config,
)
from f1podium.ml.clean import clean_results
from f1podium.ml.encode import CategoryEncoding, encode_covariates
from f1podium.ml.errors import PipelineError
from f1podium.ml.load import load_results
from f1podium.ml.split import split_by_year

RAW_DIR = PROJECT_ROOT / RAW_DATASET_DIR
RESULTS_FILE = PROJECT_ROOT / RESULTS_PATH
PROCESSED_DIR = PROJECT_ROOT / PROCESSED_DATASET_DIR
OUTPUT_DIR = PROJECT_ROOT / MODEL_OUTPUT_DIR

COVARIATES_FILE = "covariates.csv"
TRAINING_FILE = "training_pool.csv"
HOLDOUT_FILE = "holdout_pool.csv"
ENCODING_FILE = "encoding.joblib"
PREDICTIONS_FILE = "predictions.csv"


def build_pools(
    config: PipelineConfig,
    results_path: Optional[Path] = None,
    encoding: Optional[CategoryEncoding] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame, CategoryEncoding]:
    """Load -> clean -> encode -> split, in memory. Returns (covariates, training, holdout, encoding)."""
    print("[1/4] Loading results...")
    raw = load_results(results_path or RESULTS_FILE)
    print(f"  {len(raw)} result rows")

    print(f"[2/4] Cleaning results ({config.start_year}-{config.end_year})...")
    cleaned = clean_results(raw, config)
    print(f"  {len(cleaned)} rows in window, "
          f"{int(cleaned['ACTIVE_DRIVER'].sum())} with active driver, "
          f"{int(cleaned['ACTIVE_CONSTRUCTOR'].sum())} with active constructor")

    print("[3/4] Encoding covariates...")
    covariates, encoding = encode_covariates(cleaned, config, encoding=encoding)
    print(f"  {len(covariates)} active rows encoded")

    print("[4/4] Splitting by year...")
    training, holdout = split_by_year(covariates, config)
    print(f"  {len(training)} training rows ({config.train_years[0]}-{config.train_years[1]}), "
          f"{len(holdout)} held-out rows ({config.holdout_year})")
    return covariates, training, holdout, encoding


def run_prepare(
    config: PipelineConfig,
    results_path: Optional[Path] = None,
    processed_dir: Optional[Path] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame, CategoryEncoding]:
    """Build the pools and write them plus the fitted encoding to the processed directory."""
    processed_dir = Path(processed_dir or PROCESSED_DIR)
    processed_dir.mkdir(parents=True, exist_ok=True)
    covariates, training, holdout, encoding = build_pools(config, results_path)
    covariates.to_csv(processed_dir / COVARIATES_FILE, index=False)
    training.to_csv(processed_dir / TRAINING_FILE, index=False)
    holdout.to_csv(processed_dir / HOLDOUT_FILE, index=False)
    encoding.save(processed_dir / ENCODING_FILE)
    print(f"Processed tables written to: {processed_dir.absolute()}")
    return training, holdout, encoding


def run_train(
    config: PipelineConfig,
    training: Optional[pd.DataFrame] = None,
    encoding: Optional[CategoryEncoding] = None,
    processed_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
) -> dict:
    from f1podium.ml.train import run_training
    processed_dir = Path(processed_dir or PROCESSED_DIR)
    if training is None:
        path = processed_dir / TRAINING_FILE
        if not path.exists():
            raise FileNotFoundError(f"{path} not found. Run the pipeline without --train-only first.")
        training = pd.read_csv(path)
        encoding = CategoryEncoding.load(processed_dir / ENCODING_FILE)
    return run_training(training, output_dir=output_dir or OUTPUT_DIR, config=config, encoding=encoding)


def run_predict(
    config: PipelineConfig,
    results_path: Optional[Path] = None,
    processed_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """
    Label the held-out pool with the trained model. The pool is rebuilt from the
    results table using the encoding stored with the model, so codes match training.
    """
    from f1podium.ml.inference import load_artifact, predict_positions
    processed_dir = Path(processed_dir or PROCESSED_DIR)
    artifact = load_artifact(output_dir or OUTPUT_DIR)
    encoding = CategoryEncoding(artifact["encoders"]) if artifact.get("encoders") else None
    if encoding is None:
        encoding = CategoryEncoding.load(processed_dir / ENCODING_FILE)
    _, _, holdout, _ = build_pools(config, results_path, encoding=encoding)
    predictions = predict_positions(holdout, artifact=artifact)
    processed_dir.mkdir(parents=True, exist_ok=True)
    predictions.to_csv(processed_dir / PREDICTIONS_FILE, index=False)
    print(f"Wrote {len(predictions)} predictions to {processed_dir / PREDICTIONS_FILE}")
    return predictions


def main(argv=None):
    parser = argparse.ArgumentParser(description="F1 Podium pipeline: build -> prepare -> train -> predict")
    parser.add_argument("--build", action="store_true", help="Rebuild results.csv from raw Ergast CSVs first")
    parser.add_argument("--build-only", action="store_true", help="Only rebuild results.csv, then exit")
    parser.add_argument("--prepare-only", action="store_true", help="Only clean/encode/split, then exit")
    parser.add_argument("--train-only", action="store_true", help="Only train (requires prepared tables)")
    parser.add_argument("--predict-only", action="store_true", help="Only predict the held-out pool (requires a model)")
    parser.add_argument("--raw-dir", type=Path, default=RAW_DIR)
    parser.add_argument("--results", type=Path, default=RESULTS_FILE)
    parser.add_argument("--processed-dir", type=Path, default=PROCESSED_DIR)
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR)
    parser.add_argument("--config", type=Path, default=None, help="JSON file overriding pipeline config")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)

        if args.build or args.build_only:
            from f1podium.scripts.build_results import run_build
            run_build(raw_dir=args.raw_dir, out_path=args.results)
            if args.build_only:
                return
        if args.train_only:
            run_train(config, processed_dir=args.processed_dir, output_dir=args.output_dir)
            return
        if args.predict_only:
            run_predict(config, results_path=args.results, processed_dir=args.processed_dir, output_dir=args.output_dir)
            return

        training, _, encoding = run_prepare(config, results_path=args.results, processed_dir=args.processed_dir)
        if args.prepare_only:
            return
        print("Running training...")
        run_train(config, training=training, encoding=encoding,
                  processed_dir=args.processed_dir, output_dir=args.output_dir)
        print("Running prediction...")
        run_predict(config, results_path=args.results, processed_dir=args.processed_dir, output_dir=args.output_dir)
        print("Pipeline complete.")
    except (PipelineError, FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
