"""
API tests for F1 Podium.
Run from repo root: pytest tests/ -v
Pools and model are built into tmp directories from synthetic results.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import DRIVERS
import f1podium.main as main
from f1podium.config.config import PipelineConfig
from f1podium.main import app
from f1podium.scripts.run_pipeline import run_prepare, run_train

client = TestClient(app)


@pytest.fixture
def empty_dirs(tmp_path, monkeypatch, results_csv):
    monkeypatch.setattr(main, "RESULTS_FILE", results_csv)
    monkeypatch.setattr(main, "PROCESSED_DIR", tmp_path / "processed")
    monkeypatch.setattr(main, "OUTPUT_DIR", tmp_path / "outputs")
    return tmp_path


@pytest.fixture
def prepared(empty_dirs, results_csv):
    config = PipelineConfig()
    training, _, encoding = run_prepare(config, results_path=results_csv, processed_dir=empty_dirs / "processed")
    return config, training, encoding


@pytest.fixture
def trained(prepared, empty_dirs):
    config, training, encoding = prepared
    run_train(config, training=training, encoding=encoding, output_dir=empty_dirs / "outputs")
    return prepared


def test_health():
    """Health endpoint returns 200."""
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_root():
    """Root returns message and docs link."""
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data
    assert "docs" in data


def test_summary_503_before_prepare(empty_dirs):
    """Summary is unavailable until the pools are prepared."""
    r = client.get("/api/summary")
    assert r.status_code == 503
    assert "detail" in r.json()


def test_summary_after_prepare(prepared):
    """Summary reports pool sizes, label support and category counts."""
    _, training, _ = prepared
    r = client.get("/api/summary")
    assert r.status_code == 200
    data = r.json()
    assert data["training_rows"] == len(training)
    assert data["holdout_year"] == 2020
    assert data["categories"]["DRIVER"] == 12
    assert set(data["training_label_support"]) == {"1", "2", "3"}


def test_predictions_503_without_model(prepared):
    """Predictions need a trained model artifact."""
    r = client.get("/api/predictions?season=2020")
    assert r.status_code == 503


def test_predictions_for_holdout_season(trained):
    """Every 2020 row gets a label and a podium probability."""
    r = client.get("/api/predictions?season=2020")
    assert r.status_code == 200
    data = r.json()
    assert data["season"] == 2020
    assert len(data["predictions"]) == 12
    first = data["predictions"][0]
    assert first["predicted_position_label"] in (1, 2, 3)
    assert isinstance(first["driver"], str)
    assert 0.0 <= first["podium_probability"] <= 1.0


def test_predictions_404_for_training_season(trained):
    """Training seasons are not in the held-out pool."""
    r = client.get("/api/predictions?season=2015")
    assert r.status_code == 404


def test_predictions_decode_with_model_encoding(trained, empty_dirs, season_results):
    """Re-preparing with a different encoding after training does not change decoded names."""
    run_prepare(PipelineConfig(active_drivers=frozenset(DRIVERS[1:])),
                results_path=main.RESULTS_FILE, processed_dir=empty_dirs / "processed")
    r = client.get("/api/predictions?season=2020")
    assert r.status_code == 200
    items = r.json()["predictions"]
    assert sorted(item["driver"] for item in items) == sorted(DRIVERS)
    expected = season_results[season_results["RACE_YEAR"] == 2020].set_index("DRIVER")
    for item in items:
        assert item["grid"] == int(expected.loc[item["driver"], "GRID"])
        assert item["constructor"] == expected.loc[item["driver"], "CONSTRUCTOR_NAME"]


def test_predictions_503_without_results(trained, monkeypatch, tmp_path):
    """A missing results table is reported as unavailable."""
    monkeypatch.setattr(main, "RESULTS_FILE", tmp_path / "missing.csv")
    r = client.get("/api/predictions?season=2020")
    assert r.status_code == 503


def test_predictions_invalid_season():
    """Out-of-range season returns 422."""
    r = client.get("/api/predictions?season=1900")
    assert r.status_code == 422
