"""
F1 Podium configuration. Prefer environment variables for deployment.

Lookup tables (constructor renames, active allow-lists) live in PipelineConfig
so they can be updated from a JSON file without touching the transforms.
"""
import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Data paths (relative to project root)
RAW_DATASET_DIR = os.getenv("RAW_DATASET_DIR", "f1podium/data/raw_dataset")
RESULTS_PATH = os.getenv("RESULTS_PATH", "f1podium/data/results.csv")
PROCESSED_DATASET_DIR = os.getenv("PROCESSED_DATASET_DIR", "f1podium/data/processed_dataset")
MODEL_OUTPUT_DIR = os.getenv("MODEL_OUTPUT_DIR", "f1podium/ml/outputs")

# Optional JSON file overriding any PipelineConfig field
PIPELINE_CONFIG_PATH = os.getenv("PIPELINE_CONFIG_PATH")

# Year window: training pool 2010-2019, held-out pool 2020
START_YEAR = 2010
END_YEAR = 2020
TRAIN_YEARS = (2010, 2019)
HOLDOUT_YEAR = 2020

# "error" raises on categories not seen while fitting; "sentinel" codes them -1
UNSEEN_CATEGORY_POLICY = os.getenv("UNSEEN_CATEGORY_POLICY", "sentinel").lower()

# Reliability for an entity with no recorded races
DEFAULT_RELIABILITY = 1.0

# Random state for reproducibility
RANDOM_STATE = 42
TEST_SIZE = 0.3

# Superseded constructor identities -> identity at the end of the window
CONSTRUCTOR_RENAMES = {
    "Force India": "Racing Point",
    "Sauber": "Alfa Romeo",
    "Lotus F1": "Renault",
    "Toro Rosso": "AlphaTauri",
}

ACTIVE_CONSTRUCTORS = (
    "Renault",
    "Williams",
    "McLaren",
    "Ferrari",
    "Mercedes",
    "AlphaTauri",
    "Racing Point",
    "Alfa Romeo",
    "Red Bull",
    "Haas F1 Team",
)

ACTIVE_DRIVERS = (
    "Daniel Ricciardo",
    "Kevin Magnussen",
    "Carlos Sainz",
    "Valtteri Bottas",
    "Lance Stroll",
    "George Russell",
    "Lando Norris",
    "Sebastian Vettel",
    "Kimi Räikkönen",
    "Charles Leclerc",
    "Lewis Hamilton",
    "Daniil Kvyat",
    "Max Verstappen",
    "Pierre Gasly",
    "Alexander Albon",
    "Sergio Pérez",
    "Esteban Ocon",
    "Antonio Giovinazzi",
    "Romain Grosjean",
    "Nicholas Latifi",
)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the clean/encode/split stages need, passed in explicitly."""

    start_year: int = START_YEAR
    end_year: int = END_YEAR
    train_years: Tuple[int, int] = TRAIN_YEARS
    holdout_year: int = HOLDOUT_YEAR
    constructor_renames: Dict[str, str] = field(default_factory=lambda: dict(CONSTRUCTOR_RENAMES))
    active_drivers: frozenset = frozenset(ACTIVE_DRIVERS)
    active_constructors: frozenset = frozenset(ACTIVE_CONSTRUCTORS)
    unseen_policy: str = UNSEEN_CATEGORY_POLICY
    default_reliability: float = DEFAULT_RELIABILITY
    random_state: int = RANDOM_STATE
    test_size: float = TEST_SIZE

    def __post_init__(self):
        if self.start_year > self.end_year:
            raise ValueError(f"start_year {self.start_year} is after end_year {self.end_year}")
        lo, hi = self.train_years
        if lo > hi:
            raise ValueError(f"train_years {self.train_years} is not an increasing range")
        if lo <= self.holdout_year <= hi:
            raise ValueError(f"holdout_year {self.holdout_year} overlaps train_years {self.train_years}")
        if self.unseen_policy not in ("error", "sentinel"):
            raise ValueError(f"unseen_policy must be 'error' or 'sentinel', got {self.unseen_policy!r}")
        if not 0.0 <= self.default_reliability <= 1.0:
            raise ValueError("default_reliability must be in [0, 1]")


def load_config(path: Optional[Path] = None, **overrides) -> PipelineConfig:
    """
    Build a PipelineConfig from defaults, an optional JSON file and keyword overrides.

    The JSON file may set any PipelineConfig field; lists are accepted for
    train_years and the active allow-lists.
    """
    config = PipelineConfig()
    path = path or PIPELINE_CONFIG_PATH
    values = {}
    if path:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pipeline config not found: {path}")
        with open(path, encoding="utf-8") as f:
            values = json.load(f)
    values.update(overrides)

    unknown = set(values) - set(PipelineConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown pipeline config keys: {sorted(unknown)}")
    if "train_years" in values:
        values["train_years"] = tuple(values["train_years"])
    for key in ("active_drivers", "active_constructors"):
        if key in values:
            values[key] = frozenset(values[key])
    if "constructor_renames" in values:
        values["constructor_renames"] = dict(values["constructor_renames"])
    return replace(config, **values)
