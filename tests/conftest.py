"""Shared synthetic race-result tables for the F1 Podium tests."""

import pandas as pd
import pytest

from f1podium.config.config import ACTIVE_DRIVERS

DRIVERS = list(ACTIVE_DRIVERS[:12])
CONSTRUCTORS = ["Mercedes", "Ferrari", "Red Bull", "McLaren", "Williams", "Racing Point"]


def make_results(years=range(2010, 2021)) -> pd.DataFrame:
    """Twelve drivers per season; positions rotate so every label class appears each year."""
    rows = []
    for year in years:
        for i, driver in enumerate(DRIVERS):
            position = ((i + year) % 12) + 1
            constructor = CONSTRUCTORS[i // 2]
            if constructor == "Racing Point" and year < 2018:
                constructor = "Force India"
            rows.append({
                "RACE_YEAR": year,
                "CIRCUIT_NAME": "Monza" if year % 2 else "Silverstone",
                "GRID": ((i * 7 + year) % 12) + 1,
                "CONSTRUCTOR_NAME": constructor,
                "DRIVER": driver,
                "DRIVERS_AGE_YEARS": 20 + i + (year - 2010),
                "DNF_FLAG": int(position == 12),
                "POSITION": position,
                "TOTAL_PIT_STOPS_PER_RACE": (1 + i % 3) if i != 0 else None,
            })
    return pd.DataFrame(rows)


@pytest.fixture
def season_results() -> pd.DataFrame:
    return make_results()


@pytest.fixture
def results_csv(tmp_path, season_results):
    path = tmp_path / "results.csv"
    season_results.to_csv(path, index=False)
    return path
