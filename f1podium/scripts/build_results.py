"""
F1 Podium – build the flat race-results table from raw Ergast CSV exports.

One row per (race, driver): year, circuit, grid, constructor, driver, age at
race date, DNF flag, classified position and pit-stop count. Raw exports use
"\\N" for nulls.
"""

from pathlib import Path
from typing import Optional

import pandas as pd

from f1podium.config.config import PROJECT_ROOT, RAW_DATASET_DIR, RESULTS_PATH
from f1podium.ml.errors import MissingColumnsError

RESULTS_COLUMNS = [
    "RACE_YEAR",
    "ROUND",
    "CIRCUIT_NAME",
    "GRID",
    "CONSTRUCTOR_NAME",
    "DRIVER",
    "DRIVERS_AGE_YEARS",
    "DNF_FLAG",
    "POSITION",
    "TOTAL_PIT_STOPS_PER_RACE",
]


def _read_raw(raw_path: Path, name: str, columns, required: bool = True) -> pd.DataFrame:
    path = raw_path / f"{name}.csv"
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Raw table missing: {path}")
        return pd.DataFrame(columns=columns)
    df = pd.read_csv(path, na_values=["\\N"])
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise MissingColumnsError(missing, source=path.name)
    return df


def _is_dnf(position_text) -> int:
    """Ergast positionText is the classified place, or R/D/E/W/F/N when not classified."""
    if pd.isna(position_text):
        return 1
    return int(not str(position_text).strip().isdigit())


def _age_years(dob: pd.Series, on: pd.Series) -> pd.Series:
    years = on.dt.year - dob.dt.year
    before_birthday = (on.dt.month < dob.dt.month) | (
        (on.dt.month == dob.dt.month) & (on.dt.day < dob.dt.day)
    )
    return years - before_birthday.astype(int)


def clean_races(raw_path: Path) -> pd.DataFrame:
    df = _read_raw(raw_path, "races", ["raceId", "year", "round", "circuitId", "date"])
    out = pd.DataFrame()
    out["raceId"] = df["raceId"].astype(int)
    out["RACE_YEAR"] = df["year"].astype(int)
    out["ROUND"] = df["round"].astype(int)
    out["circuitId"] = df["circuitId"].astype(int)
    out["race_date"] = pd.to_datetime(df["date"], errors="coerce")
    return out


def clean_circuits(raw_path: Path) -> pd.DataFrame:
    df = _read_raw(raw_path, "circuits", ["circuitId", "name"])
    return pd.DataFrame({
        "circuitId": df["circuitId"].astype(int),
        "CIRCUIT_NAME": df["name"].astype(str).str.strip(),
    })


def clean_drivers(raw_path: Path) -> pd.DataFrame:
    df = _read_raw(raw_path, "drivers", ["driverId", "forename", "surname", "dob"])
    return pd.DataFrame({
        "driverId": df["driverId"].astype(int),
        "DRIVER": df["forename"].astype(str).str.strip() + " " + df["surname"].astype(str).str.strip(),
        "dob": pd.to_datetime(df["dob"], errors="coerce"),
    })


def clean_constructors(raw_path: Path) -> pd.DataFrame:
    df = _read_raw(raw_path, "constructors", ["constructorId", "name"])
    return pd.DataFrame({
        "constructorId": df["constructorId"].astype(int),
        "CONSTRUCTOR_NAME": df["name"].astype(str).str.strip(),
    })


def count_pitstops(raw_path: Path) -> pd.DataFrame:
    """Pit stops per (race, driver); races without pit-stop data are simply absent."""
    df = _read_raw(raw_path, "pit_stops", ["raceId", "driverId", "stop"], required=False)
    if df.empty:
        return pd.DataFrame({
            "raceId": pd.Series(dtype=int),
            "driverId": pd.Series(dtype=int),
            "TOTAL_PIT_STOPS_PER_RACE": pd.Series(dtype=float),
        })
    df["raceId"] = df["raceId"].astype(int)
    df["driverId"] = df["driverId"].astype(int)
    return (
        df.groupby(["raceId", "driverId"])["stop"]
        .count()
        .rename("TOTAL_PIT_STOPS_PER_RACE")
        .reset_index()
    )


def build_results_table(raw_dir: Optional[Path] = None) -> pd.DataFrame:
    raw_path = Path(raw_dir) if raw_dir else PROJECT_ROOT / RAW_DATASET_DIR
    results = _read_raw(raw_path, "results", ["raceId", "driverId", "constructorId", "grid", "position"])

    base = pd.DataFrame()
    base["raceId"] = results["raceId"].astype(int)
    base["driverId"] = results["driverId"].astype(int)
    base["constructorId"] = results["constructorId"].astype(int)
    base["GRID"] = pd.to_numeric(results["grid"], errors="coerce")
    position = pd.to_numeric(results["position"], errors="coerce")
    if "positionOrder" in results.columns:
        position = pd.to_numeric(results["positionOrder"], errors="coerce").fillna(position)
    base["POSITION"] = position
    if "positionText" in results.columns:
        base["DNF_FLAG"] = results["positionText"].apply(_is_dnf)
    else:
        base["DNF_FLAG"] = results["position"].isna().astype(int)

    base = base.merge(clean_races(raw_path), on="raceId", how="inner")
    base = base.merge(clean_circuits(raw_path), on="circuitId", how="left")
    base = base.merge(clean_drivers(raw_path), on="driverId", how="left")
    base = base.merge(clean_constructors(raw_path), on="constructorId", how="left")
    base = base.merge(count_pitstops(raw_path), on=["raceId", "driverId"], how="left")

    base["DRIVERS_AGE_YEARS"] = _age_years(base["dob"], base["race_date"])
    base = base.sort_values(["RACE_YEAR", "ROUND", "POSITION"], kind="mergesort")
    return base[RESULTS_COLUMNS].reset_index(drop=True)


def run_build(raw_dir: Optional[Path] = None, out_path: Optional[Path] = None) -> pd.DataFrame:
    out_path = Path(out_path) if out_path else PROJECT_ROOT / RESULTS_PATH
    print("Building results table from raw CSVs...")
    df = build_results_table(raw_dir)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)
    print(f"  {len(df)} result rows, seasons {df['RACE_YEAR'].min()}-{df['RACE_YEAR'].max()}")
    print(f"Results table written to: {out_path.absolute()}")
    return df


if __name__ == "__main__":
    run_build()
