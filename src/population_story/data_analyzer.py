#!/usr/bin/env python

import logging
from pathlib import Path
from typing import Any, List, Mapping, NamedTuple, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

# --- Configuration ---
DATA_FILE = Path("data") / "population-with-un-projections.csv"
START_YEAR = 2020
END_YEAR = 2100
LAST_ESTIMATE_YEAR = 2023
ESTIMATES_COLUMN = "population__sex_all__age_all__variant_estimates"
MEDIUM_COLUMN = "population__sex_all__age_all__variant_medium"
REQUIRED_COLUMNS = ("Entity", "Year", ESTIMATES_COLUMN, MEDIUM_COLUMN)
WORLD = "World"
REGIONS = ("Africa", "Asia", "Europe", "Latin America", "Northern America", "Oceania")
AGGREGATES = frozenset(REGIONS) | {WORLD}
TOP_N = 5


class DataFormatError(ValueError):
    """Raised when the source table lacks the columns the pipeline needs."""


class Observation(NamedTuple):
    entity: str
    year: int
    population: float


class RankedCountry(NamedTuple):
    entity: str
    growth_rate: float
    values: Tuple[Observation, ...]


# --- Record Normalizer ---

def population_field_for(year: int) -> str:
    """Estimates up to and including 2023, medium-variant projection afterwards."""
    return ESTIMATES_COLUMN if year <= LAST_ESTIMATE_YEAR else MEDIUM_COLUMN


def _to_population(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def normalize_record(row: Mapping[str, Any]) -> Observation:
    """Turns one raw row into an Observation.

    A missing or non-numeric population becomes NaN; it is up to the
    filters to drop it. A year that is not an integer raises ValueError.
    """
    year_value = float(row["Year"])
    if not year_value.is_integer():
        raise ValueError(f"Year is not a whole number: {row['Year']!r}")
    year = int(year_value)
    population = _to_population(row.get(population_field_for(year)))
    return Observation(str(row["Entity"]), year, population)


def normalize_frame(raw: pd.DataFrame) -> pd.DataFrame:
    """Vectorised normalizer over a whole source table.

    Returns a frame with Entity, Year (int) and Population (float, NaN when invalid).
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in raw.columns]
    if missing:
        raise DataFormatError(f"Missing column(s): {', '.join(missing)}")

    years = pd.to_numeric(raw["Year"], errors="coerce")
    bad_years = years.isna() | (years.abs() == float("inf")) | (years != years.round())
    if bad_years.any():
        logger.warning("Dropping %d row(s) with an unparseable year", int(bad_years.sum()))
    raw = raw[~bad_years]
    years = years[~bad_years].astype(int)

    estimates = pd.to_numeric(raw[ESTIMATES_COLUMN], errors="coerce")
    medium = pd.to_numeric(raw[MEDIUM_COLUMN], errors="coerce")
    population = estimates.where(years <= LAST_ESTIMATE_YEAR, medium).astype(float)

    return pd.DataFrame({
        "Entity": raw["Entity"].astype(str),
        "Year": years,
        "Population": population,
    }).reset_index(drop=True)


# --- Series Filter ---

def filter_window(df: pd.DataFrame, year_min: int = START_YEAR, year_max: int = END_YEAR) -> pd.DataFrame:
    return df[(df["Year"] >= year_min) & (df["Year"] <= year_max)]


def filter_valid(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["Population"].notna()]


def by_entity(df: pd.DataFrame, name: str) -> pd.DataFrame:
    return df[df["Entity"] == name]


def to_observations(df: pd.DataFrame) -> Tuple[Observation, ...]:
    ordered = df.sort_values("Year", kind="stable")
    return tuple(
        Observation(entity, int(year), float(population))
        for entity, year, population in zip(ordered["Entity"], ordered["Year"], ordered["Population"])
    )


def select_series(df: pd.DataFrame, name: str) -> Tuple[Observation, ...]:
    """Window -> entity -> validity, ordered by year."""
    return to_observations(filter_valid(by_entity(filter_window(df), name)))


# --- Growth Ranker ---

def country_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Window-filtered, valid rows for countries only (no regions, no World)."""
    windowed = filter_window(df)
    return filter_valid(windowed[~windowed["Entity"].isin(AGGREGATES)])


def compute_growth_rates(country_df: pd.DataFrame) -> pd.DataFrame:
    """Endpoint-to-endpoint growth per entity, in first-seen entity order.

    Entities without both a START_YEAR and an END_YEAR observation, or with a
    non-positive START_YEAR population, are left out.
    """
    rows = []
    excluded = 0
    for entity, group in country_df.groupby("Entity", sort=False):
        start = group.loc[group["Year"] == START_YEAR, "Population"]
        end = group.loc[group["Year"] == END_YEAR, "Population"]
        if start.empty or end.empty or start.iloc[0] <= 0:
            excluded += 1
            continue
        start_pop, end_pop = float(start.iloc[0]), float(end.iloc[0])
        rows.append({"Entity": entity, "GrowthRate": (end_pop - start_pop) / start_pop})
    if excluded:
        logger.debug("%d entities lack a full %d-%d series and are not ranked", excluded, START_YEAR, END_YEAR)
    return pd.DataFrame(rows, columns=["Entity", "GrowthRate"])


def rank_growth(df: pd.DataFrame, ascending: bool, n: int = TOP_N) -> List[RankedCountry]:
    country_df = country_observations(df)
    rates = compute_growth_rates(country_df)
    top = rates.sort_values(by="GrowthRate", ascending=ascending, kind="stable").head(n)
    return [
        RankedCountry(entity, float(rate), to_observations(by_entity(country_df, entity)))
        for entity, rate in zip(top["Entity"], top["GrowthRate"])
    ]


def slowest_growing(df: pd.DataFrame, n: int = TOP_N) -> List[RankedCountry]:
    return rank_growth(df, ascending=True, n=n)


def fastest_growing(df: pd.DataFrame, n: int = TOP_N) -> List[RankedCountry]:
    return rank_growth(df, ascending=False, n=n)


class DataAnalyzer:
    """Loads the population table once and keeps the normalized frame."""
    def __init__(self, data_file: Path = DATA_FILE):
        self.data_file = Path(data_file)
        self.df: Optional[pd.DataFrame] = None

    def load_data(self) -> str:
        if self.df is not None:
            return "Data already loaded."

        if not self.data_file.exists():
            logger.error("Data file not found: %s", self.data_file)
            return f"Data file not found: {self.data_file}"

        try:
            raw = pd.read_csv(self.data_file)
            df = normalize_frame(raw)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
            logger.exception("Could not read %s", self.data_file)
            return f"Error reading data file: {e}"
        except DataFormatError as e:
            logger.error("Unusable data file %s: %s", self.data_file, e)
            return f"Unusable data file: {e}"

        if df.empty:
            logger.error("No usable records in %s", self.data_file)
            return "No usable records found."

        self.df = df
        invalid = int(df["Population"].isna().sum())
        logger.info("Loaded %d records for %d entities (%d invalid)", len(df), df["Entity"].nunique(), invalid)
        status = f"Data loaded with {len(df):,} records."
        if invalid > 0:
            status += f" [bold yellow]({invalid:,} without a population value)[/]"
        return status
