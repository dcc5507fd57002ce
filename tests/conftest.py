import pandas as pd
import pytest

YEARS = [2020, 2026, 2050, 2060, 2080, 2100]


def make_frame(series: dict) -> pd.DataFrame:
    """Builds a normalized frame from {entity: [population per YEARS entry]}."""
    rows = []
    for entity, values in series.items():
        for year, population in zip(YEARS, values):
            rows.append({"Entity": entity, "Year": year, "Population": float(population)})
    return pd.DataFrame(rows)


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def story_frame():
    """World, the six regions and a handful of countries with known growth rates."""
    return make_frame({
        "World": [7.8e9, 8.1e9, 9.7e9, 10.0e9, 10.3e9, 10.2e9],
        "Africa": [1.36e9, 1.5e9, 2.5e9, 2.9e9, 3.4e9, 3.9e9],
        "Asia": [4.6e9, 4.8e9, 5.3e9, 5.2e9, 4.9e9, 4.6e9],
        "Europe": [748e6, 744e6, 703e6, 680e6, 640e6, 590e6],
        "Latin America": [652e6, 670e6, 750e6, 750e6, 720e6, 680e6],
        "Northern America": [370e6, 380e6, 420e6, 430e6, 440e6, 450e6],
        "Oceania": [43e6, 46e6, 58e6, 62e6, 67e6, 70e6],
        "Ukraine": [44e6, 38e6, 30e6, 27e6, 22e6, 16e6],
        "Japan": [126e6, 123e6, 105e6, 96e6, 83e6, 77e6],
        "Italy": [59e6, 58e6, 52e6, 49e6, 43e6, 40e6],
        "Korea": [51e6, 51e6, 45e6, 39e6, 29e6, 22e6],
        "Spain": [47e6, 48e6, 45e6, 42e6, 38e6, 36e6],
        "Niger": [24e6, 29e6, 67e6, 90e6, 140e6, 185e6],
        "Democratic Republic of Congo": [92e6, 109e6, 218e6, 280e6, 380e6, 430e6],
        "Somalia": [16e6, 19e6, 40e6, 52e6, 71e6, 85e6],
        "Chad": [16e6, 19e6, 37e6, 46e6, 58e6, 66e6],
        "Angola": [33e6, 38e6, 72e6, 90e6, 118e6, 133e6],
    })


@pytest.fixture
def two_country_frame():
    """World, the six regions and two countries: A halves, B quadruples."""
    regions = {name: [100, 110, 120, 130, 140, 150] for name in
               ("Africa", "Asia", "Europe", "Latin America", "Northern America", "Oceania")}
    return make_frame({
        "World": [1000, 1100, 1200, 1250, 1300, 1280],
        **regions,
        "A": [100, 95, 80, 70, 60, 50],
        "B": [100, 120, 200, 250, 330, 400],
    })
