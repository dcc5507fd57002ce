import math

import pandas as pd
import pytest

from population_story.data_analyzer import (
    ESTIMATES_COLUMN, MEDIUM_COLUMN, DataAnalyzer, DataFormatError,
    by_entity, compute_growth_rates, country_observations, fastest_growing,
    filter_valid, filter_window, normalize_frame, normalize_record,
    population_field_for, select_series, slowest_growing,
)

# --- Record Normalizer ---

def test_population_field_for_switches_after_2023():
    assert population_field_for(1950) == ESTIMATES_COLUMN
    assert population_field_for(2023) == ESTIMATES_COLUMN
    assert population_field_for(2024) == MEDIUM_COLUMN
    assert population_field_for(2100) == MEDIUM_COLUMN


def test_normalize_record_selects_field_by_year():
    """Estimates through 2023, medium projection afterwards, whatever the other field says."""
    row = {"Entity": "France", "Year": "2023", ESTIMATES_COLUMN: "68000000", MEDIUM_COLUMN: "1"}
    assert normalize_record(row) == ("France", 2023, 68_000_000.0)

    row = {"Entity": "France", "Year": 2024, ESTIMATES_COLUMN: "1", MEDIUM_COLUMN: "68100000"}
    assert normalize_record(row) == ("France", 2024, 68_100_000.0)


def test_normalize_record_invalid_population_is_nan():
    obs = normalize_record({"Entity": "Nowhere", "Year": "2030", MEDIUM_COLUMN: "n/a"})
    assert obs.year == 2030
    assert math.isnan(obs.population)

    obs = normalize_record({"Entity": "Nowhere", "Year": "2030"})
    assert math.isnan(obs.population)


def test_normalize_record_bad_year_raises():
    with pytest.raises(ValueError):
        normalize_record({"Entity": "Nowhere", "Year": "soon"})


@pytest.mark.parametrize("year", ["2021.5", "inf", "-inf", "nan"])
def test_normalize_record_rejects_non_integral_years(year):
    """Same rule as normalize_frame: these rows have no place on the time axis."""
    with pytest.raises(ValueError):
        normalize_record({"Entity": "Nowhere", "Year": year, MEDIUM_COLUMN: "1"})


def test_normalize_record_accepts_whole_float_year():
    assert normalize_record({"Entity": "Peru", "Year": "2030.0", MEDIUM_COLUMN: "5"}) == ("Peru", 2030, 5.0)


def test_normalize_frame_field_selection():
    """Mirrors the source layout: estimates are blank after 2023, medium is blank before 2024."""
    raw = pd.DataFrame({
        "Entity": ["Peru"] * 4,
        "Code": ["PER"] * 4,
        "Year": [2022, 2023, 2024, 2025],
        ESTIMATES_COLUMN: [33.0, 34.0, None, None],
        MEDIUM_COLUMN: [None, None, 35.0, 36.0],
    })
    df = normalize_frame(raw)
    assert df.columns.tolist() == ["Entity", "Year", "Population"]
    assert df["Year"].tolist() == [2022, 2023, 2024, 2025]
    assert df["Population"].tolist() == [33.0, 34.0, 35.0, 36.0]


def test_normalize_frame_keeps_invalid_population_as_nan():
    raw = pd.DataFrame({
        "Entity": ["Peru", "Peru"],
        "Year": [2023, 2030],
        ESTIMATES_COLUMN: ["oops", None],
        MEDIUM_COLUMN: [None, None],
    })
    df = normalize_frame(raw)
    assert len(df) == 2
    assert df["Population"].isna().all()


def test_normalize_frame_drops_unparseable_years():
    raw = pd.DataFrame({
        "Entity": ["Peru"] * 5,
        "Year": ["2020", "later", "2021.5", "inf", "-inf"],
        ESTIMATES_COLUMN: [1.0, 2.0, 3.0, 4.0, 5.0],
        MEDIUM_COLUMN: [None] * 5,
    })
    df = normalize_frame(raw)
    assert df["Year"].tolist() == [2020]


def test_normalize_frame_missing_columns():
    raw = pd.DataFrame({"Entity": ["Peru"], "Year": [2020], ESTIMATES_COLUMN: [1.0]})
    with pytest.raises(DataFormatError, match=MEDIUM_COLUMN):
        normalize_frame(raw)

# --- Series Filter ---

def test_filter_window_is_inclusive():
    df = pd.DataFrame({"Entity": ["X"] * 4, "Year": [2019, 2020, 2100, 2101], "Population": [1.0] * 4})
    assert filter_window(df)["Year"].tolist() == [2020, 2100]
    assert filter_window(df, 2019, 2019)["Year"].tolist() == [2019]


def test_filter_valid_and_by_entity():
    df = pd.DataFrame({
        "Entity": ["X", "X", "Y"],
        "Year": [2020, 2030, 2020],
        "Population": [1.0, float("nan"), 2.0],
    })
    assert filter_valid(df)["Year"].tolist() == [2020, 2020]
    assert by_entity(df, "Y")["Population"].tolist() == [2.0]
    assert by_entity(df, "x").empty


def test_select_series_orders_by_year_and_stays_in_window():
    df = pd.DataFrame({
        "Entity": ["X", "X", "X", "X", "X"],
        "Year": [2050, 2020, 1990, 2100, 2030],
        "Population": [5.0, 2.0, 1.0, 9.0, float("nan")],
    })
    series = select_series(df, "X")
    assert [o.year for o in series] == [2020, 2050, 2100]
    assert all(2020 <= o.year <= 2100 for o in series)
    assert all(o.entity == "X" for o in series)

# --- Growth Ranker ---

def test_growth_rate_closed_form(two_country_frame):
    rates = compute_growth_rates(country_observations(two_country_frame))
    assert dict(zip(rates["Entity"], rates["GrowthRate"])) == {"A": -0.5, "B": 3.0}


def test_end_to_end_two_countries(two_country_frame):
    """Regions and World are never ranked; A declines the most, B grows the most."""
    slowest = slowest_growing(two_country_frame)
    fastest = fastest_growing(two_country_frame)

    assert [c.entity for c in slowest] == ["A", "B"]
    assert slowest[0].growth_rate == -0.5
    assert [c.entity for c in fastest] == ["B", "A"]
    assert fastest[0].growth_rate == 3.0


def test_ranked_entry_carries_full_series(two_country_frame):
    top = fastest_growing(two_country_frame, n=1)[0]
    assert [o.year for o in top.values] == [2020, 2026, 2050, 2060, 2080, 2100]
    assert top.values[-1].population == 400.0


def test_countries_missing_an_endpoint_are_excluded(frame_factory):
    df = frame_factory({
        "Full": [100, 100, 100, 100, 100, 150],
        "NoEnd": [100, 100, 100, 100, 100, float("nan")],
        "ZeroStart": [0, 10, 20, 30, 40, 50],
        "NegStart": [-5, 10, 20, 30, 40, 50],
    })
    df = pd.concat([df, pd.DataFrame([{"Entity": "NoStart", "Year": 2100, "Population": 10.0}])])

    slowest = [c.entity for c in slowest_growing(df)]
    fastest = [c.entity for c in fastest_growing(df)]
    assert slowest == fastest == ["Full"]


def test_nearest_year_is_not_an_endpoint():
    df = pd.DataFrame({
        "Entity": ["Close", "Close"],
        "Year": [2021, 2100],
        "Population": [10.0, 20.0],
    })
    assert slowest_growing(df) == []


def test_ties_keep_first_seen_order(frame_factory):
    df = frame_factory({
        "X": [100, 0, 0, 0, 0, 150],
        "Y": [200, 0, 0, 0, 0, 300],
        "Z": [100, 0, 0, 0, 0, 200],
        "W": [100, 0, 0, 0, 0, 80],
    })
    assert [c.entity for c in slowest_growing(df)] == ["W", "X", "Y", "Z"]
    assert [c.entity for c in fastest_growing(df)] == ["Z", "X", "Y", "W"]


def test_lists_overlap_with_fewer_than_ten_countries(frame_factory):
    """Six countries with distinct rates: the top and bottom five must share four."""
    df = frame_factory({
        f"C{i}": [100, 100, 100, 100, 100, 100 + 10 * i] for i in range(6)
    })
    slowest = {c.entity for c in slowest_growing(df)}
    fastest = {c.entity for c in fastest_growing(df)}
    assert len(slowest) == len(fastest) == 5
    assert slowest & fastest == {"C1", "C2", "C3", "C4"}


def test_top_n_limits_results(story_frame):
    assert len(slowest_growing(story_frame)) == 5
    assert len(fastest_growing(story_frame, n=3)) == 3
    assert [c.entity for c in slowest_growing(story_frame)][0] == "Ukraine"

# --- DataAnalyzer loading ---

def _write_csv(path, rows):
    pd.DataFrame(rows).to_csv(path, index=False)


def test_load_data_success(tmp_path):
    data_file = tmp_path / "population.csv"
    _write_csv(data_file, [
        {"Entity": "World", "Code": "OWID_WRL", "Year": 2023, ESTIMATES_COLUMN: 8.0e9, MEDIUM_COLUMN: None},
        {"Entity": "World", "Code": "OWID_WRL", "Year": 2024, ESTIMATES_COLUMN: None, MEDIUM_COLUMN: 8.1e9},
        {"Entity": "Tuvalu", "Code": "TUV", "Year": 2024, ESTIMATES_COLUMN: None, MEDIUM_COLUMN: None},
    ])
    analyzer = DataAnalyzer(data_file)
    status = analyzer.load_data()

    assert "3 records" in status
    assert analyzer.df is not None
    assert analyzer.df["Population"].tolist()[:2] == [8.0e9, 8.1e9]
    assert analyzer.load_data() == "Data already loaded."


def test_load_data_missing_file(tmp_path):
    analyzer = DataAnalyzer(tmp_path / "nope.csv")
    assert "not found" in analyzer.load_data()
    assert analyzer.df is None


def test_load_data_missing_columns(tmp_path):
    data_file = tmp_path / "population.csv"
    _write_csv(data_file, [{"Entity": "World", "Year": 2020, "population": 7.8e9}])
    analyzer = DataAnalyzer(data_file)
    assert analyzer.load_data().startswith("Unusable data file")
    assert analyzer.df is None


def test_load_data_empty_file(tmp_path):
    data_file = tmp_path / "population.csv"
    data_file.write_text("")
    analyzer = DataAnalyzer(data_file)
    assert analyzer.load_data().startswith("Error reading data file")
    assert analyzer.df is None


def test_load_data_skips_infinite_year_rows(tmp_path):
    data_file = tmp_path / "population.csv"
    data_file.write_text(
        f"Entity,Year,{ESTIMATES_COLUMN},{MEDIUM_COLUMN}\n"
        "Peru,2020,33000000,\n"
        "Peru,inf,2,\n"
    )
    analyzer = DataAnalyzer(data_file)
    status = analyzer.load_data()

    assert "1 records" in status
    assert analyzer.df["Year"].tolist() == [2020]
