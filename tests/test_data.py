import json
import math

import pytest

from climviz.dsa import intersect_sorted, merge_sort, union_sorted
from climviz.loader import load_co2_json, load_disasters_json, load_emissions_table
from climviz.models import FilterSelection
from climviz.store import DISASTER_COLORS, FALLBACK_COLOR, DataStore


def test_load_emissions_table_parses_rows(emissions_csv):
    records = load_emissions_table(str(emissions_csv))

    assert len(records) == 7
    first = records[0]
    assert (first.country, first.industry, first.year, first.emissions) == ("Germany", "Energy", 1990, 100.0)
    blank = [r for r in records if r.industry == "Agriculture" and r.year == 1991][0]
    assert math.isnan(blank.emissions)


def test_load_emissions_table_matches_columns_loosely(tmp_path):
    path = tmp_path / "ghg.csv"
    path.write_text(" country ,INDUSTRY,year,emissions\nSpain,Waste,2001,3.5\nSpain,Waste,,4\n", encoding="utf-8")

    records = load_emissions_table(str(path))

    assert len(records) == 1
    assert records[0].country == "Spain"
    assert records[0].year == 2001


def test_load_emissions_table_missing_column(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Country,Year,Emissions\nSpain,2001,3.5\n", encoding="utf-8")

    with pytest.raises(KeyError):
        load_emissions_table(str(path))


def test_load_json_datasets(disaster_files):
    disasters_path, co2_path = disaster_files

    disasters = load_disasters_json(str(disasters_path))
    co2 = load_co2_json(str(co2_path))

    assert len(disasters) == 9
    assert disasters[0].geo == "Global" and disasters[0].type == "Wildfire" and disasters[0].count == 2
    assert {(r.geo, r.year) for r in co2} >= {("Global", 1995), ("Asia", 1995)}


def test_load_co2_json_non_numeric_value(tmp_path):
    path = tmp_path / "co2.json"
    path.write_text(json.dumps([{"geo": "Global", "year": 2000, "emissions_mt": "n/a"}]), encoding="utf-8")

    (record,) = load_co2_json(str(path))

    assert math.isnan(record.emissions_mt)


def test_load_json_empty_array(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("[]", encoding="utf-8")

    assert load_disasters_json(str(path)) == []
    assert load_co2_json(str(path)) == []


def test_load_json_still_requires_columns(tmp_path):
    path = tmp_path / "odd.json"
    path.write_text(json.dumps([{"place": "Global", "year": 2000}]), encoding="utf-8")

    with pytest.raises(KeyError):
        load_co2_json(str(path))


def test_emissions_store_universes(emissions_store):
    assert emissions_store.entities == ["France", "Germany"]
    # first-appearance order is the colour domain
    assert emissions_store.categories == ["Energy", "Agriculture", "Transport"]
    assert len(set(emissions_store.colors.values())) == 3
    assert emissions_store.color("Energy") == emissions_store.colors["Energy"]


def test_disaster_store_universes(disaster_store):
    assert disaster_store.entities == ["Global", "Africa", "Asia"]
    assert disaster_store.categories == ["Drought", "Flood", "Storm", "Wildfire"]
    assert disaster_store.color("Wildfire") == DISASTER_COLORS["Wildfire"]
    assert disaster_store.default_region() == "Global"


def test_unknown_disaster_type_gets_fallback_color():
    from climviz.models import DisasterRecord

    store = DataStore.from_disasters([DisasterRecord("Europe", "Volcano", 2000, 1)])

    assert store.color("Volcano") == FALLBACK_COLOR
    assert store.default_region() == "Europe"


def test_ids_for_intersects_entities_categories_and_years(disaster_store):
    ids = disaster_store.ids_for(["Global"], ["Flood"], 1995, 2018)
    assert [disaster_store.records[i].year for i in ids] == [1997]

    ids = disaster_store.ids_for(["Global", "Asia"], ["Flood"])
    assert sorted(disaster_store.records[i].year for i in ids) == [1990, 1995, 1997]


def test_merge_sort_is_stable_in_both_directions():
    rows = [("a", 3), ("b", 4), ("c", 3), ("d", 4), ("e", 1)]

    asc = merge_sort(rows, key=lambda r: r[1])
    desc = merge_sort(rows, key=lambda r: r[1], reverse=True)

    assert [r[0] for r in asc] == ["e", "a", "c", "b", "d"]
    assert [r[0] for r in desc] == ["b", "d", "a", "c", "e"]


def test_sorted_list_helpers():
    assert intersect_sorted([1, 3, 5, 7], [3, 4, 5]) == [3, 5]
    assert union_sorted([1, 3, 5], [2, 3, 6]) == [1, 2, 3, 5, 6]
    assert union_sorted([], [2, 2]) == [2]


def test_filter_selection_toggle_returns_new_value():
    sel = FilterSelection.of(["A", "B"], ["x"])

    off = sel.toggle_entity("A")
    back = off.toggle_entity("A")

    assert "A" in sel.entities
    assert "A" not in off.entities
    assert back == sel


def test_filter_selection_rejects_unknown_sort_mode():
    with pytest.raises(ValueError):
        FilterSelection.of([], [], sort_mode="random")
