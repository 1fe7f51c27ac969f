import math

import pytest

from climviz.models import FilterSelection, SeriesPoint
from climviz.reconcile import reconcile
from climviz.series import build_series, closest_point, compute_domains, filter_records, hover_summary
from climviz.stacking import (
    co2_series, percent_change, sort_summaries, sparkline, stack_layout, summarize_years, tooltip_text,
)


def _all(store, **kw):
    return FilterSelection.of(store.entities, store.categories, **kw)


# ---------------- Line chart ----------------

def test_one_series_per_country_industry_pair(emissions_store):
    records = filter_records(emissions_store, _all(emissions_store))
    series = build_series(records)

    pairs = {(r.country, r.industry) for r in records}
    assert len(series) == len(pairs) == 4
    assert [s.key for s in series] == [
        "Germany_Energy", "Germany_Agriculture", "France_Energy", "France_Transport",
    ]


def test_series_points_sorted_by_year(emissions_store):
    series = build_series(filter_records(emissions_store, _all(emissions_store)))
    france_energy = [s for s in series if s.key == "France_Energy"][0]

    assert [p.year for p in france_energy.points] == [1990, 1991]
    assert [p.value for p in france_energy.points] == [45.0, 40.0]


def test_filter_respects_both_sets(emissions_store):
    sel = FilterSelection.of(["France"], ["Energy", "Agriculture"])

    records = filter_records(emissions_store, sel)

    assert {(r.country, r.industry) for r in records} == {("France", "Energy")}


def test_domains_ignore_missing_values(emissions_store):
    records = filter_records(emissions_store, FilterSelection.of(["Germany"], ["Agriculture"]))

    assert compute_domains(records) == ((1990, 1991), (0.0, 20.0))


def test_domains_fall_back_to_one_without_values(emissions_store):
    records = filter_records(emissions_store, FilterSelection.of(["Germany"], ["Agriculture"]))
    records = [r for r in records if math.isnan(r.emissions)]

    assert compute_domains(records) == ((1991, 1991), (0.0, 1.0))


def test_closest_point_by_year_distance():
    points = (SeriesPoint(1990, 1.0), SeriesPoint(1991, 2.0), SeriesPoint(1995, 3.0))

    assert closest_point(points, 1992.8).year == 1991
    assert closest_point(points, 1993.2).year == 1995
    assert closest_point(points, 1994).year == 1995
    # ties keep the earliest point
    assert closest_point(points, 1990.5).year == 1990


def test_closest_point_skips_undefined_values():
    points = (SeriesPoint(1990, 1.0), SeriesPoint(1991, float("nan")))

    assert closest_point(points, 1991).year == 1990
    assert closest_point((SeriesPoint(2000, float("nan")),), 2000) is None


def test_hover_summary_text(emissions_store):
    series = build_series(filter_records(emissions_store, _all(emissions_store)))[0]

    text = hover_summary(series, series.points[1])

    assert text.splitlines() == ["Germany", "Energy", "Year: 1991", "Emissions: 90.5"]


# ---------------- Stacked bars ----------------

def test_example_totals_and_offsets(disaster_store):
    summaries = summarize_years(disaster_store, "Global", year_min=1995, year_max=1996)

    assert [(s.year, s.total) for s in summaries] == [(1995, 3), (1996, 4)]
    layout = stack_layout(summaries, ["Wildfire", "Storm"])
    assert [(seg.category, seg.y0, seg.y1) for seg in layout[1996]] == [("Wildfire", 0, 1), ("Storm", 1, 4)]


def test_segment_heights_sum_to_total(disaster_store):
    summaries = summarize_years(disaster_store, "Global")
    layout = stack_layout(summaries, disaster_store.categories)

    for s in summaries:
        assert sum(seg.height for seg in layout[s.year]) == s.total
        assert layout[s.year][-1].y1 == s.total


def test_year_window_and_hidden_types(disaster_store):
    summaries = summarize_years(disaster_store, "Global", hidden=["Storm"])

    # 1990 is outside the default window
    assert [s.year for s in summaries] == [1995, 1996, 1997]
    assert [s.total for s in summaries] == [2, 1, 3]
    assert all(s.counts["Storm"] == 0 for s in summaries)


def test_sort_modes(disaster_store):
    summaries = summarize_years(disaster_store, "Global")

    assert [s.year for s in sort_summaries(summaries, "year")] == [1995, 1996, 1997]
    assert [s.year for s in sort_summaries(summaries, "asc")] == [1995, 1997, 1996]
    assert [s.year for s in sort_summaries(summaries, "desc")] == [1996, 1995, 1997]
    with pytest.raises(ValueError):
        sort_summaries(summaries, "total")


def test_year_mode_is_strictly_increasing(disaster_store):
    shuffled = list(reversed(summarize_years(disaster_store, "Global")))

    years = [s.year for s in sort_summaries(shuffled, "year")]

    assert all(a < b for a, b in zip(years, years[1:]))


def test_percent_change():
    values = {1995: 200.0, 1996: 220.0, 1997: 0.0, 1998: 5.0, 2001: float("nan"), 2002: 1.0}

    assert percent_change(values, 1996) == pytest.approx(10.0)
    assert percent_change(values, 1997) == pytest.approx(-100.0)
    assert percent_change(values, 1995) is None
    assert percent_change(values, 1998) is None
    assert percent_change(values, 2002) is None
    assert percent_change(values, 2010) is None


def test_co2_series_and_sparkline(disaster_store):
    series = co2_series(disaster_store, "Global")

    assert series == [(1995, 200.0), (1996, 220.0), (1997, 0.0)]
    spark = sparkline(series, 1996)
    assert spark.marker == (1996, 220.0)
    assert sparkline(series, 2010).marker is None
    assert sparkline([], 1996) is None


def test_tooltip_text(disaster_store):
    summaries = {s.year: s for s in summarize_years(disaster_store, "Global")}
    values = dict(co2_series(disaster_store, "Global"))

    assert tooltip_text(summaries[1996], "Global", values).splitlines() == [
        "1996 — Global",
        "CO₂ (production): 220.0 Mt",
        "Total disasters: 4",
        "Δ vs prev: +10.0%",
    ]
    first = tooltip_text(summaries[1995], "Global", values)
    assert "Δ" not in first


def test_tooltip_without_co2(disaster_store):
    (summary,) = summarize_years(disaster_store, "Africa")

    assert "CO₂ (production): N/A" in tooltip_text(summary, "Africa", {})


# ---------------- Reconciliation ----------------

def test_reconcile_enter_update_exit():
    plan = reconcile(["a", "b", "c"], ["b", "d"])

    assert plan.enter == ["d"]
    assert plan.update == ["b"]
    assert plan.exit == ["a", "c"]
    assert plan.order == ["b", "d"]


def test_reconcile_delays_follow_displacement():
    plan = reconcile([1995, 1996, 1997], [1996, 1995, 1997, 1998], delay_step=12)

    assert plan.delays == {1996: 12, 1995: 12, 1997: 0, 1998: 36}


def test_reconcile_rejects_duplicate_keys():
    with pytest.raises(ValueError):
        reconcile([], ["a", "a"])
