"""
Line-chart derivations
======================

Everything the line chart draws is recomputed from (store, selection):

1) filter the records to the enabled countries and industries
2) group them by country, then industry (first-appearance order)
3) sort each group's points by year
4) derive the shared axis domains from the filtered set

Nothing here touches matplotlib, so the chart logic can be tested without a
figure.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import math

import numpy as np

from .models import DerivedSeries, EmissionRecord, FilterSelection, SeriesPoint
from .store import DataStore


def filter_records(store: DataStore, selection: FilterSelection) -> List[EmissionRecord]:
    ids = store.ids_for(selection.entities, selection.categories)
    return store.select(ids)


def build_series(records: Sequence[EmissionRecord]) -> List[DerivedSeries]:
    """One series per (country, industry) pair present in `records`."""
    groups: Dict[str, Dict[str, List[SeriesPoint]]] = {}
    for r in records:
        groups.setdefault(r.country, {}).setdefault(r.industry, []).append(SeriesPoint(r.year, r.emissions))

    out: List[DerivedSeries] = []
    for country, industries in groups.items():
        for industry, points in industries.items():
            points.sort(key=lambda p: p.year)
            out.append(DerivedSeries(country, industry, tuple(points)))
    return out


def compute_domains(records: Sequence[EmissionRecord]) -> Tuple[Tuple[int, int], Tuple[float, float]]:
    """x = year extent, y = 0 .. max emissions (1 when there is no usable max)."""
    years = np.array([r.year for r in records])
    values = np.array([r.emissions for r in records], dtype=float)
    values = values[np.isfinite(values)]
    y_max = float(values.max()) if values.size else 0.0
    return (int(years.min()), int(years.max())), (0.0, y_max or 1.0)


def closest_point(points: Sequence[SeriesPoint], x: float) -> Optional[SeriesPoint]:
    """Defined point whose year is nearest to `x`; the earliest wins ties."""
    best: Optional[SeriesPoint] = None
    for p in points:
        if not _defined(p.value):
            continue
        if best is None or abs(p.year - x) < abs(best.year - x):
            best = p
    return best


def hover_summary(series: DerivedSeries, point: SeriesPoint) -> str:
    return (
        f"{series.entity}\n"
        f"{series.category}\n"
        f"Year: {point.year}\n"
        f"Emissions: {point.value:.1f}"
    )


def _defined(v: float) -> bool:
    return v is not None and not math.isnan(v)
