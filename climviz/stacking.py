"""
Stacked-bar derivations (disasters per year + CO2 overlay)
==========================================================

For one region and a year window:

1) count disasters per year per type (hidden types count as 0)
2) total each year
3) order the years by the active sort mode
4) stack the types: each year gets cumulative (y0, y1) offsets per type

The CO2 series of the same region feeds the tooltip: the value of the hovered
year, its percent change from the previous year, and a small trend sketch.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import math

from .dsa import merge_sort
from .models import SORT_MODES, Sparkline, StackSegment, YearSummary
from .store import DataStore

YEAR_MIN, YEAR_MAX = 1995, 2018


def summarize_years(store: DataStore, region: str, hidden: Iterable[str] = (),
                    year_min: int = YEAR_MIN, year_max: int = YEAR_MAX) -> List[YearSummary]:
    """Per-year subtotals for `region`, chronological."""
    hidden = set(hidden)
    rows = store.select(store.ids_for([region], store.categories, year_min, year_max))

    by_year: Dict[int, Dict[str, int]] = {}
    for r in rows:
        counts = by_year.setdefault(r.year, {t: 0 for t in store.categories})
        counts[r.type] = counts.get(r.type, 0) + r.count

    out: List[YearSummary] = []
    for year in sorted(by_year):
        counts = by_year[year]
        for t in hidden:
            if t in counts:
                counts[t] = 0
        out.append(YearSummary(year=year, counts=counts, total=sum(counts.values())))
    return out


def sort_summaries(summaries: Sequence[YearSummary], mode: str) -> List[YearSummary]:
    """Order bars: "year" chronological, "asc"/"desc" by total (stable)."""
    if mode not in SORT_MODES:
        raise ValueError(f"sort mode must be one of {', '.join(SORT_MODES)} (got {mode!r})")
    chronological = merge_sort(list(summaries), key=lambda s: s.year)
    if mode == "year":
        return chronological
    return merge_sort(chronological, key=lambda s: s.total, reverse=(mode == "desc"))


def stack_layout(summaries: Sequence[YearSummary], categories: Sequence[str]) -> Dict[int, List[StackSegment]]:
    """year -> one segment per category, bottom to top in `categories` order."""
    layout: Dict[int, List[StackSegment]] = {}
    for s in summaries:
        base = 0
        segs: List[StackSegment] = []
        for c in categories:
            top = base + s.counts.get(c, 0)
            segs.append(StackSegment(s.year, c, base, top))
            base = top
        layout[s.year] = segs
    return layout


# ---------------- CO2 overlay ----------------

def co2_series(store: DataStore, region: str,
               year_min: int = YEAR_MIN, year_max: int = YEAR_MAX) -> List[Tuple[int, float]]:
    rows = [r for r in store.co2_for(region) if year_min <= r.year <= year_max]
    return [(r.year, r.emissions_mt) for r in merge_sort(rows, key=lambda r: r.year)]


def percent_change(values: Mapping[int, float], year: int) -> Optional[float]:
    """Change vs. the previous year in percent, or None when it is undefined."""
    cur, prev = values.get(year), values.get(year - 1)
    if not (_finite(cur) and _finite(prev)):
        return None
    try:
        delta = (cur - prev) / prev * 100
    except ZeroDivisionError:
        return None
    return delta if math.isfinite(delta) else None


def sparkline(series: Sequence[Tuple[int, float]], hover_year: Optional[int] = None) -> Optional[Sparkline]:
    if not series:
        return None
    marker = next(((y, v) for y, v in series if y == hover_year), None)
    return Sparkline(points=list(series), marker=marker)


def tooltip_text(summary: YearSummary, region: str, values: Mapping[int, float]) -> str:
    cur = values.get(summary.year)
    lines = [
        f"{summary.year} — {region}",
        f"CO₂ (production): {cur:.1f} Mt" if _finite(cur) else "CO₂ (production): N/A",
        f"Total disasters: {summary.total}",
    ]
    delta = percent_change(values, summary.year)
    if delta is not None:
        lines.append(f"Δ vs prev: {'+' if delta >= 0 else ''}{delta:.1f}%")
    return "\n".join(lines)


def _finite(v) -> bool:
    return v is not None and math.isfinite(v)
