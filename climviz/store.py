"""
DataStore (records + universes + indices)
=========================================

The store is built once, right after loading, and never changes afterwards.

It holds:
- the immutable records
- the *universes*: every entity (country / region) and category
  (industry / disaster type) seen at load time. Selections are validated
  against these.
- a stable category -> colour mapping
- simple indices (value -> sorted list of record ids) so that filtering is an
  intersection of sorted lists instead of a scan.
"""

from __future__ import annotations
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from matplotlib import colormaps
from matplotlib.colors import to_hex

from .dsa import intersect_sorted, union_sorted
from .models import Co2Record, DisasterRecord, EmissionRecord

GLOBAL_REGION = "Global"

DISASTER_COLORS = {
    "Wildfire": "#b30000",
    "Storm": "#7b3294",
    "Drought": "#f57c00",
    "Flood": "#2c7bb6",
    "Extreme temperature": "#660000",
    "Landslide": "#1b5e20",
}
FALLBACK_COLOR = "#888888"


def category10(categories: Sequence[str]) -> Dict[str, str]:
    """Ordinal colour scale over matplotlib's tab10 (same palette as category10)."""
    cmap = colormaps["tab10"]
    return {c: to_hex(cmap(i % cmap.N)) for i, c in enumerate(categories)}


def disaster_palette(types: Sequence[str]) -> Dict[str, str]:
    return {t: DISASTER_COLORS.get(t, FALLBACK_COLOR) for t in types}


def _unique(values: Iterable[str]) -> List[str]:
    """Distinct values in first-appearance order."""
    return list(dict.fromkeys(values))


def _region_order(geo: str):
    # "Global" always first, the rest alphabetical
    return (geo != GLOBAL_REGION, geo)


@dataclass
class DataStore:
    """In-memory dataset for one chart."""
    records: List
    entities: List[str]
    categories: List[str]
    colors: Dict[str, str]
    co2: List[Co2Record] = field(default_factory=list)

    by_entity: Dict[str, List[int]] = field(init=False)
    by_category: Dict[str, List[int]] = field(init=False)
    year_to_ids: Dict[int, List[int]] = field(init=False)
    years_sorted: List[int] = field(init=False)

    def __post_init__(self) -> None:
        by_entity: Dict[str, List[int]] = {}
        by_category: Dict[str, List[int]] = {}
        year_to_ids: Dict[int, List[int]] = {}

        # ids are appended in increasing order, so every list is already sorted
        for i, r in enumerate(self.records):
            by_entity.setdefault(r.entity, []).append(i)
            by_category.setdefault(r.category, []).append(i)
            year_to_ids.setdefault(r.year, []).append(i)

        self.by_entity = by_entity
        self.by_category = by_category
        self.year_to_ids = year_to_ids
        self.years_sorted = sorted(year_to_ids)

    # ---------------- Construction ----------------
    @classmethod
    def from_emissions(cls, records: List[EmissionRecord]) -> "DataStore":
        """Countries sorted; industries keep first-appearance order (colour domain)."""
        countries = sorted(_unique(r.country for r in records))
        industries = _unique(r.industry for r in records)
        return cls(records=list(records), entities=countries, categories=industries, colors=category10(industries))

    @classmethod
    def from_disasters(cls, records: List[DisasterRecord], co2: Optional[List[Co2Record]] = None) -> "DataStore":
        geos = sorted(_unique(r.geo for r in records), key=_region_order)
        types = sorted(_unique(r.type for r in records))
        return cls(records=list(records), entities=geos, categories=types,
                   colors=disaster_palette(types), co2=list(co2 or []))

    # ---------------- Lookups ----------------
    def default_region(self) -> Optional[str]:
        if GLOBAL_REGION in self.entities:
            return GLOBAL_REGION
        return self.entities[0] if self.entities else None

    def color(self, category: str) -> str:
        return self.colors.get(category, FALLBACK_COLOR)

    def year_range_ids(self, y1: int, y2: int) -> List[int]:
        """Sorted record ids with year in [y1, y2] (binary search over years)."""
        lo = bisect_left(self.years_sorted, y1)
        hi = bisect_right(self.years_sorted, y2)
        out: List[int] = []
        for y in self.years_sorted[lo:hi]:
            out.extend(self.year_to_ids[y])
        out.sort()
        return out

    def ids_for(self, entities: Iterable[str], categories: Iterable[str],
                y1: Optional[int] = None, y2: Optional[int] = None) -> List[int]:
        """Record ids matching any of `entities` AND any of `categories` (AND the year window)."""
        ent_ids: List[int] = []
        for e in entities:
            ent_ids = union_sorted(ent_ids, self.by_entity.get(e, []))
        cat_ids: List[int] = []
        for c in categories:
            cat_ids = union_sorted(cat_ids, self.by_category.get(c, []))
        ids = intersect_sorted(ent_ids, cat_ids)
        if y1 is not None or y2 is not None:
            lo = y1 if y1 is not None else (self.years_sorted[0] if self.years_sorted else 0)
            hi = y2 if y2 is not None else (self.years_sorted[-1] if self.years_sorted else 0)
            ids = intersect_sorted(ids, self.year_range_ids(lo, hi))
        return ids

    def select(self, ids: Iterable[int]) -> List:
        return [self.records[i] for i in ids]

    def co2_for(self, region: str) -> List[Co2Record]:
        return [r for r in self.co2 if r.geo == region]
