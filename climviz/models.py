"""
Data model (records + selection)
================================

Each row of an input file becomes one immutable record:

- `EmissionRecord`  (Country, Industry, Year, Emissions) for the line chart
- `DisasterRecord`  (geo, type, year, count) for the stacked bars
- `Co2Record`       (geo, year, emissions_mt) for the CO2 overlay

Records are `frozen=True`; charts never edit data, they only select from it.

`FilterSelection` is the value object that replaces the mutable "selected
countries / visible industries" sets: every toggle returns a *new* selection,
and the renderer receives the selection explicitly.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, List, Mapping, Optional, Tuple

SORT_MODES = ("year", "asc", "desc")


@dataclass(frozen=True)
class EmissionRecord:
    """One (country, industry, year) emissions observation."""
    country: str
    industry: str
    year: int
    # Million metric tons CO2e; nan when the cell was not a number
    emissions: float

    @property
    def entity(self) -> str:
        return self.country

    @property
    def category(self) -> str:
        return self.industry


@dataclass(frozen=True)
class DisasterRecord:
    """Number of disasters of one type in one region and year."""
    geo: str
    type: str
    year: int
    count: int

    @property
    def entity(self) -> str:
        return self.geo

    @property
    def category(self) -> str:
        return self.type


@dataclass(frozen=True)
class Co2Record:
    geo: str
    year: int
    emissions_mt: float


@dataclass(frozen=True)
class FilterSelection:
    """Currently enabled entities/categories plus the bar sort mode.

    The stacked-bar chart uses exactly one entity (the active region).
    """
    entities: FrozenSet[str]
    categories: FrozenSet[str]
    sort_mode: str = "year"

    def __post_init__(self) -> None:
        if self.sort_mode not in SORT_MODES:
            raise ValueError(f"sort mode must be one of {', '.join(SORT_MODES)} (got {self.sort_mode!r})")

    @classmethod
    def of(cls, entities: Iterable[str], categories: Iterable[str], sort_mode: str = "year") -> "FilterSelection":
        return cls(frozenset(entities), frozenset(categories), sort_mode)

    def toggle_entity(self, entity: str) -> "FilterSelection":
        return replace(self, entities=_toggled(self.entities, entity))

    def toggle_category(self, category: str) -> "FilterSelection":
        return replace(self, categories=_toggled(self.categories, category))

    def with_entities(self, entities: Iterable[str]) -> "FilterSelection":
        return replace(self, entities=frozenset(entities))

    def with_sort_mode(self, mode: str) -> "FilterSelection":
        return replace(self, sort_mode=mode)

    def includes(self, entity: str, category: str) -> bool:
        return entity in self.entities and category in self.categories


def _toggled(values: FrozenSet[str], value: str) -> FrozenSet[str]:
    return values - {value} if value in values else values | {value}


# ---------------- Derived values (recomputed on every update) ----------------

@dataclass(frozen=True)
class SeriesPoint:
    year: int
    value: float


@dataclass(frozen=True)
class DerivedSeries:
    """One polyline: the points of a single (entity, category) pair, by year."""
    entity: str
    category: str
    points: Tuple[SeriesPoint, ...]

    @property
    def key(self) -> str:
        return f"{self.entity}_{self.category}"


@dataclass(frozen=True)
class YearSummary:
    """Per-category subtotals for one year (hidden categories already zeroed)."""
    year: int
    counts: Mapping[str, int]
    total: int


@dataclass(frozen=True)
class StackSegment:
    year: int
    category: str
    y0: float
    y1: float

    @property
    def height(self) -> float:
        return self.y1 - self.y0


@dataclass(frozen=True)
class Sparkline:
    """Geometry of the tooltip trend sketch (data coordinates)."""
    points: List[Tuple[int, float]]
    marker: Optional[Tuple[int, float]]
