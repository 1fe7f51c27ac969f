"""
Filter state (selection + history)
==================================

The chart never reads global sets. Instead a `FilterState` owns the current
`FilterSelection` value and every interaction goes through it:

1) validate the request against the universes computed at load time
2) push the old selection onto the undo stack
3) swap in the new (immutable) selection

The renderer then receives `state.selection` explicitly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import SORT_MODES, FilterSelection
from .store import DataStore


class UnknownValueError(ValueError):
    """A selection referred to a country/industry/region/type that is not in the data."""


@dataclass
class FilterState:
    """Mutable holder of the current selection for one chart."""
    store: DataStore
    selection: FilterSelection = field(init=False)
    # REPL commands that produced the current view (for reports)
    command_log: List[str] = field(default_factory=list)

    _undo: List[FilterSelection] = field(default_factory=list, init=False)
    _redo: List[FilterSelection] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.selection = self.initial_selection()

    def initial_selection(self) -> FilterSelection:
        """Everything enabled."""
        return FilterSelection.of(self.store.entities, self.store.categories)

    # ---------------- History (Stacks) ----------------
    def _apply(self, new: FilterSelection) -> bool:
        if new == self.selection:
            return False
        self._undo.append(self.selection)
        self._redo.clear()
        self.selection = new
        return True

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self.selection)
        self.selection = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self.selection)
        self.selection = self._redo.pop()
        return True

    # ---------------- Changes ----------------
    def reset(self) -> bool:
        return self._apply(self.initial_selection())

    def toggle_entity(self, entity: str) -> bool:
        self._check(entity, self.store.entities, "entity")
        return self._apply(self.selection.toggle_entity(entity))

    def toggle_category(self, category: str) -> bool:
        self._check(category, self.store.categories, "category")
        return self._apply(self.selection.toggle_category(category))

    def set_category(self, category: str, enabled: bool) -> bool:
        self._check(category, self.store.categories, "category")
        if (category in self.selection.categories) == enabled:
            return False
        return self._apply(self.selection.toggle_category(category))

    def set_entities(self, entities: Iterable[str]) -> bool:
        entities = list(entities)
        for e in entities:
            self._check(e, self.store.entities, "entity")
        return self._apply(self.selection.with_entities(entities))

    def select_only_entity(self, entity: str) -> bool:
        return self.set_entities([entity])

    def set_sort_mode(self, mode: str) -> bool:
        if mode not in SORT_MODES:
            raise ValueError(f"sort mode must be one of {', '.join(SORT_MODES)} (got {mode!r})")
        return self._apply(self.selection.with_sort_mode(mode))

    @staticmethod
    def _check(value: str, universe: List[str], what: str) -> None:
        if value not in universe:
            raise UnknownValueError(f"unknown {what}: {value!r}")


@dataclass
class RegionFilterState(FilterState):
    """Filter state of the stacked-bar chart: exactly one active region."""
    region: Optional[str] = None

    def initial_selection(self) -> FilterSelection:
        region = self.region if self.region is not None else self.store.default_region()
        if region is not None and region not in self.store.entities:
            raise UnknownValueError(f"unknown region: {region!r}")
        return FilterSelection.of([region] if region is not None else [], self.store.categories)

    @property
    def active_region(self) -> Optional[str]:
        return next(iter(self.selection.entities), None)

    @property
    def hidden_categories(self) -> List[str]:
        return [c for c in self.store.categories if c not in self.selection.categories]

    def toggle_entity(self, entity: str) -> bool:
        # a region cannot be switched off, only replaced
        return self.select_only_entity(entity)

    def set_entities(self, entities: Iterable[str]) -> bool:
        entities = list(entities)
        if len(entities) != 1:
            raise ValueError("the disaster chart shows exactly one region")
        return super().set_entities(entities)

    def reset(self) -> bool:
        # keep the region the user picked, re-enable every type
        return self._apply(FilterSelection.of(self.selection.entities, self.store.categories,
                                              self.selection.sort_mode))
