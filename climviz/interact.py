"""
Interaction handlers (widgets + pointer events)
===============================================

A handler owns the link between a chart, its `FilterState` and the figure's
event loop:

- checkbox / legend / selector / button callbacks change the FilterState and
  trigger a full re-render
- pointer motion drives the chart's transient hover state (no re-render)

The same public methods (`toggle_entity`, `toggle_category`, `select_region`,
`set_sort_mode`, `undo`, `redo`, ...) are used by the widgets, the CLI REPL
and the tests. After every change the widgets are synced to the selection
with `eventson` switched off, so syncing never re-enters a callback.
"""

from __future__ import annotations
from typing import List, Optional

from matplotlib.widgets import Button, CheckButtons, RadioButtons

from .engine import FilterState, RegionFilterState
from .reconcile import ReconcilePlan
from .render import LineChart, StackedBarChart

SORT_LABELS = {"year": "Chronological", "asc": "Ascending", "desc": "Descending"}
BUTTON_COLOR = "0.85"
BUTTON_ACTIVE_COLOR = "#9ecae1"


def _sync_checks(check: Optional[CheckButtons], labels: List[str], enabled) -> None:
    if check is None:
        return
    check.eventson = False
    try:
        for i, (label, on) in enumerate(zip(labels, check.get_status())):
            if on != (label in enabled):
                check.set_active(i)
    finally:
        check.eventson = True


class _Handler:
    def __init__(self, chart, state: FilterState):
        self.chart = chart
        self.state = state
        self.store = state.store
        self.fig = chart.fig
        self._cids: List[int] = []
        self.last_plan: Optional[ReconcilePlan] = None

    def _connect(self, event: str, callback) -> None:
        self._cids.append(self.fig.canvas.mpl_connect(event, callback))

    def disconnect(self) -> None:
        for cid in self._cids:
            self.fig.canvas.mpl_disconnect(cid)
        self._cids.clear()

    def render(self) -> ReconcilePlan:
        self.last_plan = self.chart.update(self.state.selection)
        self.sync_widgets()
        return self.last_plan

    def sync_widgets(self) -> None:
        raise NotImplementedError

    def _changed(self, changed: bool) -> bool:
        if changed:
            self.render()
        return changed

    # ---------------- Public API ----------------
    def toggle_category(self, category: str) -> bool:
        return self._changed(self.state.toggle_category(category))

    def reset(self) -> bool:
        return self._changed(self.state.reset())

    def undo(self) -> bool:
        return self._changed(self.state.undo())

    def redo(self) -> bool:
        return self._changed(self.state.redo())

    def _on_pick(self, event) -> None:
        category = self.chart.legend_entries.get(event.artist)
        if category is not None:
            self.on_legend_click(category)

    def on_legend_click(self, category: str) -> None:
        self.toggle_category(category)


class LineChartHandler(_Handler):
    """Country checkboxes, clickable industry legend, hover on lines."""

    def __init__(self, chart: LineChart, state: FilterState):
        super().__init__(chart, state)
        self.check_ax = self.fig.add_axes((0.02, 0.14, 0.2, 0.78))
        self.check_ax.set_title("Countries", fontsize=9)
        self.countries = CheckButtons(self.check_ax, self.store.entities,
                                      [e in state.selection.entities for e in self.store.entities])
        self.countries.on_clicked(self._on_country_clicked)

        self._connect("pick_event", self._on_pick)
        if chart.interactive:
            self._connect("motion_notify_event", self._on_motion)
            self._connect("axes_leave_event", self._on_leave)
            self._connect("figure_leave_event", self._on_leave)
        self.render()

    def sync_widgets(self) -> None:
        _sync_checks(self.countries, self.store.entities, self.state.selection.entities)

    def toggle_entity(self, entity: str) -> bool:
        return self._changed(self.state.toggle_entity(entity))

    def only_entity(self, entity: str) -> bool:
        return self._changed(self.state.select_only_entity(entity))

    def hover(self, year: float, key: Optional[str] = None) -> Optional[str]:
        """Hover line `key` (default: the first line on screen) at `year`."""
        key = key if key is not None else next(iter(self.chart.keys), None)
        if key is None:
            return None
        return self.chart.hover(key, year)

    def leave(self) -> None:
        self.chart.leave()

    # ---------------- Callbacks ----------------
    def _on_country_clicked(self, label: str) -> None:
        index = self.store.entities.index(label)
        enabled = self.countries.get_status()[index]
        if enabled != (label in self.state.selection.entities):
            self.toggle_entity(label)

    def _on_motion(self, event) -> None:
        if event.inaxes is not self.chart.ax or event.xdata is None:
            return
        key = self.chart.line_at(event)
        if key is None:
            if self.chart.hovered:
                self.chart.leave()
            return
        self.chart.hover(key, event.xdata)

    def _on_leave(self, event) -> None:
        if self.chart.hovered:
            self.chart.leave()


class StackedChartHandler(_Handler):
    """Type checkboxes + legend, region selector, sort buttons, year hover."""

    def __init__(self, chart: StackedBarChart, state: RegionFilterState):
        super().__init__(chart, state)
        sel = state.selection
        types = self.store.categories

        self.types_ax = self.fig.add_axes((0.02, 0.62, 0.2, 0.30))
        self.types_ax.set_title("Disaster types", fontsize=9)
        self.types = None
        if types:
            self.types = CheckButtons(self.types_ax, types, [t in sel.categories for t in types])
            self.types.on_clicked(self._on_type_clicked)

        self.region_ax = self.fig.add_axes((0.02, 0.14, 0.2, 0.44))
        self.region_ax.set_title("Region", fontsize=9)
        # no selector without regions (empty dataset)
        self.regions = None
        if self.store.entities:
            active = self.store.entities.index(state.active_region) if state.active_region in self.store.entities else 0
            self.regions = RadioButtons(self.region_ax, self.store.entities, active=active)
            self.regions.on_clicked(self.select_region)

        self.sort_buttons = {}
        for i, (mode, label) in enumerate(SORT_LABELS.items()):
            ax = self.fig.add_axes((0.26 + i * 0.12, 0.94, 0.11, 0.05))
            button = Button(ax, label, color=BUTTON_COLOR)
            button.on_clicked(lambda event, mode=mode: self.set_sort_mode(mode))
            self.sort_buttons[mode] = button

        self._connect("pick_event", self._on_pick)
        self._connect("motion_notify_event", self._on_motion)
        self._connect("axes_leave_event", self._on_axes_leave)
        self._connect("figure_leave_event", self._on_figure_leave)
        self.render()

    def sync_widgets(self) -> None:
        sel = self.state.selection
        _sync_checks(self.types, self.store.categories, sel.categories)

        region = self.state.active_region
        if self.regions is not None and region is not None and self.regions.value_selected != region:
            self.regions.eventson = False
            try:
                self.regions.set_active(self.store.entities.index(region))
            finally:
                self.regions.eventson = True

        for mode, button in self.sort_buttons.items():
            color = BUTTON_ACTIVE_COLOR if mode == sel.sort_mode else BUTTON_COLOR
            button.color = color
            button.ax.set_facecolor(color)

    @property
    def active_sort_mode(self) -> str:
        return self.state.selection.sort_mode

    def select_region(self, region: str) -> bool:
        return self._changed(self.state.select_only_entity(region))

    def set_sort_mode(self, mode: str) -> bool:
        return self._changed(self.state.set_sort_mode(mode))

    def hover(self, year: int) -> Optional[str]:
        return self.chart.hover_year(year)

    def leave(self) -> None:
        self.chart.clear_focus()

    def on_legend_click(self, category: str) -> None:
        # flip the checkbox; its callback applies the change
        self.types.set_active(self.store.categories.index(category))

    # ---------------- Callbacks ----------------
    def _on_type_clicked(self, label: str) -> None:
        index = self.store.categories.index(label)
        self._changed(self.state.set_category(label, self.types.get_status()[index]))

    def _on_motion(self, event) -> None:
        if event.inaxes is not self.chart.ax:
            return
        year = self.chart.year_at(event)
        if year is not None:
            if year != self.chart.focus_year:
                self.chart.hover_year(year)
        elif self.chart.focus_year is not None and self.chart.hover_bg.contains(event)[0]:
            self.chart.clear_focus()

    def _on_axes_leave(self, event) -> None:
        if event.inaxes is self.chart.ax and self.chart.focus_year is not None:
            self.chart.clear_focus()

    def _on_figure_leave(self, event) -> None:
        if self.chart.focus_year is not None:
            self.chart.clear_focus()
