"""
Chart renderers (matplotlib)
============================

Two charts share one idea: keep the artists that are on screen, keyed by a
stable identity, and on every update

1) recompute the derived data from (store, selection)
2) reconcile the wanted keys against the artists already drawn
3) add the new artists, retarget the surviving ones, remove the rest

`LineChart` draws one `Line2D` per (country, industry). With
`interactive=True` it also owns a hover layer: a marker on the nearest point
and a text summary.

`StackedBarChart` draws one group of `Rectangle`s per year (one per disaster
type) for the active region, ordered by the sort mode, with a hover tooltip
carrying the CO2 value of that year and a small trend sketch.

Neither class wires events; see `climviz.interact` for that.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging

from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Patch, Rectangle
from matplotlib.ticker import FormatStrFormatter, MaxNLocator

from .models import DerivedSeries, FilterSelection, SeriesPoint, YearSummary
from .reconcile import ReconcilePlan, reconcile
from .series import build_series, closest_point, compute_domains, filter_records, hover_summary
from .stacking import (
    YEAR_MAX, YEAR_MIN, co2_series, sort_summaries, sparkline, stack_layout, summarize_years, tooltip_text,
)
from .store import DataStore

log = logging.getLogger(__name__)


@dataclass
class ChartConfig:
    """Layout and styling knobs shared by both charts."""
    figsize: Tuple[float, float] = (12.0, 6.0)
    # plot area as (left, bottom, width, height) in figure fractions;
    # the left strip is kept free for checkboxes/selectors
    plot_rect: Tuple[float, float, float, float] = (0.26, 0.14, 0.52, 0.78)
    legend_anchor: Tuple[float, float] = (0.80, 0.5)

    line_width: float = 2.5
    highlight_width: float = 4.0

    bar_padding_inner: float = 0.12
    bar_padding_outer: float = 0.04
    dim_alpha: float = 0.3
    # stagger per position a bar group moves when the order changes
    reorder_delay_ms: float = 12.0
    year_min: int = YEAR_MIN
    year_max: int = YEAR_MAX

    faded_alpha: float = 0.25


class _Chart:
    """Figure, plot axes and category legend common to both charts."""

    def __init__(self, store: DataStore, config: Optional[ChartConfig] = None, fig: Optional[Figure] = None):
        self.store = store
        self.config = config or ChartConfig()
        self.fig = fig if fig is not None else Figure(figsize=self.config.figsize)
        self.ax = self.fig.add_axes(self.config.plot_rect)
        self.selection: Optional[FilterSelection] = None
        self.legend = None
        # legend artist (text or handle) -> category, for click handling
        self.legend_entries: Dict[object, str] = {}

    def _draw_legend(self, selection: FilterSelection, handles: List, title: str) -> None:
        if self.legend is not None:
            self.legend.remove()
        labels = list(self.store.categories)
        self.legend = self.fig.legend(handles, labels, loc="center left",
                                      bbox_to_anchor=self.config.legend_anchor, title=title, frameon=False)
        self.legend_entries = {}
        for category, text, handle in zip(labels, self.legend.get_texts(), self.legend.legend_handles):
            enabled = category in selection.categories
            alpha = 1.0 if enabled else self.config.faded_alpha
            text.set_alpha(alpha)
            handle.set_alpha(alpha)
            text.set_picker(True)
            handle.set_picker(True)
            self.legend_entries[text] = category
            self.legend_entries[handle] = category

    def draw_idle(self) -> None:
        self.fig.canvas.draw_idle()

    def save(self, path: str, dpi: int = 150) -> str:
        self.fig.savefig(path, dpi=dpi)
        return path


# ---------------- Line chart ----------------

class LineChart(_Chart):
    """Emissions over time, one line per (country, industry)."""

    def __init__(self, store: DataStore, *, interactive: bool = True,
                 config: Optional[ChartConfig] = None, fig: Optional[Figure] = None):
        super().__init__(store, config, fig)
        self.interactive = interactive
        self._lines: Dict[str, Line2D] = {}
        self._series: Dict[str, DerivedSeries] = {}
        self.hovered: Optional[Tuple[str, SeriesPoint]] = None

        self.ax.set_xlabel("Year")
        self.ax.set_ylabel("Emissions (Million metric tons CO2e)")
        self.ax.xaxis.set_major_locator(MaxNLocator(integer=True))
        self.ax.xaxis.set_major_formatter(FormatStrFormatter("%d"))

        self.marker = None
        self.tooltip = None
        if interactive:
            (self.marker,) = self.ax.plot([], [], "o", markersize=10, markerfacecolor="white",
                                          markeredgecolor="black", markeredgewidth=1.5, zorder=5, visible=False)
            self.tooltip = self.ax.annotate("", xy=(0, 0), xytext=(14, -28), textcoords="offset points",
                                            bbox=dict(boxstyle="round", fc="white", ec="#999999"),
                                            zorder=6, visible=False)

    @property
    def keys(self) -> List[str]:
        return list(self._lines)

    @property
    def series(self) -> List[DerivedSeries]:
        return [self._series[k] for k in self._lines]

    def line(self, key: str) -> Line2D:
        return self._lines[key]

    def update(self, selection: FilterSelection) -> ReconcilePlan:
        self.selection = selection
        records = filter_records(self.store, selection)
        series = build_series(records)
        plan = reconcile(self.keys, [s.key for s in series])

        for key in plan.exit:
            if self.hovered and self.hovered[0] == key:
                self.leave()
            self._lines.pop(key).remove()
            self._series.pop(key)

        if records:
            (x0, x1), (y0, y1) = compute_domains(records)
            if x0 == x1:
                x0, x1 = x0 - 0.5, x1 + 0.5
            self.ax.set_xlim(x0, x1)
            self.ax.set_ylim(y0, y1)

        for s in series:
            xs = [p.year for p in s.points]
            ys = [p.value for p in s.points]
            color = self.store.color(s.category)
            line = self._lines.get(s.key)
            if line is None:
                # nan values leave gaps in the line
                (line,) = self.ax.plot(xs, ys, color=color, linewidth=self.config.line_width,
                                       label=s.key, gid=s.key)
                self._lines[s.key] = line
            else:
                line.set_data(xs, ys)
                line.set_color(color)
            self._series[s.key] = s

        handles = [Line2D([], [], color=self.store.color(c), linewidth=self.config.line_width)
                   for c in self.store.categories]
        self._draw_legend(selection, handles, "Industry")
        log.debug("line chart: +%d ~%d -%d", len(plan.enter), len(plan.update), len(plan.exit))
        self.draw_idle()
        return plan

    # ---------------- Hover layer ----------------
    def hover(self, key: str, x: float) -> Optional[str]:
        """Mark the point of line `key` closest to year `x` and return its summary."""
        if not self.interactive:
            return None
        series = self._series.get(key)
        point = closest_point(series.points, x) if series else None
        if point is None:
            self.leave()
            return None
        if self.hovered and self.hovered[0] != key:
            self._lines[self.hovered[0]].set_linewidth(self.config.line_width)
        self._lines[key].set_linewidth(self.config.highlight_width)

        text = hover_summary(series, point)
        self.marker.set_data([point.year], [point.value])
        self.marker.set_visible(True)
        self.tooltip.xy = (point.year, point.value)
        self.tooltip.set_text(text)
        self.tooltip.set_visible(True)
        self.hovered = (key, point)
        self.draw_idle()
        return text

    def leave(self) -> None:
        if not self.interactive:
            return
        if self.hovered and self.hovered[0] in self._lines:
            self._lines[self.hovered[0]].set_linewidth(self.config.line_width)
        self.hovered = None
        self.marker.set_visible(False)
        self.tooltip.set_visible(False)
        self.draw_idle()

    def line_at(self, event) -> Optional[str]:
        """Key of the line under a mouse event, if any."""
        for key, line in self._lines.items():
            if line.contains(event)[0]:
                return key
        return None


# ---------------- Stacked bar chart ----------------

class StackedBarChart(_Chart):
    """Disasters per year for one region, stacked by type."""

    def __init__(self, store: DataStore, *, config: Optional[ChartConfig] = None, fig: Optional[Figure] = None):
        super().__init__(store, config, fig)
        self._groups: Dict[int, Dict[str, Rectangle]] = {}
        self._order: List[int] = []
        self._summaries: Dict[int, YearSummary] = {}
        self._co2: List[Tuple[int, float]] = []
        self.region: Optional[str] = None
        self.delays: Dict[int, float] = {}
        self.focus_year: Optional[int] = None

        self.ax.set_ylabel("# of disasters")
        # transparent capture region under the bars; pointer here clears the focus
        self.hover_bg = Rectangle((0, 0), 1, 1, transform=self.ax.transAxes, facecolor="none",
                                  edgecolor="none", zorder=0)
        self.ax.add_patch(self.hover_bg)

        self.tooltip = self.ax.annotate("", xy=(0, 0), xytext=(14, 14), textcoords="offset points",
                                        bbox=dict(boxstyle="round", fc="white", ec="#999999"),
                                        zorder=6, visible=False, annotation_clip=False)
        self.spark_ax = self.fig.add_axes((0.80, 0.06, 0.18, 0.12))
        self.spark_ax.set_visible(False)

    @property
    def years(self) -> List[int]:
        """Years on screen, left to right."""
        return list(self._order)

    @property
    def summaries(self) -> List[YearSummary]:
        return [self._summaries[y] for y in self._order]

    def segments(self, year: int) -> Dict[str, Rectangle]:
        return self._groups[year]

    def update(self, selection: FilterSelection) -> ReconcilePlan:
        cfg = self.config
        self.selection = selection
        self.region = next(iter(selection.entities), None)
        hidden = [c for c in self.store.categories if c not in selection.categories]

        data: List[YearSummary] = []
        if self.region is not None:
            data = summarize_years(self.store, self.region, hidden, cfg.year_min, cfg.year_max)
        data = sort_summaries(data, selection.sort_mode)
        years = [s.year for s in data]
        layout = stack_layout(data, self.store.categories)

        plan = reconcile(self._order, years, delay_step=cfg.reorder_delay_ms)
        for year in plan.exit:
            for rect in self._groups.pop(year).values():
                rect.remove()
            self._summaries.pop(year, None)

        width = 1.0 - cfg.bar_padding_inner
        for i, s in enumerate(data):
            rects = self._groups.setdefault(s.year, {})
            for seg in layout[s.year]:
                rect = rects.get(seg.category)
                if rect is None:
                    rect = Rectangle((i - width / 2, seg.y0), width, seg.height,
                                     facecolor=self.store.color(seg.category), zorder=2,
                                     gid=f"{s.year}:{seg.category}")
                    self.ax.add_patch(rect)
                    rects[seg.category] = rect
                else:
                    rect.set_xy((i - width / 2, seg.y0))
                    rect.set_width(width)
                    rect.set_height(seg.height)
            self._summaries[s.year] = s
        self._order = years
        self.delays = plan.delays

        outer = cfg.bar_padding_outer
        self.ax.set_xlim(-0.5 - outer, max(len(years), 1) - 0.5 + outer)
        self.ax.set_xticks(range(len(years)), [str(y) for y in years], rotation=90)
        y_max = max((s.total for s in data), default=0) or 1
        self.ax.set_ylim(0, MaxNLocator().tick_values(0, y_max)[-1])
        self.ax.set_title(self.region or "")

        self._co2 = co2_series(self.store, self.region, cfg.year_min, cfg.year_max) if self.region else []

        handles = [Patch(facecolor=self.store.color(c)) for c in self.store.categories]
        self._draw_legend(selection, handles, "Disaster type")

        if self.focus_year in self._summaries:
            self.hover_year(self.focus_year)
        else:
            self.clear_focus()
        log.debug("bar chart %s/%s: +%d ~%d -%d", self.region, selection.sort_mode,
                  len(plan.enter), len(plan.update), len(plan.exit))
        self.draw_idle()
        return plan

    # ---------------- Hover layer ----------------
    def hover_year(self, year: int) -> Optional[str]:
        """Dim every other year and show the tooltip + CO2 trend for `year`."""
        summary = self._summaries.get(year)
        if summary is None:
            self.clear_focus()
            return None
        for y, rects in self._groups.items():
            alpha = 1.0 if y == year else self.config.dim_alpha
            for rect in rects.values():
                rect.set_alpha(alpha)

        values = dict(self._co2)
        text = tooltip_text(summary, self.region, values)
        self.tooltip.xy = (self._order.index(year), summary.total)
        self.tooltip.set_text(text)
        self.tooltip.set_visible(True)
        self._draw_sparkline(year)
        self.focus_year = year
        self.draw_idle()
        return text

    def _draw_sparkline(self, year: int) -> None:
        ax = self.spark_ax
        ax.clear()
        spark = sparkline(self._co2, year)
        if spark is None:
            ax.set_visible(False)
            return
        xs = [p[0] for p in spark.points]
        ys = [p[1] for p in spark.points]
        ax.plot(xs, ys, color="#6b7280", linewidth=1.5)
        if spark.marker is not None:
            ax.plot([spark.marker[0]], [spark.marker[1]], "o", color="#333333", markersize=4)
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_title(f"CO₂ (production) trend — {self.region}", fontsize=8)
        ax.set_visible(True)

    def clear_focus(self) -> None:
        for rects in self._groups.values():
            for rect in rects.values():
                rect.set_alpha(1.0)
        self.tooltip.set_visible(False)
        self.spark_ax.set_visible(False)
        self.focus_year = None
        self.draw_idle()

    def year_at(self, event) -> Optional[int]:
        """Year of the bar group under a mouse event, if any."""
        for year, rects in self._groups.items():
            if any(r.contains(event)[0] for r in rects.values()):
                return year
        return None
