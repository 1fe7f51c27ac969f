"""
climviz report generator
------------------------
Writes a DOCX snapshot of the chart currently on screen: the selection that
produced it, the rendered figure, and the derived numbers behind it.

The report reads the chart; it never re-filters the data itself, so what is
in the document is exactly what was drawn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import math
import os
import tempfile

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from .render import LineChart, StackedBarChart


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "climviz chart report"
    subtitle: str = ""
    dataset_name: str = ""
    # How many rows to show in the data table
    max_rows: int = 30
    command_log: Optional[List[str]] = field(default=None)


def _fmt(v: float) -> str:
    return f"{v:.1f}" if v is not None and math.isfinite(v) else "N/A"


def generate_docx_report(chart, out_path: str, *, config: Optional[ReportConfig] = None) -> str:
    """Render `chart` (already updated) into a DOCX at `out_path`."""
    config = config or ReportConfig()
    if chart.selection is None:
        raise ValueError("Chart has not been rendered yet.")

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    p = doc.add_paragraph()
    r = p.add_run(config.title)
    r.bold = True
    r.font.size = Pt(22)
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    if config.subtitle:
        p = doc.add_paragraph()
        r = p.add_run(config.subtitle)
        r.italic = True
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        p.add_run(f"{key}: ").bold = True
        p.add_run(value)

    sel = chart.selection
    if config.dataset_name:
        _kv("Dataset", config.dataset_name)
    if isinstance(chart, StackedBarChart):
        _kv("Region", chart.region or "-")
        _kv("Sort mode", sel.sort_mode)
        hidden = [c for c in chart.store.categories if c not in sel.categories]
        _kv("Hidden types", ", ".join(hidden) or "none")
    else:
        _kv("Countries", ", ".join(e for e in chart.store.entities if e in sel.entities) or "none")
        _kv("Industries", ", ".join(c for c in chart.store.categories if c in sel.categories) or "none")

    # Figure
    doc.add_heading("Chart", level=1)
    with tempfile.TemporaryDirectory(prefix="climviz_report_") as tmpdir:
        png = chart.save(os.path.join(tmpdir, "chart.png"))
        doc.add_picture(png, width=Inches(6.5))

    # Data table
    doc.add_heading("Data", level=1)
    if isinstance(chart, StackedBarChart):
        _year_table(doc, chart, config.max_rows)
    elif isinstance(chart, LineChart):
        _series_table(doc, chart, config.max_rows)

    if config.command_log:
        doc.add_heading("Command log (reproducibility)", level=1)
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    from . import __version__
    doc.add_heading("Reproducibility footer", level=1)
    doc.add_paragraph(f"climviz version: {__version__}")
    doc.add_paragraph(f"Report generated at: {datetime.now().isoformat(timespec='seconds')}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path


def _year_table(doc, chart: StackedBarChart, max_rows: int) -> None:
    categories = chart.store.categories
    t = doc.add_table(rows=1, cols=len(categories) + 2)
    h = t.rows[0].cells
    h[0].text = "Year"
    for i, c in enumerate(categories, start=1):
        h[i].text = c
    h[-1].text = "Total"
    for s in chart.summaries[:max_rows]:
        row = t.add_row().cells
        row[0].text = str(s.year)
        for i, c in enumerate(categories, start=1):
            row[i].text = str(s.counts.get(c, 0))
        row[-1].text = str(s.total)


def _series_table(doc, chart: LineChart, max_rows: int) -> None:
    t = doc.add_table(rows=1, cols=5)
    h = t.rows[0].cells
    h[0].text = "Country"
    h[1].text = "Industry"
    h[2].text = "Years"
    h[3].text = "First"
    h[4].text = "Last"
    for s in chart.series[:max_rows]:
        row = t.add_row().cells
        row[0].text = s.entity
        row[1].text = s.category
        row[2].text = f"{s.points[0].year}-{s.points[-1].year}"
        row[3].text = _fmt(s.points[0].value)
        row[4].text = _fmt(s.points[-1].value)
