"""Export the data behind the chart currently on screen (CSV / JSON)."""

from __future__ import annotations
from typing import Dict, List
import csv
import json
import math

from .render import LineChart, StackedBarChart


def chart_rows(chart) -> List[Dict[str, object]]:
    """Flat rows: one per drawn point (lines) or per year (bars)."""
    if isinstance(chart, StackedBarChart):
        rows = []
        for s in chart.summaries:
            row: Dict[str, object] = {"geo": chart.region, "year": s.year}
            row.update({c: s.counts.get(c, 0) for c in chart.store.categories})
            row["total"] = s.total
            rows.append(row)
        return rows
    if isinstance(chart, LineChart):
        return [
            {
                "country": s.entity,
                "industry": s.category,
                "year": p.year,
                # JSON has no nan
                "emissions": p.value if math.isfinite(p.value) else None,
            }
            for s in chart.series
            for p in s.points
        ]
    raise TypeError(f"unsupported chart: {type(chart).__name__}")


def export_csv(chart, path: str) -> int:
    rows = chart_rows(chart)
    if not rows:
        raise ValueError("Nothing to export: the chart is empty.")
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0]))
        w.writeheader()
        w.writerows(rows)
    return len(rows)


def export_json(chart, path: str) -> int:
    rows = chart_rows(chart)
    if not rows:
        raise ValueError("Nothing to export: the chart is empty.")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rows, f, ensure_ascii=False, indent=2)
    return len(rows)
