"""
climviz package
===============

Interactive climate charts: greenhouse-gas emissions per country/industry
(line chart) and natural disasters per year with a CO2 overlay (stacked bars).

- The CLI entry point is in `climviz/cli.py`.
- Derived data (filtering, grouping, stacking, sorting) lives in
  `climviz/series.py` and `climviz/stacking.py`.
- The matplotlib charts are in `climviz/render.py`, their widgets and pointer
  events in `climviz/interact.py`.
- Dataset loading is in `climviz/loader.py`.
"""

__version__ = '0.3.0'
