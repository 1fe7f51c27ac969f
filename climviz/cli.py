"""
climviz Command Line Interface (CLI)
====================================

Run one of the two charts:

    climviz lines --csv ghg_emissions.csv
    climviz disasters --disasters disasters_prepped.json --co2 co2_prepped.json

With `--show` the matplotlib window opens and the chart is driven with the
mouse (checkboxes, legend, region selector, sort buttons, hover).

Without `--show` an interactive prompt (REPL) drives the same handler, which
is handy on a headless machine: change the selection with commands, then
`save` a PNG, `export` the numbers or write a DOCX `report`.
"""

from __future__ import annotations
import argparse, shlex
from dataclasses import dataclass
from typing import List, Optional, Union

from . import __version__
from .engine import FilterState, RegionFilterState
from .interact import LineChartHandler, StackedChartHandler
from .loader import load_co2_json, load_disasters_json, load_emissions_table
from .render import ChartConfig, LineChart, StackedBarChart
from .stacking import YEAR_MAX, YEAR_MIN
from .store import DataStore

HELP = """
Commands:
  help
  stats
  values entities|categories [prefix]

  toggle entity "<Country>"          (line chart)
  toggle category "<Industry|Type>"
  only "<Country>"                   (line chart: show just this country)
  region "<Region>"                  (disaster chart)
  sort year|asc|desc                 (disaster chart)

  hover <year> ["<Country>_<Industry>"]
  leave

  undo
  redo
  reset

  export csv|json "<path>"
  save "<path.png>"
  report "<path.docx>"
  quit
"""

# commands that do not change what is drawn; kept out of the command log
_READ_ONLY = ("help", "stats", "values", "quit", "exit", "save", "export", "report")


@dataclass
class Session:
    """One loaded dataset with its chart, filter state and handler."""
    kind: str
    store: DataStore
    state: FilterState
    chart: Union[LineChart, StackedBarChart]
    handler: Union[LineChartHandler, StackedChartHandler]
    source: str = ""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="climviz", description="Interactive emissions and disaster charts.")
    ap.add_argument("--version", action="version", version=f"climviz {__version__}")
    sub = ap.add_subparsers(dest="chart", required=True)

    lines = sub.add_parser("lines", help="Emissions by country and industry (line chart)")
    lines.add_argument("--csv", required=True, help="Path/URL of the Country,Industry,Year,Emissions table (.csv or .xlsx)")
    lines.add_argument("--static", action="store_true", help="Disable the hover marker and tooltip")

    bars = sub.add_parser("disasters", help="Disasters per year with CO2 overlay (stacked bars)")
    bars.add_argument("--disasters", required=True, help="Path/URL of the disaster counts JSON")
    bars.add_argument("--co2", required=True, help="Path/URL of the CO2 emissions JSON")
    bars.add_argument("--region", default=None, help="Initial region (default: Global)")
    bars.add_argument("--years", nargs=2, type=int, metavar=("Y1", "Y2"), default=[YEAR_MIN, YEAR_MAX],
                      help="Year window (inclusive)")
    bars.add_argument("--sort", choices=("year", "asc", "desc"), default="year")

    for p in (lines, bars):
        p.add_argument("--show", action="store_true", help="Open the interactive matplotlib window")
    return ap


def open_session(args: argparse.Namespace, fig=None) -> Session:
    """Load the dataset named by `args` and render the initial chart."""
    if args.chart == "lines":
        store = DataStore.from_emissions(load_emissions_table(args.csv))
        state = FilterState(store=store)
        chart = LineChart(store, interactive=not args.static, fig=fig)
        handler = LineChartHandler(chart, state)
        return Session("lines", store, state, chart, handler, source=args.csv)

    store = DataStore.from_disasters(load_disasters_json(args.disasters), load_co2_json(args.co2))
    state = RegionFilterState(store=store, region=args.region)
    if args.sort != "year":
        state.set_sort_mode(args.sort)
    config = ChartConfig(year_min=args.years[0], year_max=args.years[1])
    chart = StackedBarChart(store, config=config, fig=fig)
    handler = StackedChartHandler(chart, state)
    return Session("disasters", store, state, chart, handler, source=args.disasters)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the climviz CLI.

    1) Load dataset
    2) Render the initial chart
    3) Open the window (--show) or start an interactive REPL
    """
    args = build_parser().parse_args(argv)

    fig = None
    if args.show:
        import matplotlib.pyplot as plt
        fig = plt.figure(figsize=ChartConfig().figsize)

    print("Loading dataset...")
    session = open_session(args, fig)
    print(f"Loaded {len(session.store.records)} records. Type 'help' for commands.")

    if args.show:
        plt.show()
        return 0

    while True:
        try:
            line = input("climviz> ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("quit", "exit"):
            break
        if stripped.split()[0].lower() not in _READ_ONLY:
            session.state.command_log.append(stripped)
        try:
            handle(session, stripped)
        except Exception as e:
            print(f"Error: {e}")
    return 0


def handle(session: Session, line: str) -> None:
    """Handle one REPL command line."""
    parts = shlex.split(line)
    cmd = parts[0].lower()
    h = session.handler

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        _print_stats(session)
        return

    if cmd == "values":
        field = parts[1].lower() if len(parts) >= 2 else ""
        if field in ("entities", "entity", "countries", "regions"):
            vals = list(session.store.entities)
        elif field in ("categories", "category", "industries", "types"):
            vals = list(session.store.categories)
        else:
            raise ValueError("values field must be: entities | categories")
        if len(parts) >= 3:
            p = parts[2].lower()
            vals = [v for v in vals if v.lower().startswith(p)]
        for v in vals[:50]:
            print(v)
        if len(vals) > 50:
            print(f"... ({len(vals)} total, showing 50)")
        return

    if cmd == "toggle":
        if len(parts) < 3:
            raise ValueError('usage: toggle entity|category "<name>"')
        kind, name = parts[1].lower(), parts[2]
        if kind in ("entity", "country"):
            if session.kind != "lines":
                raise ValueError('the disaster chart shows one region; use: region "<Region>"')
            changed = h.toggle_entity(name)
        elif kind in ("category", "industry", "type"):
            changed = h.toggle_category(name)
        else:
            raise ValueError("toggle kind must be: entity | category")
        print(f"Toggled {name}." if changed else "No change.")
        _print_stats(session)
        return

    if cmd == "only":
        if session.kind != "lines":
            raise ValueError("'only' applies to the line chart")
        h.only_entity(parts[1])
        _print_stats(session)
        return

    if cmd == "region":
        if session.kind != "disasters":
            raise ValueError("'region' applies to the disaster chart")
        h.select_region(parts[1])
        _print_stats(session)
        return

    if cmd == "sort":
        if session.kind != "disasters":
            raise ValueError("'sort' applies to the disaster chart")
        h.set_sort_mode(parts[1].lower())
        print("Order: " + " ".join(str(y) for y in session.chart.years))
        return

    if cmd == "hover":
        year = float(parts[1])
        if session.kind == "lines":
            text = h.hover(year, parts[2] if len(parts) >= 3 else None)
        else:
            text = h.hover(int(year))
        print(text if text else "Nothing under the pointer.")
        return

    if cmd == "leave":
        h.leave()
        return

    if cmd == "undo":
        print("Undone." if h.undo() else "Nothing to undo.")
        return

    if cmd == "redo":
        print("Redone." if h.redo() else "Nothing to redo.")
        return

    if cmd == "reset":
        h.reset()
        print("Selection reset.")
        return

    if cmd == "save":
        path = session.chart.save(parts[1])
        print(f"Chart written to {path}")
        return

    if cmd == "export":
        # export csv "out.csv"  |  export json "out.json"
        if len(parts) < 3:
            print('Usage: export csv "out.csv"  OR  export json "out.json"')
            return
        from .export import export_csv, export_json
        fmt, out_path = parts[1].lower(), parts[2]
        if fmt == "csv":
            n = export_csv(session.chart, out_path)
        elif fmt == "json":
            n = export_json(session.chart, out_path)
        else:
            print("Unknown export format. Use: csv or json")
            return
        print(f"Exported {n} rows to {out_path}")
        return

    if cmd == "report":
        from .report import ReportConfig, generate_docx_report
        title = "Greenhouse-gas emissions" if session.kind == "lines" else "Natural disasters and CO₂"
        cfg = ReportConfig(title=title, subtitle=f"climviz {session.kind} chart",
                           dataset_name=session.source, command_log=session.state.command_log)
        generate_docx_report(session.chart, parts[1], config=cfg)
        print(f"Report written to {parts[1]}")
        return

    print("Unknown command. Type 'help'.")


def _print_stats(session: Session) -> None:
    sel = session.state.selection
    store = session.store
    if session.kind == "lines":
        print(f"Lines: {len(session.chart.keys)} | Countries: {len(sel.entities)}/{len(store.entities)}"
              f" | Industries: {len(sel.categories)}/{len(store.categories)}")
    else:
        hidden = session.state.hidden_categories
        print(f"Region: {session.state.active_region} | Years: {len(session.chart.years)} | Sort: {sel.sort_mode}"
              f" | Hidden types: {', '.join(hidden) or 'none'}")


if __name__ == "__main__":
    raise SystemExit(main())
