"""
alarmdash Command Line Interface (CLI)
=====================================

Interactive terminal front end for the dashboard:

    python -m alarmdash.cli --alarms data/alarms-splitted.csv \
        --brigades data/brigades-splitted.csv --topology data/bezirke_95_topo.json

It loads the three sources once, then lets you change the month/district
selection and prints the summaries that the map and the charts would show.
Data files are never modified.
"""

from __future__ import annotations
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence
import argparse
import logging
import shlex
import sys

from .config import LOG_LEVEL, DashboardConfig
from .engine import Dashboard, DashboardView, LoadStatus
from .errors import AlarmDashError
from .models import AggregateEntry

HELP = """
Commands:
  help
  stats
  month <1-12>                     (example: month 3)
  district "<District>"            (example: district "Innere Stadt")
  reset                            (show all districts again)
  undo
  redo

  show [types|brigades|durations|days|districts|all]
  export json "<out.json>"         (all summaries of the current view)
  export csv "<out.csv>"           (filtered alarms)
  report "<out.docx>"
  quit
"""

SECTIONS = ("types", "brigades", "durations", "days", "districts")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="alarmdash", description="Fire alarm dashboard (terminal)")
    ap.add_argument("--topology", help="Path to the district TopoJSON file")
    ap.add_argument("--alarms", help="Path to the alarms table (.csv or .xlsx)")
    ap.add_argument("--brigades", help="Path to the brigades table (.csv or .xlsx)")
    ap.add_argument("--month", type=int, default=1, choices=range(1, 13), metavar="{1..12}",
                    help="Initial month (1-12)")
    ap.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default: %(default)s)")
    return ap


def config_from_args(args: argparse.Namespace) -> DashboardConfig:
    config = DashboardConfig(initial_month=args.month)
    overrides = {}
    if args.topology: overrides["topology_path"] = Path(args.topology)
    if args.alarms: overrides["alarms_path"] = Path(args.alarms)
    if args.brigades: overrides["brigades_path"] = Path(args.brigades)
    return replace(config, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the CLI.

    1) Load dataset (all three sources)
    2) Stop with exit code 1 if loading failed
    3) Start an interactive REPL
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    dashboard = Dashboard(config=config_from_args(args))
    print("Loading dataset...")
    if dashboard.load() is LoadStatus.FAILED:
        print("Loading failed:", file=sys.stderr)
        for failure in dashboard.failures:
            print(f"  {failure} ({failure.path})", file=sys.stderr)
        return 1

    data = dashboard.data
    print(f"Loaded {len(data.alarms)} alarms, {len(data.brigades)} brigade deployments, "
          f"{len(data.topology.district_names)} districts. Type 'help' for commands.")
    while True:
        try:
            line = input("alarmdash> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue
        if line.lower() in ("quit", "exit"):
            break
        try:
            handle(dashboard, line)
        except (AlarmDashError, ValueError, OSError, ImportError) as e:
            print(f"Error: {e}")
    return 0


def handle(dashboard: Dashboard, line: str) -> None:
    """Handle one CLI command line.

    This parses the command and calls the appropriate dashboard method.
    """
    parts = shlex.split(line)
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        _print_stats(dashboard)
        return

    if cmd == "month":
        if len(parts) < 2:
            raise ValueError("Usage: month <1-12>")
        view = dashboard.set_month(int(parts[1]))
        print(f"Month={view.selection.month}. Alarms={len(view.alarms)}")
        return

    if cmd == "district":
        if len(parts) < 2:
            raise ValueError('Usage: district "<District>"')
        name = " ".join(parts[1:])
        if dashboard.data and name not in dashboard.data.topology.district_names:
            print(f"Note: {name!r} is not a district on the map.")
        view = dashboard.select_district(name)
        print(f"District={name}. Alarms={len(view.alarms)}")
        return

    if cmd == "reset":
        view = dashboard.reset_district()
        print(f"District filter cleared. Alarms={len(view.alarms)}")
        return

    if cmd == "undo":
        print("Undone." if dashboard.undo() else "Nothing to undo.")
        return

    if cmd == "redo":
        print("Redone." if dashboard.redo() else "Nothing to redo.")
        return

    if cmd == "show":
        what = parts[1].lower() if len(parts) >= 2 else "all"
        if what != "all" and what not in SECTIONS:
            raise ValueError(f"show must be one of: {', '.join(SECTIONS)}, all")
        _print_view(dashboard.view, what)
        return

    if cmd == "export":
        if len(parts) < 3:
            print('Usage: export json "out.json"  OR  export csv "out.csv"')
            return
        fmt, out_path = parts[1].lower(), parts[2]
        if fmt == "csv":
            dashboard.export_csv(out_path)
            print(f"Exported CSV to {out_path}")
            return
        if fmt == "json":
            dashboard.export_json(out_path)
            print(f"Exported JSON to {out_path}")
            return
        print("Unknown export format. Use: csv or json")
        return

    if cmd == "report":
        from .report import generate_docx_report
        if len(parts) < 2:
            raise ValueError('Usage: report "<out.docx>"')
        generate_docx_report(dashboard.view, parts[1])
        print(f"Report written to {parts[1]}")
        return

    print("Unknown command. Type 'help'.")


def _print_stats(dashboard: Dashboard) -> None:
    view = dashboard.view
    sel = view.selection
    print(f"Month: {sel.month} | District: {sel.district or 'all'}")
    print(f"Alarms: {len(view.alarms)} | Brigade deployments: {len(view.brigades)}")
    print(f"Districts with alarms: {len(view.district_counts)} | Not on map: {len(view.unmapped_districts)}")
    print(f"Colour domain: {view.color_domain[0]}..{view.color_domain[1]}")


def _print_view(view: DashboardView, what: str) -> None:
    if what in ("types", "all"):
        _print_entries("Top alarm types", view.top_alarm_types)
    if what in ("brigades", "all"):
        _print_entries("Most active brigades", view.most_active_brigades)
    if what in ("durations", "all"):
        _print_entries("Average call duration (h)", view.average_call_duration, fmt="{:.2f}")
    if what in ("days", "all"):
        _print_entries("Alarms per day", view.alarms_per_day)
    if what in ("districts", "all"):
        rows = [AggregateEntry(k, v) for k, v in sorted(view.district_counts.items(), key=lambda kv: -kv[1])]
        _print_entries("Alarms per district", rows)
        if view.unmapped_districts:
            print(f"  (not on map: {', '.join(sorted(view.unmapped_districts))})")


def _print_entries(title: str, entries: List[AggregateEntry], fmt: str = "{}") -> None:
    print(f"{title}:")
    if not entries:
        print("  (no data)")
        return
    width = max(len(str(e.key)) for e in entries)
    for e in entries:
        print(f"  {str(e.key).ljust(width)}  {fmt.format(e.value)}")


if __name__ == "__main__":
    sys.exit(main())
