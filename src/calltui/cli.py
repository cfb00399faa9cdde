"""Command line entry point.

Usage:
    calltui <trace.atf> [-f FIELDS] [--tid TIDS] [-r START~END] [--kernel-only] [--dump]
"""

from __future__ import annotations

import argparse
import curses
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from .config import TuiOptions, parse_tids, parse_time_range
from .dashboard import HELP, Dashboard
from .errors import CallTuiError, ConfigError
from .fields import setup_fields
from .ingest import load_trace
from .log import setup_logging
from .screen import CursesScreen

logger = logging.getLogger(__name__)

def _argument(convert):
    def parse(text: str):
        try:
            return convert(text)
        except ConfigError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None
    return parse

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calltui",
        description="Interactive call graph and function report for ATF call traces",
        epilog=f"keys: {HELP}",
    )
    parser.add_argument("trace", help="Path to the .atf trace file")
    parser.add_argument("-f", "--output-fields", default=None,
                        help="Graph columns: total,self,addr; '+' prefix adds to the default; 'none' hides all")
    parser.add_argument("--tid", dest="tids", type=_argument(parse_tids), default=None,
                        help="Only read records of these threads (comma separated)")
    parser.add_argument("-r", "--time-range", type=_argument(parse_time_range), default=None,
                        help="Only read records in START~END (ns, or with us/ms/s units); either side may be empty")
    parser.add_argument("--kernel-only", action="store_true", help="Show kernel functions only")
    parser.add_argument("--kernel-skip-out", action="store_true",
                        help="Skip kernel functions called outside of user functions")
    parser.add_argument("--event-skip-out", action="store_true",
                        help="Skip events recorded outside of user functions")
    parser.add_argument("--dump", action="store_true",
                        help="Print the graphs and the report instead of starting the dashboard")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    parser.add_argument("--log-file", default=None, help="Write a debug log to this file")
    return parser

def parse_options(argv: Optional[List[str]] = None) -> TuiOptions:
    args = build_parser().parse_args(argv)
    return TuiOptions(
        trace=Path(args.trace),
        output_fields=args.output_fields,
        kernel_only=args.kernel_only,
        kernel_skip_out=args.kernel_skip_out,
        event_skip_out=args.event_skip_out,
        tids=args.tids,
        time_range=args.time_range,
        verbose=args.verbose,
        log_file=args.log_file,
        dump=args.dump,
    )

def _interactive(dashboard: Dashboard, stdscr) -> None:
    try:
        dashboard.run(CursesScreen(stdscr))
    except KeyboardInterrupt:
        pass

def main(argv: Optional[List[str]] = None) -> int:
    options = parse_options(argv)
    setup_logging(options.verbose, options.log_file)

    try:
        fields = setup_fields(options.output_fields)
        trace = load_trace(options)
    except CallTuiError as exc:
        print(f"calltui: {exc}", file=sys.stderr)
        return 1

    dashboard = Dashboard(trace.graphs, trace.report, fields, trace.name)

    if options.dump or not os.isatty(1):
        dashboard.dump(sys.stdout, shutil.get_terminal_size().columns)
        return 0

    curses.wrapper(lambda stdscr: _interactive(dashboard, stdscr))
    return 0

if __name__ == "__main__":
    sys.exit(main())
