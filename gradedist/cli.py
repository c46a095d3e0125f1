"""
gradedist command line.

  gradedist download   # dashboard -> data/raw/*.csv (one per period)
  gradedist parse      # data/raw -> data/processed (one row per course)
  gradedist database   # data/processed -> grade_distributions.db
  gradedist all        # the three above, in order
"""

import argparse
import sys

from . import config
from .errors import GradeDistError
from .scraper import fetch_exports
from .scripts import ingest_grades, parse_exports


def parse_periods(raw: str):
    """'0-12' or '0,3,5' -> [0, ...]"""
    out = []
    for part in raw.replace(" ", "").split(","):
        if not part:
            continue
        if "-" in part:
            lo, hi = part.split("-", 1)
            out.extend(range(int(lo), int(hi) + 1))
        else:
            out.append(int(part))
    if not out or any(i < 0 for i in out):
        raise argparse.ArgumentTypeError(f"invalid period list: {raw!r}")
    return out


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gradedist", description="Fetch, aggregate and load grade distributions.")
    p.add_argument("-d", "--debug", action="count", default=0, help="Turn debugging information on")
    p.add_argument("--raw-dir", default=str(config.RAW_DIR), help="Raw export directory (default %(default)s)")
    p.add_argument("--processed-dir", default=str(config.PROCESSED_DIR), help="Aggregated output directory (default %(default)s)")
    p.add_argument("--db", default=str(config.DB_PATH), help="SQLite database path (default %(default)s)")

    sub = p.add_subparsers(dest="command", required=True)
    download = sub.add_parser("download", help="Fetch and download grade distributions")
    download.add_argument("--periods", type=parse_periods,
                          default=list(config.DEFAULT_PERIODS),
                          help="Period indices, e.g. '0-12' or '0,4' (0 = 2010-2011)")
    sub.add_parser("parse", help="Aggregate raw exports into one row per course")
    sub.add_parser("database", help="Create a sqlite3 database from aggregated files")
    everything = sub.add_parser("all", help="Run all commands")
    everything.add_argument("--periods", type=parse_periods, default=list(config.DEFAULT_PERIODS))
    return p


def run_command(args) -> None:
    if args.command in ("download", "all"):
        print("=== Downloading raw exports ===")
        fetch_exports.run(args.periods, args.raw_dir, verbose=args.debug)
    if args.command in ("parse", "all"):
        print("=== Aggregating exports ===")
        parse_exports.parse_export_directory(args.raw_dir, args.processed_dir)
    if args.command in ("database", "all"):
        print("=== Loading database ===")
        ingest_grades.ingest_directory(args.processed_dir, args.db)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run_command(args)
    except GradeDistError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
