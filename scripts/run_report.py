#!/usr/bin/env python3
"""
CLI script to run a practice report over stored sessions.

Usage:
    # Report on every session
    python scripts/run_report.py

    # Coaching sessions of female clients aged 30-44
    python scripts/run_report.py --method coaching --gender w --age-min 30 --age-max 44

    # Clients with at least 3 sessions, with cross-tabulations, as JSON
    python scripts/run_report.py --min-sessions 3 --crosstabs --json

    # Run a saved query and save the current flags under a new name
    python scripts/run_report.py --saved-query "Panik"
    python scripts/run_report.py --problem panic --save-query "Panik"
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from notizia.config import (
    GENDER_LABELS,
    GENDERS,
    METHOD_LABELS,
    METHODS,
    PROBLEM_CATEGORIES,
    PROBLEM_LABELS,
    get_settings,
)
from notizia.pipeline import ReportPipeline, setup_logging
from notizia.reporting import Query, SavedQueryStore


def add_query_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the filter flags shared by the report and export scripts."""
    group = parser.add_argument_group("filters")
    group.add_argument("--gender", choices=GENDERS, help="Client gender")
    group.add_argument("--method", choices=METHODS, help="Session method")
    group.add_argument("--problem", choices=PROBLEM_CATEGORIES, help="Problem category")
    group.add_argument("--age-min", type=int, help="Minimum client age (inclusive)")
    group.add_argument("--age-max", type=int, help="Maximum client age (inclusive)")
    group.add_argument(
        "--min-sessions",
        type=int,
        help="Only clients with at least this many matching sessions",
    )
    group.add_argument(
        "--saved-query",
        help="Start from a saved query; other filter flags override its fields",
    )


def build_query(args: argparse.Namespace, store: SavedQueryStore) -> Query:
    """
    Combine a saved query (if any) with the filter flags.

    Raises:
        ValueError: If the saved query does not exist
    """
    query = Query()
    if args.saved_query:
        saved = store.get(args.saved_query)
        if saved is None:
            raise ValueError(f"No saved query named '{args.saved_query}'")
        query = saved

    overrides = {
        "gender": args.gender,
        "method": args.method,
        "problem": args.problem,
        "age_min": args.age_min,
        "age_max": args.age_max,
        "min_sessions_per_client": args.min_sessions,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(query, **overrides)


def print_report(run, show_crosstabs: bool) -> None:
    """Print a human-readable report summary."""
    result = run.result

    print()
    print("📊 Report")
    print("=" * 50)
    print(f"  Sessions loaded: {run.rows_loaded:,}")
    print(f"  Sessions matched: {run.rows_matched:,}")
    print(f"  Closed cases: {result.closed_cases:,}")
    if result.dur.count:
        print(
            f"  Duration: mean {result.dur.mean:.1f} min, "
            f"median {result.dur.median:.1f} min (n={result.dur.count})"
        )
    if result.sud_delta.count:
        print(
            f"  SUD change: mean {result.sud_delta.mean:.2f}, "
            f"median {result.sud_delta.median:.2f} (n={result.sud_delta.count})"
        )
    if result.unparsed_timestamps:
        print(f"  ⚠️  Sessions without parseable date: {result.unparsed_timestamps}")

    print()
    print("🧭 Sessions by method")
    for entry in result.sessions_by_method:
        label = METHOD_LABELS.get(entry.method, entry.method)
        print(f"  {label:<25} {entry.count:>6,}")

    print()
    print("📅 Sessions by month")
    for entry in result.trend_month:
        print(f"  {entry.key:<10} {entry.count:>6,}")

    print()
    print("👥 Age classes")
    for entry in result.by_age_class:
        print(f"  {entry.label:<10} {entry.count:>6,}")
    print()
    print("⚧ Gender")
    g = result.by_gender
    for code, count in (("w", g.w), ("m", g.m), ("d", g.d)):
        print(f"  {GENDER_LABELS[code]:<10} {count:>6,}")

    if show_crosstabs and run.crosstabs:
        tabs = run.crosstabs
        print()
        print("🧩 Problems")
        for entry in tabs.problem_distribution:
            label = PROBLEM_LABELS.get(entry.key, entry.key)
            print(f"  {label:<25} {entry.count:>6,}")

        print()
        print("🔁 Avg sessions per case (problem × method)")
        for avg in tabs.avg_sessions_per_case:
            print(
                f"  {avg.problem:<15} {avg.method:<22} "
                f"{avg.avg:>5.2f} ({avg.cases} cases)"
            )

        print()
        print("✅ Avg sessions per closed case (method)")
        for avg in tabs.avg_sessions_per_closed_case:
            print(f"  {avg.method:<22} {avg.avg:>5.2f} ({avg.cases} cases)")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run a practice report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_report.py --method coaching --gender w
  python scripts/run_report.py --min-sessions 3 --crosstabs --json
        """,
    )

    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default from settings)",
    )
    add_query_arguments(parser)
    parser.add_argument(
        "--save-query",
        metavar="NAME",
        help="Save the resulting query under this name",
    )
    parser.add_argument(
        "--crosstabs",
        action="store_true",
        help="Include cross-tabulations",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full run result as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    settings = get_settings()
    store = SavedQueryStore(settings.reporting.saved_queries_path)

    try:
        query = build_query(args, store)
    except ValueError as e:
        logger.error(str(e))
        return 1

    if args.save_query:
        store.save(args.save_query, query)

    with ReportPipeline(db_path=args.db_path) as pipeline:
        run = pipeline.run(query, include_crosstabs=args.crosstabs)

    if not run.success:
        print()
        print("❌ Errors:")
        for error in run.errors:
            print(f"  - {error}")
        return 1

    if args.json:
        print(json.dumps(run.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(run, show_crosstabs=args.crosstabs)

    return 0


if __name__ == "__main__":
    sys.exit(main())
