#!/usr/bin/env python3
"""
Export sessions to CSV, JSON or Excel.

Usage:
    # Export all sessions to CSV
    python scripts/export_sessions.py --output data/reports/sessions.csv

    # Anonymized Excel export of closed coaching cases
    python scripts/export_sessions.py --output data/reports/coaching.xlsx \\
        --method coaching --closed-only --anonymize

    # JSON without the nested session objects
    python scripts/export_sessions.py --output sessions.json --no-sessions
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from run_report import add_query_arguments, build_query

from notizia.config import get_settings
from notizia.pipeline import setup_logging
from notizia.reporting import (
    SavedQueryStore,
    export_to_csv,
    export_to_excel,
    export_to_json,
    filter_rows,
)
from notizia.storage import StorageError, get_backend

logger = logging.getLogger(__name__)

FORMATS_BY_SUFFIX = {".csv": "csv", ".json": "json", ".xlsx": "excel"}


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Export sessions to CSV, JSON or Excel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/export_sessions.py --output data/reports/sessions.csv
  python scripts/export_sessions.py --output report.xlsx --closed-only --anonymize
        """,
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        required=True,
        help="Output file path (.csv, .json or .xlsx)",
    )
    parser.add_argument(
        "--format",
        "-f",
        choices=["csv", "json", "excel"],
        help="Output format (default: detect from file extension)",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default from settings)",
    )
    add_query_arguments(parser)
    parser.add_argument(
        "--anonymize",
        action="store_true",
        default=None,
        help="Replace client names by 'Client <id>' (default from settings)",
    )
    parser.add_argument(
        "--closed-only",
        action="store_true",
        help="Only export sessions of closed cases",
    )
    parser.add_argument(
        "--no-sessions",
        action="store_true",
        help="JSON only: leave out the nested session objects",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    settings = get_settings()
    anonymize = (
        settings.reporting.anonymize_exports if args.anonymize is None else True
    )

    # Determine format
    export_format = args.format or FORMATS_BY_SUFFIX.get(args.output.suffix.lower())
    if export_format is None:
        logger.error(f"Cannot detect format from '{args.output.suffix}', use --format")
        return 1

    try:
        query = build_query(args, SavedQueryStore(settings.reporting.saved_queries_path))
    except ValueError as e:
        logger.error(str(e))
        return 1

    kwargs = {"db_path": args.db_path} if args.db_path else {}
    try:
        with get_backend("sqlite" if args.db_path else None, **kwargs) as backend:
            backend.initialize()
            rows = filter_rows(backend.list_all_sessions_expanded(), query)
    except StorageError as e:
        logger.error(f"Failed to load sessions: {e}")
        return 1

    print()
    print("📤 Exporting Sessions")
    print("=" * 50)
    print(f"  Query: {query.to_dict()}")
    print(f"  Matching sessions: {len(rows):,}")
    print(f"  Format: {export_format}")
    print(f"  Anonymized: {'yes' if anonymize else 'no'}")
    print(f"  Closed cases only: {'yes' if args.closed_only else 'no'}")
    print()

    if export_format == "csv":
        count = export_to_csv(
            rows, args.output, anonymize=anonymize, closed_only=args.closed_only
        )
    elif export_format == "json":
        count = export_to_json(
            rows,
            args.output,
            anonymize=anonymize,
            closed_only=args.closed_only,
            include_sessions=not args.no_sessions,
        )
    else:
        count = export_to_excel(
            rows, args.output, anonymize=anonymize, closed_only=args.closed_only
        )

    print(f"✅ Exported {count:,} sessions to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
