"""
Command-line interface for ReachOut.

Usage:
    reachout --pages 3 --country gb -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from reachout.errors import ReachOutError
from reachout.models import MergePolicy, ScanConfig


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="reachout",
        description="Find contact emails for the employers behind job listings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # First page of UK listings into ./reachout.db
  reachout -v

  # Pages 55-65 of Indian listings, refreshing records that already exist
  reachout --country in --start-page 55 --pages 11 --merge-policy merge

  # Store in MongoDB and export a CSV afterwards (SQLite only)
  REACHOUT_DATABASE_URL=mongodb://localhost/reach-out reachout
  reachout --db ./data/reachout.db --csv ./output/contacts.csv
""",
    )

    # Listing source
    parser.add_argument(
        "--start-page",
        type=int,
        default=1,
        help="First listing page to process (default: 1)",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Number of listing pages to process (default: 1)",
    )
    parser.add_argument(
        "--country",
        default=os.environ.get("REACHOUT_ADZUNA_COUNTRY", "gb"),
        help="Adzuna country code (default: gb)",
    )
    parser.add_argument(
        "--what",
        default="",
        help="Optional keywords to narrow the listing search",
    )
    parser.add_argument(
        "--results-per-page",
        type=int,
        default=20,
        help="Listings per page, max 50 (default: 20)",
    )
    parser.add_argument("--app-id", default=None, help="Adzuna app id (default: $REACHOUT_ADZUNA_APP_ID)")
    parser.add_argument("--app-key", default=None, help="Adzuna app key (default: $REACHOUT_ADZUNA_APP_KEY)")

    # Discovery
    parser.add_argument(
        "--max-candidates",
        type=int,
        default=5,
        help="Candidate websites to try per company (default: 5)",
    )
    parser.add_argument(
        "--search-suffix",
        default="company website",
        help="Text appended to the company name for the web search",
    )

    # Politeness
    parser.add_argument(
        "--min-interval-ms",
        type=int,
        default=1000,
        help="Minimum gap between page fetches in ms (default: 1000)",
    )
    parser.add_argument(
        "--job-delay",
        type=float,
        default=5.0,
        help="Pause between job listings in seconds (default: 5)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=3,
        help="Attempts per request (default: 3)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=15,
        help="Request timeout in seconds (default: 15)",
    )

    # Storage
    parser.add_argument(
        "--db",
        default=os.environ.get("REACHOUT_DATABASE_URL", "reachout.db"),
        help="SQLite path or mongodb:// URL (default: $REACHOUT_DATABASE_URL or reachout.db)",
    )
    parser.add_argument(
        "--merge-policy",
        choices=[p.value for p in MergePolicy],
        default=os.environ.get("REACHOUT_MERGE_POLICY", MergePolicy.SKIP.value),
        help="Existing (company, location) records: skip or merge (default: skip)",
    )
    parser.add_argument(
        "--csv",
        default=None,
        help="Export all stored records to this CSV path after the run (SQLite only)",
    )

    # Verbosity
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print progress messages",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Build ScanConfig from parsed arguments."""
    return ScanConfig(
        start_page=args.start_page,
        max_pages=args.pages,
        results_per_page=args.results_per_page,
        country=args.country,
        what=args.what,
        search_suffix=args.search_suffix,
        max_candidates=args.max_candidates,
        min_interval_ms=args.min_interval_ms,
        max_attempts=args.retries,
        job_delay_s=args.job_delay,
        request_timeout_s=args.timeout,
        merge_policy=MergePolicy.from_text(args.merge_policy),
    )


def configure_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[ReachOut] %(message)s")


async def async_main(args: argparse.Namespace) -> int:
    """Async entry point."""
    from reachout.orchestrator import run_aggregation
    from reachout.providers.adzuna import AdzunaSource
    from reachout.storage import ScanDatabase, open_store

    config = build_config(args)

    if not args.quiet:
        print(f"ReachOut - pages {config.start_page}..{config.start_page + config.max_pages - 1} ({config.country})")
        print(f"  Store: {args.db} (merge policy: {config.merge_policy.value})")
        print()

    try:
        source = AdzunaSource(
            app_id=args.app_id,
            app_key=args.app_key,
            country=config.country,
            results_per_page=config.results_per_page,
            what=config.what,
        )
        store = open_store(args.db, merge_policy=config.merge_policy)
    except ReachOutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        stats = await run_aggregation(config, store, source)

        exported = None
        if args.csv:
            if isinstance(store, ScanDatabase):
                exported = store.export_to_csv(args.csv)
            else:
                print("CSV export is only available for SQLite stores", file=sys.stderr)

        if not args.quiet:
            print()
            print("=" * 50)
            print("Run Summary")
            print("=" * 50)
            print(f"  Pages processed:   {stats.pages_processed}")
            print(f"  Jobs processed:    {stats.jobs_processed}")
            print(f"  With emails:       {stats.records_with_emails}")
            print(f"  Records inserted:  {stats.records_inserted}")
            print(f"  Records updated:   {stats.records_updated}")
            print(f"  Records skipped:   {stats.records_skipped}")
            print(f"  Save errors:       {stats.persistence_errors}")
            if exported is not None:
                print(f"  Exported {exported} records to {args.csv}")

        return 0

    except KeyboardInterrupt:
        if not args.quiet:
            print("\nInterrupted by user")
        return 130

    finally:
        store.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)
    return asyncio.run(async_main(args))


if __name__ == "__main__":
    sys.exit(main())
