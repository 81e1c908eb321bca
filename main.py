# main.py

"""Entry point for the warehouse_scraper price tracker."""

import argparse
import logging
import sys
from pathlib import Path

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("warehouse_scraper.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="warehouse_scraper",
        description=(
            "Scrape catalog pages and track product price history."
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Print one row per product instead of writing to the store.",
    )
    parser.add_argument(
        "--reverse",
        action="store_true",
        default=False,
        help="Scrape the URL list in reverse order.",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        default=not Settings.HEADLESS,
        help="Show the browser window instead of running headless.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=Settings.PAGE_DELAY,
        help=(
            "Seconds to wait between page scrapes "
            f"(default: {Settings.PAGE_DELAY:.0f})."
        ),
    )
    parser.add_argument(
        "--urls",
        type=Path,
        default=None,
        dest="urls_path",
        help="URL list file (default: urls.txt).",
    )
    parser.add_argument(
        "--history",
        default=None,
        metavar="PRODUCT_ID",
        help="Print the stored price history of a product and exit.",
    )
    parser.add_argument(
        "--chart",
        nargs="+",
        default=None,
        metavar="PRODUCT_ID",
        help="Export a Plotly price chart for one or more products.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Echo INFO log records to the terminal as well as the log file.",
    )
    return parser


def main() -> None:
    """Route to a scrape run, a history lookup or a chart export."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose)
    logger.info("warehouse_scraper starting, log file: %s", log_file)

    from src.cli import runner

    if args.history:
        exit_code = runner.show_price_history(args.history)
    elif args.chart:
        exit_code = runner.run_chart_export(args.chart)
    else:
        exit_code = runner.run_scrape(
            dry_run=args.dry_run,
            reverse=args.reverse,
            headless=not args.headed,
            page_delay=args.delay,
            urls_path=args.urls_path,
        )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
