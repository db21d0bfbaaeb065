#!/usr/bin/env python3
"""
Lottery Draw History Tool

This script initializes the database and provides commands for draw extraction and analysis.
"""
import sys
import logging
import argparse
from datetime import datetime, date
from pathlib import Path
from typing import Optional

# Add project root to Python path
sys.path.append(str(Path(__file__).parent))

from colorama import Fore, Style

from drawhistory.config import Config, SERIES_PRESETS, get_preset
from drawhistory.database import init_db
from drawhistory.errors import DrawHistoryError
from drawhistory.data_collection.observers import CompositeObserver, ExtractionObserver, LoggingObserver
from drawhistory.data_collection.processor import DrawArchive
from drawhistory.data_collection.sample_data_generator import SampleDrawSource
from drawhistory.data_collection.sources import DrawSource
from drawhistory.lottery.series import Series
from drawhistory.analysis.number_analyzer import NumberAnalyzer, TIME_PERIODS
from drawhistory.analysis.visualizer import AnalysisVisualizer

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(Config.LOG_FILE),
        logging.StreamHandler()
    ]
)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

SOURCES = ('sample',)


class ConsoleObserver(ExtractionObserver):
    """Prints extraction progress on a single console line."""

    def on_status(self, message, progress, draw_date=None):
        print(f"\r{Fore.GREEN}[{progress:6.1%}]{Style.RESET_ALL} {message:<60}", end='', flush=True)

    def on_warning(self, message, draw_date=None):
        print(f"\n{Fore.YELLOW}Warning: {message}{Style.RESET_ALL}")

    def on_extraction_complete(self, batch, series_id):
        print(f"\n{Fore.CYAN}Extracted {len(batch)} {series_id} draws{Style.RESET_ALL}")


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def build_source(name: str, series_id: str) -> DrawSource:
    """Create a draw source by name for a preset series."""
    if name == 'sample':
        preset = get_preset(series_id)
        return SampleDrawSource(preset.ranges, first_draw_date=preset.first_draw_date)
    raise DrawHistoryError(code="unknown_source", message=f"Unknown source '{name}'")


def load_series(series_id: str, source_name: str = 'sample') -> Series:
    """Build a preset series and fill its store from the database."""
    init_db()
    series = Series.from_preset(series_id, build_source(source_name, series_id))
    with DrawArchive(series.series_id) as archive:
        series.import_records(archive)
    return series


def initialize_database():
    """Initialize the database with required tables."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully")


def extract_draws(series_id: str, source_name: str, start: Optional[date], stop: Optional[date]):
    """Extract draws for a series and save them to the database.

    Args:
        series_id: Preset series to extract
        source_name: Draw source to fetch from
        start: Oldest draw date to extract, defaults to the first recorded draw
        stop: Newest draw date to extract, defaults to the latest posted draw
    """
    series = load_series(series_id, source_name)
    observer = CompositeObserver([LoggingObserver(series.series_id), ConsoleObserver()])

    try:
        result = series.extract(start, stop, observer)
    finally:
        series.close()

    with DrawArchive(series.series_id) as archive:
        series.export_records(archive)

    print(f"\nExtraction {result.state.value}: {len(result.batch)} draws, {result.fail_count} failures")
    if result.failure is not None:
        print(f"{Fore.RED}Stopped early: {result.failure.value}{Style.RESET_ALL}")
    if result.missing_dates:
        print(f"Missing draws: {', '.join(d.isoformat() for d in result.missing_dates)}")
    if result.unmerged:
        logger.error(f"{len(result.unmerged)} draws could not be merged and were not saved")


def view_latest_draws(series_id: str, limit: int = 10):
    """View the latest draws of a series from the database."""
    logger.info(f"Retrieving the latest {limit} {series_id} draws from the database...")
    init_db()

    with DrawArchive(series_id.lower()) as archive:
        records = archive.import_records()

    if not records:
        logger.info("No draws found in the database")
        return

    latest = list(reversed(records))[:limit]
    AnalysisVisualizer.print_draws(latest, get_preset(series_id).name)
    logger.info(f"Successfully displayed {len(latest)} draws")


def _analyzer(series: Series) -> NumberAnalyzer:
    return NumberAnalyzer(series.snapshot(), series.number_ranges, today=series.calendar.today())


def analyze_numbers(series_id: str, time_period: str, include_bonus: bool = True):
    """Analyze number frequencies of a series for the specified time period.

    Args:
        series_id: Preset series to analyze
        time_period: Time period for analysis ('all', '10years', 'year', '6months', '3months')
        include_bonus: Count bonus numbers drawn from the standard pool
    """
    logger.info(f"Analyzing {series_id} numbers for time period: {time_period}")

    series = load_series(series_id)
    standard_freq, extra_freq = _analyzer(series).analyze_number_frequency(time_period, include_bonus)
    if not standard_freq:
        print("No draws to analyze. Run the extract command first.")
        return

    AnalysisVisualizer.print_frequency_analysis(
        standard_freq, extra_freq, series.number_ranges, get_preset(series_id).name, time_period)


def show_top_pairs(series_id: str):
    """Show the pairs of numbers most often drawn together."""
    series = load_series(series_id)
    AnalysisVisualizer.print_top_pairs(series.pair_co_occurrence().top_pairs, get_preset(series_id).name)


def show_duplicates(series_id: str):
    """Show draws on different dates with identical numbers."""
    series = load_series(series_id)
    AnalysisVisualizer.print_duplicates(series.find_duplicate_draws(), get_preset(series_id).name)


def show_summary(series_id: str, time_period: str):
    """Show the overall analysis summary of a series."""
    series = load_series(series_id)
    summary = _analyzer(series).get_summary(time_period)
    AnalysisVisualizer.print_summary(summary, get_preset(series_id).name)


def main():
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(description="Lottery Draw History Tool")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    series_choices = sorted(SERIES_PRESETS)

    # Initialize database command
    subparsers.add_parser("init", help="Initialize the database")

    # Extraction command
    extract_parser = subparsers.add_parser("extract", help="Extract draws from a source into the database")
    extract_parser.add_argument("--series", choices=series_choices, required=True, help="Lottery series")
    extract_parser.add_argument("--source", choices=SOURCES, default='sample', help="Draw source")
    extract_parser.add_argument("--start", type=parse_date, help="Oldest draw date (YYYY-MM-DD)")
    extract_parser.add_argument("--stop", type=parse_date, help="Newest draw date (YYYY-MM-DD)")

    # View latest draws command
    view_parser = subparsers.add_parser("view", help="View latest draws from database")
    view_parser.add_argument("--series", choices=series_choices, required=True, help="Lottery series")
    view_parser.add_argument("--limit", type=int, default=10, help="Maximum number of draws to display")

    # Analysis commands
    analyze_parser = subparsers.add_parser("analyze", help="Analyze number frequencies")
    analyze_parser.add_argument("--series", choices=series_choices, required=True, help="Lottery series")
    analyze_parser.add_argument("--time-period", type=str, choices=TIME_PERIODS,
                                default='all', help="Time period for analysis")
    analyze_parser.add_argument("--no-bonus", action='store_true', help="Leave bonus numbers out of the counts")

    pairs_parser = subparsers.add_parser("pairs", help="Show numbers most often drawn together")
    pairs_parser.add_argument("--series", choices=series_choices, required=True, help="Lottery series")

    duplicates_parser = subparsers.add_parser("duplicates", help="Show draws that repeated the same numbers")
    duplicates_parser.add_argument("--series", choices=series_choices, required=True, help="Lottery series")

    summary_parser = subparsers.add_parser("summary", help="Show the overall analysis summary")
    summary_parser.add_argument("--series", choices=series_choices, required=True, help="Lottery series")
    summary_parser.add_argument("--time-period", type=str, choices=TIME_PERIODS,
                                default='all', help="Time period for analysis")

    args = parser.parse_args()

    try:
        if args.command == "init":
            initialize_database()
        elif args.command == "extract":
            extract_draws(args.series, args.source, args.start, args.stop)
        elif args.command == "view":
            view_latest_draws(args.series, args.limit)
        elif args.command == "analyze":
            analyze_numbers(args.series, args.time_period, not args.no_bonus)
        elif args.command == "pairs":
            show_top_pairs(args.series)
        elif args.command == "duplicates":
            show_duplicates(args.series)
        elif args.command == "summary":
            show_summary(args.series, args.time_period)
        else:
            parser.print_help()
    except DrawHistoryError as e:
        logger.error(f"{e.code}: {e.message}")
        sys.exit(1)

if __name__ == "__main__":
    main()
