"""
The Series aggregate: one tracked lottery.

A Series ties together the calendar, number ranges, result store, draw
source and extraction orchestrator of one lottery. It validates its
configuration up front, normalizes the date ranges callers ask for, answers
single-draw queries and hands snapshots to the statistics functions.
"""
import logging
from concurrent.futures import Future
from datetime import date
from typing import List, Optional, Protocol, Sequence, Tuple

from ..analysis.statistics import (NumberFrequency, PairCoOccurrence, find_duplicate_draws,
                                   number_frequency, pair_co_occurrence)
from ..config import Config, get_preset
from ..data_collection.observers import ExtractionObserver, LoggingObserver
from ..data_collection.orchestrator import ExtractionOrchestrator, ExtractionResult
from ..data_collection.sources import DrawSource, SteppingMode
from ..errors import ConfigurationError, DrawSourceError, StoreLockError
from .calendar import Clock, DrawCalendar
from .records import CalendarConfig, DateLike, DrawRecord, NumberRanges, normalize_draw_date
from .store import MergeSummary, ResultStore

logger = logging.getLogger(__name__)

# Search floor used when a series has no known first draw date
EARLIEST_SEARCH_DATE = date(1900, 1, 1)


class RecordArchive(Protocol):
    """Anything draw records can be loaded from and saved to."""

    def import_records(self) -> Sequence[DrawRecord]:
        ...

    def export_records(self, records: Sequence[DrawRecord]) -> None:
        ...


class Series:
    """One tracked lottery.

    Args:
        series_id: Identifier used with the draw source and the archive
        calendar_config: Weekly draw schedule
        number_ranges: Number pools
        source: Where draws are fetched from
        clock: UTC clock, mainly for tests
        consecutive_fail_limit: Passed on to the orchestrator
        start: Optional default start of the extraction range
        stop: Optional default stop of the extraction range

    Raises:
        ConfigurationError: If the source cannot serve this series, cannot
            parse what its stepping mode fetches, or the default range is inverted
    """

    def __init__(self, series_id: str, calendar_config: CalendarConfig, number_ranges: NumberRanges,
                 source: DrawSource, clock: Optional[Clock] = None,
                 consecutive_fail_limit: Optional[int] = None,
                 start: Optional[DateLike] = None, stop: Optional[DateLike] = None):
        if not source.supports(series_id):
            raise ConfigurationError(f"Source '{source.name}' does not support series '{series_id}'",
                                     details=series_id)
        parse_method = 'parse_day' if source.stepping is SteppingMode.DAY else 'parse_year'
        if getattr(type(source), parse_method) is getattr(DrawSource, parse_method):
            raise ConfigurationError(
                f"Source '{source.name}' steps by {source.stepping.value} but does not implement {parse_method}",
                details=series_id)
        if start is not None and stop is not None and normalize_draw_date(start) > normalize_draw_date(stop):
            raise ConfigurationError(f"Start date {start} is after stop date {stop}",
                                     details=(start, stop))

        self.series_id = series_id
        self.number_ranges = number_ranges
        self.source = source
        self.store = ResultStore(lock_timeout=Config.STORE_LOCK_TIMEOUT)
        self.orchestrator = ExtractionOrchestrator(
            series_id,
            DrawCalendar(calendar_config, clock),
            self.store,
            source,
            consecutive_fail_limit=consecutive_fail_limit,
        )
        self.default_start = normalize_draw_date(start) if start is not None else None
        self.default_stop = normalize_draw_date(stop) if stop is not None else None

    @classmethod
    def from_preset(cls, series_id: str, source: DrawSource, **kwargs) -> 'Series':
        """Build a Series from one of the built-in presets."""
        preset = get_preset(series_id)
        return cls(series_id.lower(), preset.calendar_config(), preset.ranges, source, **kwargs)

    def __repr__(self):
        return f"<Series(id={self.series_id}, draws={len(self.store)})>"

    @property
    def calendar(self) -> DrawCalendar:
        # The orchestrator may replace its calendar when it infers the first draw date
        return self.orchestrator.calendar

    @property
    def calendar_config(self) -> CalendarConfig:
        return self.calendar.config

    def normalize_range(self, start: Optional[DateLike] = None, stop: Optional[DateLike] = None,
                        observer: Optional[ExtractionObserver] = None) -> Tuple[date, date]:
        """Snap a requested date range onto valid, posted draw days.

        Each adjustment is reported through ``observer.on_warning``.

        Returns:
            Tuple of (start, stop)

        Raises:
            ConfigurationError: If the range is inverted after adjustment
        """
        observer = observer or LoggingObserver(self.series_id)
        calendar = self.calendar

        if start is None:
            start = self.default_start
        if start is None:
            start = calendar.config.first_recorded_draw_date or EARLIEST_SEARCH_DATE
        start = normalize_draw_date(start)

        if not calendar.is_draw_day(start):
            adjusted = calendar.next_draw_day(start)
            observer.on_warning(f"Start date {start} is not a draw day; adjusted to {adjusted}", adjusted)
            start = adjusted

        start, clamped = calendar.clamp_start(start)
        if clamped:
            observer.on_warning(f"Start date is before the first recorded draw; adjusted to {start}", start)

        latest = calendar.latest_posted_draw_date()
        if stop is None:
            stop = self.default_stop or latest
        stop = normalize_draw_date(stop)

        if not calendar.is_draw_day(stop):
            adjusted = calendar.previous_draw_day(stop)
            observer.on_warning(f"Stop date {stop} is not a draw day; adjusted to {adjusted}", adjusted)
            stop = adjusted

        if stop > latest:
            observer.on_warning(f"The draw on {stop} has not happened yet; adjusted to {latest}", latest)
            stop = latest

        if start > stop:
            raise ConfigurationError(f"Start date {start} is after stop date {stop}", details=(start, stop))
        return start, stop

    def extract(self, start: Optional[DateLike] = None, stop: Optional[DateLike] = None,
                observer: Optional[ExtractionObserver] = None) -> ExtractionResult:
        """Normalize the range and run an extraction on the calling thread."""
        start, stop = self.normalize_range(start, stop, observer)
        return self.orchestrator.run(start, stop, observer)

    def extract_in_background(self, start: Optional[DateLike] = None, stop: Optional[DateLike] = None,
                              observer: Optional[ExtractionObserver] = None) -> 'Future[ExtractionResult]':
        """Normalize the range and run an extraction on a worker thread."""
        start, stop = self.normalize_range(start, stop, observer)
        return self.orchestrator.start(start, stop, observer)

    def stop_extraction(self):
        self.orchestrator.request_stop()

    def close(self):
        """Stop the background worker and release the source.

        Waits for a running background extraction to end first.
        """
        self.orchestrator.shutdown()
        self.source.close()

    def get_draw(self, value: DateLike, next_if_invalid: bool = False,
                 observer: Optional[ExtractionObserver] = None) -> Optional[DrawRecord]:
        """Look up the draw for one date, fetching it if it is not stored yet.

        Args:
            value: The draw date
            next_if_invalid: Move to the next draw day when ``value`` is not one
            observer: Receives an error when no draw can be returned

        Returns:
            The draw record, or None if the date has no posted draw or the
            source could not provide it
        """
        observer = observer or LoggingObserver(self.series_id)
        calendar = self.calendar
        draw_date = normalize_draw_date(value)

        if not calendar.is_draw_day(draw_date):
            if not next_if_invalid:
                observer.on_error(f"{draw_date} is not a draw day", draw_date)
                return None
            draw_date = calendar.next_draw_day(draw_date)

        if not calendar.has_draw_happened_yet(draw_date):
            observer.on_error(f"The draw on {draw_date} has not happened yet", draw_date)
            return None

        record = self.store.try_get_if_draw_completed(draw_date, calendar)
        if record is not None:
            return record

        self.source.throttle.wait()
        try:
            if self.source.stepping is SteppingMode.DAY:
                payload = self.source.fetch(self.series_id, draw_date)
                records = [self.source.parse_day(payload)] if payload is not None else []
            else:
                payload = self.source.fetch(self.series_id, draw_date.year)
                records = self.source.parse_year(payload) if payload is not None else []
        except (DrawSourceError, ValueError) as e:
            observer.on_error(f"Unable to extract draw for {draw_date}", draw_date, e)
            return None

        records = [r for r in records or [] if r is not None]
        if not records:
            observer.on_error(f"Unable to extract draw for {draw_date}", draw_date)
            return None

        try:
            self.store.merge(records)
        except StoreLockError as e:
            observer.on_error(f"Could not store the draw for {draw_date}", draw_date, e)
            return next((r for r in records if r.draw_date == draw_date), None)

        return self.store.get(draw_date)

    def snapshot(self) -> List[DrawRecord]:
        return self.store.snapshot()

    def number_frequency(self, include_bonus: bool = True) -> NumberFrequency:
        return number_frequency(self.store.snapshot(), self.number_ranges, include_bonus)

    def pair_co_occurrence(self) -> PairCoOccurrence:
        return pair_co_occurrence(self.store.snapshot(), self.number_ranges)

    def find_duplicate_draws(self) -> List[List[DrawRecord]]:
        return find_duplicate_draws(self.store.snapshot())

    def import_records(self, archive: RecordArchive) -> MergeSummary:
        """Merge everything an archive holds into the store."""
        records = list(archive.import_records())
        summary = self.store.merge(records)
        logger.info(f"Imported {len(records)} {self.series_id} draws "
                    f"({summary.inserted} new, {summary.enriched} enriched)")
        return summary

    def export_records(self, archive: RecordArchive) -> int:
        """Write the store's contents to an archive.

        Returns:
            Number of records exported
        """
        records = self.store.snapshot()
        archive.export_records(records)
        logger.info(f"Exported {len(records)} {self.series_id} draws")
        return len(records)
