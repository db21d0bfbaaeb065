"""
Extraction orchestrator.

Walks a series' draw calendar backwards from a stop date towards a start
date, fetching each draw (or each year of draws) from a DrawSource and
merging the results into the series' ResultStore as it goes.

Day-stepping runs stop early after a run of consecutive failed fetches,
which usually means the walk went past the oldest draw the source knows
about. Year-stepping runs never stop early.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..config import Config
from ..errors import DrawSourceError, ExtractionInProgressError, StoreLockError
from ..lottery.calendar import DrawCalendar
from ..lottery.records import DateLike, DrawRecord, normalize_draw_date
from ..lottery.store import ResultStore
from .observers import ExtractionObserver, LoggingObserver
from .sources import DrawSource, SteppingMode

logger = logging.getLogger(__name__)


class ExtractionState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAULTED = 'faulted'


class FailureKind(Enum):
    """Why a run ended faulted."""

    # The source answers but ran out of history
    SOURCE_EXHAUSTED = 'source_exhausted'
    # The source did not answer; worth retrying later
    SOURCE_UNREACHABLE = 'source_unreachable'


@dataclass
class ExtractionResult:
    """Everything a single run produced."""

    series_id: str
    state: ExtractionState = ExtractionState.RUNNING
    batch: Dict[date, DrawRecord] = field(default_factory=dict)
    missing_dates: List[date] = field(default_factory=list)
    missing_years: List[int] = field(default_factory=list)
    unmerged: List[DrawRecord] = field(default_factory=list)
    fail_count: int = 0
    consecutive_fails: int = 0
    failure: Optional[FailureKind] = None
    inferred_first_draw_date: Optional[date] = None
    cancelled: bool = False

    @property
    def records(self) -> List[DrawRecord]:
        return [self.batch[d] for d in sorted(self.batch)]


class ExtractionOrchestrator:
    """Runs extractions for one series, one at a time.

    Args:
        series_id: Identifier passed to the source on every fetch
        calendar: The series' draw calendar
        store: The series' result store
        source: Where draws are fetched from
        consecutive_fail_limit: Consecutive failed fetches that end a day-stepping run
    """

    def __init__(self, series_id: str, calendar: DrawCalendar, store: ResultStore, source: DrawSource,
                 consecutive_fail_limit: Optional[int] = None):
        self.series_id = series_id
        self.calendar = calendar
        self.store = store
        self.source = source
        self.consecutive_fail_limit = consecutive_fail_limit or Config.CONSECUTIVE_FAIL_LIMIT

        self._state = ExtractionState.IDLE
        self._state_lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def state(self) -> ExtractionState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is ExtractionState.RUNNING

    def request_stop(self):
        """Ask an active run to stop once its current fetch completes."""
        self._stop_requested.set()

    def run(self, start: DateLike, stop: DateLike,
            observer: Optional[ExtractionObserver] = None) -> ExtractionResult:
        """Run an extraction on the calling thread.

        Raises:
            ExtractionInProgressError: If a run is already active
        """
        self._begin()
        return self._execute(start, stop, observer)

    def start(self, start: DateLike, stop: DateLike,
              observer: Optional[ExtractionObserver] = None) -> 'Future[ExtractionResult]':
        """Run an extraction on a background worker.

        Raises:
            ExtractionInProgressError: If a run is already active
        """
        self._begin()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"extract-{self.series_id}")
        return self._executor.submit(self._execute, start, stop, observer)

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _begin(self):
        with self._state_lock:
            if self._state is ExtractionState.RUNNING:
                raise ExtractionInProgressError(f"An extraction for {self.series_id} is already running")
            self._state = ExtractionState.RUNNING
        self._stop_requested.clear()

    def _finish(self, state: ExtractionState):
        with self._state_lock:
            self._state = state

    def _execute(self, start: DateLike, stop: DateLike,
                 observer: Optional[ExtractionObserver]) -> ExtractionResult:
        observer = observer or LoggingObserver(self.series_id)
        result = ExtractionResult(self.series_id)
        start = normalize_draw_date(start)
        stop = normalize_draw_date(stop)

        try:
            observer.on_status("Extraction started", 0.0)
            logger.info(f"Extracting {self.series_id} from {stop} back to {start} "
                        f"({self.source.stepping.value} stepping via {self.source.name})")

            if self.source.stepping is SteppingMode.DAY:
                exhausted = self._walk_days(start, stop, result, observer)
            else:
                self._walk_years(start, stop, result, observer)
                exhausted = False

            if exhausted:
                self._handle_exhaustion(result, observer)
            else:
                result.state = ExtractionState.COMPLETED
                observer.on_status("Extraction complete", 1.0)
                observer.on_extraction_complete(dict(result.batch), self.series_id)
        except Exception:
            logger.exception(f"Extraction for {self.series_id} failed unexpectedly")
            result.state = ExtractionState.FAULTED
            raise
        finally:
            self._finish(result.state)

        logger.info(f"Extraction for {self.series_id} ended {result.state.value}: "
                    f"{len(result.batch)} draws, {result.fail_count} failures")
        return result

    def _walk_days(self, start: date, stop: date, result: ExtractionResult,
                   observer: ExtractionObserver) -> bool:
        """Fetch one draw date at a time, newest first.

        Returns:
            True if the run stopped on the consecutive-fail limit
        """
        calendar = self.calendar
        first_date, adjusted = calendar.clamp_start(start)
        if adjusted:
            observer.on_warning(
                f"Start date {start} is before the first recorded draw; adjusted to {first_date}", first_date)

        current = calendar.most_recent_draw_date_that_happened(stop, include_same_day=True)
        total = calendar.count_draws_between(first_date, current)
        steps = 0

        while current >= first_date:
            if self._stop_requested.is_set():
                result.cancelled = True
                observer.on_warning("Extraction stopped on request", current)
                break

            # Never fetch draws that have not posted yet
            if calendar.has_draw_happened_yet(current) is not True:
                break

            progress = min(1.0, (steps + 1) / total) if total else 0.0
            label = current.strftime('%b %d, %Y')

            record = self.store.try_get_if_draw_completed(current, calendar)
            if record is not None:
                result.batch[current] = record
                result.consecutive_fails = 0
                observer.on_status(f"Found stored draw from {label}", progress, current)
            else:
                record, error = self._fetch_day(current)
                if record is not None:
                    self._merge([record], result, observer, current)
                    result.batch[record.draw_date] = record
                    result.consecutive_fails = 0
                    observer.on_status(f"Extracted draw from {label}", progress, current)
                else:
                    message = f"Unable to extract draw for {label}"
                    result.missing_dates.append(current)
                    result.fail_count += 1
                    result.consecutive_fails += 1
                    observer.on_error(message, current, error)
                    observer.on_status(message, progress, current)
                    if result.consecutive_fails >= self.consecutive_fail_limit:
                        return True

            steps += 1
            current = calendar.previous_draw_day(current)

        return False

    def _walk_years(self, start: date, stop: date, result: ExtractionResult,
                    observer: ExtractionObserver):
        """Fetch one calendar year at a time, newest first."""
        calendar = self.calendar
        first_year = start.year
        first_recorded = calendar.config.first_recorded_draw_date
        if first_recorded is not None and first_recorded.year > first_year:
            first_year = first_recorded.year
            observer.on_warning(
                f"Start year {start.year} is before the first recorded draw; starting at {first_year}",
                first_recorded)

        last_year = min(stop.year, calendar.today().year)
        total = last_year - first_year + 1

        for step, year in enumerate(range(last_year, first_year - 1, -1)):
            if self._stop_requested.is_set():
                result.cancelled = True
                observer.on_warning("Extraction stopped on request", date(year, 1, 1))
                break

            progress = min(1.0, (step + 1) / total)
            records, error = self._fetch_year(year)
            if records:
                self._merge(records, result, observer, date(year, 1, 1))
                for record in records:
                    result.batch[record.draw_date] = record
                observer.on_status(f"Extracted {len(records)} draws from year {year}", progress, date(year, 1, 1))
            else:
                result.missing_years.append(year)
                result.fail_count += 1
                observer.on_error(f"Unable to extract draws for the year {year}", date(year, 1, 1), error)

    def _fetch_day(self, draw_date: date) -> Tuple[Optional[DrawRecord], Optional[Exception]]:
        self.source.throttle.wait()
        try:
            payload = self.source.fetch(self.series_id, draw_date)
            if payload is None:
                return None, None
            return self.source.parse_day(payload), None
        except (DrawSourceError, ValueError) as e:
            logger.warning(f"Fetch for {draw_date} failed: {e}")
            return None, e

    def _fetch_year(self, year: int) -> Tuple[Optional[List[DrawRecord]], Optional[Exception]]:
        self.source.throttle.wait()
        try:
            payload = self.source.fetch(self.series_id, year)
            if payload is None:
                return None, None
            return self.source.parse_year(payload), None
        except (DrawSourceError, ValueError) as e:
            logger.warning(f"Fetch for year {year} failed: {e}")
            return None, e

    def _merge(self, records: List[DrawRecord], result: ExtractionResult,
               observer: ExtractionObserver, draw_date: date):
        try:
            self.store.merge(records)
        except StoreLockError as e:
            result.unmerged.extend(records)
            observer.on_error(f"Could not merge {len(records)} draws into the store", draw_date, e)

    def _handle_exhaustion(self, result: ExtractionResult, observer: ExtractionObserver):
        last_date = result.missing_dates[-1] if result.missing_dates else None
        try:
            reachable = self.source.confirm_reachable()
        except Exception as e:
            logger.warning(f"Reachability check for {self.source.name} failed: {e}")
            reachable = False

        result.state = ExtractionState.FAULTED
        if not reachable:
            result.failure = FailureKind.SOURCE_UNREACHABLE
            observer.on_error(
                f"Extraction stopped after {result.consecutive_fails} consecutive failures; "
                f"{self.source.name} is unreachable", last_date)
            return

        result.failure = FailureKind.SOURCE_EXHAUSTED
        if self.calendar.config.first_recorded_draw_date is None and result.batch:
            earliest = min(result.batch)
            self.calendar = self.calendar.with_first_recorded_draw_date(earliest)
            result.inferred_first_draw_date = earliest
            observer.on_warning(
                f"Extraction stopped after {result.consecutive_fails} consecutive failures. "
                f"The first recorded draw date was never set, so it was set to {earliest}", earliest)
        else:
            observer.on_error(
                f"Extraction stopped after {result.consecutive_fails} consecutive failures", last_date)
