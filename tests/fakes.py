"""In-memory stand-ins for clocks, draw sources and observers."""
import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from drawhistory.data_collection.observers import ExtractionObserver
from drawhistory.data_collection.sources import DrawSource, SteppingMode
from drawhistory.lottery.records import DrawRecord, VerboseDrawInfo


class FixedClock:
    """UTC clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args):
        self.now = datetime(*args, tzinfo=timezone.utc)


def make_record(draw_date: date, numbers=(1, 2, 3, 4, 5, 6), bonus: int = 7, **kwargs) -> DrawRecord:
    return DrawRecord(draw_date=draw_date, standard_numbers=tuple(numbers), bonus_number=bonus, **kwargs)


def with_jackpot(record: DrawRecord, amount) -> DrawRecord:
    return DrawRecord(
        draw_date=record.draw_date,
        standard_numbers=record.standard_numbers,
        bonus_number=record.bonus_number,
        verbose_info=VerboseDrawInfo(jackpot_amount=Decimal(amount)),
    )


class FakeDaySource(DrawSource):
    """Serves records from a dict keyed by draw date."""

    name = 'fake-day'
    stepping = SteppingMode.DAY

    def __init__(self, records: Iterable[DrawRecord] = (), reachable: bool = True,
                 errors: Optional[Dict[date, Exception]] = None, supported_series=None):
        super().__init__(min_request_interval=0)
        self.records = {r.draw_date: r for r in records}
        self.reachable = reachable
        self.errors = errors or {}
        self.fetched: List[date] = []
        if supported_series is not None:
            self.supported_series = supported_series

    def fetch(self, series_id, target):
        self.fetched.append(target)
        if target in self.errors:
            raise self.errors[target]
        return self.records.get(target)

    def parse_day(self, payload):
        return payload

    def confirm_reachable(self):
        return self.reachable


class BlockingDaySource(FakeDaySource):
    """Day source whose fetches wait until released."""

    def __init__(self, records=()):
        super().__init__(records)
        self.started = threading.Event()
        self.release = threading.Event()

    def fetch(self, series_id, target):
        self.started.set()
        self.release.wait(5)
        return super().fetch(series_id, target)


class FakeYearSource(DrawSource):
    """Serves all records of a calendar year per fetch."""

    name = 'fake-year'
    stepping = SteppingMode.YEAR

    def __init__(self, records: Iterable[DrawRecord] = (), missing_years: Iterable[int] = ()):
        super().__init__(min_request_interval=0)
        self.records = list(records)
        self.missing_years = set(missing_years)
        self.fetched: List[int] = []

    def fetch(self, series_id, target):
        self.fetched.append(target)
        if target in self.missing_years:
            return None
        found = [r for r in self.records if r.draw_date.year == target]
        return found or None

    def parse_year(self, payload):
        return list(payload)

    def confirm_reachable(self):
        return True


class RecordingObserver(ExtractionObserver):
    """Keeps every event as a tuple, in order."""

    def __init__(self):
        self.events = []
        self.completed = []

    def on_status(self, message, progress, draw_date=None):
        self.events.append(('status', message, progress, draw_date))

    def on_warning(self, message, draw_date=None):
        self.events.append(('warning', message, draw_date))

    def on_error(self, message, draw_date=None, exc=None):
        self.events.append(('error', message, draw_date, exc))

    def on_extraction_complete(self, batch, series_id):
        self.completed.append((batch, series_id))

    def of_kind(self, kind):
        return [e for e in self.events if e[0] == kind]
