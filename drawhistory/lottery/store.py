import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..errors import StoreLockError
from .calendar import DrawCalendar
from .records import DateLike, DrawRecord, combine_records, normalize_draw_date

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


@dataclass
class MergeSummary:
    """Outcome of a single merge call."""

    inserted: int = 0
    enriched: int = 0
    unchanged: int = 0

    @property
    def changed(self) -> int:
        return self.inserted + self.enriched


class ResultStore:
    """Thread-safe mapping of draw date to draw record.

    Entries are never removed. Records for a date already present are
    combined with the stored one so partial data from one source can be
    filled in by another.
    """

    def __init__(self, lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        self._records: Dict[date, DrawRecord] = {}
        self._lock = threading.Lock()
        self.lock_timeout = lock_timeout

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, value) -> bool:
        with self._lock:
            return normalize_draw_date(value) in self._records

    def get(self, value: DateLike) -> Optional[DrawRecord]:
        with self._lock:
            return self._records.get(normalize_draw_date(value))

    def try_get_if_draw_completed(self, value: DateLike, calendar: DrawCalendar) -> Optional[DrawRecord]:
        """Return a stored record only for a draw day whose draw has taken place."""
        draw_date = normalize_draw_date(value)
        if calendar.has_draw_happened_yet(draw_date) is not True:
            return None
        return self.get(draw_date)

    def merge(self, records: Iterable[DrawRecord], timeout: Optional[float] = None) -> MergeSummary:
        """Merge records into the store.

        Args:
            records: Incoming draw records
            timeout: Seconds to wait for the lock, defaults to ``lock_timeout``

        Returns:
            MergeSummary with counts of inserted, enriched and unchanged records

        Raises:
            StoreLockError: If the lock could not be acquired; nothing is merged
        """
        incoming = list(records)
        if not incoming:
            return MergeSummary()

        wait = self.lock_timeout if timeout is None else timeout
        if not self._lock.acquire(timeout=wait):
            raise StoreLockError(
                f"Could not merge {len(incoming)} records: lock not acquired within {wait}s",
                details=incoming,
            )

        summary = MergeSummary()
        try:
            for record in incoming:
                existing = self._records.get(record.draw_date)
                if existing is None:
                    self._records[record.draw_date] = record
                    summary.inserted += 1
                elif existing == record:
                    summary.unchanged += 1
                else:
                    combined = combine_records(existing, record)
                    self._records[record.draw_date] = combined
                    if combined == existing:
                        summary.unchanged += 1
                    else:
                        summary.enriched += 1
        finally:
            self._lock.release()

        logger.debug(f"Merged {len(incoming)} records: {summary}")
        return summary

    def snapshot(self) -> List[DrawRecord]:
        """Copy of all stored records ordered by draw date."""
        with self._lock:
            records = list(self._records.values())
        records.sort(key=lambda r: r.draw_date)
        return records

    def dates(self) -> List[date]:
        with self._lock:
            return sorted(self._records)

    def earliest(self) -> Optional[DrawRecord]:
        with self._lock:
            if not self._records:
                return None
            return self._records[min(self._records)]

    def latest(self) -> Optional[DrawRecord]:
        with self._lock:
            if not self._records:
                return None
            return self._records[max(self._records)]
