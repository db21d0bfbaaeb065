"""
Draw calendar arithmetic.

All answers are derived from a CalendarConfig and a UTC clock. "Now" is the
clock shifted by the series' fixed timezone offset, so a draw is considered
posted once the series-local wall clock reaches the draw time.
"""
import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple

from .records import CalendarConfig, DateLike, normalize_draw_date

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DrawCalendar:
    """Answers date questions for one series' weekly draw schedule."""

    def __init__(self, config: CalendarConfig, clock: Optional[Clock] = None):
        self.config = config
        self._clock = clock or utc_now

    def with_first_recorded_draw_date(self, first: DateLike) -> 'DrawCalendar':
        """Copy of this calendar with a different first recorded draw date."""
        return DrawCalendar(replace(self.config, first_recorded_draw_date=normalize_draw_date(first)), self._clock)

    def now(self) -> datetime:
        """Current wall-clock time in the series' timezone (naive)."""
        current = self._clock()
        if current.tzinfo is not None:
            current = current.astimezone(timezone.utc).replace(tzinfo=None)
        return current + timedelta(hours=self.config.timezone_offset_hours)

    def today(self) -> date:
        return self.now().date()

    def is_draw_day(self, value: DateLike) -> bool:
        return normalize_draw_date(value).weekday() in self.config.draw_days

    def has_draw_happened_yet(self, value: DateLike) -> Optional[bool]:
        """Check whether the draw on a date has taken place.

        Args:
            value: The draw date

        Returns:
            None if no draw is held on that weekday, otherwise whether the
            series-local clock has reached the draw time on that date
        """
        draw_date = normalize_draw_date(value)
        if not self.is_draw_day(draw_date):
            return None

        now = self.now().replace(second=0, microsecond=0)
        draw_time = time(self.config.draw_time.hour, self.config.draw_time.minute)
        return datetime.combine(draw_date, draw_time) <= now

    def next_draw_day(self, value: DateLike, include_same_day: bool = False) -> date:
        current = normalize_draw_date(value)
        if include_same_day and self.is_draw_day(current):
            return current
        for offset in range(1, 8):
            candidate = current + timedelta(days=offset)
            if self.is_draw_day(candidate):
                return candidate
        raise AssertionError("draw_days is never empty")

    def previous_draw_day(self, value: DateLike, include_same_day: bool = False) -> date:
        current = normalize_draw_date(value)
        if include_same_day and self.is_draw_day(current):
            return current
        for offset in range(1, 8):
            candidate = current - timedelta(days=offset)
            if self.is_draw_day(candidate):
                return candidate
        raise AssertionError("draw_days is never empty")

    def most_recent_draw_date(self) -> date:
        return self.previous_draw_day(self.today())

    def latest_posted_draw_date(self) -> date:
        """The newest draw date whose results should already be out."""
        latest = self.previous_draw_day(self.today(), include_same_day=True)
        if not self.has_draw_happened_yet(latest):
            latest = self.previous_draw_day(latest)
        return latest

    def most_recent_draw_date_that_happened(self, value: DateLike, include_same_day: bool = False) -> date:
        draw_date = self.previous_draw_day(value, include_same_day)
        if not self.has_draw_happened_yet(draw_date):
            return self.latest_posted_draw_date()
        return draw_date

    def next_upcoming_draw_date(self) -> date:
        return self.next_draw_day(self.today(), include_same_day=not self.has_draw_happened_yet(self.today()))

    def clamp_start(self, start: DateLike) -> Tuple[date, bool]:
        """Move ``start`` up to the first recorded draw date if it precedes it.

        Returns:
            Tuple of (start date, whether it was adjusted)
        """
        start = normalize_draw_date(start)
        first = self.config.first_recorded_draw_date
        if first is not None and start < first:
            return first, True
        return start, False

    def count_draws_between(self, start: DateLike, stop: DateLike) -> int:
        """Count draw days between two dates, both inclusive.

        Whole weeks contribute ``len(draw_days)`` each; the remaining days are
        walked one at a time.
        """
        start, adjusted = self.clamp_start(start)
        if adjusted:
            logger.warning(f"Start date precedes the first recorded draw; counting from {start}")
        stop = normalize_draw_date(stop)
        if stop < start:
            return 0

        weeks = (stop - start).days // 7
        total = weeks * len(self.config.draw_days)

        current = start + timedelta(days=weeks * 7)
        while current <= stop:
            if self.is_draw_day(current):
                total += 1
            current += timedelta(days=1)

        return total

    def total_draws(self) -> int:
        """Number of draws from the first recorded draw up to today."""
        first = self.config.first_recorded_draw_date
        if first is None:
            return 0
        return self.count_draws_between(first, self.latest_posted_draw_date())
