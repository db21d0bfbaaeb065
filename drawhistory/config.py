import os
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Tuple
from dotenv import load_dotenv

from .errors import ConfigurationError
from .lottery.records import CalendarConfig, DrawTime, NumberRanges

# Load environment variables from .env file
load_dotenv()

class Config:
    # Database configuration
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./draw_history.db')

    # Logging configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'draw_history.log')

    # Extraction settings
    REQUEST_MIN_INTERVAL = float(os.getenv('REQUEST_MIN_INTERVAL', '0.01'))  # seconds between fetches
    CONSECUTIVE_FAIL_LIMIT = int(os.getenv('CONSECUTIVE_FAIL_LIMIT', '5'))
    STORE_LOCK_TIMEOUT = float(os.getenv('STORE_LOCK_TIMEOUT', '5'))
    HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', '10'))

    # Application settings
    DEBUG = os.getenv('DEBUG', 'False').lower() in ('true', '1', 't')


@dataclass(frozen=True)
class SeriesPreset:
    """Calendar and number ranges for a lottery we know how to track."""

    name: str
    first_draw_date: date
    draw_time: DrawTime
    draw_days: Tuple[int, ...]
    ranges: NumberRanges

    def calendar_config(self) -> CalendarConfig:
        return CalendarConfig(
            first_recorded_draw_date=self.first_draw_date,
            draw_time=self.draw_time,
            draw_days=frozenset(self.draw_days),
        )


# Weekdays follow date.weekday(): Monday=0 ... Sunday=6.
# Timezone offsets are fixed; daylight saving is not tracked.
SERIES_PRESETS = MappingProxyType({
    'bc49': SeriesPreset(
        name='BC/49',
        first_draw_date=date(1992, 1, 29),
        draw_time=DrawTime(19, 30, -8),
        draw_days=(2, 5),
        ranges=NumberRanges(1, 49, 6, extra_low=1, extra_high=99),
    ),
    'lotto649': SeriesPreset(
        name='Lotto 6/49',
        first_draw_date=date(1982, 6, 12),
        draw_time=DrawTime(22, 30, -5),
        draw_days=(2, 5),
        ranges=NumberRanges(1, 49, 6, extra_low=1, extra_high=99),
    ),
    'lottomax': SeriesPreset(
        name='Lotto Max',
        first_draw_date=date(2009, 9, 25),
        draw_time=DrawTime(22, 30, -5),
        draw_days=(1, 4),
        ranges=NumberRanges(1, 50, 7, extra_low=1, extra_high=99),
    ),
    'dailygrand': SeriesPreset(
        name='Daily Grand',
        first_draw_date=date(2016, 10, 20),
        draw_time=DrawTime(22, 30, -5),
        draw_days=(0, 3),
        ranges=NumberRanges(1, 49, 5, bonus_low=1, bonus_high=7),
    ),
})


def get_preset(series_id: str) -> SeriesPreset:
    """Look up a built-in series preset.

    Args:
        series_id: Preset key, e.g. 'bc49'

    Returns:
        The matching preset

    Raises:
        ConfigurationError: If no preset exists for the key
    """
    try:
        return SERIES_PRESETS[series_id.lower()]
    except KeyError:
        known = ', '.join(sorted(SERIES_PRESETS))
        raise ConfigurationError(f"Unknown series '{series_id}'. Known series: {known}") from None
