"""Extraction notifications.

The orchestrator calls these synchronously, so every event for a draw date
is delivered before the next fetch starts.
"""
import logging
from datetime import date
from typing import Dict, Iterable, Optional

from ..lottery.records import DrawRecord

logger = logging.getLogger(__name__)


class ExtractionObserver:
    """Receives progress, warnings, errors and the completed batch. Methods are no-ops by default."""

    def on_status(self, message: str, progress: float, draw_date: Optional[date] = None):
        pass

    def on_warning(self, message: str, draw_date: Optional[date] = None):
        pass

    def on_error(self, message: str, draw_date: Optional[date] = None, exc: Optional[BaseException] = None):
        pass

    def on_extraction_complete(self, batch: Dict[date, DrawRecord], series_id: str):
        pass


class LoggingObserver(ExtractionObserver):
    """Writes extraction events to the log."""

    def __init__(self, series_id: str = ''):
        self.series_id = series_id

    def _prefix(self) -> str:
        return f"[{self.series_id}] " if self.series_id else ''

    def on_status(self, message, progress, draw_date=None):
        logger.info(f"{self._prefix()}{message} ({progress:.1%})")

    def on_warning(self, message, draw_date=None):
        logger.warning(f"{self._prefix()}{message}")

    def on_error(self, message, draw_date=None, exc=None):
        if exc is not None:
            logger.error(f"{self._prefix()}{message}: {exc}")
        else:
            logger.error(f"{self._prefix()}{message}")

    def on_extraction_complete(self, batch, series_id):
        logger.info(f"[{series_id}] Extraction complete with {len(batch)} draws")


class CompositeObserver(ExtractionObserver):
    """Fans every event out to several observers, in order."""

    def __init__(self, observers: Iterable[ExtractionObserver]):
        self.observers = list(observers)

    def on_status(self, message, progress, draw_date=None):
        for observer in self.observers:
            observer.on_status(message, progress, draw_date)

    def on_warning(self, message, draw_date=None):
        for observer in self.observers:
            observer.on_warning(message, draw_date)

    def on_error(self, message, draw_date=None, exc=None):
        for observer in self.observers:
            observer.on_error(message, draw_date, exc)

    def on_extraction_complete(self, batch, series_id):
        for observer in self.observers:
            observer.on_extraction_complete(batch, series_id)
