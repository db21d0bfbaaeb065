"""Exception types shared across the draw history packages."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class DrawHistoryError(Exception):
    """Base error."""

    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        return self.message


class ConfigurationError(DrawHistoryError):
    """Invalid series configuration. Never retried."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Any] = None) -> None:
        super().__init__(code="configuration_error", message=message, details=details)


class ExtractionInProgressError(DrawHistoryError):
    """A run was requested while another run for the same series is active."""

    def __init__(self, message: str = "An extraction is already running", details: Optional[Any] = None) -> None:
        super().__init__(code="extraction_in_progress", message=message, details=details)


class StoreLockError(DrawHistoryError):
    """The result store lock could not be acquired in time."""

    def __init__(self, message: str = "Result store lock could not be acquired", details: Optional[Any] = None) -> None:
        super().__init__(code="store_lock_timeout", message=message, details=details)


class DrawSourceError(DrawHistoryError):
    """A fetch against an external draw source failed."""

    def __init__(self, message: str = "Draw source request failed", details: Optional[Any] = None) -> None:
        super().__init__(code="source_error", message=message, details=details)
