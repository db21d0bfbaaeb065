"""Draw sources consumed by the extraction orchestrator."""
import abc
import logging
import threading
import time
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Union

import requests

from ..config import Config
from ..errors import DrawSourceError
from ..lottery.records import DrawRecord

logger = logging.getLogger(__name__)

FetchTarget = Union[date, int]


class SteppingMode(Enum):
    """How far a single fetch reaches: one draw date or one calendar year."""

    DAY = 'day'
    YEAR = 'year'


class RequestThrottle:
    """Enforces a minimum interval between consecutive requests by sleeping."""

    def __init__(self, min_interval: float,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until the next request may be issued.

        Returns:
            Seconds slept
        """
        with self._lock:
            slept = 0.0
            if self._last_request is not None:
                remaining = self.min_interval - (self._clock() - self._last_request)
                if remaining > 0:
                    self._sleep(remaining)
                    slept = remaining
            self._last_request = self._clock()
            return slept


class DrawSource(abc.ABC):
    """A place draw results can be fetched from.

    Subclasses declare their ``stepping`` and implement the parse method
    matching it. Payload structure is private to the source.
    """

    name: str = 'source'
    stepping: SteppingMode = SteppingMode.DAY
    supported_series: Optional[Iterable[str]] = None

    def __init__(self, min_request_interval: Optional[float] = None):
        if min_request_interval is None:
            min_request_interval = Config.REQUEST_MIN_INTERVAL
        self.throttle = RequestThrottle(min_request_interval)

    @property
    def min_request_interval(self) -> float:
        return self.throttle.min_interval

    def supports(self, series_id: str) -> bool:
        if self.supported_series is None:
            return True
        return series_id.lower() in {s.lower() for s in self.supported_series}

    @abc.abstractmethod
    def fetch(self, series_id: str, target: FetchTarget) -> Optional[Any]:
        """Fetch the raw payload for a draw date or a year.

        Returns None when the source has nothing for the target. Transport
        failures raise DrawSourceError.
        """

    def parse_day(self, payload: Any) -> Optional[DrawRecord]:
        raise NotImplementedError(f"{self.name} does not parse single draws")

    def parse_year(self, payload: Any) -> Optional[List[DrawRecord]]:
        raise NotImplementedError(f"{self.name} does not parse yearly archives")

    @abc.abstractmethod
    def confirm_reachable(self) -> bool:
        """Whether the source answers at all."""

    def close(self):
        """Optional hook for sources holding connections."""
        return None


class HttpDrawSource(DrawSource):
    """Base class for sources reached over HTTP.

    Subclasses supply ``base_url``, ``build_url`` and a parse method; the
    response layout of any particular website is theirs to know.
    """

    base_url: str = ''
    user_agent: str = 'DrawHistory/1.0'

    def __init__(self, min_request_interval: Optional[float] = None,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        super().__init__(min_request_interval)
        self.timeout = timeout if timeout is not None else Config.HTTP_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': self.user_agent,
            'Accept': 'application/json, text/html;q=0.9',
        })

    @abc.abstractmethod
    def build_url(self, series_id: str, target: FetchTarget) -> str:
        """Endpoint for a draw date or a year."""

    def fetch(self, series_id: str, target: FetchTarget) -> Optional[str]:
        url = self.build_url(series_id, target)
        try:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code == 404:
                logger.info(f"No draw data at {url}")
                return None
            response.raise_for_status()
            return response.text
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            if getattr(e, 'response', None) is not None:
                logger.error(f"Response status: {e.response.status_code}")
            raise DrawSourceError(f"GET {url} failed: {e}", details=url) from e

    def confirm_reachable(self) -> bool:
        try:
            response = self.session.head(self.base_url, timeout=self.timeout, allow_redirects=False)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{self.base_url} is unreachable: {e}")
            return False
        return response.status_code == requests.codes.ok

    def close(self):
        self.session.close()
