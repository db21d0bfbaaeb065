import logging
from datetime import date
from unittest import mock

import pytest
import requests

from drawhistory.data_collection.observers import CompositeObserver, LoggingObserver
from drawhistory.data_collection.sources import HttpDrawSource, SteppingMode
from drawhistory.errors import DrawSourceError

from fakes import RecordingObserver, make_record


class ExampleSource(HttpDrawSource):
    name = 'example'
    base_url = 'https://draws.example.com'

    def build_url(self, series_id, target):
        return f"{self.base_url}/{series_id}/{target.isoformat()}"

    def parse_day(self, payload):
        return None


def make_response(status_code, text=''):
    response = requests.Response()
    response.status_code = status_code
    response._content = text.encode()
    response.url = 'https://draws.example.com'
    return response


@pytest.fixture
def session():
    return requests.Session()


def test_fetch_returns_body(session):
    session.get = mock.Mock(return_value=make_response(200, '{"numbers": [1, 2, 3]}'))
    source = ExampleSource(min_request_interval=0, session=session, timeout=3)

    assert source.fetch('bc49', date(2024, 1, 17)) == '{"numbers": [1, 2, 3]}'
    session.get.assert_called_once_with('https://draws.example.com/bc49/2024-01-17', timeout=3)
    assert session.headers['User-Agent'] == 'DrawHistory/1.0'
    assert source.stepping is SteppingMode.DAY


def test_fetch_missing_draw_returns_none(session):
    session.get = mock.Mock(return_value=make_response(404))
    source = ExampleSource(min_request_interval=0, session=session)

    assert source.fetch('bc49', date(2024, 1, 17)) is None


def test_fetch_wraps_transport_errors(session):
    session.get = mock.Mock(side_effect=requests.exceptions.ConnectionError('refused'))
    source = ExampleSource(min_request_interval=0, session=session)

    with pytest.raises(DrawSourceError) as excinfo:
        source.fetch('bc49', date(2024, 1, 17))
    assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)


def test_fetch_wraps_http_errors(session):
    session.get = mock.Mock(return_value=make_response(500))
    source = ExampleSource(min_request_interval=0, session=session)

    with pytest.raises(DrawSourceError):
        source.fetch('bc49', date(2024, 1, 17))


@pytest.mark.parametrize("status_code, reachable", [(200, True), (301, False), (503, False)])
def test_confirm_reachable_requires_ok(session, status_code, reachable):
    session.head = mock.Mock(return_value=make_response(status_code))
    source = ExampleSource(min_request_interval=0, session=session)

    assert source.confirm_reachable() is reachable


def test_confirm_reachable_on_connection_error(session):
    session.head = mock.Mock(side_effect=requests.exceptions.Timeout('slow'))
    source = ExampleSource(min_request_interval=0, session=session)

    assert source.confirm_reachable() is False


def test_composite_observer_fans_out():
    first, second = RecordingObserver(), RecordingObserver()
    observer = CompositeObserver([first, second])
    error = DrawSourceError("timeout")

    observer.on_status("fetched", 0.5, date(2024, 1, 17))
    observer.on_error("failed", date(2024, 1, 13), error)
    observer.on_extraction_complete({date(2024, 1, 17): make_record(date(2024, 1, 17))}, 'bc49')

    for recorder in (first, second):
        assert len(recorder.of_kind('status')) == 1
        assert recorder.of_kind('error')[0][3] is error
        assert recorder.completed[0][1] == 'bc49'


def test_logging_observer_writes_log(caplog):
    observer = LoggingObserver('bc49')

    with caplog.at_level(logging.INFO, logger='drawhistory.data_collection.observers'):
        observer.on_status("Fetched draw", 0.25)
        observer.on_warning("Start moved")
        observer.on_error("Fetch failed", exc=DrawSourceError("timeout"))

    messages = [record.getMessage() for record in caplog.records]
    assert "[bc49] Fetched draw (25.0%)" in messages
    assert "[bc49] Start moved" in messages
    assert any(m.startswith("[bc49] Fetch failed:") for m in messages)
