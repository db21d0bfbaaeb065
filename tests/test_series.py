from datetime import date
from unittest import mock

import pytest

from drawhistory.config import SERIES_PRESETS, get_preset
from drawhistory.data_collection.orchestrator import ExtractionState, FailureKind
from drawhistory.data_collection.sample_data_generator import SampleDrawSource
from drawhistory.data_collection.sources import DrawSource
from drawhistory.errors import ConfigurationError, DrawSourceError
from drawhistory.lottery.records import CalendarConfig, DrawTime, NumberRanges
from drawhistory.lottery.series import Series

from fakes import FakeDaySource, FakeYearSource, RecordingObserver, make_record


@pytest.fixture
def source():
    return FakeDaySource(make_record(d) for d in [date(2024, 1, 13), date(2024, 1, 17)])


@pytest.fixture
def series(calendar_config, ranges, source, clock):
    return Series('bc49', calendar_config, ranges, source, clock=clock)


def test_rejects_unsupported_source(calendar_config, ranges):
    with pytest.raises(ConfigurationError):
        Series('bc49', calendar_config, ranges, FakeDaySource(supported_series=['lottomax']))


def test_rejects_inverted_default_range(calendar_config, ranges, source):
    with pytest.raises(ConfigurationError):
        Series('bc49', calendar_config, ranges, source, start=date(2024, 1, 10), stop=date(2024, 1, 3))


def test_rejects_invalid_ranges():
    with pytest.raises(ConfigurationError):
        NumberRanges(49, 1, 6)
    with pytest.raises(ConfigurationError):
        NumberRanges(1, 5, 6)
    with pytest.raises(ConfigurationError):
        NumberRanges(1, 49, 6, extra_low=1)


def test_normalize_range_defaults(series):
    assert series.normalize_range() == (date(2023, 12, 2), date(2024, 1, 17))


def test_normalize_range_snaps_to_draw_days(series):
    observer = RecordingObserver()

    start, stop = series.normalize_range(date(2023, 12, 4), date(2024, 1, 19), observer)

    assert (start, stop) == (date(2023, 12, 6), date(2024, 1, 17))
    assert len(observer.of_kind('warning')) == 2


def test_normalize_range_moves_unposted_stop(series):
    observer = RecordingObserver()

    _, stop = series.normalize_range(date(2024, 1, 3), date(2024, 1, 20), observer)

    assert stop == date(2024, 1, 17)
    assert 'has not happened yet' in observer.of_kind('warning')[0][1]


def test_normalize_range_clamps_early_start(series):
    observer = RecordingObserver()

    start, _ = series.normalize_range(date(2023, 1, 2), None, observer)

    assert start == date(2023, 12, 2)
    assert len(observer.of_kind('warning')) == 2


def test_normalize_range_rejects_empty_range(series):
    with pytest.raises(ConfigurationError):
        series.normalize_range(date(2024, 1, 18), date(2024, 1, 19))


def test_get_draw_on_non_draw_day(series, source):
    observer = RecordingObserver()

    assert series.get_draw(date(2024, 1, 15), observer=observer) is None
    assert len(observer.of_kind('error')) == 1
    assert source.fetched == []


def test_get_draw_advances_when_asked(series, source):
    record = series.get_draw(date(2024, 1, 15), next_if_invalid=True)

    assert record.draw_date == date(2024, 1, 17)
    assert source.fetched == [date(2024, 1, 17)]
    assert date(2024, 1, 17) in series.store


def test_get_draw_in_the_future(series, source):
    observer = RecordingObserver()

    assert series.get_draw(date(2024, 1, 24), observer=observer) is None
    assert 'has not happened yet' in observer.of_kind('error')[0][1]
    assert source.fetched == []


def test_get_draw_uses_store(series, source):
    series.store.merge([make_record(date(2024, 1, 10))])

    assert series.get_draw(date(2024, 1, 10)) is not None
    assert source.fetched == []


def test_get_draw_reports_fetch_errors(calendar_config, ranges, clock):
    error = DrawSourceError("timeout")
    series = Series('bc49', calendar_config, ranges, FakeDaySource(errors={date(2024, 1, 17): error}), clock=clock)
    observer = RecordingObserver()

    assert series.get_draw(date(2024, 1, 17), observer=observer) is None
    assert observer.of_kind('error')[0][3] is error

    assert series.get_draw(date(2024, 1, 13), observer=observer) is None
    assert len(observer.of_kind('error')) == 2


def test_get_draw_with_year_source(calendar_config, ranges, clock):
    records = [make_record(d) for d in [date(2023, 12, 30), date(2024, 1, 3), date(2024, 1, 6)]]
    source = FakeYearSource(records)
    series = Series('bc49', calendar_config, ranges, source, clock=clock)

    assert series.get_draw(date(2024, 1, 6)).draw_date == date(2024, 1, 6)
    assert source.fetched == [2024]
    assert series.store.dates() == [date(2024, 1, 3), date(2024, 1, 6)]


def test_extract_with_sample_source(clock):
    preset = get_preset('bc49')
    series = Series.from_preset('bc49', SampleDrawSource(preset.ranges, preset.first_draw_date), clock=clock)

    result = series.extract(date(2023, 12, 1), date(2024, 1, 31))

    assert result.state is ExtractionState.COMPLETED
    assert len(result.batch) == 14
    for record in result.records:
        assert len(set(record.standard_numbers)) == 6
        assert all(1 <= n <= 49 for n in record.standard_numbers)
        assert record.bonus_number not in record.standard_numbers
        assert len(record.extra_numbers) == 4

    # The same date always yields the same sample draw
    other = SampleDrawSource(preset.ranges, preset.first_draw_date)
    payload = other.fetch('bc49', date(2024, 1, 17))
    assert other.parse_day(payload) == series.store.get(date(2024, 1, 17))

    frequency = series.number_frequency()
    assert frequency.standard.sum() == 14 * 7
    assert series.pair_co_occurrence().matrix.shape == (49, 49)
    assert series.find_duplicate_draws() == []


def test_sample_source_has_no_draws_before_first_date():
    preset = get_preset('dailygrand')
    source = SampleDrawSource(preset.ranges, preset.first_draw_date)

    assert source.fetch('dailygrand', date(2016, 10, 17)) is None
    record = source.parse_day(source.fetch('dailygrand', date(2016, 10, 20)))
    assert 1 <= record.bonus_number <= 7
    assert record.extra_numbers is None


def test_extract_in_background(series):
    future = series.extract_in_background(date(2024, 1, 13), date(2024, 1, 17))
    try:
        result = future.result(timeout=5)
    finally:
        series.close()

    assert result.state is ExtractionState.COMPLETED
    assert series.store.dates() == [date(2024, 1, 13), date(2024, 1, 17)]


def test_inferred_first_date_updates_series(ranges, clock):
    config = CalendarConfig(draw_days={2, 5}, draw_time=DrawTime(19, 30))
    source = FakeDaySource(make_record(d) for d in [date(2024, 1, 10), date(2024, 1, 13), date(2024, 1, 17)])
    series = Series('bc49', config, ranges, source, clock=clock)

    result = series.extract(date(2023, 6, 1), date(2024, 1, 17))

    assert result.failure is FailureKind.SOURCE_EXHAUSTED
    assert series.calendar_config.first_recorded_draw_date == date(2024, 1, 10)
    assert series.normalize_range()[0] == date(2024, 1, 10)


def test_presets():
    assert set(SERIES_PRESETS) == {'bc49', 'lotto649', 'lottomax', 'dailygrand'}
    assert get_preset('LottoMax').ranges.standard_pick_count == 7

    with pytest.raises(ConfigurationError):
        get_preset('powerball')

    config = get_preset('bc49').calendar_config()
    assert config.draw_days == frozenset({2, 5})
    assert config.timezone_offset_hours == -8


def test_rejects_source_without_matching_parser(calendar_config, ranges):
    class UnparsedDaySource(FakeDaySource):
        parse_day = DrawSource.parse_day

    class UnparsedYearSource(FakeYearSource):
        parse_year = DrawSource.parse_year

    with pytest.raises(ConfigurationError):
        Series('bc49', calendar_config, ranges, UnparsedDaySource())
    with pytest.raises(ConfigurationError):
        Series('bc49', calendar_config, ranges, UnparsedYearSource([]))


def test_close_shuts_down_worker_and_source(series, source):
    source.close = mock.Mock()
    series.extract_in_background(date(2024, 1, 13), date(2024, 1, 17)).result(timeout=5)

    series.close()

    assert series.orchestrator._executor is None
    source.close.assert_called_once_with()
    # Closing twice is harmless
    series.close()
