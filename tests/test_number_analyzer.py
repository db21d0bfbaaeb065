import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from drawhistory.analysis.number_analyzer import NumberAnalyzer
from drawhistory.lottery.records import DrawRecord, NumberRanges, VerboseDrawInfo

from fakes import make_record

TODAY = date(2024, 1, 20)


@pytest.fixture
def records():
    rng = random.Random(42)
    result = []
    for i in range(300):
        numbers = rng.sample(range(1, 50), 6)
        result.append(DrawRecord(
            draw_date=TODAY - timedelta(days=7 * i),
            standard_numbers=tuple(numbers),
            bonus_number=rng.choice([n for n in range(1, 50) if n not in numbers]),
            verbose_info=VerboseDrawInfo(jackpot_amount=Decimal(1000000 + i)),
        ))
    return result


def test_classification_shares(records, ranges):
    standard_freq, extra_freq = NumberAnalyzer(records, ranges, today=TODAY).analyze_number_frequency()

    statuses = [data['status'] for data in standard_freq.values()]
    assert len(standard_freq) == 49
    assert statuses.count('hot') == 9
    assert statuses.count('warm') == 14
    assert statuses.count('cool') == 14
    assert statuses.count('cold') == 12
    assert extra_freq == {}


def test_hot_numbers_are_drawn_most(records, ranges):
    standard_freq, _ = NumberAnalyzer(records, ranges, today=TODAY).analyze_number_frequency()

    hot = [data['count'] for data in standard_freq.values() if data['status'] == 'hot']
    cold = [data['count'] for data in standard_freq.values() if data['status'] == 'cold']
    assert min(hot) >= max(cold)
    assert sum(data['percentage'] for data in standard_freq.values()) == pytest.approx(100.0)


def test_time_period_filter(records, ranges):
    analyzer = NumberAnalyzer(records, ranges, today=TODAY)

    assert len(analyzer.filter_by_time_period('all')) == 300
    # Weekly draws over the last 91 days
    assert len(analyzer.filter_by_time_period('3months')) == 14
    assert len(analyzer.filter_by_time_period('year')) == 53
    assert len(analyzer.filter_by_time_period('unknown')) == 300


def test_summary(records, ranges):
    summary = NumberAnalyzer(records, ranges, today=TODAY).get_summary('year')

    assert summary['total_draws_analyzed'] == 53
    assert summary['date_range']['last_draw'] == '2024-01-20'
    assert summary['date_range']['first_draw'] == (TODAY - timedelta(days=7 * 52)).strftime('%Y-%m-%d')
    assert len(summary['hottest_numbers']) == 9
    assert len(summary['top_pairs']) == 6
    assert summary['largest_jackpot'] == Decimal(1000052)
    assert summary['duplicate_draws'] == []


def test_empty_snapshot(ranges):
    analyzer = NumberAnalyzer([], ranges, today=TODAY)

    assert analyzer.analyze_number_frequency() == ({}, {})
    summary = analyzer.get_summary()
    assert summary['total_draws_analyzed'] == 0
    assert summary['date_range']['first_draw'] is None
    assert summary['top_pairs'] == []


def test_extra_numbers_are_classified():
    ranges = NumberRanges(1, 49, 6, extra_low=1, extra_high=99)
    records = [
        make_record(TODAY - timedelta(days=3 * i), extra_numbers=(i % 99 + 1, 50, 60, 70))
        for i in range(20)
    ]

    _, extra_freq = NumberAnalyzer(records, ranges, today=TODAY).analyze_number_frequency()

    assert len(extra_freq) == 99
    assert extra_freq[50]['count'] == 20
    assert extra_freq[50]['status'] == 'hot'
