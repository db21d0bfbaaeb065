from datetime import date, datetime
from decimal import Decimal

import pytest

from drawhistory.errors import StoreLockError
from drawhistory.lottery.records import DrawRecord, PrizeInfo, VerboseDrawInfo, combine_records
from drawhistory.lottery.store import ResultStore

from fakes import make_record, with_jackpot


def test_merge_inserts_new_dates(store):
    summary = store.merge([make_record(date(2024, 1, 3)), make_record(date(2024, 1, 6))])

    assert summary.inserted == 2
    assert summary.changed == 2
    assert len(store) == 2
    assert date(2024, 1, 3) in store


def test_merge_identical_record_is_noop(store):
    record = make_record(date(2024, 1, 3))
    store.merge([record])

    summary = store.merge([make_record(date(2024, 1, 3))])

    assert summary.unchanged == 1
    assert summary.changed == 0
    assert store.get(date(2024, 1, 3)) == record


def test_merge_keeps_incoming_verbose_info():
    store = ResultStore()
    a = make_record(date(2024, 1, 3))
    b = with_jackpot(a, 1000000)

    store.merge([a])
    summary = store.merge([b])

    assert summary.enriched == 1
    assert store.get(date(2024, 1, 3)).verbose_info == VerboseDrawInfo(jackpot_amount=Decimal(1000000))


def test_merge_is_commutative_and_idempotent():
    a = make_record(date(2024, 1, 3), draw_index=3000)
    b = DrawRecord(
        draw_date=date(2024, 1, 3),
        standard_numbers=(1, 2, 3, 4, 5, 6),
        extra_numbers=(11, 22, 33, 44),
        verbose_info=VerboseDrawInfo(jackpot_amount=Decimal('5000000')),
    )

    left, right = ResultStore(), ResultStore()
    left.merge([a])
    left.merge([b])
    right.merge([b])
    right.merge([a])

    assert left.snapshot() == right.snapshot()
    combined = left.get(date(2024, 1, 3))
    assert combined.draw_index == 3000
    assert combined.bonus_number == 7
    assert combined.extra_numbers == (11, 22, 33, 44)

    summary = left.merge([a, b])
    assert summary.changed == 0
    assert left.get(date(2024, 1, 3)) == combined


def test_combine_unions_prizes_by_tier():
    first = make_record(date(2024, 1, 3), verbose_info=VerboseDrawInfo(
        jackpot_amount=Decimal('0'),
        prize_breakdown=[PrizeInfo(3, 5, prize_amount=Decimal('2000')), PrizeInfo(1, 6)],
    ))
    second = make_record(date(2024, 1, 3), verbose_info=VerboseDrawInfo(
        jackpot_amount=Decimal('7000000'),
        prize_breakdown=[PrizeInfo(1, 6, prize_amount=Decimal('7000000'), winner_count=1), PrizeInfo(2, 5, True)],
    ))

    combined = combine_records(first, second)

    prizes = combined.verbose_info.prize_breakdown
    assert [p.prize_tier for p in prizes] == [1, 2, 3]
    assert prizes[0].prize_amount == Decimal('7000000')
    assert prizes[0].winner_count == 1
    assert prizes[1].bonus_required is True
    assert prizes[2].prize_amount == Decimal('2000')
    assert combined.verbose_info.jackpot_amount == Decimal('7000000')


def test_combine_rejects_different_dates():
    with pytest.raises(ValueError):
        combine_records(make_record(date(2024, 1, 3)), make_record(date(2024, 1, 6)))


def test_combine_keeps_known_values():
    known = make_record(date(2024, 1, 3), numbers=(5, 6, 7, 8, 9, 10), bonus=11)
    conflicting = make_record(date(2024, 1, 3), numbers=(1, 2, 3, 4, 5, 6), bonus=12)

    combined = combine_records(known, conflicting)

    assert combined.standard_numbers == (5, 6, 7, 8, 9, 10)
    assert combined.bonus_number == 11


def test_lock_timeout_raises_and_keeps_records(store):
    record = make_record(date(2024, 1, 3))
    store._lock.acquire()
    try:
        with pytest.raises(StoreLockError) as excinfo:
            store.merge([record], timeout=0.01)
    finally:
        store._lock.release()

    assert excinfo.value.details == [record]
    assert excinfo.value.code == "store_lock_timeout"
    assert len(store) == 0

    # Retrying once the lock is free succeeds
    assert store.merge(excinfo.value.details).inserted == 1


def test_try_get_if_draw_completed(store, calendar):
    store.merge([make_record(date(2024, 1, 17)), make_record(date(2024, 1, 20))])

    assert store.try_get_if_draw_completed(date(2024, 1, 17), calendar) is not None
    # Drawn tonight, not yet posted
    assert store.try_get_if_draw_completed(date(2024, 1, 20), calendar) is None
    # Not a draw day
    assert store.try_get_if_draw_completed(date(2024, 1, 18), calendar) is None


def test_snapshot_is_sorted_copy(store):
    store.merge([make_record(date(2024, 1, 10)), make_record(date(2024, 1, 3)), make_record(date(2024, 1, 6))])

    snapshot = store.snapshot()
    snapshot.clear()

    assert [r.draw_date for r in store.snapshot()] == [date(2024, 1, 3), date(2024, 1, 6), date(2024, 1, 10)]
    assert store.dates() == [date(2024, 1, 3), date(2024, 1, 6), date(2024, 1, 10)]
    assert store.earliest().draw_date == date(2024, 1, 3)
    assert store.latest().draw_date == date(2024, 1, 10)


def test_empty_store():
    store = ResultStore()
    assert store.earliest() is None
    assert store.latest() is None
    assert store.snapshot() == []
    assert store.merge([]).changed == 0


def test_dates_are_normalized(store):
    store.merge([make_record(datetime(2024, 1, 3, 19, 30))])

    assert store.get(date(2024, 1, 3)) is not None
    assert store.get(datetime(2024, 1, 3, 8, 0)) is not None
