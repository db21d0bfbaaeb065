"""
Statistics over a snapshot of draw records.

Every function here is read-only and works on a plain list of DrawRecords,
normally the output of ``ResultStore.snapshot()``, together with the
NumberRanges of the series the records came from.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..lottery.records import DrawRecord, NumberRanges

logger = logging.getLogger(__name__)

TopPair = Tuple[int, int, int]


@dataclass
class NumberFrequency:
    """Draw counts per number.

    ``standard[i]`` is the count for number ``ranges.standard_low + i``;
    ``extra`` follows the same layout over the extra pool, or is None.
    """

    standard: np.ndarray
    extra: Optional[np.ndarray] = None
    standard_low: int = 1
    extra_low: Optional[int] = None

    def count(self, number: int) -> int:
        return int(self.standard[number - self.standard_low])

    def as_series(self) -> pd.Series:
        """Standard counts as a pandas Series indexed by number."""
        index = range(self.standard_low, self.standard_low + len(self.standard))
        return pd.Series(self.standard, index=index, name='count')


@dataclass
class PairCoOccurrence:
    matrix: pd.DataFrame
    top_pairs: List[TopPair]


def number_frequency(records: Sequence[DrawRecord], ranges: NumberRanges,
                     include_bonus: bool = True) -> NumberFrequency:
    """Count how often each number was drawn.

    Args:
        records: Draw records to count
        ranges: Number pools of the series
        include_bonus: Count bonus numbers too. Only honoured when the bonus
            is drawn from the standard pool.

    Returns:
        NumberFrequency with the standard counts and, when any record
        carries extra numbers, the extra counts
    """
    standard = np.zeros(ranges.standard_span, dtype=int)
    count_bonus = include_bonus and ranges.bonus_shares_standard_pool

    has_extras = any(record.extra_numbers for record in records)
    extra = None
    if has_extras:
        if ranges.has_extra:
            extra = np.zeros(ranges.extra_span, dtype=int)
        else:
            logger.warning("Records carry extra numbers but the series has no extra pool; ignoring them")

    for record in records:
        for number in _in_pool(record.standard_numbers, ranges.standard_low, ranges.standard_high,
                               record, 'standard'):
            standard[number - ranges.standard_low] += 1
        # A bonus of 0 means it was never published
        if count_bonus and ranges.standard_low <= record.bonus_number <= ranges.standard_high:
            standard[record.bonus_number - ranges.standard_low] += 1
        if extra is not None and record.extra_numbers:
            for number in _in_pool(record.extra_numbers, ranges.extra_low, ranges.extra_high,
                                   record, 'extra'):
                extra[number - ranges.extra_low] += 1

    return NumberFrequency(
        standard=standard,
        extra=extra,
        standard_low=ranges.standard_low,
        extra_low=ranges.extra_low if extra is not None else None,
    )


def _in_pool(numbers: Sequence[int], low: int, high: int, record: DrawRecord, pool: str) -> List[int]:
    """Numbers within ``low..high``; anything outside is logged and dropped."""
    kept = [n for n in numbers if low <= n <= high]
    if len(kept) != len(numbers):
        outside = [n for n in numbers if not low <= n <= high]
        logger.warning(f"Draw on {record.draw_date} has {pool} numbers {outside} outside {low}..{high}; "
                       f"skipping them")
    return kept


def pair_co_occurrence(records: Sequence[DrawRecord], ranges: NumberRanges) -> PairCoOccurrence:
    """Count how often each pair of standard numbers was drawn together.

    The matrix is indexed and columned by number value, so
    ``matrix[a][b]`` is the count for the pair (a, b). It is symmetric with
    a zero diagonal.

    ``top_pairs`` holds ``ranges.standard_pick_count`` entries of
    ``(count, a, b)``. Pairs are scanned once with a ascending, then b
    ascending. While empty or zero-count slots remain, a pair goes into the
    first of them it beats; after that it replaces the first slot with a
    lower count. Ties keep the pair found first.
    """
    numbers = list(range(ranges.standard_low, ranges.standard_high + 1))
    counts = np.zeros((ranges.standard_span, ranges.standard_span), dtype=int)

    for record in records:
        numbers_in_pool = _in_pool(record.standard_numbers, ranges.standard_low, ranges.standard_high,
                                   record, 'standard')
        offsets = sorted({n - ranges.standard_low for n in numbers_in_pool})
        for a, b in combinations(offsets, 2):
            counts[a][b] += 1
            counts[b][a] += 1

    matrix = pd.DataFrame(counts, index=numbers, columns=numbers)
    return PairCoOccurrence(matrix=matrix, top_pairs=_top_pairs(counts, ranges))


def _top_pairs(counts: np.ndarray, ranges: NumberRanges) -> List[TopPair]:
    slots: List[Optional[TopPair]] = [None] * ranges.standard_pick_count

    for a, b in combinations(range(ranges.standard_span), 2):
        count = int(counts[a][b])
        candidate = (count, a + ranges.standard_low, b + ranges.standard_low)

        open_slots = [i for i, slot in enumerate(slots) if slot is None or slot[0] == 0]
        targets = open_slots if open_slots else range(len(slots))
        for i in targets:
            if slots[i] is None or count > slots[i][0]:
                slots[i] = candidate
                break

    return [slot for slot in slots if slot is not None]


def find_duplicate_draws(records: Sequence[DrawRecord]) -> List[List[DrawRecord]]:
    """Find draws on different dates that produced the same standard numbers.

    Numbers are compared as sets, element by element. Records sharing a
    date are collapsed to one member. An empty list is the normal result.

    Returns:
        Groups of two or more records with distinct dates, each group sorted
        by date and the groups ordered by their earliest date
    """
    groups: Dict[Tuple[int, ...], Dict] = defaultdict(dict)
    for record in records:
        key = tuple(sorted(record.standard_numbers))
        groups[key].setdefault(record.draw_date, record)

    duplicates = [
        [by_date[d] for d in sorted(by_date)]
        for by_date in groups.values()
        if len(by_date) > 1
    ]
    duplicates.sort(key=lambda group: group[0].draw_date)

    if duplicates:
        logger.warning(f"Found {len(duplicates)} groups of draws with identical numbers")
    return duplicates
