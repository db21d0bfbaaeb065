"""
Value types for lottery draws and series configuration.

Records are immutable. Two records describe the same draw when their
normalized draw dates are equal; the ``combine`` helpers fill gaps in one
record with data from another so merging results from sources of differing
completeness never drops what is already known.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union

from ..errors import ConfigurationError

UNKNOWN_DRAW_INDEX = -1

DateLike = Union[date, datetime]


def normalize_draw_date(value: DateLike) -> date:
    """Strip any time-of-day component from a draw date."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class PrizeInfo:
    """Winnings for one prize tier of a draw."""

    prize_tier: int
    numbers_required_to_match: int = 0
    bonus_required: bool = False
    prize_amount: Decimal = Decimal('0')
    winner_count: int = 0
    description: Optional[str] = None
    winner_location: Optional[str] = None


@dataclass(frozen=True)
class VerboseDrawInfo:
    """Extra draw detail that most sources do not publish."""

    jackpot_amount: Decimal = Decimal('0')
    prize_breakdown: Tuple[PrizeInfo, ...] = ()
    extra_prize_breakdown: Optional[Tuple[PrizeInfo, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, 'prize_breakdown', tuple(self.prize_breakdown))
        if self.extra_prize_breakdown is not None:
            object.__setattr__(self, 'extra_prize_breakdown', tuple(self.extra_prize_breakdown))


@dataclass(frozen=True)
class DrawRecord:
    """The result of a single draw."""

    draw_date: date
    standard_numbers: Tuple[int, ...]
    bonus_number: int = 0
    extra_numbers: Optional[Tuple[int, ...]] = None
    draw_index: int = UNKNOWN_DRAW_INDEX
    verbose_info: Optional[VerboseDrawInfo] = None

    def __post_init__(self):
        # Frozen, so normalize through object.__setattr__
        object.__setattr__(self, 'draw_date', normalize_draw_date(self.draw_date))
        object.__setattr__(self, 'standard_numbers', tuple(self.standard_numbers))
        if self.extra_numbers is not None:
            object.__setattr__(self, 'extra_numbers', tuple(self.extra_numbers))

    def same_draw(self, other: 'DrawRecord') -> bool:
        return self.draw_date == other.draw_date


@dataclass(frozen=True)
class NumberRanges:
    """Inclusive number pools for a lottery.

    When no bonus bounds are given the bonus is drawn from the standard pool.
    Extra bounds are ``None`` when the lottery has no extra game.
    """

    standard_low: int
    standard_high: int
    standard_pick_count: int
    bonus_low: Optional[int] = None
    bonus_high: Optional[int] = None
    extra_low: Optional[int] = None
    extra_high: Optional[int] = None

    def __post_init__(self):
        if self.bonus_low is None or self.bonus_high is None:
            object.__setattr__(self, 'bonus_low', self.standard_low)
            object.__setattr__(self, 'bonus_high', self.standard_high)

        if self.standard_low > self.standard_high:
            raise ConfigurationError(
                f"Standard range is inverted: {self.standard_low} > {self.standard_high}")
        if self.standard_pick_count <= 0 or self.standard_pick_count > self.standard_span:
            raise ConfigurationError(
                f"Cannot pick {self.standard_pick_count} numbers from a pool of {self.standard_span}")
        if self.bonus_low > self.bonus_high:
            raise ConfigurationError(f"Bonus range is inverted: {self.bonus_low} > {self.bonus_high}")
        if (self.extra_low is None) != (self.extra_high is None):
            raise ConfigurationError("Extra range needs both a low and a high bound")
        if self.has_extra and self.extra_low > self.extra_high:
            raise ConfigurationError(f"Extra range is inverted: {self.extra_low} > {self.extra_high}")

    @property
    def standard_span(self) -> int:
        return self.standard_high - self.standard_low + 1

    @property
    def extra_span(self) -> int:
        return self.extra_high - self.extra_low + 1 if self.has_extra else 0

    @property
    def bonus_shares_standard_pool(self) -> bool:
        return self.bonus_low == self.standard_low and self.bonus_high == self.standard_high

    @property
    def has_extra(self) -> bool:
        return self.extra_low is not None


@dataclass(frozen=True)
class DrawTime:
    """Local draw time and the fixed UTC offset (hours) of the series."""

    hour: int
    minute: int
    timezone_offset_hours: float = 0.0

    def __post_init__(self):
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ConfigurationError(f"Invalid draw time {self.hour:02d}:{self.minute:02d}")


@dataclass(frozen=True)
class CalendarConfig:
    """Weekly draw schedule of a series.

    ``first_recorded_draw_date`` is ``None`` when it was never set; an
    extraction may infer it later.
    """

    draw_days: FrozenSet[int]
    draw_time: DrawTime = field(default_factory=lambda: DrawTime(0, 0))
    first_recorded_draw_date: Optional[date] = None

    def __post_init__(self):
        object.__setattr__(self, 'draw_days', frozenset(self.draw_days))
        if not self.draw_days:
            raise ConfigurationError("A series needs at least one draw day")
        invalid = [d for d in self.draw_days if d not in range(7)]
        if invalid:
            raise ConfigurationError(f"Invalid weekdays {sorted(invalid)}; expected 0 (Monday) to 6 (Sunday)")
        if self.first_recorded_draw_date is not None:
            object.__setattr__(self, 'first_recorded_draw_date',
                               normalize_draw_date(self.first_recorded_draw_date))

    @property
    def timezone_offset_hours(self) -> float:
        return self.draw_time.timezone_offset_hours


# Combining: keep the left value unless it is empty/default, else take the right.

def _pick(left, right):
    if left is None:
        return right
    if isinstance(left, bool):
        return left or right
    if isinstance(left, (int, Decimal, float)):
        return left if left > 0 else right
    if isinstance(left, (str, tuple)):
        return left if len(left) > 0 else right
    return left


def combine_prize(left: PrizeInfo, right: PrizeInfo) -> PrizeInfo:
    return PrizeInfo(
        prize_tier=_pick(left.prize_tier, right.prize_tier),
        numbers_required_to_match=_pick(left.numbers_required_to_match, right.numbers_required_to_match),
        bonus_required=_pick(left.bonus_required, right.bonus_required),
        prize_amount=_pick(left.prize_amount, right.prize_amount),
        winner_count=_pick(left.winner_count, right.winner_count),
        description=_pick(left.description, right.description),
        winner_location=_pick(left.winner_location, right.winner_location),
    )


def combine_prize_breakdowns(left: Optional[Iterable[PrizeInfo]],
                             right: Optional[Iterable[PrizeInfo]]) -> Optional[Tuple[PrizeInfo, ...]]:
    """Union two prize lists by tier, field-combining tiers present on both sides."""
    if not left:
        return tuple(right) if right else left
    if not right:
        return tuple(left)

    by_tier: Dict[int, PrizeInfo] = {}
    for prize in left:
        by_tier[prize.prize_tier] = prize
    for prize in right:
        existing = by_tier.get(prize.prize_tier)
        by_tier[prize.prize_tier] = prize if existing is None else combine_prize(existing, prize)

    return tuple(by_tier[tier] for tier in sorted(by_tier))


def combine_verbose_info(left: Optional[VerboseDrawInfo],
                         right: Optional[VerboseDrawInfo]) -> Optional[VerboseDrawInfo]:
    if left is None:
        return right
    if right is None:
        return left
    return VerboseDrawInfo(
        jackpot_amount=_pick(left.jackpot_amount, right.jackpot_amount),
        prize_breakdown=combine_prize_breakdowns(left.prize_breakdown, right.prize_breakdown) or (),
        extra_prize_breakdown=combine_prize_breakdowns(left.extra_prize_breakdown, right.extra_prize_breakdown),
    )


def combine_records(left: DrawRecord, right: DrawRecord) -> DrawRecord:
    """Fill the gaps of ``left`` with data from ``right``.

    Args:
        left: The record already known
        right: The incoming record for the same draw date

    Returns:
        A new combined record

    Raises:
        ValueError: If the records belong to different draws
    """
    if not left.same_draw(right):
        raise ValueError(f"Cannot combine draws from {left.draw_date} and {right.draw_date}")

    return replace(
        left,
        draw_index=_pick(left.draw_index, right.draw_index),
        standard_numbers=_pick(left.standard_numbers, right.standard_numbers),
        bonus_number=_pick(left.bonus_number, right.bonus_number),
        extra_numbers=_pick(left.extra_numbers, right.extra_numbers),
        verbose_info=combine_verbose_info(left.verbose_info, right.verbose_info),
    )
