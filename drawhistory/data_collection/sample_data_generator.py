"""
Sample draw source.

Generates plausible draws for any series without touching the network, so
extraction, storage and analysis can be tried offline. The same series and
date always produce the same draw.
"""
import logging
import random
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from ..lottery.records import DrawRecord, NumberRanges, PrizeInfo, VerboseDrawInfo
from .sources import DrawSource, FetchTarget, SteppingMode

logger = logging.getLogger(__name__)

def generate_random_draw(draw_date: date, ranges: NumberRanges, rng: random.Random) -> Dict[str, Any]:
    """Generate a random draw for a given date.

    Args:
        draw_date: The date for the draw
        ranges: Number pools to draw from
        rng: Random generator to use

    Returns:
        Dictionary with draw data
    """
    standard = sorted(rng.sample(range(ranges.standard_low, ranges.standard_high + 1),
                                 ranges.standard_pick_count))

    if ranges.bonus_shares_standard_pool:
        # The bonus ball comes out of the same drum, so it cannot repeat a standard number
        remaining = [n for n in range(ranges.standard_low, ranges.standard_high + 1) if n not in standard]
        bonus = rng.choice(remaining)
    else:
        bonus = rng.randint(ranges.bonus_low, ranges.bonus_high)

    extra = None
    if ranges.has_extra:
        extra = sorted(rng.sample(range(ranges.extra_low, ranges.extra_high + 1), min(4, ranges.extra_span)))

    # Jackpot between 1M and 50M
    jackpot = rng.randint(1000000, 50000000)

    return {
        'draw_date': draw_date,
        'standard_numbers': standard,
        'bonus': bonus,
        'extra_numbers': extra,
        'jackpot': jackpot,
    }


class SampleDrawSource(DrawSource):
    """Day-stepping source that makes up its draws.

    Args:
        ranges: Number pools of the generated draws
        first_draw_date: No draws exist before this date
        seed: Base seed; combined with the series and date for each draw
        min_request_interval: Seconds between fetches
    """

    name = 'sample'
    stepping = SteppingMode.DAY

    def __init__(self, ranges: NumberRanges, first_draw_date: Optional[date] = None,
                 seed: int = 0, min_request_interval: Optional[float] = 0.0):
        super().__init__(min_request_interval)
        self.ranges = ranges
        self.first_draw_date = first_draw_date
        self.seed = seed

    def fetch(self, series_id: str, target: FetchTarget) -> Optional[Dict[str, Any]]:
        if not isinstance(target, date):
            raise ValueError(f"{self.name} fetches single draw dates, got {target!r}")
        if self.first_draw_date is not None and target < self.first_draw_date:
            logger.debug(f"No sample draw before {self.first_draw_date}")
            return None

        rng = random.Random(f"{self.seed}:{series_id}:{target.isoformat()}")
        return generate_random_draw(target, self.ranges, rng)

    def parse_day(self, payload: Dict[str, Any]) -> Optional[DrawRecord]:
        jackpot = Decimal(payload['jackpot'])
        return DrawRecord(
            draw_date=payload['draw_date'],
            standard_numbers=tuple(payload['standard_numbers']),
            bonus_number=payload['bonus'],
            extra_numbers=tuple(payload['extra_numbers']) if payload['extra_numbers'] else None,
            verbose_info=VerboseDrawInfo(
                jackpot_amount=jackpot,
                prize_breakdown=(
                    PrizeInfo(prize_tier=1, numbers_required_to_match=self.ranges.standard_pick_count,
                              prize_amount=jackpot, description='Jackpot'),
                ),
            ),
        )

    def confirm_reachable(self) -> bool:
        return True
