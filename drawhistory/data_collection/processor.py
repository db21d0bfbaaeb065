from typing import List, Optional, Sequence
import logging
from decimal import Decimal
from sqlalchemy.orm import Session, selectinload
from ..models.base import Draw, Prize
from ..database import SessionLocal
from ..lottery.records import DrawRecord, PrizeInfo, VerboseDrawInfo, combine_records

logger = logging.getLogger(__name__)

class DrawArchive:
    """Load and save the draw records of one series in the database.

    Args:
        series_id: Series whose rows are read and written
        db: Session to use, defaults to a new SessionLocal session
    """

    def __init__(self, series_id: str, db: Optional[Session] = None):
        self.series_id = series_id
        self.db = db or SessionLocal()

    def import_records(self) -> List[DrawRecord]:
        """Read every stored draw of the series, oldest first."""
        draws = (
            self.db.query(Draw)
            .options(selectinload(Draw.prizes))
            .filter(Draw.series_id == self.series_id)
            .order_by(Draw.draw_date.asc())
            .all()
        )
        records = [self._to_record(draw) for draw in draws]
        logger.info(f"Loaded {len(records)} {self.series_id} draws from the database")
        return records

    def export_records(self, records: Sequence[DrawRecord]) -> int:
        """Write draw records, combining them with rows already stored.

        Args:
            records: Records to save

        Returns:
            int: Number of new draws added to the database
        """
        if not records:
            return 0

        new_draws = 0
        try:
            for record in records:
                if self._save_record(record):
                    new_draws += 1
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error committing to database: {e}")
            raise

        logger.info(f"Saved {len(records)} {self.series_id} draws ({new_draws} new)")
        return new_draws

    def _save_record(self, record: DrawRecord) -> bool:
        """Insert or update the row for one record.

        Returns:
            bool: True if a new row was added
        """
        draw = (
            self.db.query(Draw)
            .filter(Draw.series_id == self.series_id, Draw.draw_date == record.draw_date)
            .first()
        )
        is_new = draw is None
        if is_new:
            draw = Draw(series_id=self.series_id, draw_date=record.draw_date)
            self.db.add(draw)
        else:
            record = combine_records(record, self._to_record(draw))

        draw.draw_index = record.draw_index
        draw.standard_numbers = list(record.standard_numbers)
        draw.bonus = record.bonus_number
        draw.extra_numbers = list(record.extra_numbers) if record.extra_numbers is not None else None

        info = record.verbose_info
        draw.jackpot = info.jackpot_amount if info is not None else None
        if draw.prizes:
            draw.prizes = []
            # Old prize rows must be gone before new ones hit the unique constraint
            self.db.flush()
        if info is not None:
            draw.prizes.extend(self._to_prize(p, False) for p in info.prize_breakdown)
            if info.extra_prize_breakdown:
                draw.prizes.extend(self._to_prize(p, True) for p in info.extra_prize_breakdown)

        self.db.flush()
        return is_new

    @staticmethod
    def _to_prize(prize: PrizeInfo, is_extra: bool) -> Prize:
        return Prize(
            tier=prize.prize_tier,
            is_extra=is_extra,
            numbers_required_to_match=prize.numbers_required_to_match,
            bonus_required=prize.bonus_required,
            amount=prize.prize_amount,
            winner_count=prize.winner_count,
            description=prize.description,
            winner_location=prize.winner_location,
        )

    @staticmethod
    def _to_record(draw: Draw) -> DrawRecord:
        info = None
        if draw.jackpot is not None or draw.prizes:
            standard = [p for p in draw.prizes if not p.is_extra]
            extra = [p for p in draw.prizes if p.is_extra]
            info = VerboseDrawInfo(
                jackpot_amount=Decimal(draw.jackpot) if draw.jackpot is not None else Decimal('0'),
                prize_breakdown=tuple(DrawArchive._to_prize_info(p) for p in sorted(standard, key=lambda p: p.tier)),
                extra_prize_breakdown=(
                    tuple(DrawArchive._to_prize_info(p) for p in sorted(extra, key=lambda p: p.tier))
                    if extra else None
                ),
            )

        return DrawRecord(
            draw_date=draw.draw_date,
            standard_numbers=tuple(draw.standard_numbers),
            bonus_number=draw.bonus or 0,
            extra_numbers=tuple(draw.extra_numbers) if draw.extra_numbers is not None else None,
            draw_index=draw.draw_index if draw.draw_index is not None else -1,
            verbose_info=info,
        )

    @staticmethod
    def _to_prize_info(prize: Prize) -> PrizeInfo:
        return PrizeInfo(
            prize_tier=prize.tier,
            numbers_required_to_match=prize.numbers_required_to_match or 0,
            bonus_required=bool(prize.bonus_required),
            prize_amount=Decimal(prize.amount) if prize.amount is not None else Decimal('0'),
            winner_count=prize.winner_count or 0,
            description=prize.description,
            winner_location=prize.winner_location,
        )

    def count(self) -> int:
        """Number of stored draws for the series."""
        return self.db.query(Draw).filter(Draw.series_id == self.series_id).count()

    def close(self):
        """Close the database session."""
        if hasattr(self, 'db') and self.db:
            self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
