from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy import (Boolean, Column, Date, ForeignKey, Integer, JSON, Numeric, String,
                        UniqueConstraint)

Base = declarative_base()

class Draw(Base):
    """Model for storing one draw of a lottery series."""
    __tablename__ = 'draws'
    __table_args__ = (
        UniqueConstraint('series_id', 'draw_date', name='uq_draw_series_date'),
    )

    id = Column(Integer, primary_key=True, index=True)
    series_id = Column(String(32), nullable=False, index=True)
    draw_index = Column(Integer, nullable=False, default=-1)  # -1 when the source does not number draws
    draw_date = Column(Date, nullable=False, index=True)
    standard_numbers = Column(JSON, nullable=False)
    bonus = Column(Integer, nullable=False, default=0)
    extra_numbers = Column(JSON, nullable=True)
    jackpot = Column(Numeric(15, 2), nullable=True)  # Only set when the source published draw details

    prizes = relationship('Prize', back_populates='draw', cascade='all, delete-orphan',
                          order_by='Prize.tier')

    def __repr__(self):
        return f"<Draw(series={self.series_id}, date={self.draw_date})>"


class Prize(Base):
    """Model for one prize tier of a draw."""
    __tablename__ = 'prizes'
    __table_args__ = (
        UniqueConstraint('draw_id', 'is_extra', 'tier', name='uq_prize_draw_tier'),
    )

    id = Column(Integer, primary_key=True, index=True)
    draw_id = Column(Integer, ForeignKey('draws.id', ondelete='CASCADE'), nullable=False, index=True)
    tier = Column(Integer, nullable=False)
    is_extra = Column(Boolean, nullable=False, default=False)  # Prize of the extra game
    numbers_required_to_match = Column(Integer, nullable=False, default=0)
    bonus_required = Column(Boolean, nullable=False, default=False)
    amount = Column(Numeric(15, 2), nullable=False, default=0)
    winner_count = Column(Integer, nullable=False, default=0)
    description = Column(String(255), nullable=True)
    winner_location = Column(String(255), nullable=True)

    draw = relationship('Draw', back_populates='prizes')

    def __repr__(self):
        return f"<Prize(draw_id={self.draw_id}, tier={self.tier}, extra={self.is_extra})>"
