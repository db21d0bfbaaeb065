from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from drawhistory.lottery.calendar import DrawCalendar
from drawhistory.lottery.records import CalendarConfig, DrawTime, NumberRanges
from drawhistory.lottery.store import ResultStore
from drawhistory.models.base import Base

from fakes import FixedClock

WEDNESDAY, SATURDAY = 2, 5


@pytest.fixture
def clock():
    # Saturday 2024-01-20, before that evening's draw
    return FixedClock(datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def calendar_config():
    return CalendarConfig(
        draw_days=frozenset({WEDNESDAY, SATURDAY}),
        draw_time=DrawTime(19, 30),
        first_recorded_draw_date=date(2023, 12, 2),
    )


@pytest.fixture
def calendar(calendar_config, clock):
    return DrawCalendar(calendar_config, clock)


@pytest.fixture
def ranges():
    return NumberRanges(1, 49, 6)


@pytest.fixture
def store():
    return ResultStore(lock_timeout=0.05)


@pytest.fixture
def db_session():
    engine = create_engine('sqlite://')
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
