from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from drawhistory.config import Config

# Database URL from environment or default to SQLite
DATABASE_URL = Config.DATABASE_URL

# Create SQLAlchemy engine
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {}
)

# Create session factory
SessionLocal = scoped_session(
    sessionmaker(autocommit=False, autoflush=False, bind=engine)
)

def get_db():
    """Yield a database session and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    """Create all tables.

    Args:
        bind: Engine to create the tables on, defaults to the configured one
    """
    from drawhistory.models.base import Base
    Base.metadata.create_all(bind=bind or engine)
