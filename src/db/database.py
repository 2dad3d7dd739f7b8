import logging
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import get_settings

logger = logging.getLogger(__name__)


def get_engine(db_url: str, echo: bool = False) -> Engine:
    """Creates a synchronous SQLAlchemy engine. SQLite connections may be shared across threads."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, echo=echo, connect_args=connect_args, pool_pre_ping=True)


_settings = get_settings()

# Configure the database engine from settings (KSA_DATABASE_URL)
engine = get_engine(_settings.database_url, echo=_settings.database_echo)

# Create a configured "Session" class
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(bind: Engine = engine) -> None:
    """Creates missing tables."""
    # Imported here so the models register on Base.metadata
    from src.db.models import Base
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured.")


def get_db() -> Iterator[Session]:
    """FastAPI dependency providing a database session."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Error in get_db during yield: {e}", exc_info=True)
        raise
    finally:
        db.close()
