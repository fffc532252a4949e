"""Engine and session handling for the SQL repository.

The engine is created on first use so importing the package never opens a
connection.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from teamride.config.settings import settings
from teamride.db.models import Base

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _engine_options(url: str) -> dict:
    if url.lower().startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def get_engine() -> Engine:
    """Return the shared engine, creating it from ``DATABASE_URL`` on first call."""
    global _engine
    if _engine is None:
        url = settings.database_url
        _engine = create_engine(url, echo=False, **_engine_options(url))
        logger.info(f"[DB] Engine created for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_factory


def init_db(engine: Engine | None = None) -> None:
    """Create the practice, roster and season tables that do not exist yet."""
    target = engine or get_engine()
    Base.metadata.create_all(bind=target)
    logger.info(f"[DB] Tables ready: {', '.join(sorted(Base.metadata.tables))}")


@contextmanager
def get_session(factory: sessionmaker | None = None) -> Generator[Session, None, None]:
    """Session scope: commit on success, roll back and re-raise on error, always close."""
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"[DB] Rolling back session after {type(e).__name__}: {e}")
        session.rollback()
        raise
    finally:
        session.close()
