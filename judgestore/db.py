"""Database engine construction and session management."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from judgestore.core.config import Settings

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()


def create_store_engine(settings: Settings) -> Engine:
    """Create the database engine for the configured connection string."""
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        # SQLite configuration (development and tests only)
        if settings.is_production:
            logger.warning("Using SQLite - not recommended for production")
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        # Connection pooling configuration
        pool_size=settings.pool_size,
        max_overflow=settings.pool_size,
        pool_timeout=settings.connect_timeout_seconds,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=False,
        connect_args={
            "connect_timeout": settings.connect_timeout_seconds,
            "application_name": "judgestore",
        } if url.get_backend_name() == "postgresql" else {}
    )


def ping(engine: Engine) -> None:
    """Round-trip a trivial statement to prove the database is reachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Yield a session that is committed on success and always released."""
    db = factory()
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
    finally:
        db.close()
