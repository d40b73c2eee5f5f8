"""SQLAlchemy engine, session factory and request-scoped sessions."""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cvtailor.core.config import get_settings
from cvtailor.core.logging import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


class Base(DeclarativeBase):
    pass


def configure_engine(database_url: str) -> Engine:
    """Create the engine and session factory for the given URL."""
    global _engine, _session_factory

    kwargs: dict = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory databases live only as long as their single connection
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool

    _engine = create_engine(database_url, **kwargs)
    _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    logger.info("Database engine configured for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_engine() -> Engine:
    """Lazy initialization of the engine from settings."""
    if _engine is None:
        return configure_engine(get_settings().database_url)
    return _engine


def reset_engine() -> None:
    """Dispose the cached engine. Call after changing DATABASE_URL."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def session_factory() -> sessionmaker[Session]:
    get_engine()
    assert _session_factory is not None
    return _session_factory


def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Table classes must be registered on Base.metadata before create_all
    from cvtailor.db import tables  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session that is always closed."""
    db = session_factory()()
    try:
        yield db
    finally:
        db.close()
