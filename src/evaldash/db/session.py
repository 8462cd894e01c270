"""Database session management.

Engines and session factories are cached per resolved database path, so
the orchestrator and the API share one SQLite connection per file.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from evaldash.config import DEFAULT_DB_PATH
from evaldash.db.schema import Base

_engine_cache: dict[str, Engine] = {}
_session_factory_cache: dict[str, sessionmaker] = {}


def _resolve(db_path: Path | None) -> tuple[Path, str]:
    path = Path(db_path) if db_path is not None else DEFAULT_DB_PATH
    return path, str(path.resolve())


def get_engine(db_path: Path | None = None) -> Engine:
    """Get the (cached) SQLAlchemy engine for a SQLite file.

    StaticPool with check_same_thread=False lets FastAPI worker threads
    share the single connection.

    Args:
        db_path: Path to SQLite database file. Defaults to data/evaldash.db.

    Returns:
        SQLAlchemy engine instance.
    """
    path, key = _resolve(db_path)
    engine = _engine_cache.get(key)
    if engine is None:
        path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{path}",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _engine_cache[key] = engine
    return engine


def _get_session_factory(db_path: Path | None = None) -> sessionmaker:
    _, key = _resolve(db_path)
    factory = _session_factory_cache.get(key)
    if factory is None:
        factory = sessionmaker(bind=get_engine(db_path))
        _session_factory_cache[key] = factory
    return factory


def get_session(db_path: Path | None = None) -> Session:
    """Open a session. The caller closes it; prefer get_db_session()."""
    return _get_session_factory(db_path)()


@contextmanager
def get_db_session(db_path: Path | None = None) -> Generator[Session, None, None]:
    """Session scope: commit on success, roll back on error, always close.

    Example:
        with get_db_session(config.db_path) as session:
            ReportOrchestrator(session, config).run()
    """
    session = get_session(db_path)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_path: Path | None = None) -> None:
    """Create the report tables if they do not exist yet."""
    Base.metadata.create_all(get_engine(db_path))
