"""
SQLite engine and session handling for the entry store.

The server is the only writer; one engine is cached per database file.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from screendiary.core.config import Config
from screendiary.core.models import Base

# One engine per database file
_engines: Dict[str, Engine] = {}


def get_engine(config: Config) -> Engine:
    """
    Get (or create) the SQLAlchemy engine for the configured database.

    Uses SQLite with WAL mode and enforced foreign keys.
    """
    db_path = Path(config.database_path)
    key = str(db_path.resolve())

    if key in _engines:
        return _engines[key]

    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Enable WAL mode for concurrent dashboard reads while the server writes
    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.commit()

    _engines[key] = engine
    return engine


def dispose_engine(config: Config) -> None:
    """Close pooled connections for the configured database."""
    key = str(Path(config.database_path).resolve())
    engine = _engines.pop(key, None)
    if engine is not None:
        engine.dispose()


def init_db(config: Config) -> None:
    """Create the users and entries tables if missing."""
    engine = get_engine(config)
    Base.metadata.create_all(engine)


def get_session(config: Config) -> Session:
    """New ORM session. Loaded rows stay readable after commit."""
    engine = get_engine(config)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    return SessionLocal()


@contextmanager
def session_scope(config: Config) -> Generator[Session, None, None]:
    """
    Commit on success, roll back and re-raise on any error.

        with session_scope(config) as session:
            session.add(entry)
    """
    session = get_session(config)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
