"""
SQLAlchemy engine, session, and base. DB url/path from config or default.
The engine and session factory are returned to the caller; nothing is kept at module level.
"""
import importlib
from datetime import datetime, timezone
import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

# Plugin packages whose models.py registers tables on Base
MODEL_MODULES = (
    "masjid.plugins.prayer_times.models",
    "masjid.plugins.announcements.models",
    "masjid.plugins.events.models",
    "masjid.plugins.contact.models",
)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for a single DB session. Commits on success, rolls back on error."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes (e.g. "+00:00" from a REST backend) become naive UTC; naive ones are already UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _default_db_url() -> str:
    base = Path.home() / ".masjid"
    base.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{base / 'masjid.db'}"


def resolve_db_url(config_data: Optional[dict] = None, db_url: Optional[str] = None) -> str:
    """
    Pick the database URL: explicit db_url, then database.url, then database.path (SQLite file),
    then ~/.masjid/masjid.db.
    """
    if db_url:
        return db_url
    db_config = (config_data or {}).get("database") or {}
    if db_config.get("url"):
        return db_config["url"]
    path = db_config.get("path")
    if path:
        path = Path(path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}"
    return _default_db_url()


def create_db_engine(config_data: Optional[dict] = None, db_url: Optional[str] = None) -> Engine:
    """Create the engine. In-memory SQLite shares a single connection so every thread sees the same data."""
    url = resolve_db_url(config_data, db_url)
    kwargs = {"echo": False, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    logger.info(f"Database engine created: {url.split('?')[0]}")
    return engine


def init_db(engine: Engine) -> sessionmaker:
    """Import all model modules, create tables, and return a session factory bound to engine."""
    for module_name in MODEL_MODULES:
        try:
            importlib.import_module(module_name)
        except ImportError:
            logger.warning(f"Model module not available: {module_name}")
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
