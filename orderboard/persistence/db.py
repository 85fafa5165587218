from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from orderboard.core.config import get_settings
from orderboard.persistence.models import Base

logger = logging.getLogger(__name__)


def create_engine_from_url(url: str) -> Engine:
    """SQLite sessions are opened from FastAPI's threadpool and the event loop alike."""
    connect_args = {}
    if make_url(url).get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
    return create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)


def _session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


engine = create_engine_from_url(get_settings().database_url)
SessionLocal = _session_factory(engine)


def configure_engine(url: str) -> Engine:
    """Point the module at another database, e.g. a per-run test file."""
    global engine, SessionLocal
    engine.dispose()
    engine = create_engine_from_url(url)
    SessionLocal = _session_factory(engine)
    logger.info("order database configured: %s", engine.url.render_as_string(hide_password=True))
    return engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    Base.metadata.drop_all(bind=engine)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
