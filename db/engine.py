from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from db.base import Base
from db.models import User, ApiKey, LogEntry  # noqa: F401
import logging
import os

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Build an engine for the given URL.

    SQLite file databases get their directory created; in-memory SQLite is
    pinned to a single connection so every session sees the same tables.
    """
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        # Use check_same_thread only for SQLite
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        elif database_url.startswith("sqlite:///"):
            db_dir = os.path.dirname(database_url.replace("sqlite:///", ""))
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)

    return create_engine(database_url, connect_args=connect_args, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create tables"""
    Base.metadata.create_all(engine)
    logger.info(f"Tables ready: {', '.join(Base.metadata.tables.keys())}")
