"""SQLModel engine construction and table creation."""

import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from trade_ledger.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine, applying SQLite's threading flag where needed."""
    # SQLite needs check_same_thread=False; PostgreSQL does not
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    return create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)


engine = build_engine(settings.database_url)


def create_db_and_tables(bind: Engine | None = None):
    """Create all tables. Called on startup."""
    # Import for side effect: registers table metadata
    import trade_ledger.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ensured")
