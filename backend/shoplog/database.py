# backend/shoplog/database.py
"""
Database configuration for the shop logger.

Key goals:
- Separate ledger and catalog engines (the two stores may live apart).
- Sensible connection pooling for server databases, none for SQLite.
- Engines are built lazily from `Settings`, so importing models is free.
"""

import os
from functools import lru_cache
from typing import Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings

# Pool tuning – only applied to server databases.
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))          # seconds
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE_SEC", "1800"))    # 30 minutes

COMMON_ENGINE_KWARGS = {
    "pool_pre_ping": True,                # detect dead connections
    "pool_size": POOL_SIZE,
    "max_overflow": MAX_OVERFLOW,
    "pool_timeout": POOL_TIMEOUT,
    "pool_recycle": POOL_RECYCLE,
}

# Declarative base for all models
Base = declarative_base()


def engine_kwargs(url: str) -> Dict[str, object]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return dict(COMMON_ENGINE_KWARGS)


def build_engine(url: str) -> Engine:
    return create_engine(url, **engine_kwargs(url))


# -------------------------------------------------------------------
# ENGINES
# -------------------------------------------------------------------

@lru_cache(maxsize=None)
def _engine_for(url: str) -> Engine:
    return build_engine(url)


def get_ledger_engine() -> Engine:
    return _engine_for(get_settings().ledger_database_url)


def get_catalog_engine() -> Engine:
    # Same URL -> same engine, so a single-database deployment shares a pool.
    return _engine_for(get_settings().catalog_database_url)


@lru_cache(maxsize=None)
def session_factory(url: str) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=_engine_for(url))


def init_db() -> None:
    """
    Create missing tables on both stores. There is no migration tooling;
    existing tables are left alone.
    """
    from .apps.catalog import models as catalog_models
    from .apps.ledger import models as ledger_models
    from .apps.users import models as user_models

    Base.metadata.create_all(
        bind=get_ledger_engine(),
        tables=[ledger_models.LedgerEntry.__table__, user_models.KnownUser.__table__],
    )
    Base.metadata.create_all(
        bind=get_catalog_engine(),
        tables=[catalog_models.CatalogItem.__table__],
    )


# -------------------------------------------------------------------
# DEPENDENCIES (for FastAPI)
# -------------------------------------------------------------------

def get_ledger_db():
    """
    Session on the ledger store (log entries and the users source).
    """
    db = session_factory(get_settings().ledger_database_url)()
    try:
        yield db
    finally:
        db.close()


def get_catalog_db():
    """
    Session on the catalog store (items, prices, stock).
    """
    db = session_factory(get_settings().catalog_database_url)()
    try:
        yield db
    finally:
        db.close()
