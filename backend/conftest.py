from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SHOPLOG_LEDGER_DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("SHOPLOG_CATALOG_DATABASE_URL", None)
os.environ["SHOPLOG_TIMEZONE"] = "UTC"

from shoplog.config import Settings  # noqa: E402
from shoplog.database import Base  # noqa: E402
from shoplog.apps.catalog import models as catalog_models  # noqa: E402
from shoplog.apps.ledger import models as ledger_models  # noqa: E402
from shoplog.apps.users import models as user_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(
        bind=engine,
        tables=[
            catalog_models.CatalogItem.__table__,
            ledger_models.LedgerEntry.__table__,
            user_models.KnownUser.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def settings():
    return Settings(
        ledger_database_url="sqlite+pysqlite:///:memory:",
        catalog_database_url="sqlite+pysqlite:///:memory:",
        timezone="UTC",
    )


@pytest.fixture()
def add_catalog_item(db_session):
    def _add(name, price=0, stock=0):
        item = catalog_models.CatalogItem(name=name, price=price, stock=stock)
        db_session.add(item)
        db_session.commit()
        return item

    return _add
