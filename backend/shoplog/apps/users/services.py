from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shoplog.apps.ledger import models as ledger_models
from shoplog.config import USERS_SOURCE_LEDGER, Settings
from shoplog.errors import StorageError

from . import models


def sort_user_names(names: Iterable[Optional[str]]) -> List[str]:
    """
    Distinct, non-empty names ordered case-insensitively. Names that differ
    only by case are kept apart and ordered by their original spelling, so
    "Alice" comes before "alice".
    """
    unique = {name for name in names if name}
    return sorted(unique, key=lambda name: (name.casefold(), name))


def list_users(db: Session, *, settings: Settings) -> List[str]:
    if settings.users_source == USERS_SOURCE_LEDGER:
        column = ledger_models.LedgerEntry.user_name
    else:
        column = models.KnownUser.name
    try:
        names = db.execute(select(column).distinct()).scalars().all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not read users: {exc}") from exc
    return sort_user_names(names)


def add_user(db: Session, *, name: str) -> models.KnownUser:
    user = models.KnownUser(name=name)
    db.add(user)
    db.flush()
    return user
