from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Union

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shoplog.errors import StorageError

from . import models, schemas

logger = logging.getLogger(__name__)

_LINE_ITEMS = TypeAdapter(List[schemas.LineItem])


@dataclass(frozen=True)
class DecodedLineItems:
    items: List[schemas.LineItem]


@dataclass(frozen=True)
class DecodeError:
    reason: str


DecodeResult = Union[DecodedLineItems, DecodeError]


def decode_line_items(raw: str) -> DecodeResult:
    """
    Turn the JSON `items` field of a submission into line items.

    Never raises: callers branch on the result type before touching any
    store.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        return DecodeError(f"not valid JSON ({exc})")
    if not isinstance(data, list):
        return DecodeError("expected a JSON array of line items")
    if not data:
        return DecodeError("no line items")
    try:
        items = _LINE_ITEMS.validate_python(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        return DecodeError(f"{location}: {first['msg']}")
    return DecodedLineItems(items=items)


def render_line_item(item: schemas.LineItem) -> str:
    price = f", ${item.unit_price:.2f} each" if item.unit_price else ""
    return f"{item.name} (Qty: {item.quantity}{price})"


def build_item_summary(items: Iterable[schemas.LineItem]) -> str:
    return ", ".join(render_line_item(item) for item in items)


def encode_line_items(items: Iterable[schemas.LineItem]) -> str:
    return json.dumps([item.to_json_dict() for item in items])


def append_entry(db: Session, *, transaction: schemas.TransactionCreate) -> models.LedgerEntry:
    entry = models.LedgerEntry(
        user_name=transaction.user_name,
        line_items_json=encode_line_items(transaction.line_items),
        total_amount=transaction.total_amount,
        timestamp=transaction.timestamp,
        item_summary=transaction.item_summary,
    )
    try:
        db.add(entry)
        db.commit()
        db.refresh(entry)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Error logging to ledger",
            extra={"user_name": transaction.user_name, "error": str(exc)},
        )
        raise StorageError(f"Could not write ledger entry: {exc}") from exc
    logger.info("Added ledger entry", extra={"entry_id": entry.id, "user_name": entry.user_name})
    return entry


def list_entries(db: Session, *, skip: int = 0, limit: int = 100) -> List[models.LedgerEntry]:
    try:
        return (
            db.query(models.LedgerEntry)
            .order_by(models.LedgerEntry.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not read ledger: {exc}") from exc
