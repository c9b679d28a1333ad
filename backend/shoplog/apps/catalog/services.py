from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shoplog.config import Settings
from shoplog.errors import ConcurrentModificationError, StorageError
from shoplog.utils.coercion import parse_decimal_or_default, parse_int_or_default

from . import models, schemas

logger = logging.getLogger(__name__)


def _read_rows(db: Session) -> Sequence[Any]:
    try:
        return db.execute(
            select(models.CatalogItem.id, models.CatalogItem.name, models.CatalogItem.stock).order_by(
                models.CatalogItem.id
            )
        ).all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not read catalog: {exc}") from exc


def _stock_map(rows: Iterable[Any]) -> Dict[str, int]:
    row_ids: Dict[str, int] = {}
    for row in rows:
        if row.name:
            row_ids[row.name] = row.id
    return row_ids


def list_items(db: Session) -> List[schemas.CatalogItemRead]:
    """
    All named catalog rows in storage order, with price and stock coerced
    leniently (anything unparsable reads as 0).
    """
    try:
        rows = (
            db.execute(
                select(models.CatalogItem)
                .order_by(models.CatalogItem.id)
                .execution_options(populate_existing=True)
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not read catalog: {exc}") from exc

    return [
        schemas.CatalogItemRead(
            name=row.name,
            price=parse_decimal_or_default(row.price, Decimal("0")),
            stock=parse_int_or_default(row.stock, 0),
        )
        for row in rows
        if row.name
    ]


def read_stock_map(db: Session) -> Dict[str, int]:
    """
    Map item name -> row id. When a name appears on several rows the last
    one wins.
    """
    return _stock_map(_read_rows(db))


def add_item(db: Session, *, payload: schemas.CatalogItemCreate) -> models.CatalogItem:
    item = models.CatalogItem(name=payload.name, price=payload.price, stock=payload.stock)
    db.add(item)
    db.flush()
    return item


def adjust_stock(
    db: Session,
    *,
    row_id: int,
    expected: Any,
    delta: int,
    retries: int,
) -> Tuple[int, int]:
    """
    Compare-and-swap `stock = expected + delta` on one catalog row.

    `expected` is the raw stored value the caller last saw. If the row has
    moved on, it is re-read and the write retried up to `retries` times.
    Each successful write is committed on its own. Returns (before, after).
    """
    current = expected
    for attempt in range(retries + 1):
        before = parse_int_or_default(current, 0)
        after = before + delta
        if current is None:
            unchanged = models.CatalogItem.stock.is_(None)
        else:
            unchanged = models.CatalogItem.stock == current
        try:
            result = db.execute(
                update(models.CatalogItem)
                .where(models.CatalogItem.id == row_id, unchanged)
                .values(stock=after)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                db.commit()
                return before, after
            db.rollback()
            row = db.execute(
                select(models.CatalogItem.stock).where(models.CatalogItem.id == row_id)
            ).one_or_none()
        except (SQLAlchemyError, OverflowError) as exc:
            # OverflowError: the driver cannot bind an integer that large.
            db.rollback()
            raise StorageError(f"Could not update stock for catalog row {row_id}: {exc}") from exc

        if row is None:
            raise ConcurrentModificationError(f"Catalog row {row_id} no longer exists")
        current = row.stock
        logger.info(
            "Catalog row changed during stock update, retrying",
            extra={"row_id": row_id, "attempt": attempt + 1, "stock": current},
        )

    raise ConcurrentModificationError(
        f"Catalog row {row_id} kept changing; gave up after {retries + 1} attempts"
    )


def update_stock_levels(
    db: Session,
    *,
    deductions: Iterable[Tuple[str, int]],
    settings: Settings,
) -> schemas.StockUpdateReport:
    """
    Subtract each (name, quantity) from the matching catalog row.

    The catalog is read once. Names without a row are skipped. Writes are
    independent, so a failure part-way leaves earlier rows updated; failures
    are logged and reported, never raised. Stock is not clamped at zero.
    """
    report = schemas.StockUpdateReport()
    try:
        rows = _read_rows(db)
    except StorageError as exc:
        logger.warning("Error updating stock levels", extra={"error": str(exc)})
        report.failures.append(schemas.StockFailure(name="*", error=str(exc)))
        return report

    row_ids = _stock_map(rows)
    current = {row.id: row.stock for row in rows}

    for name, quantity in deductions:
        row_id = row_ids.get(name)
        if row_id is None:
            report.skipped.append(name)
            continue
        try:
            before, after = adjust_stock(
                db,
                row_id=row_id,
                expected=current[row_id],
                delta=-quantity,
                retries=settings.stock_update_retries,
            )
        except StorageError as exc:
            logger.warning(
                "Error updating stock level",
                extra={"item": name, "row_id": row_id, "error": str(exc)},
            )
            report.failures.append(schemas.StockFailure(name=name, row_id=row_id, error=str(exc)))
            continue

        current[row_id] = after
        report.changes.append(schemas.StockChange(name=name, row_id=row_id, before=before, after=after))
        logger.info("Updated stock", extra={"item": name, "before": before, "after": after})

    return report
