from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from shoplog.apps.catalog import services as catalog_services
from shoplog.apps.ledger import schemas as ledger_schemas
from shoplog.apps.ledger import services as ledger_services
from shoplog.config import Settings
from shoplog.errors import MalformedPayloadError, MissingFieldError, StorageError
from shoplog.utils.coercion import parse_decimal_or_default
from shoplog.utils.timestamps import format_ledger_timestamp

from . import schemas

logger = logging.getLogger(__name__)


def _require_fields(**fields: Optional[str]) -> None:
    missing = tuple(name for name, value in fields.items() if not value or not value.strip())
    if missing:
        logger.warning("Missing required parameters", extra={"missing": list(missing)})
        raise MissingFieldError(fields=missing)


def _build_transaction(
    *,
    user_name: str,
    line_items: List[ledger_schemas.LineItem],
    total_amount: Decimal,
    timestamp: Optional[str],
    settings: Settings,
) -> ledger_schemas.TransactionCreate:
    return ledger_schemas.TransactionCreate(
        user_name=user_name,
        line_items=line_items,
        total_amount=total_amount,
        timestamp=format_ledger_timestamp(timestamp, tz_name=settings.timezone),
        item_summary=ledger_services.build_item_summary(line_items),
    )


def _append(ledger_db: Session, transaction: ledger_schemas.TransactionCreate) -> schemas.SubmissionResult:
    try:
        entry = ledger_services.append_entry(ledger_db, transaction=transaction)
    except StorageError as exc:
        logger.warning("Failed to log items to ledger", extra={"error": exc.message})
        return schemas.SubmissionResult(success=False, error=exc.message)
    return schemas.SubmissionResult(success=True, entry_id=entry.id)


def submit_transaction(
    ledger_db: Session,
    catalog_db: Session,
    *,
    settings: Settings,
    payload: schemas.TransactionSubmission,
) -> schemas.SubmissionResult:
    """
    Validate, log, then deduct stock.

    Validation failures raise before anything is written. A failed ledger
    write comes back as an unsuccessful result and stock is left alone. Once
    the ledger entry is written the submission counts as a success, even if
    some stock writes fail afterwards; those failures are only logged and
    reported in `result.stock`.
    """
    _require_fields(
        userName=payload.user_name,
        lineItems=payload.line_items,
        totalAmount=payload.total_amount,
        timestamp=payload.timestamp,
    )

    decoded = ledger_services.decode_line_items(payload.line_items)
    if isinstance(decoded, ledger_services.DecodeError):
        logger.warning("Error parsing items JSON", extra={"reason": decoded.reason})
        raise MalformedPayloadError(f"Invalid items data: {decoded.reason}")

    transaction = _build_transaction(
        user_name=payload.user_name,
        line_items=decoded.items,
        total_amount=parse_decimal_or_default(payload.total_amount, Decimal("0")),
        timestamp=payload.timestamp,
        settings=settings,
    )

    result = _append(ledger_db, transaction)
    if not result.success:
        return result

    report = catalog_services.update_stock_levels(
        catalog_db,
        deductions=[(item.name, item.quantity) for item in decoded.items],
        settings=settings,
    )
    if not report.ok:
        # The ledger entry stays; stock and ledger now disagree for these rows.
        logger.error(
            "Ledger entry written but stock update incomplete",
            extra={"entry_id": result.entry_id, "failures": [f.model_dump() for f in report.failures]},
        )
    result.stock = report
    logger.info("Successfully logged items", extra={"entry_id": result.entry_id})
    return result


def submit_legacy_item(
    ledger_db: Session,
    *,
    settings: Settings,
    payload: schemas.LegacyItemSubmission,
) -> schemas.SubmissionResult:
    """
    Single-item logging kept for older clients: quantity 1, no price, zero
    total. Never touches catalog stock.
    """
    _require_fields(
        userName=payload.user_name,
        item=payload.item_name,
        timestamp=payload.timestamp,
    )

    line_items = [ledger_schemas.LineItem(name=payload.item_name, quantity=1, unit_price=Decimal("0"))]
    transaction = _build_transaction(
        user_name=payload.user_name,
        line_items=line_items,
        total_amount=Decimal("0"),
        timestamp=payload.timestamp,
        settings=settings,
    )

    result = _append(ledger_db, transaction)
    if result.success:
        logger.info("Successfully logged single item", extra={"entry_id": result.entry_id})
    return result
