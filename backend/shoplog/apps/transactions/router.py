from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from shoplog.apps.catalog import schemas as catalog_schemas
from shoplog.apps.catalog import services as catalog_services
from shoplog.apps.ledger import schemas as ledger_schemas
from shoplog.apps.ledger import services as ledger_services
from shoplog.apps.users import services as user_services
from shoplog.config import Settings, get_settings
from shoplog.database import get_catalog_db, get_ledger_db
from shoplog.errors import ShopLogError, StorageError

from . import schemas, services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["shop-logger"])

ACTION_LOG_ITEMS = "logItems"
ACTION_LOG_ITEM = "logItem"
ACTION_GET_USERS = "getUsers"
ACTION_GET_ITEMS = "getItems"

RUNNING_BANNER = "Shop Logger is running! Use POST requests to log items."


# -------------------------------------------------------------------
# FORM ENDPOINTS (action-dispatched, plain text for writes)
# -------------------------------------------------------------------

@router.post("/", response_class=PlainTextResponse)
def do_post(
    action: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    items: Optional[str] = Form(None),
    total_amount: Optional[str] = Form(None, alias="totalAmount"),
    timestamp: Optional[str] = Form(None),
    item: Optional[str] = Form(None),
    ledger_db: Session = Depends(get_ledger_db),
    catalog_db: Session = Depends(get_catalog_db),
    settings: Settings = Depends(get_settings),
) -> str:
    action = action or ACTION_LOG_ITEMS
    logger.info("Received POST request", extra={"action": action})
    try:
        if action == ACTION_LOG_ITEMS:
            result = services.submit_transaction(
                ledger_db,
                catalog_db,
                settings=settings,
                payload=schemas.TransactionSubmission(
                    user_name=name,
                    line_items=items,
                    total_amount=total_amount,
                    timestamp=timestamp,
                ),
            )
        elif action == ACTION_LOG_ITEM:
            result = services.submit_legacy_item(
                ledger_db,
                settings=settings,
                payload=schemas.LegacyItemSubmission(user_name=name, item_name=item, timestamp=timestamp),
            )
        else:
            return "Error: Unknown action"
    except ShopLogError as exc:
        return f"Error: {exc.message}"
    except Exception as exc:  # noqa: BLE001 - every failure is answered as text
        logger.exception("Error in POST handler", extra={"action": action})
        return f"Error: {exc}"
    return result.as_text()


@router.get("/")
def do_get(
    action: Optional[str] = None,
    ledger_db: Session = Depends(get_ledger_db),
    catalog_db: Session = Depends(get_catalog_db),
    settings: Settings = Depends(get_settings),
):
    if action == ACTION_GET_USERS:
        try:
            users = user_services.list_users(ledger_db, settings=settings)
        except StorageError as exc:
            logger.warning("Error getting existing users", extra={"error": exc.message})
            users = []
        return JSONResponse(content=users)
    if action == ACTION_GET_ITEMS:
        try:
            catalog = [entry.model_dump(mode="json") for entry in catalog_services.list_items(catalog_db)]
        except StorageError as exc:
            logger.warning("Error getting available items", extra={"error": exc.message})
            catalog = []
        return JSONResponse(content=catalog)
    return PlainTextResponse(RUNNING_BANNER)


# -------------------------------------------------------------------
# JSON READS
# -------------------------------------------------------------------

def _unavailable(exc: StorageError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)


@router.get("/users", response_model=List[str])
def list_users(
    ledger_db: Session = Depends(get_ledger_db),
    settings: Settings = Depends(get_settings),
):
    try:
        return user_services.list_users(ledger_db, settings=settings)
    except StorageError as exc:
        raise _unavailable(exc) from exc


@router.get("/items", response_model=List[catalog_schemas.CatalogItemRead])
def list_items(catalog_db: Session = Depends(get_catalog_db)):
    try:
        return catalog_services.list_items(catalog_db)
    except StorageError as exc:
        raise _unavailable(exc) from exc


@router.get("/ledger", response_model=List[ledger_schemas.LedgerEntryRead])
def list_ledger(
    skip: int = 0,
    limit: int = 100,
    ledger_db: Session = Depends(get_ledger_db),
):
    try:
        return ledger_services.list_entries(ledger_db, skip=skip, limit=limit)
    except StorageError as exc:
        raise _unavailable(exc) from exc
