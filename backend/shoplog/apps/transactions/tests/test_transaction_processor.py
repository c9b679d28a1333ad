from __future__ import annotations

import json
from dataclasses import replace
from decimal import Decimal

import pytest

from shoplog.apps.catalog import models as catalog_models
from shoplog.apps.catalog import services as catalog_services
from shoplog.apps.ledger import models as ledger_models
from shoplog.apps.ledger import services as ledger_services
from shoplog.apps.transactions import schemas as transaction_schemas
from shoplog.apps.transactions import services as transaction_services
from shoplog.errors import MalformedPayloadError, MissingFieldError, StorageError


def _submission(**overrides):
    fields = {
        "user_name": "Alice",
        "line_items": json.dumps([{"name": "Coke", "quantity": 2, "unitPrice": 2.5}]),
        "total_amount": "5.0",
        "timestamp": "2024-03-01T10:15:00Z",
    }
    fields.update(overrides)
    return transaction_schemas.TransactionSubmission(**fields)


def _submit(db_session, settings, **overrides):
    return transaction_services.submit_transaction(
        db_session,
        db_session,
        settings=settings,
        payload=_submission(**overrides),
    )


def _entries(db_session):
    return db_session.query(ledger_models.LedgerEntry).order_by(ledger_models.LedgerEntry.id).all()


def _stock(db_session, item_id):
    db_session.expire_all()
    return db_session.get(catalog_models.CatalogItem, item_id).stock


def test_coke_purchase_is_logged_and_deducted(db_session, settings, add_catalog_item):
    coke = add_catalog_item("Coke", price=2.5, stock=10)

    result = _submit(db_session, settings)

    assert result.success
    assert result.as_text() == "Success"
    (entry,) = _entries(db_session)
    assert entry.user_name == "Alice"
    assert entry.item_summary == "Coke (Qty: 2, $2.50 each)"
    assert entry.total_amount == Decimal("5.0")
    assert entry.timestamp == "2024-03-01 10:15:00"
    assert _stock(db_session, coke.id) == 8
    assert [(c.name, c.before, c.after) for c in result.stock.changes] == [("Coke", 10, 8)]


def test_summary_contains_every_item(db_session, settings):
    items = [
        {"name": "Coke", "quantity": 2, "unitPrice": 2.5},
        {"name": "Mars Bar", "quantity": 1, "unitPrice": 3},
        {"name": "Water", "quantity": 4},
    ]

    _submit(db_session, settings, line_items=json.dumps(items), total_amount="8.0")

    (entry,) = _entries(db_session)
    for item in items:
        assert item["name"] in entry.item_summary
        assert f"Qty: {item['quantity']}" in entry.item_summary


def test_overselling_drives_stock_negative(db_session, settings, add_catalog_item):
    crisps = add_catalog_item("Crisps", price=1, stock=2)

    result = _submit(
        db_session,
        settings,
        line_items=json.dumps([{"name": "Crisps", "quantity": 5, "unitPrice": 1}]),
    )

    assert result.success
    assert _stock(db_session, crisps.id) == -3


def test_unknown_item_is_logged_without_touching_catalog(db_session, settings, add_catalog_item):
    coke = add_catalog_item("Coke", stock=10)

    result = _submit(
        db_session,
        settings,
        line_items=json.dumps([{"name": "Pepsi", "quantity": 3, "unitPrice": 2.5}]),
    )

    assert result.success
    assert result.stock.skipped == ["Pepsi"]
    assert len(_entries(db_session)) == 1
    assert _stock(db_session, coke.id) == 10


@pytest.mark.parametrize("field", ["user_name", "line_items", "total_amount", "timestamp"])
def test_missing_field_rejected_before_any_write(db_session, settings, add_catalog_item, field):
    coke = add_catalog_item("Coke", stock=10)

    with pytest.raises(MissingFieldError) as excinfo:
        _submit(db_session, settings, **{field: ""})

    assert excinfo.value.message == "Missing required data"
    assert _entries(db_session) == []
    assert _stock(db_session, coke.id) == 10


def test_missing_user_name_when_absent(db_session, settings):
    payload = transaction_schemas.TransactionSubmission(
        line_items=json.dumps([{"name": "Coke", "quantity": 1}]),
        total_amount="2.5",
        timestamp="2024-03-01T10:15:00Z",
    )

    with pytest.raises(MissingFieldError) as excinfo:
        transaction_services.submit_transaction(db_session, db_session, settings=settings, payload=payload)

    assert excinfo.value.fields == ("userName",)
    assert _entries(db_session) == []


def test_malformed_items_rejected_before_any_write(db_session, settings, add_catalog_item):
    coke = add_catalog_item("Coke", stock=10)

    with pytest.raises(MalformedPayloadError) as excinfo:
        _submit(db_session, settings, line_items="{not json")

    assert excinfo.value.message.startswith("Invalid items data")
    assert _entries(db_session) == []
    assert _stock(db_session, coke.id) == 10


def test_unparsable_timestamp_is_stored_as_sentinel(db_session, settings):
    result = _submit(db_session, settings, timestamp="yesterday-ish")

    assert result.success
    (entry,) = _entries(db_session)
    assert entry.timestamp == "Invalid Date"


def test_timestamp_rendered_in_configured_zone(db_session, settings):
    _submit(db_session, replace(settings, timezone="Australia/Brisbane"), timestamp="2024-03-01T10:15:00Z")

    (entry,) = _entries(db_session)
    assert entry.timestamp == "2024-03-01 20:15:00"


def test_unparsable_total_is_stored_as_zero(db_session, settings):
    _submit(db_session, settings, total_amount="five dollars")

    (entry,) = _entries(db_session)
    assert entry.total_amount == Decimal("0")


def test_failed_append_returns_error_and_leaves_stock(db_session, settings, add_catalog_item, monkeypatch):
    coke = add_catalog_item("Coke", stock=10)

    def failing_append(db, *, transaction):
        raise StorageError("Could not write ledger entry: disk full")

    monkeypatch.setattr(ledger_services, "append_entry", failing_append)

    result = _submit(db_session, settings)

    assert not result.success
    assert result.as_text() == "Error: Could not write ledger entry: disk full"
    assert result.stock is None
    assert _stock(db_session, coke.id) == 10


def test_failed_stock_update_keeps_ledger_entry(db_session, settings, add_catalog_item, monkeypatch):
    coke = add_catalog_item("Coke", stock=10)

    def failing_adjust(db, *, row_id, expected, delta, retries):
        raise StorageError("catalog offline")

    monkeypatch.setattr(catalog_services, "adjust_stock", failing_adjust)

    result = _submit(db_session, settings)

    assert result.success
    assert not result.stock.ok
    assert len(_entries(db_session)) == 1
    assert _stock(db_session, coke.id) == 10


def test_legacy_item_is_logged_without_touching_stock(db_session, settings, add_catalog_item):
    coke = add_catalog_item("Coke", price=2.5, stock=10)

    result = transaction_services.submit_legacy_item(
        db_session,
        settings=settings,
        payload=transaction_schemas.LegacyItemSubmission(
            user_name="Bob",
            item_name="Coke",
            timestamp="2024-03-01T10:15:00Z",
        ),
    )

    assert result.success
    assert result.stock is None
    (entry,) = _entries(db_session)
    assert entry.item_summary == "Coke (Qty: 1)"
    assert entry.total_amount == Decimal("0")
    assert json.loads(entry.line_items_json) == [{"name": "Coke", "quantity": 1, "unitPrice": 0.0}]
    assert _stock(db_session, coke.id) == 10


def test_legacy_item_requires_item_name(db_session, settings):
    with pytest.raises(MissingFieldError):
        transaction_services.submit_legacy_item(
            db_session,
            settings=settings,
            payload=transaction_schemas.LegacyItemSubmission(user_name="Bob", timestamp="2024-03-01T10:15:00Z"),
        )

    assert _entries(db_session) == []


def test_out_of_range_quantity_still_logs_and_deducts_the_rest(db_session, settings, add_catalog_item):
    coke = add_catalog_item("Coke", price=2.5, stock=10)
    water = add_catalog_item("Water", price=1, stock=10)
    items = [
        {"name": "Coke", "quantity": 10**20, "unitPrice": 2.5},
        {"name": "Water", "quantity": 1, "unitPrice": 1},
    ]

    result = _submit(db_session, settings, line_items=json.dumps(items), total_amount="1.0")

    assert result.as_text() == "Success"
    assert len(_entries(db_session)) == 1
    assert [f.name for f in result.stock.failures] == ["Coke"]
    assert _stock(db_session, coke.id) == 10
    assert _stock(db_session, water.id) == 9


def test_out_of_range_timestamp_is_stored_as_sentinel(db_session, settings):
    result = _submit(db_session, settings, timestamp="9999-12-31T23:59:59-05:00")

    assert result.success
    (entry,) = _entries(db_session)
    assert entry.timestamp == "Invalid Date"
