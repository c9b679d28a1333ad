"""
Load catalog items (and optionally a users list) from CSV exports.

    python -m shoplog.scripts.seed_catalog --items items.csv [--users users.csv] [--replace]

Both files start with a header row. Items are `name, price, stock`; users
are a single `name` column. Blank or unreadable prices and stock load as 0.
"""

from __future__ import annotations

import argparse
import csv
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session

from shoplog.apps.catalog import models as catalog_models
from shoplog.apps.catalog import schemas as catalog_schemas
from shoplog.apps.catalog import services as catalog_services
from shoplog.apps.users import models as user_models
from shoplog.apps.users import services as user_services
from shoplog.config import get_settings
from shoplog.database import session_factory, init_db
from shoplog.utils.coercion import parse_decimal_or_default, parse_int_or_default


def _cell(row: Sequence[str], index: int) -> str:
    return row[index].strip() if len(row) > index else ""


def read_rows(path: Path) -> List[List[str]]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        rows = list(csv.reader(handle))
    return rows[1:]


def load_items(db: Session, rows: Iterable[Sequence[str]], *, replace: bool = False) -> int:
    if replace:
        db.execute(delete(catalog_models.CatalogItem))
    count = 0
    for row in rows:
        name = _cell(row, 0)
        if not name:
            continue
        price = parse_decimal_or_default(_cell(row, 1), Decimal("0"))
        catalog_services.add_item(
            db,
            payload=catalog_schemas.CatalogItemCreate(
                name=name,
                price=max(price, Decimal("0")),
                stock=parse_int_or_default(_cell(row, 2), 0),
            ),
        )
        count += 1
    return count


def load_users(db: Session, rows: Iterable[Sequence[str]], *, replace: bool = False) -> int:
    if replace:
        db.execute(delete(user_models.KnownUser))
    count = 0
    for row in rows:
        name = _cell(row, 0)
        if name:
            user_services.add_user(db, name=name)
            count += 1
    return count


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the shop logger catalog from CSV.")
    parser.add_argument("--items", type=Path, help="CSV with name, price, stock columns")
    parser.add_argument("--users", type=Path, help="CSV with a name column")
    parser.add_argument("--replace", action="store_true", help="Clear existing rows first")
    args = parser.parse_args(argv)

    if not args.items and not args.users:
        parser.error("nothing to load: pass --items and/or --users")

    settings = get_settings()
    init_db()

    if args.items:
        db: Session = session_factory(settings.catalog_database_url)()
        try:
            loaded = load_items(db, read_rows(args.items), replace=args.replace)
            db.commit()
            print(f"Loaded {loaded} catalog items from {args.items}.")
        finally:
            db.close()

    if args.users:
        db = session_factory(settings.ledger_database_url)()
        try:
            loaded = load_users(db, read_rows(args.users), replace=args.replace)
            db.commit()
            print(f"Loaded {loaded} users from {args.users}.")
        finally:
            db.close()


if __name__ == "__main__":
    main()
