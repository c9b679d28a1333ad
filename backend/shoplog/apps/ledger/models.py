from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, Numeric, String, Text

from shoplog.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEntry(Base):
    """
    One logged transaction. Rows are only ever inserted; id order is the
    order the transactions were logged in.
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (Index("ix_ledger_entries_user_name", "user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_name = Column(String(255), nullable=False)
    line_items_json = Column(Text, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    # Caller's timestamp rendered in the configured local zone, or "Invalid Date".
    timestamp = Column(String(32), nullable=False)
    item_summary = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
