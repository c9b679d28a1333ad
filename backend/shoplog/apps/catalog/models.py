from __future__ import annotations

from sqlalchemy import Column, Index, Integer, Numeric, String

from shoplog.database import Base


class CatalogItem(Base):
    """
    One sellable item. The row id is the address stock writes go to.

    `name` is deliberately not unique: lookups take the last row for a name.
    `price` and `stock` may be NULL (blank cells); readers coerce them to 0.
    """

    __tablename__ = "catalog_items"
    __table_args__ = (Index("ix_catalog_items_name", "name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    price = Column(Numeric(12, 2), nullable=True)
    # Negative stock means oversold/backordered and is stored as-is.
    stock = Column(Integer, nullable=True)
