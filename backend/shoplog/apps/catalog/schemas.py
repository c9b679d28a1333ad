from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer


class CatalogItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: Decimal = Field(Decimal("0"), ge=0)
    stock: int = 0


class CatalogItemRead(BaseModel):
    name: str
    price: Decimal
    stock: int

    @field_serializer("price")
    def _price_as_number(self, value: Decimal) -> float:
        return float(value)


class StockChange(BaseModel):
    name: str
    row_id: int
    before: int
    after: int


class StockFailure(BaseModel):
    name: str
    row_id: Optional[int] = None
    error: str


class StockUpdateReport(BaseModel):
    changes: List[StockChange] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failures: List[StockFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
