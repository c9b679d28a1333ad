from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator


class LineItem(BaseModel):
    """
    One (name, quantity, unit price) entry of a submission.

    Quantity is a raw decrement: zero and negative values are accepted.
    The older form sends `item` and `price`; both spellings are read.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "item"))
    quantity: int
    unit_price: Decimal = Field(
        Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("unitPrice", "unit_price", "price"),
    )

    @field_validator("unit_price", mode="before")
    @classmethod
    def _blank_price_is_zero(cls, value):
        if value is None or value == "":
            return Decimal("0")
        return value

    def to_json_dict(self) -> dict:
        return {"name": self.name, "quantity": self.quantity, "unitPrice": float(self.unit_price)}


class TransactionCreate(BaseModel):
    """
    A fully validated transaction, ready to append to the ledger.
    """

    user_name: str = Field(..., min_length=1)
    line_items: List[LineItem] = Field(..., min_length=1)
    total_amount: Decimal
    timestamp: str
    item_summary: str


class LedgerEntryRead(BaseModel):
    id: int
    user_name: str
    line_items_json: str
    total_amount: Decimal
    timestamp: str
    item_summary: str
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("total_amount")
    def _total_as_number(self, value: Decimal) -> float:
        return float(value)
