from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from shoplog.apps.catalog.schemas import StockUpdateReport


class TransactionSubmission(BaseModel):
    """
    Raw fields of a multi-item submission, exactly as the form sent them.
    Nothing is validated here; the processor checks presence and decodes.
    """

    user_name: Optional[str] = None
    line_items: Optional[str] = None
    total_amount: Optional[str] = None
    timestamp: Optional[str] = None


class LegacyItemSubmission(BaseModel):
    user_name: Optional[str] = None
    item_name: Optional[str] = None
    timestamp: Optional[str] = None


class SubmissionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    entry_id: Optional[int] = None
    stock: Optional[StockUpdateReport] = None

    def as_text(self) -> str:
        if self.success:
            return "Success"
        return f"Error: {self.error}"
