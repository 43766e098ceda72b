from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from stockledger.app.db.models.core_types import TransactionType


class TransactionRead(BaseModel):
    id: int
    type: TransactionType
    product_id: int
    quantity: Decimal
    date: date
    reference_id: int
    notes: str | None

    class Config:
        from_attributes = True
