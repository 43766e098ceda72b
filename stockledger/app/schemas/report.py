from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from stockledger.app.db.models.core_types import TransactionType


class TrailLineRead(BaseModel):
    stock_entry_id: int
    entry_date: date | None
    quantity: Decimal
    unit_price: Decimal
    cost: Decimal

    class Config:
        from_attributes = True


class TrailRowRead(BaseModel):
    transaction_id: int
    type: TransactionType
    date: date
    quantity: Decimal
    reference_id: int
    notes: str | None
    total_cost: Decimal | None
    lines: list[TrailLineRead]

    class Config:
        from_attributes = True


class StockSummaryRead(BaseModel):
    product_id: int
    sku: str
    name: str
    unit: str | None
    current_stock: Decimal
    average_cost: Decimal
    stock_value: Decimal

    class Config:
        from_attributes = True
