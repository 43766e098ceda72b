from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class StockOutputCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(gt=0)
    output_date: date
    reference_number: str | None = Field(default=None, max_length=64)
    notes: str | None = None


class StockOutputPatch(BaseModel):
    """Métadonnées seulement : quantité / coût / allocation exigent delete + recreate."""

    output_date: date | None = None
    reference_number: str | None = Field(default=None, max_length=64)
    notes: str | None = None


class WithdrawalQuantityChange(StockOutputPatch):
    quantity: Decimal = Field(gt=0)


class StockOutputLineRead(BaseModel):
    id: int
    stock_output_id: int
    stock_entry_id: int
    quantity: Decimal
    unit_price: Decimal

    class Config:
        from_attributes = True


class StockOutputRead(BaseModel):
    id: int
    product_id: int
    total_quantity: Decimal
    total_cost: Decimal
    reference_number: str | None
    output_date: date
    notes: str | None
    lines: list[StockOutputLineRead] = []

    class Config:
        from_attributes = True
