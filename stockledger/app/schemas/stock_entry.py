from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from stockledger.app.db.models.core_types import LotState


class StockEntryCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    entry_date: date
    notes: str | None = None


class StockEntryPatch(BaseModel):
    """
    Modification d'un lot. Seuls les champs fournis sont appliqués
    (``model_dump(exclude_unset=True)``), ``notes=None`` efface la note.
    """

    quantity: Decimal | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, ge=0)
    entry_date: date | None = None
    notes: str | None = None


class StockEntryRead(BaseModel):
    id: int
    product_id: int
    quantity: Decimal
    remaining_quantity: Decimal
    consumed_quantity: Decimal
    unit_price: Decimal
    entry_date: date
    notes: str | None
    state: LotState

    class Config:
        from_attributes = True
