from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    unit: str | None = Field(default=None, max_length=32)


class ProductPatch(BaseModel):
    """Champs d'affichage seulement : current_stock / average_cost ne sont jamais patchables."""

    sku: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    unit: str | None = Field(default=None, max_length=32)


class ProductRead(BaseModel):
    id: int
    sku: str
    name: str
    description: str | None
    unit: str | None

    current_stock: Decimal  # READ ONLY (calculé depuis les lots)
    average_cost: Decimal  # READ ONLY (calculé depuis les lots)

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
