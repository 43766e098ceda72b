from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.models_v1 import StockEntry
from stockledger.services.errors import (
    DuplicateIdError,
    InvariantViolationError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class LotStore:
    """
    Collection des lots (StockEntry), interrogeable par produit.

    Aucune cascade vers les agrégats produit : c'est le rôle de
    services.valuation, déclenché par le LedgerService.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_by_product(self, product_id: int, *, lock: bool = False) -> list[StockEntry]:
        """Tous les lots du produit (épuisés inclus), ordre FIFO : entry_date puis insertion."""
        stmt = (
            select(StockEntry)
            .where(StockEntry.product_id == product_id)
            .order_by(StockEntry.entry_date.asc(), StockEntry.id.asc())
        )
        if lock:
            stmt = stmt.with_for_update()
        return list(self.db.execute(stmt).scalars().all())

    def get(self, entry_id: int) -> StockEntry:
        entry = self.db.get(StockEntry, entry_id)
        if entry is None:
            raise NotFoundError("Stock entry", entry_id)
        return entry

    def insert(self, entry: StockEntry) -> StockEntry:
        if entry.id is not None and self.db.get(StockEntry, entry.id) is not None:
            raise DuplicateIdError("Stock entry", entry.id)

        self.db.add(entry)
        self.db.flush()
        return entry

    def apply_delta(self, entry_id: int, remaining_delta: Decimal) -> StockEntry:
        entry = self.get(entry_id)
        new_remaining = entry.remaining_quantity + remaining_delta

        if new_remaining < 0 or new_remaining > entry.quantity:
            logger.error(
                "lot_delta_out_of_bounds",
                extra={
                    "entry_id": entry_id,
                    "remaining": str(entry.remaining_quantity),
                    "delta": str(remaining_delta),
                    "quantity": str(entry.quantity),
                },
            )
            raise InvariantViolationError(
                f"Stock entry {entry_id}: remaining quantity {new_remaining} "
                f"would leave [0, {entry.quantity}]"
            )

        entry.remaining_quantity = new_remaining
        self.db.flush()
        return entry

    def remove(self, entry_id: int) -> None:
        entry = self.get(entry_id)
        self.db.delete(entry)
        self.db.flush()
