from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.core_types import TransactionType
from stockledger.app.db.models.models_v1 import Transaction

logger = logging.getLogger(__name__)


class TransactionJournal:
    """
    Journal des entrées / sorties.

    Append à chaque création, retrait (hard delete) quand l'entrée ou la
    sortie référencée est supprimée. Au plus une ligne par (type, reference_id).
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        type: TransactionType,
        product_id: int,
        quantity: Decimal,
        date: date,
        reference_id: int,
        notes: str | None = None,
    ) -> Transaction:
        tx = Transaction(
            type=type,
            product_id=product_id,
            quantity=quantity,
            date=date,
            reference_id=reference_id,
            notes=notes,
        )
        self.db.add(tx)
        self.db.flush()
        return tx

    def retract(self, reference_id: int, type: TransactionType) -> bool:
        tx = self.find(reference_id, type)
        if tx is None:
            logger.warning(
                "journal_retract_missing",
                extra={"reference_id": reference_id, "type": type.value},
            )
            return False

        self.db.delete(tx)
        self.db.flush()
        return True

    def for_product(self, product_id: int) -> list[Transaction]:
        return list(
            self.db.execute(
                select(Transaction)
                .where(Transaction.product_id == product_id)
                .order_by(Transaction.date.desc(), Transaction.id.desc())
            )
            .scalars()
            .all()
        )

    def all(self) -> list[Transaction]:
        return list(
            self.db.execute(
                select(Transaction).order_by(Transaction.date.desc(), Transaction.id.desc())
            )
            .scalars()
            .all()
        )

    def find(self, reference_id: int, type: TransactionType) -> Transaction | None:
        return self.db.execute(
            select(Transaction)
            .where(Transaction.reference_id == reference_id)
            .where(Transaction.type == type)
        ).scalar_one_or_none()

    def has_rows_for_product(self, product_id: int) -> bool:
        return (
            self.db.execute(select(Transaction.id).where(Transaction.product_id == product_id).limit(1)).first()
            is not None
        )
