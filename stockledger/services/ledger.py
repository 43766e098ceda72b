"""
Ledger service.

Seul composant autorisé à muter les lots, les sorties (+ lignes) et à
déclencher la revalorisation et le journal.

Règles métier :
    - un lot ne peut être supprimé que s'il est intact (remaining == quantity)
    - sa quantité ne peut descendre sous la part déjà consommée
    - une sortie consomme les lots en FIFO, son coût est la somme exacte des lignes
    - supprimer une sortie restitue exactement chaque ligne sur son lot
    - current_stock / average_cost sont recalculés après chaque mutation

Concurrence :
    - chaque opération verrouille la ligne produit (SELECT ... FOR UPDATE),
      les opérations d'un même produit sont donc sérialisées
    - les opérations multi-étapes tournent dans un SAVEPOINT :
      tout est appliqué, ou rien
    - le service flush mais ne commit jamais : la transaction appartient à l'appelant
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.core_types import LotState, TransactionType
from stockledger.app.db.models.models_v1 import (
    Product,
    StockEntry,
    StockOutput,
    StockOutputLine,
)
from stockledger.app.schemas.stock_entry import StockEntryPatch
from stockledger.app.schemas.stock_output import StockOutputPatch
from stockledger.services.allocation import AllocationEngine
from stockledger.services.errors import (
    ConsumedQuantityError,
    InsufficientStockError,
    InvariantViolationError,
    NotFoundError,
    PartiallyConsumedError,
    ValidationError,
)
from stockledger.services.journal import TransactionJournal
from stockledger.services.lot_store import LotStore
from stockledger.services.products import get_product
from stockledger.services.valuation import revalue

logger = logging.getLogger(__name__)

QUANTITY_QUANT = Decimal("0.0001")
PRICE_QUANT = Decimal("0.0001")


def to_decimal(value, field: str, quant: Decimal = QUANTITY_QUANT) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    try:
        return Decimal(str(value)).quantize(quant)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be a number, got {value!r}") from exc


def _positive_quantity(value, field: str = "quantity") -> Decimal:
    qty = to_decimal(value, field)
    if qty <= 0:
        raise ValidationError(f"{field} must be positive, got {qty}")
    return qty


def _unit_price(value) -> Decimal:
    price = to_decimal(value, "unit_price", PRICE_QUANT)
    if price < 0:
        raise ValidationError(f"unit_price cannot be negative, got {price}")
    return price


def _required_date(value, field: str) -> date:
    if value is None:
        raise ValidationError(f"{field} is required")
    return value


class LedgerService:
    def __init__(
        self,
        db: Session,
        lots: LotStore | None = None,
        journal: TransactionJournal | None = None,
    ):
        self.db = db
        self.lots = lots or LotStore(db)
        self.journal = journal or TransactionJournal(db)
        self.allocator = AllocationEngine(self.lots)

    def _lock_product(self, product_id: int) -> Product:
        return get_product(self.db, product_id, lock=True)

    # ---------- ENTRIES (LOTS) ----------
    def add_entry(
        self,
        product_id: int,
        quantity,
        unit_price,
        entry_date: date,
        notes: str | None = None,
    ) -> StockEntry:
        qty = _positive_quantity(quantity)
        price = _unit_price(unit_price)
        entry_date = _required_date(entry_date, "entry_date")

        self._lock_product(product_id)

        entry = self.lots.insert(
            StockEntry(
                product_id=product_id,
                quantity=qty,
                remaining_quantity=qty,
                unit_price=price,
                entry_date=entry_date,
                notes=notes,
            )
        )
        self.journal.record(TransactionType.entry, product_id, qty, entry_date, entry.id, notes)
        revalue(self.db, product_id)

        logger.info(
            "stock_entry_added",
            extra={
                "product_id": product_id,
                "entry_id": entry.id,
                "quantity": str(qty),
                "unit_price": str(price),
            },
        )
        return entry

    def list_entries(self, product_id: int) -> list[StockEntry]:
        get_product(self.db, product_id)
        return self.lots.list_by_product(product_id)

    def update_entry(self, entry_id: int, patch: StockEntryPatch) -> StockEntry:
        entry = self.lots.get(entry_id)
        self._lock_product(entry.product_id)
        changes = patch.model_dump(exclude_unset=True)

        # tout est validé avant la première écriture sur le lot
        updates = {}
        if "quantity" in changes:
            new_quantity = _positive_quantity(changes["quantity"])
            consumed = entry.consumed_quantity
            if new_quantity < consumed:
                logger.warning(
                    "stock_entry_shrink_refused",
                    extra={"entry_id": entry_id, "consumed": str(consumed), "requested": str(new_quantity)},
                )
                raise ConsumedQuantityError(entry_id, requested=new_quantity, consumed=consumed)

            updates["quantity"] = new_quantity
            updates["remaining_quantity"] = new_quantity - consumed

        if "unit_price" in changes:
            updates["unit_price"] = _unit_price(changes["unit_price"])
        if "entry_date" in changes:
            updates["entry_date"] = _required_date(changes["entry_date"], "entry_date")
        if "notes" in changes:
            updates["notes"] = changes["notes"]

        for field, value in updates.items():
            setattr(entry, field, value)
        self.db.flush()
        revalue(self.db, entry.product_id)

        logger.info("stock_entry_updated", extra={"entry_id": entry_id, "fields": ",".join(sorted(changes))})
        return entry

    def delete_entry(self, entry_id: int) -> None:
        entry = self.lots.get(entry_id)
        product_id = entry.product_id
        self._lock_product(product_id)

        if entry.state is not LotState.open:
            logger.warning(
                "stock_entry_delete_refused",
                extra={"entry_id": entry_id, "consumed": str(entry.consumed_quantity)},
            )
            raise PartiallyConsumedError(entry_id, consumed=entry.consumed_quantity)

        with self.db.begin_nested():
            self.lots.remove(entry_id)
            self.journal.retract(entry_id, TransactionType.entry)
            revalue(self.db, product_id)

        logger.info("stock_entry_deleted", extra={"product_id": product_id, "entry_id": entry_id})

    # ---------- OUTPUTS (WITHDRAWALS) ----------
    def get_output(self, output_id: int) -> StockOutput:
        output = self.db.get(StockOutput, output_id)
        if output is None:
            raise NotFoundError("Stock output", output_id)
        return output

    def list_outputs(self, product_id: int) -> list[StockOutput]:
        get_product(self.db, product_id)
        return list(
            self.db.execute(
                select(StockOutput)
                .where(StockOutput.product_id == product_id)
                .order_by(StockOutput.output_date.desc(), StockOutput.id.desc())
            )
            .scalars()
            .all()
        )

    def get_lines(self, output_id: int) -> list[StockOutputLine]:
        """Détail FIFO d'une sortie, dans l'ordre d'allocation."""
        self.get_output(output_id)
        return list(
            self.db.execute(
                select(StockOutputLine)
                .where(StockOutputLine.stock_output_id == output_id)
                .order_by(StockOutputLine.id.asc())
            )
            .scalars()
            .all()
        )

    def withdraw(
        self,
        product_id: int,
        quantity,
        output_date: date,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> StockOutput:
        qty = _positive_quantity(quantity)
        output_date = _required_date(output_date, "output_date")

        self._lock_product(product_id)

        # dry-run : en cas de stock insuffisant rien n'est muté
        try:
            allocation = self.allocator.allocate(product_id, qty)
        except InsufficientStockError as exc:
            logger.warning(
                "withdrawal_refused",
                extra={"product_id": product_id, "requested": str(qty), "available": str(exc.available)},
            )
            raise

        with self.db.begin_nested():
            output = StockOutput(
                product_id=product_id,
                total_quantity=qty,
                total_cost=allocation.total_cost,
                reference_number=reference_number,
                output_date=output_date,
                notes=notes,
            )
            output.lines = [
                StockOutputLine(
                    stock_entry_id=line.entry_id,
                    quantity=line.quantity_taken,
                    unit_price=line.unit_price,
                )
                for line in allocation.lines
            ]
            self.db.add(output)
            self.db.flush()

            for line in allocation.lines:
                self.lots.apply_delta(line.entry_id, -line.quantity_taken)

            self.journal.record(TransactionType.output, product_id, qty, output_date, output.id, notes)
            revalue(self.db, product_id)

        logger.info(
            "stock_withdrawn",
            extra={
                "product_id": product_id,
                "output_id": output.id,
                "quantity": str(qty),
                "total_cost": str(allocation.total_cost),
                "lots": len(allocation.lines),
            },
        )
        return output

    def update_output(self, output_id: int, patch: StockOutputPatch) -> StockOutput:
        output = self.get_output(output_id)
        self._lock_product(output.product_id)
        changes = patch.model_dump(exclude_unset=True)

        if "output_date" in changes:
            output.output_date = _required_date(changes["output_date"], "output_date")
        if "reference_number" in changes:
            output.reference_number = changes["reference_number"]
        if "notes" in changes:
            output.notes = changes["notes"]

        self.db.flush()
        return output

    def delete_output(self, output_id: int) -> None:
        """Supprime une sortie et restitue chaque ligne sur son lot d'origine."""
        output = self.get_output(output_id)
        product_id = output.product_id
        self._lock_product(product_id)

        restored = sum((line.quantity for line in output.lines), Decimal("0"))
        if restored != output.total_quantity:
            logger.error(
                "stock_output_lines_mismatch",
                extra={"output_id": output_id, "lines": str(restored), "total": str(output.total_quantity)},
            )
            raise InvariantViolationError(
                f"Stock output {output_id}: lines sum to {restored}, expected {output.total_quantity}"
            )

        with self.db.begin_nested():
            for line in output.lines:
                self.lots.apply_delta(line.stock_entry_id, line.quantity)

            self.db.delete(output)
            self.db.flush()
            self.journal.retract(output_id, TransactionType.output)
            revalue(self.db, product_id)

        logger.info(
            "stock_output_deleted",
            extra={"product_id": product_id, "output_id": output_id, "restored": str(restored)},
        )

    def change_withdrawal_quantity(
        self,
        output_id: int,
        new_quantity,
        patch: StockOutputPatch | None = None,
    ) -> StockOutput:
        """
        Delete + re-withdraw dans un même SAVEPOINT.

        Si le nouveau retrait échoue (stock insuffisant), le SAVEPOINT est
        annulé : sortie d'origine, lignes, lots, journal et totaux produit
        reviennent à l'identique, puis l'erreur remonte.
        La nouvelle sortie reprend les métadonnées de l'ancienne (sauf patch).
        """
        qty = _positive_quantity(new_quantity)
        output = self.get_output(output_id)
        product_id = output.product_id
        self._lock_product(product_id)

        metadata = {
            "output_date": output.output_date,
            "reference_number": output.reference_number,
            "notes": output.notes,
        }
        if patch is not None:
            metadata.update(patch.model_dump(exclude_unset=True))

        try:
            with self.db.begin_nested():
                self.delete_output(output_id)
                new_output = self.withdraw(product_id, qty, **metadata)
        except InsufficientStockError:
            logger.warning(
                "withdrawal_change_rolled_back",
                extra={"output_id": output_id, "requested": str(qty)},
            )
            raise

        logger.info(
            "withdrawal_quantity_changed",
            extra={"old_output_id": output_id, "new_output_id": new_output.id, "quantity": str(qty)},
        )
        return new_output

    # ---------- PRODUCTS ----------
    def delete_product(self, product_id: int) -> None:
        product = self._lock_product(product_id)

        has_lots = self.db.execute(
            select(StockEntry.id).where(StockEntry.product_id == product_id).limit(1)
        ).first()
        has_outputs = self.db.execute(
            select(StockOutput.id).where(StockOutput.product_id == product_id).limit(1)
        ).first()
        if has_lots or has_outputs or self.journal.has_rows_for_product(product_id):
            raise ValidationError("Cannot delete product with transaction history")

        self.db.delete(product)
        self.db.flush()
        logger.info("product_deleted", extra={"product_id": product_id})
