"""
Lectures de reporting : piste d'audit FIFO et synthèse de stock.

Lecture seule, ne mute jamais l'état du ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.core_types import TransactionType
from stockledger.app.db.models.models_v1 import Product, StockEntry, StockOutput, StockOutputLine
from stockledger.services.journal import TransactionJournal
from stockledger.services.products import get_product


@dataclass(frozen=True)
class TrailLine:
    stock_entry_id: int
    entry_date: date | None
    quantity: Decimal
    unit_price: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class TrailRow:
    transaction_id: int
    type: TransactionType
    date: date
    quantity: Decimal
    reference_id: int
    notes: str | None
    total_cost: Decimal | None = None
    lines: tuple[TrailLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StockSummaryRow:
    product_id: int
    sku: str
    name: str
    unit: str | None
    current_stock: Decimal
    average_cost: Decimal
    stock_value: Decimal


def fifo_trail(db: Session, product_id: int) -> list[TrailRow]:
    """Journal du produit (plus récent d'abord), chaque sortie détaillée par lot consommé."""
    get_product(db, product_id)

    rows: list[TrailRow] = []
    for tx in TransactionJournal(db).for_product(product_id):
        if tx.type is not TransactionType.output:
            rows.append(
                TrailRow(
                    transaction_id=tx.id,
                    type=tx.type,
                    date=tx.date,
                    quantity=tx.quantity,
                    reference_id=tx.reference_id,
                    notes=tx.notes,
                )
            )
            continue

        output = db.get(StockOutput, tx.reference_id)
        detail = db.execute(
            select(StockOutputLine, StockEntry.entry_date)
            .join(StockEntry, StockEntry.id == StockOutputLine.stock_entry_id)
            .where(StockOutputLine.stock_output_id == tx.reference_id)
            .order_by(StockOutputLine.id.asc())
        ).all()

        rows.append(
            TrailRow(
                transaction_id=tx.id,
                type=tx.type,
                date=tx.date,
                quantity=tx.quantity,
                reference_id=tx.reference_id,
                notes=tx.notes,
                total_cost=output.total_cost if output is not None else None,
                lines=tuple(
                    TrailLine(
                        stock_entry_id=line.stock_entry_id,
                        entry_date=entry_date,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                    )
                    for line, entry_date in detail
                ),
            )
        )
    return rows


def stock_summary(db: Session) -> list[StockSummaryRow]:
    """Valorisation du catalogue : stock, coût moyen et valeur (somme remaining x prix des lots)."""
    products = db.execute(select(Product).order_by(Product.name, Product.id)).scalars().all()

    values: dict[int, Decimal] = {}
    for product_id, remaining, unit_price in db.execute(
        select(StockEntry.product_id, StockEntry.remaining_quantity, StockEntry.unit_price)
    ).all():
        if remaining > 0:
            values[product_id] = values.get(product_id, Decimal("0")) + remaining * unit_price

    return [
        StockSummaryRow(
            product_id=p.id,
            sku=p.sku,
            name=p.name,
            unit=p.unit,
            current_stock=p.current_stock,
            average_cost=p.average_cost,
            stock_value=values.get(p.id, Decimal("0")),
        )
        for p in products
    ]
