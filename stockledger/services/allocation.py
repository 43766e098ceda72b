"""
Moteur d'allocation FIFO.

``allocate_fifo`` est une fonction pure : elle calcule le découpage d'une
sortie sur les lots disponibles sans rien muter. L'application des deltas
est la responsabilité du LedgerService.

Règles :
    - seuls les lots avec remaining_quantity > 0 participent
    - ordre : entry_date croissante, puis ordre d'insertion (id)
    - chaque ligne prend min(reste à servir, remaining du lot)
    - total_cost = somme exacte des qty x unit_price des lignes
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from stockledger.app.db.models.models_v1 import StockEntry
from stockledger.services.errors import InsufficientStockError, ValidationError
from stockledger.services.lot_store import LotStore

ZERO = Decimal("0")


@dataclass(frozen=True)
class AllocationLine:
    entry_id: int
    quantity_taken: Decimal
    unit_price: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity_taken * self.unit_price


@dataclass(frozen=True)
class Allocation:
    product_id: int
    quantity: Decimal
    lines: tuple[AllocationLine, ...]
    total_cost: Decimal


def _fifo_key(entry: StockEntry):
    # id None = lot pas encore inséré, on le place après les lots persistés
    return (entry.entry_date, entry.id is None, entry.id or 0)


def allocate_fifo(product_id: int, lots: Iterable[StockEntry], quantity: Decimal) -> Allocation:
    if quantity <= 0:
        raise ValidationError(f"Withdrawal quantity must be positive, got {quantity}")

    # sorted() est stable : à clé égale, l'ordre d'entrée est conservé
    available = sorted((lot for lot in lots if lot.remaining_quantity > 0), key=_fifo_key)

    total_available = sum((lot.remaining_quantity for lot in available), ZERO)
    if total_available < quantity:
        raise InsufficientStockError(product_id, requested=quantity, available=total_available)

    remaining_to_fulfill = quantity
    total_cost = ZERO
    lines: list[AllocationLine] = []

    for lot in available:
        if remaining_to_fulfill <= 0:
            break

        taken = min(remaining_to_fulfill, lot.remaining_quantity)
        line = AllocationLine(entry_id=lot.id, quantity_taken=taken, unit_price=lot.unit_price)
        lines.append(line)

        total_cost += line.cost
        remaining_to_fulfill -= taken

    return Allocation(
        product_id=product_id,
        quantity=quantity,
        lines=tuple(lines),
        total_cost=total_cost,
    )


class AllocationEngine:
    def __init__(self, lots: LotStore):
        self.lots = lots

    def allocate(self, product_id: int, quantity: Decimal) -> Allocation:
        """Dry-run : découpage FIFO de ``quantity`` sur les lots du produit."""
        return allocate_fifo(product_id, self.lots.list_by_product(product_id, lock=True), quantity)
