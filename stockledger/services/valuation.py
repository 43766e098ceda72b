from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.models_v1 import Product, StockEntry, utcnow

logger = logging.getLogger(__name__)

AVERAGE_COST_QUANT = Decimal("0.000001")
ZERO = Decimal("0")


def compute_totals(lots) -> tuple[Decimal, Decimal]:
    """(current_stock, average_cost) à partir des lots vivants."""
    current_stock = ZERO
    total_value = ZERO
    for lot in lots:
        if lot.remaining_quantity > 0:
            current_stock += lot.remaining_quantity
            total_value += lot.remaining_quantity * lot.unit_price

    if current_stock > 0:
        average_cost = (total_value / current_stock).quantize(AVERAGE_COST_QUANT)
    else:
        average_cost = ZERO
    return current_stock, average_cost


def revalue(db: Session, product_id: int) -> Product | None:
    """
    Recalcule current_stock / average_cost d'un produit depuis ses lots.

    Propriétés :
    - pure vis-à-vis des lots (lecture seule)
    - idempotent
    - seul écrivain des champs dérivés du Product
    """
    product = db.get(Product, product_id)
    if product is None:
        return None

    lots = db.execute(select(StockEntry).where(StockEntry.product_id == product_id)).scalars().all()
    current_stock, average_cost = compute_totals(lots)

    product.current_stock = current_stock
    product.average_cost = average_cost
    product.updated_at = utcnow()
    db.flush()

    logger.debug(
        "product_revalued",
        extra={
            "product_id": product_id,
            "current_stock": str(current_stock),
            "average_cost": str(average_cost),
        },
    )
    return product


def revalue_all(db: Session) -> int:
    """Outil de réparation / backfill : revalorise tout le catalogue."""
    product_ids = db.execute(select(Product.id).order_by(Product.id)).scalars().all()
    for pid in product_ids:
        revalue(db, int(pid))

    logger.info("catalog_revalued", extra={"products": len(product_ids)})
    return len(product_ids)
