from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.models_v1 import Product
from stockledger.app.db.session import SessionLocal
from stockledger.app.schemas.product import ProductCreate
from stockledger.services.ledger import LedgerService
from stockledger.services.products import create_product

logger = logging.getLogger(__name__)

DEMO_SKU = "DEMO-FLOUR-25KG"


def seed(db: Session) -> Product:
    """
    Produit de démo + 2 lots (80 @ 5.00 puis 50 @ 5.50).
    Idempotent : ne fait rien si le SKU existe déjà.
    """
    product = db.scalar(select(Product).where(Product.sku == DEMO_SKU))
    if product:
        return product

    product = create_product(
        db,
        ProductCreate(sku=DEMO_SKU, name="Farine T55 (sac 25kg)", unit="kg"),
    )

    # Passe par le ledger : journal + revalorisation comme en prod
    ledger = LedgerService(db)
    ledger.add_entry(product.id, Decimal("80"), Decimal("5.00"), date(2026, 1, 5), "Lot fournisseur A")
    ledger.add_entry(product.id, Decimal("50"), Decimal("5.50"), date(2026, 2, 9), "Lot fournisseur B")
    return product


def run_seed():
    db = SessionLocal()
    try:
        product = seed(db)
        db.commit()
        logger.info("seed_ok", extra={"product_id": product.id, "sku": product.sku})
        print(f"SEED OK: product={product.sku} stock={product.current_stock} avg_cost={product.average_cost}")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
