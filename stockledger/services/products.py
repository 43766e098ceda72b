from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.db.models.models_v1 import Product, utcnow
from stockledger.app.schemas.product import ProductCreate, ProductPatch
from stockledger.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _ensure_sku_free(db: Session, sku: str, *, exclude_id: int | None = None) -> None:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise ValidationError(f"Product with SKU {sku} already exists")


def get_product(db: Session, product_id: int, *, lock: bool = False) -> Product:
    stmt = select(Product).where(Product.id == product_id)
    if lock:
        stmt = stmt.with_for_update()
    product = db.execute(stmt).scalar_one_or_none()
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def list_products(db: Session) -> list[Product]:
    return list(db.execute(select(Product).order_by(Product.name, Product.id)).scalars().all())


def create_product(db: Session, payload: ProductCreate) -> Product:
    """Enregistre un produit, stock et coût moyen à zéro."""
    _ensure_sku_free(db, payload.sku)

    product = Product(
        sku=payload.sku,
        name=payload.name,
        description=payload.description,
        unit=payload.unit,
    )
    db.add(product)
    db.flush()

    logger.info("product_created", extra={"product_id": product.id, "sku": product.sku})
    return product


def update_product(db: Session, product_id: int, patch: ProductPatch) -> Product:
    product = get_product(db, product_id)
    changes = patch.model_dump(exclude_unset=True)

    for required in ("sku", "name"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"Product {required} cannot be empty")

    if "sku" in changes:
        _ensure_sku_free(db, changes["sku"], exclude_id=product_id)

    for field, value in changes.items():
        setattr(product, field, value)
    product.updated_at = utcnow()
    db.flush()
    return product
