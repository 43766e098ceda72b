from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from stockledger.app.api.deps import get_db, unit_of_work
from stockledger.app.schemas.product import ProductCreate, ProductPatch, ProductRead
from stockledger.app.schemas.report import TrailRowRead
from stockledger.app.schemas.stock_entry import StockEntryRead
from stockledger.app.schemas.stock_output import StockOutputRead
from stockledger.app.schemas.transaction import TransactionRead
from stockledger.services import products as product_service
from stockledger.services.journal import TransactionJournal
from stockledger.services.ledger import LedgerService
from stockledger.services.reporting import fifo_trail

router = APIRouter(prefix="/products")


@router.get("", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db)):
    return product_service.list_products(db)


@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        p = product_service.create_product(db, payload)
    db.refresh(p)
    return p


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db, commit=False):
        return product_service.get_product(db, product_id)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductPatch, db: Session = Depends(get_db)):
    with unit_of_work(db):
        p = product_service.update_product(db, product_id, payload)
    db.refresh(p)
    return p


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        LedgerService(db).delete_product(product_id)
    return Response(status_code=204)


# ---------- Lectures par produit ----------
@router.get("/{product_id}/entries", response_model=list[StockEntryRead])
def list_product_entries(product_id: int, db: Session = Depends(get_db)):
    """Lots du produit, ordre FIFO (épuisés inclus)."""
    with unit_of_work(db, commit=False):
        return LedgerService(db).list_entries(product_id)


@router.get("/{product_id}/outputs", response_model=list[StockOutputRead])
def list_product_outputs(product_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db, commit=False):
        return LedgerService(db).list_outputs(product_id)


@router.get("/{product_id}/transactions", response_model=list[TransactionRead])
def list_product_transactions(product_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db, commit=False):
        product_service.get_product(db, product_id)
        return TransactionJournal(db).for_product(product_id)


@router.get("/{product_id}/fifo-trail", response_model=list[TrailRowRead])
def get_fifo_trail(product_id: int, db: Session = Depends(get_db)):
    """Piste d'audit FIFO (READ ONLY)."""
    with unit_of_work(db, commit=False):
        return fifo_trail(db, product_id)
