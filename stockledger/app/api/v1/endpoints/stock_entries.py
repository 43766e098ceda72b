from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from stockledger.app.api.deps import get_db, unit_of_work
from stockledger.app.schemas.stock_entry import StockEntryCreate, StockEntryPatch, StockEntryRead
from stockledger.services.ledger import LedgerService

router = APIRouter(prefix="/stock-entries")


@router.post("", response_model=StockEntryRead, status_code=201)
def add_stock_entry(payload: StockEntryCreate, db: Session = Depends(get_db)):
    with unit_of_work(db):
        entry = LedgerService(db).add_entry(
            payload.product_id,
            payload.quantity,
            payload.unit_price,
            payload.entry_date,
            payload.notes,
        )
    return entry


@router.patch("/{entry_id}", response_model=StockEntryRead)
def update_stock_entry(entry_id: int, payload: StockEntryPatch, db: Session = Depends(get_db)):
    with unit_of_work(db):
        entry = LedgerService(db).update_entry(entry_id, payload)
    return entry


@router.delete("/{entry_id}", status_code=204)
def delete_stock_entry(entry_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db):
        LedgerService(db).delete_entry(entry_id)
    return Response(status_code=204)
