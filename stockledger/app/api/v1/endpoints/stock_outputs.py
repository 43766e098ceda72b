from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from stockledger.app.api.deps import get_db, unit_of_work
from stockledger.app.schemas.stock_output import (
    StockOutputCreate,
    StockOutputLineRead,
    StockOutputPatch,
    StockOutputRead,
    WithdrawalQuantityChange,
)
from stockledger.services.ledger import LedgerService

router = APIRouter(prefix="/stock-outputs")


@router.post("", response_model=StockOutputRead, status_code=201)
def withdraw_stock(payload: StockOutputCreate, db: Session = Depends(get_db)):
    """Retrait FIFO. 409 + stock disponible si insuffisant, rien n'est muté."""
    with unit_of_work(db):
        output = LedgerService(db).withdraw(
            payload.product_id,
            payload.quantity,
            payload.output_date,
            reference_number=payload.reference_number,
            notes=payload.notes,
        )
    return output


@router.get("/{output_id}", response_model=StockOutputRead)
def get_stock_output(output_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db, commit=False):
        return LedgerService(db).get_output(output_id)


@router.get("/{output_id}/lines", response_model=list[StockOutputLineRead])
def get_stock_output_lines(output_id: int, db: Session = Depends(get_db)):
    with unit_of_work(db, commit=False):
        return LedgerService(db).get_lines(output_id)


@router.patch("/{output_id}", response_model=StockOutputRead)
def update_stock_output(output_id: int, payload: StockOutputPatch, db: Session = Depends(get_db)):
    with unit_of_work(db):
        output = LedgerService(db).update_output(output_id, payload)
    return output


@router.put("/{output_id}/quantity", response_model=StockOutputRead)
def change_withdrawal_quantity(
    output_id: int,
    payload: WithdrawalQuantityChange,
    db: Session = Depends(get_db),
):
    """
    Change la quantité d'une sortie (delete + re-withdraw).
    En cas d'échec la sortie d'origine est conservée à l'identique.
    """
    patch = StockOutputPatch(**payload.model_dump(exclude_unset=True, exclude={"quantity"}))
    with unit_of_work(db):
        output = LedgerService(db).change_withdrawal_quantity(output_id, payload.quantity, patch)
    return output


@router.delete("/{output_id}", status_code=204)
def delete_stock_output(output_id: int, db: Session = Depends(get_db)):
    """Supprime la sortie et remet les quantités dans les lots d'origine."""
    with unit_of_work(db):
        LedgerService(db).delete_output(output_id)
    return Response(status_code=204)
