from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.app.api.deps import get_db
from stockledger.app.schemas.report import StockSummaryRead
from stockledger.app.schemas.transaction import TransactionRead
from stockledger.services.journal import TransactionJournal
from stockledger.services.reporting import stock_summary

router = APIRouter()


@router.get("/transactions", response_model=list[TransactionRead])
def list_transactions(db: Session = Depends(get_db)):
    return TransactionJournal(db).all()


@router.get("/reports/stock-summary", response_model=list[StockSummaryRead])
def get_stock_summary(db: Session = Depends(get_db)):
    """Valorisation du stock (READ ONLY)."""
    return stock_summary(db)
