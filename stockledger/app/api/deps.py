from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy.orm import Session

from stockledger.app.api.errors import to_http_exception
from stockledger.app.db.session import SessionLocal
from stockledger.services.errors import LedgerError


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session, *, commit: bool = True) -> Iterator[Session]:
    """
    Frontière transactionnelle d'un appel au ledger.

    commit si tout passe, rollback sinon ; les LedgerError deviennent
    des HTTPException.
    """
    try:
        yield db
        if commit:
            db.commit()
    except LedgerError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    except Exception:
        db.rollback()
        raise
