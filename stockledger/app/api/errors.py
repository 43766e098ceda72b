from __future__ import annotations

import logging

from fastapi import HTTPException

from stockledger.services.errors import (
    ConsumedQuantityError,
    DuplicateIdError,
    InsufficientStockError,
    InvariantViolationError,
    LedgerError,
    NotFoundError,
    PartiallyConsumedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: LedgerError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))

    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))

    if isinstance(exc, InsufficientStockError):
        # l'UI affiche le stock restant
        return HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "available": str(exc.available),
                "requested": str(exc.requested),
            },
        )

    if isinstance(exc, ConsumedQuantityError):
        return HTTPException(
            status_code=409,
            detail={"message": str(exc), "consumed": str(exc.consumed)},
        )

    if isinstance(exc, (PartiallyConsumedError, DuplicateIdError)):
        return HTTPException(status_code=409, detail=str(exc))

    if isinstance(exc, InvariantViolationError):
        logger.error("ledger_invariant_violation", extra={"error": str(exc)})
        return HTTPException(status_code=500, detail="Internal ledger inconsistency")

    return HTTPException(status_code=400, detail=str(exc))
