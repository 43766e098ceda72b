"""
Erreurs métier du ledger.

Toutes remontent telles quelles à l'appelant (pas de retry) ; la couche
présentation les traduit en messages (cf. stockledger.app.api.errors).
"""

from __future__ import annotations

from decimal import Decimal


class LedgerError(Exception):
    """Base de toutes les erreurs du ledger."""


class ValidationError(LedgerError):
    """Entrée invalide (quantité non positive, date manquante, SKU dupliqué...)."""


class NotFoundError(LedgerError):
    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class DuplicateIdError(LedgerError):
    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} already exists: {entity_id}")


class InsufficientStockError(LedgerError):
    def __init__(self, product_id: int, requested: Decimal, available: Decimal):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock. Only {available} units available (requested={requested})")


class PartiallyConsumedError(LedgerError):
    """Suppression refusée : le lot a déjà servi à au moins une sortie."""

    def __init__(self, entry_id: int, consumed: Decimal):
        self.entry_id = entry_id
        self.consumed = consumed
        super().__init__(f"Stock entry {entry_id} is already consumed (consumed={consumed}) and cannot be deleted")


class ConsumedQuantityError(LedgerError):
    """Réduction de quantité sous la part déjà consommée."""

    def __init__(self, entry_id: int, requested: Decimal, consumed: Decimal):
        self.entry_id = entry_id
        self.requested = requested
        self.consumed = consumed
        super().__init__(f"Cannot reduce quantity below what has been consumed (consumed={consumed}, requested={requested})")


class InvariantViolationError(LedgerError):
    """Incohérence interne : signale un bug, jamais une mauvaise saisie."""
