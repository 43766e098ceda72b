import enum
from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator


class TransactionType(str, enum.Enum):
    entry = "entry"
    output = "output"


class LotState(str, enum.Enum):
    """
    Cycle de vie d'un lot (StockEntry).

    open      -> remaining == quantity (intact, supprimable)
    partial   -> 0 < remaining < quantity
    exhausted -> remaining == 0 (conservé pour l'audit, ignoré par le FIFO)
    """

    open = "OPEN"
    partial = "PARTIALLY_CONSUMED"
    exhausted = "EXHAUSTED"


class ExactNumeric(TypeDecorator):
    """
    NUMERIC(precision, scale) relu en Decimal exact.

    SQLite n'a pas de type décimal (NUMERIC y devient un REAL binaire) :
    la valeur y est stockée en texte, quantifiée à ``scale`` décimales.
    Les autres moteurs utilisent leur NUMERIC natif.
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int, scale: int):
        super().__init__(precision=precision, scale=scale, asdecimal=True)
        self.precision = precision
        self.scale = scale
        self.quantum = Decimal(1).scaleb(-scale)

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            # signe + point décimal
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(Numeric(self.precision, self.scale, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return str(Decimal(str(value)).quantize(self.quantum))

    def process_result_value(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return Decimal(value)
