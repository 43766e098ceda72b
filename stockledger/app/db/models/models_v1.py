from __future__ import annotations

import datetime as dt
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    Date,
    ForeignKey,
    Text,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockledger.app.db.base import Base
from stockledger.app.db.models.core_types import ExactNumeric, LotState, TransactionType

# SQLite n'auto-incrémente que "INTEGER PRIMARY KEY"
BigIntPK = BigInteger().with_variant(Integer, "sqlite")
# + sqlite_autoincrement : un id supprimé (sortie, lot) n'est jamais réattribué

# Quantités fractionnaires autorisées (kg, litres...)
Quantity = ExactNumeric(18, 4)
Price = ExactNumeric(18, 4)
# qty(4 déc.) x prix(4 déc.) -> 8 décimales : le coût total reste une somme exacte
Cost = ExactNumeric(28, 8)
AverageCost = ExactNumeric(18, 6)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- MASTER DATA ----------
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str | None] = mapped_column(String(32))

    # Champs dérivés : écrits UNIQUEMENT par services.valuation.revalue
    current_stock: Mapped[Decimal] = mapped_column(Quantity, default=Decimal("0"), nullable=False)
    average_cost: Mapped[Decimal] = mapped_column(AverageCost, default=Decimal("0"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("CAST(current_stock AS NUMERIC) >= 0", name="ck_product_current_stock_nonneg"),
        {"sqlite_autoincrement": True},
    )


# ---------- LOTS ----------
class StockEntry(Base):
    __tablename__ = "stock_entries"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    remaining_quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Price, nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    product: Mapped[Product] = relationship()

    __table_args__ = (
        CheckConstraint("CAST(quantity AS NUMERIC) > 0", name="ck_stock_entry_qty_pos"),
        CheckConstraint("CAST(remaining_quantity AS NUMERIC) >= 0", name="ck_stock_entry_remaining_nonneg"),
        CheckConstraint("CAST(remaining_quantity AS NUMERIC) <= CAST(quantity AS NUMERIC)", name="ck_stock_entry_remaining_le_qty"),
        CheckConstraint("CAST(unit_price AS NUMERIC) >= 0", name="ck_stock_entry_unit_price_nonneg"),
        # ordre FIFO : entry_date puis ordre d'insertion (id)
        Index("ix_stock_entries_product_fifo", "product_id", "entry_date", "id"),
        {"sqlite_autoincrement": True},
    )

    @property
    def consumed_quantity(self) -> Decimal:
        return self.quantity - self.remaining_quantity

    @property
    def state(self) -> LotState:
        if self.remaining_quantity == self.quantity:
            return LotState.open
        if self.remaining_quantity == 0:
            return LotState.exhausted
        return LotState.partial


# ---------- WITHDRAWALS ----------
class StockOutput(Base):
    __tablename__ = "stock_outputs"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    total_quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    # somme littérale des lignes FIFO, jamais qty x coût moyen
    total_cost: Mapped[Decimal] = mapped_column(Cost, nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(64))
    output_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    lines: Mapped[list["StockOutputLine"]] = relationship(
        back_populates="output",
        cascade="all, delete-orphan",
        order_by="StockOutputLine.id",
    )

    __table_args__ = (
        CheckConstraint("CAST(total_quantity AS NUMERIC) > 0", name="ck_stock_output_qty_pos"),
        CheckConstraint("CAST(total_cost AS NUMERIC) >= 0", name="ck_stock_output_cost_nonneg"),
        Index("ix_stock_outputs_product_date", "product_id", "output_date"),
        {"sqlite_autoincrement": True},
    )


class StockOutputLine(Base):
    __tablename__ = "stock_output_lines"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    stock_output_id: Mapped[int] = mapped_column(
        ForeignKey("stock_outputs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stock_entry_id: Mapped[int] = mapped_column(
        ForeignKey("stock_entries.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    # prix figé au moment de l'allocation
    unit_price: Mapped[Decimal] = mapped_column(Price, nullable=False)

    output: Mapped[StockOutput] = relationship(back_populates="lines")

    __table_args__ = (
        CheckConstraint("CAST(quantity AS NUMERIC) > 0", name="ck_stock_output_line_qty_pos"),
        {"sqlite_autoincrement": True},
    )

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_price


# ---------- JOURNAL ----------
class Transaction(Base):
    __tablename__ = "transactions"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, name="transaction_type"),
        nullable=False,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    # StockEntry.id ou StockOutput.id selon le type
    reference_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("type", "reference_id", name="uq_transaction_type_reference"),
        Index("ix_transactions_product_date", "product_id", "date"),
        {"sqlite_autoincrement": True},
    )
