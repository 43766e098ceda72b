"""create stock ledger tables

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from stockledger.app.db.models.core_types import ExactNumeric

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BIGINT_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
QTY = ExactNumeric(18, 4)
PRICE = ExactNumeric(18, 4)
COST = ExactNumeric(28, 8)

TRANSACTION_TYPE = sa.Enum("entry", "output", name="transaction_type")


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", BIGINT_PK, primary_key=True),
        sa.Column("sku", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("unit", sa.String(32)),
        sa.Column("current_stock", QTY, nullable=False, server_default="0"),
        sa.Column("average_cost", ExactNumeric(18, 6), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("CAST(current_stock AS NUMERIC) >= 0", name="ck_product_current_stock_nonneg"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "stock_entries",
        sa.Column("id", BIGINT_PK, primary_key=True),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", QTY, nullable=False),
        sa.Column("remaining_quantity", QTY, nullable=False),
        sa.Column("unit_price", PRICE, nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("CAST(quantity AS NUMERIC) > 0", name="ck_stock_entry_qty_pos"),
        sa.CheckConstraint("CAST(remaining_quantity AS NUMERIC) >= 0", name="ck_stock_entry_remaining_nonneg"),
        sa.CheckConstraint("CAST(remaining_quantity AS NUMERIC) <= CAST(quantity AS NUMERIC)", name="ck_stock_entry_remaining_le_qty"),
        sa.CheckConstraint("CAST(unit_price AS NUMERIC) >= 0", name="ck_stock_entry_unit_price_nonneg"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_entries_product_id", "stock_entries", ["product_id"])
    op.create_index("ix_stock_entries_product_fifo", "stock_entries", ["product_id", "entry_date", "id"])

    op.create_table(
        "stock_outputs",
        sa.Column("id", BIGINT_PK, primary_key=True),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("total_quantity", QTY, nullable=False),
        sa.Column("total_cost", COST, nullable=False),
        sa.Column("reference_number", sa.String(64)),
        sa.Column("output_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("CAST(total_quantity AS NUMERIC) > 0", name="ck_stock_output_qty_pos"),
        sa.CheckConstraint("CAST(total_cost AS NUMERIC) >= 0", name="ck_stock_output_cost_nonneg"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_outputs_product_id", "stock_outputs", ["product_id"])
    op.create_index("ix_stock_outputs_product_date", "stock_outputs", ["product_id", "output_date"])

    op.create_table(
        "stock_output_lines",
        sa.Column("id", BIGINT_PK, primary_key=True),
        sa.Column(
            "stock_output_id",
            sa.BigInteger(),
            sa.ForeignKey("stock_outputs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "stock_entry_id",
            sa.BigInteger(),
            sa.ForeignKey("stock_entries.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", QTY, nullable=False),
        sa.Column("unit_price", PRICE, nullable=False),
        sa.CheckConstraint("CAST(quantity AS NUMERIC) > 0", name="ck_stock_output_line_qty_pos"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_output_lines_stock_output_id", "stock_output_lines", ["stock_output_id"])
    op.create_index("ix_stock_output_lines_stock_entry_id", "stock_output_lines", ["stock_entry_id"])

    op.create_table(
        "transactions",
        sa.Column("id", BIGINT_PK, primary_key=True),
        sa.Column("type", TRANSACTION_TYPE, nullable=False),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", QTY, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reference_id", sa.BigInteger(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("type", "reference_id", name="uq_transaction_type_reference"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transactions_product_id", "transactions", ["product_id"])
    op.create_index("ix_transactions_product_date", "transactions", ["product_id", "date"])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("stock_output_lines")
    op.drop_table("stock_outputs")
    op.drop_table("stock_entries")
    op.drop_table("products")
    TRANSACTION_TYPE.drop(op.get_bind(), checkfirst=True)
