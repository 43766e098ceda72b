from datetime import date
from decimal import Decimal

import pytest

from stockledger.app.db.models.core_types import TransactionType
from stockledger.app.schemas.product import ProductCreate
from stockledger.services.errors import NotFoundError
from stockledger.services.journal import TransactionJournal
from stockledger.services.products import create_product
from stockledger.services.reporting import fifo_trail, stock_summary


def test_record_and_retract(db_session, product):
    journal = TransactionJournal(db_session)
    journal.record(TransactionType.entry, product.id, Decimal("3"), date(2026, 1, 1), 42, "n")

    assert journal.find(42, TransactionType.entry) is not None
    assert journal.find(42, TransactionType.output) is None

    assert journal.retract(42, TransactionType.entry) is True
    assert journal.retract(42, TransactionType.entry) is False
    assert journal.for_product(product.id) == []


def test_journal_lists_newest_first(ledger, product, two_lots):
    output = ledger.withdraw(product.id, Decimal("5"), date(2026, 3, 1))

    rows = ledger.journal.for_product(product.id)

    assert [(t.type, t.reference_id) for t in rows] == [
        (TransactionType.output, output.id),
        (TransactionType.entry, two_lots[1].id),
        (TransactionType.entry, two_lots[0].id),
    ]
    assert ledger.journal.all() == rows


def test_fifo_trail_expands_outputs_with_lot_detail(db_session, ledger, product, two_lots):
    lot1, lot2 = two_lots
    output = ledger.withdraw(product.id, Decimal("90"), date(2026, 3, 1), notes="prod run")

    trail = fifo_trail(db_session, product.id)

    head = trail[0]
    assert head.type is TransactionType.output
    assert head.reference_id == output.id
    assert head.total_cost == Decimal("455")
    assert [(l.stock_entry_id, l.entry_date, l.quantity) for l in head.lines] == [
        (lot1.id, date(2026, 1, 10), Decimal("80")),
        (lot2.id, date(2026, 2, 10), Decimal("10")),
    ]
    assert sum(l.cost for l in head.lines) == head.total_cost
    assert all(row.lines == () for row in trail[1:])


def test_fifo_trail_is_read_only(db_session, ledger, product, two_lots):
    ledger.withdraw(product.id, Decimal("90"), date(2026, 3, 1))
    db_session.commit()

    fifo_trail(db_session, product.id)

    assert not db_session.dirty
    assert not db_session.new
    assert not db_session.deleted


def test_fifo_trail_unknown_product(db_session):
    with pytest.raises(NotFoundError):
        fifo_trail(db_session, 777)


def test_stock_summary_values_remaining_lots(db_session, ledger, product, two_lots):
    create_product(db_session, ProductCreate(sku="ZZZ", name="Zzz empty"))
    ledger.withdraw(product.id, Decimal("20"), date(2026, 3, 1))

    rows = {r.sku: r for r in stock_summary(db_session)}

    assert rows["TEST-SKU-1"].current_stock == Decimal("110")
    assert rows["TEST-SKU-1"].stock_value == Decimal("60") * Decimal("5.00") + Decimal("50") * Decimal("5.50")
    assert rows["ZZZ"].stock_value == Decimal("0")
