from datetime import date
from decimal import Decimal

import pytest

from stockledger.app.db.models.models_v1 import StockEntry
from stockledger.services.allocation import allocate_fifo
from stockledger.services.errors import InsufficientStockError, ValidationError


def _lot(id, qty, price, day, remaining=None):
    return StockEntry(
        id=id,
        product_id=1,
        quantity=Decimal(qty),
        remaining_quantity=Decimal(remaining if remaining is not None else qty),
        unit_price=Decimal(price),
        entry_date=day,
    )


def test_small_withdrawal_comes_entirely_from_oldest_lot():
    lots = [
        _lot(3, "30", "7.00", date(2026, 3, 1)),
        _lot(1, "80", "5.00", date(2026, 1, 1)),
        _lot(2, "50", "5.50", date(2026, 2, 1)),
    ]

    allocation = allocate_fifo(1, lots, Decimal("20"))

    assert [(l.entry_id, l.quantity_taken) for l in allocation.lines] == [(1, Decimal("20"))]
    assert allocation.total_cost == Decimal("100.00")


def test_withdrawal_spanning_lots_sums_line_costs_exactly():
    lots = [
        _lot(1, "80", "5.00", date(2026, 1, 1), remaining="60"),
        _lot(2, "50", "5.50", date(2026, 2, 1)),
    ]

    allocation = allocate_fifo(1, lots, Decimal("75.5"))

    assert [(l.entry_id, l.quantity_taken, l.unit_price) for l in allocation.lines] == [
        (1, Decimal("60"), Decimal("5.00")),
        (2, Decimal("15.5"), Decimal("5.50")),
    ]
    assert allocation.total_cost == sum(l.quantity_taken * l.unit_price for l in allocation.lines)
    assert allocation.total_cost == Decimal("385.25")


def test_exhausted_lots_are_skipped():
    lots = [
        _lot(1, "10", "1.00", date(2026, 1, 1), remaining="0"),
        _lot(2, "10", "2.00", date(2026, 1, 2)),
    ]

    allocation = allocate_fifo(1, lots, Decimal("5"))

    assert [l.entry_id for l in allocation.lines] == [2]


def test_same_entry_date_is_broken_by_insertion_order():
    same_day = date(2026, 1, 1)
    lots = [
        _lot(7, "10", "9.00", same_day),
        _lot(4, "10", "1.00", same_day),
    ]

    allocation = allocate_fifo(1, lots, Decimal("12"))

    assert [(l.entry_id, l.quantity_taken) for l in allocation.lines] == [
        (4, Decimal("10")),
        (7, Decimal("2")),
    ]


def test_insufficient_stock_carries_available_total():
    lots = [
        _lot(1, "80", "5.00", date(2026, 1, 1)),
        _lot(2, "50", "5.50", date(2026, 2, 1)),
    ]

    with pytest.raises(InsufficientStockError) as exc:
        allocate_fifo(1, lots, Decimal("131"))

    assert exc.value.available == Decimal("130")
    assert exc.value.requested == Decimal("131")


def test_allocation_does_not_mutate_lots():
    lot = _lot(1, "80", "5.00", date(2026, 1, 1))

    allocate_fifo(1, [lot], Decimal("80"))

    assert lot.remaining_quantity == Decimal("80")


@pytest.mark.parametrize("qty", [Decimal("0"), Decimal("-1")])
def test_non_positive_quantity_is_rejected(qty):
    with pytest.raises(ValidationError):
        allocate_fifo(1, [_lot(1, "80", "5.00", date(2026, 1, 1))], qty)
