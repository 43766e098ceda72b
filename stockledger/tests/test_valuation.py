from datetime import date
from decimal import Decimal

from stockledger.app.db.models.models_v1 import StockEntry
from stockledger.app.schemas.product import ProductCreate
from stockledger.services.products import create_product
from stockledger.services.valuation import compute_totals, revalue, revalue_all


def test_revalue_is_idempotent(db_session, product, two_lots):
    first = revalue(db_session, product.id)
    snapshot = (first.current_stock, first.average_cost)

    second = revalue(db_session, product.id)

    assert (second.current_stock, second.average_cost) == snapshot


def test_revalue_without_stock_gives_zero_average(db_session, product):
    p = revalue(db_session, product.id)

    assert p.current_stock == Decimal("0")
    assert p.average_cost == Decimal("0")


def test_revalue_repairs_tampered_totals(db_session, product, two_lots):
    product.current_stock = Decimal("999")
    product.average_cost = Decimal("1")

    revalue(db_session, product.id)

    assert product.current_stock == Decimal("130")
    assert product.average_cost == Decimal("5.192308")


def test_revalue_unknown_product_returns_none(db_session):
    assert revalue(db_session, 12345) is None


def test_compute_totals_ignores_exhausted_lots():
    lots = [
        StockEntry(quantity=Decimal("10"), remaining_quantity=Decimal("0"), unit_price=Decimal("100"), entry_date=date(2026, 1, 1)),
        StockEntry(quantity=Decimal("4"), remaining_quantity=Decimal("4"), unit_price=Decimal("2.5"), entry_date=date(2026, 1, 2)),
    ]

    assert compute_totals(lots) == (Decimal("4"), Decimal("2.5"))


def test_revalue_all_touches_every_product(db_session, product, two_lots):
    other = create_product(db_session, ProductCreate(sku="OTHER", name="Other"))
    product.current_stock = Decimal("0")

    count = revalue_all(db_session)

    assert count == 2
    assert product.current_stock == Decimal("130")
    assert other.current_stock == Decimal("0")
