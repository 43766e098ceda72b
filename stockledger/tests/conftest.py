from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stockledger.app.api.deps import get_db
from stockledger.app.db.base import Base
from stockledger.app.db.models.models_v1 import Product, StockEntry
from stockledger.app.db.session import enable_sqlite_savepoints
from stockledger.app.main import app
from stockledger.app.schemas.product import ProductCreate
from stockledger.services.ledger import LedgerService
from stockledger.services.products import create_product


@pytest.fixture(scope="function")
def db_engine():
    """
    SQLite en mémoire, une connexion partagée (StaticPool).
    BEGIN / SAVEPOINT gérés par SQLAlchemy (cf. enable_sqlite_savepoints).
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Session:
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ledger(db_session) -> LedgerService:
    return LedgerService(db_session)


@pytest.fixture
def product(db_session) -> Product:
    p = create_product(db_session, ProductCreate(sku="TEST-SKU-1", name="Test product", unit="kg"))
    db_session.commit()
    return p


@pytest.fixture
def two_lots(ledger, product):
    """
    GIVEN
    - lot 1 : 80 @ 5.00 (janvier)
    - lot 2 : 50 @ 5.50 (février)
    """
    lot1 = ledger.add_entry(product.id, Decimal("80"), Decimal("5.00"), date(2026, 1, 10))
    lot2 = ledger.add_entry(product.id, Decimal("50"), Decimal("5.50"), date(2026, 2, 10))
    return lot1, lot2


@pytest.fixture
def client(db_session: Session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def assert_conserved(db_session):
    """Conservation : somme des remaining des lots == current_stock du produit."""

    def _check(product_id: int) -> None:
        remaining = db_session.execute(
            select(StockEntry.remaining_quantity).where(StockEntry.product_id == product_id)
        ).scalars().all()
        product = db_session.get(Product, product_id)
        assert sum(remaining, Decimal("0")) == product.current_stock

    return _check
