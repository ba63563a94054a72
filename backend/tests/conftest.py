import pytest
from fastapi.testclient import TestClient

from stockroom.db import Store
from stockroom.main import create_app
from stockroom.schemas.product_schema import ProductCreate
from stockroom.services.catalog_service import CatalogService


@pytest.fixture
def store(tmp_path):
    # file backed so several connections (threads) share one database
    s = Store(f"sqlite:///{tmp_path / 'stockroom-test.db'}", busy_timeout=30.0)
    s.open()
    s.init_schema()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def db(store):
    with store.session() as session:
        yield session


@pytest.fixture
def client(store):
    app = create_app(store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_product(store):
    """Create a product in its own committed session and return its id."""

    def _make(quantity=0, name="Test Bolt", unit="pc", **extra):
        with store.session() as s:
            p = CatalogService(s).create_product(
                ProductCreate(name=name, unit=unit, quantity=quantity, **extra)
            )
            return p.id

    return _make
