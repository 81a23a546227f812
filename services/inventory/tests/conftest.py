import pytest
from fastapi.testclient import TestClient

from services.inventory.app.domain.models import Base
from services.inventory.app.infrastructure.clients import get_product_client
from services.inventory.app.infrastructure.db import SessionLocal, engine
from services.inventory.app.main import app
from shared.testing import CatalogStub, data_of


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog():
    stub = CatalogStub()
    stub.add(100, "TEST-SKU-001", name="Test Widget")
    stub.add(101, "TEST-SKU-002", name="Second Widget")
    stub.add(102, "TEST-SKU-003", name="Draft Widget", lifecycle_state="draft")
    products = stub.client()
    app.dependency_overrides[get_product_client] = lambda: products
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture
def client(catalog):
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_inventory(client):
    def _make(product_id=100, quantity=50, reorder_level=10, max_stock_level=200, **extra):
        payload = {
            "product_id": product_id,
            "quantity": quantity,
            "warehouse_location": "A-01-001",
            "reorder_level": reorder_level,
            "max_stock_level": max_stock_level,
        }
        payload.update(extra)
        return data_of(client.post("/api/inventory", json=payload), 201)

    return _make
