import pytest
from fastapi.testclient import TestClient

from services.orders.app.domain.models import Base
from services.orders.app.infrastructure.clients import get_inventory_client, get_product_client
from services.orders.app.infrastructure.db import engine
from services.orders.app.main import app
from shared.testing import CatalogStub, InventoryStub, data_of


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def inventory():
    stub = InventoryStub()
    stub.add(100, 50, sku="TEST-SKU-001")
    stub.add(101, 5, sku="TEST-SKU-002")
    inventory_client = stub.client()
    app.dependency_overrides[get_inventory_client] = lambda: inventory_client
    yield stub
    app.dependency_overrides.pop(get_inventory_client, None)


@pytest.fixture
def catalog():
    stub = CatalogStub()
    stub.add(100, "TEST-SKU-001", name="Test Product")
    stub.add(101, "TEST-SKU-002", name="Second Product")
    products = stub.client()
    app.dependency_overrides[get_product_client] = lambda: products
    yield stub
    app.dependency_overrides.pop(get_product_client, None)


@pytest.fixture
def client(inventory, catalog):
    return TestClient(app)


@pytest.fixture
def make_order(client):
    def _make(items=None, **overrides):
        payload = {
            "customer_id": 100,
            "shipping_address": "123 Test St, Test City",
            "payment_method": "credit_card",
            "notes": "Test order",
            "items": items or [{"product_id": 100, "sku": "TEST-SKU-001", "quantity": 3, "unit_price": "99.99"}],
        }
        payload.update(overrides)
        return data_of(client.post("/api/orders", json=payload), 201)

    return _make
