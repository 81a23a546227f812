import pytest
from fastapi.testclient import TestClient

from services.products.app.domain.models import Base
from services.products.app.infrastructure.clients import get_inventory_client
from services.products.app.infrastructure.db import engine
from services.products.app.main import app
from shared.testing import InventoryStub, data_of


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def inventory():
    stub = InventoryStub()
    inventory_client = stub.client()
    app.dependency_overrides[get_inventory_client] = lambda: inventory_client
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture
def client(inventory):
    return TestClient(app)


@pytest.fixture
def make_product(client):
    def _make(**overrides):
        payload = {
            "sku": "TEST-SKU-001",
            "name": "Test Product",
            "description": "This is a test product",
            "size": "M",
            "color": "Blue",
            "unit_price": "99.99",
            "supplier_id": 10,
            "lifecycle_state": "active",
            "attributes": {"material": "cotton", "weight": "500g"},
        }
        payload.update(overrides)
        return data_of(client.post("/api/products", json=payload), 201)

    return _make
