import pytest
from fastapi.testclient import TestClient

from services.suppliers.app.domain.models import Base
from services.suppliers.app.infrastructure.clients import get_inventory_client, get_product_client
from services.suppliers.app.infrastructure.db import engine
from services.suppliers.app.main import app
from shared.testing import CatalogStub, InventoryStub, data_of


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def inventory():
    stub = InventoryStub()
    stub.add(100, 10, sku="TEST-SKU-001")
    stub.add(101, 0, sku="TEST-SKU-002")
    inventory_client = stub.client()
    app.dependency_overrides[get_inventory_client] = lambda: inventory_client
    yield stub
    app.dependency_overrides.pop(get_inventory_client, None)


@pytest.fixture
def catalog():
    stub = CatalogStub()
    stub.add(100, "TEST-SKU-001", name="Test Widget")
    stub.add(101, "TEST-SKU-002", name="Second Widget")
    products = stub.client()
    app.dependency_overrides[get_product_client] = lambda: products
    yield stub
    app.dependency_overrides.pop(get_product_client, None)


@pytest.fixture
def client(inventory, catalog):
    return TestClient(app)


@pytest.fixture
def make_supplier(client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {
            "name": "Test Supplier Inc.",
            "contact_person": "John Doe",
            "email": f"contact{counter['n']}@testsupplier.com",
            "phone": "+1-555-0100",
            "address": "123 Supplier St",
            "city": "New York",
            "country": "USA",
            "rating": "4.5",
        }
        payload.update(overrides)
        return data_of(client.post("/api/suppliers", json=payload), 201)

    return _make


@pytest.fixture
def make_link(client):
    def _make(supplier_id, product_id=100, **overrides):
        payload = {
            "product_id": product_id,
            "supplier_id": supplier_id,
            "supplier_unit_price": "8.50",
            "lead_time_days": 5,
            "minimum_order_quantity": 10,
        }
        payload.update(overrides)
        return data_of(client.post("/api/product-suppliers", json=payload), 201)

    return _make


@pytest.fixture
def supplier_with_link(make_supplier, make_link):
    supplier = make_supplier()
    make_link(supplier["id"])
    return supplier


@pytest.fixture
def make_po(client, supplier_with_link):
    def _make(**overrides):
        payload = {
            "supplier_id": supplier_with_link["id"],
            "product_id": 100,
            "requested_quantity": 20,
            "notes": "Restock",
        }
        payload.update(overrides)
        return data_of(client.post("/api/purchase-orders", json=payload), 201)

    return _make
