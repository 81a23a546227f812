"""
Runs the product-catalog, inventory, order and supplier apps in-process and
points their sibling clients at each other through ``TestClient``.
"""

import pytest
from fastapi.testclient import TestClient

from services.inventory.app.domain.models import Base as InventoryBase
from services.inventory.app.infrastructure import clients as inventory_clients
from services.inventory.app.infrastructure.db import engine as inventory_engine
from services.inventory.app.main import app as inventory_app
from services.orders.app.domain.models import Base as OrderBase
from services.orders.app.infrastructure import clients as order_clients
from services.orders.app.infrastructure.db import engine as order_engine
from services.orders.app.main import app as order_app
from services.products.app.domain.models import Base as ProductBase
from services.products.app.infrastructure import clients as product_clients
from services.products.app.infrastructure.db import engine as product_engine
from services.products.app.main import app as product_app
from services.suppliers.app.domain.models import Base as SupplierBase
from services.suppliers.app.infrastructure import clients as supplier_clients
from services.suppliers.app.infrastructure.db import engine as supplier_engine
from services.suppliers.app.main import app as supplier_app
from shared.clients import InventoryClient, ProductCatalogClient
from shared.core.downstream import CircuitBreaker, DownstreamClient

SCHEMAS = [
    (ProductBase, product_engine),
    (InventoryBase, inventory_engine),
    (OrderBase, order_engine),
    (SupplierBase, supplier_engine),
]
APPS = [product_app, inventory_app, order_app, supplier_app]


def _sibling(service: str, app) -> DownstreamClient:
    return DownstreamClient(
        service,
        "http://testserver/api",
        breaker=CircuitBreaker(failure_threshold=1000),
        http_client=TestClient(app),
    )


class Platform:
    def __init__(self):
        self.products = TestClient(product_app)
        self.inventory = TestClient(inventory_app)
        self.orders = TestClient(order_app)
        self.suppliers = TestClient(supplier_app)


@pytest.fixture
def platform():
    for base, engine in SCHEMAS:
        base.metadata.create_all(bind=engine)

    catalog = ProductCatalogClient(_sibling("product-catalog-service", product_app))
    inventory = InventoryClient(_sibling("inventory-service", inventory_app))

    product_app.dependency_overrides[product_clients.get_inventory_client] = lambda: inventory
    inventory_app.dependency_overrides[inventory_clients.get_product_client] = lambda: catalog
    order_app.dependency_overrides[order_clients.get_inventory_client] = lambda: inventory
    order_app.dependency_overrides[order_clients.get_product_client] = lambda: catalog
    supplier_app.dependency_overrides[supplier_clients.get_inventory_client] = lambda: inventory
    supplier_app.dependency_overrides[supplier_clients.get_product_client] = lambda: catalog

    yield Platform()

    for app in APPS:
        app.dependency_overrides.clear()
    for base, engine in SCHEMAS:
        base.metadata.drop_all(bind=engine)
