from fastapi import Depends
from sqlalchemy.orm import Session

from services.orders.app.application.service import OrderService
from services.orders.app.core_settings import get_settings
from services.orders.app.infrastructure.clients import get_inventory_client, get_product_client
from services.orders.app.infrastructure.db import get_db
from shared.clients import InventoryClient, ProductCatalogClient


def get_order_service(
    db: Session = Depends(get_db),
    inventory: InventoryClient = Depends(get_inventory_client),
    products: ProductCatalogClient = Depends(get_product_client),
) -> OrderService:
    return OrderService(db, inventory, products, get_settings())
