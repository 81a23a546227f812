from fastapi import Depends
from sqlalchemy.orm import Session

from services.inventory.app.application.alerts import LowStockAlertService
from services.inventory.app.application.service import InventoryService
from services.inventory.app.core_settings import get_settings
from services.inventory.app.infrastructure.clients import get_product_client
from services.inventory.app.infrastructure.db import get_db
from shared.clients import ProductCatalogClient


def get_inventory_service(
    db: Session = Depends(get_db),
    products: ProductCatalogClient = Depends(get_product_client),
) -> InventoryService:
    return InventoryService(db, products, get_settings())


def get_alert_service(
    db: Session = Depends(get_db),
    products: ProductCatalogClient = Depends(get_product_client),
) -> LowStockAlertService:
    return LowStockAlertService(db, products, get_settings())
