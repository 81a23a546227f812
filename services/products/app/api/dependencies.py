from fastapi import Depends
from sqlalchemy.orm import Session

from services.products.app.application.categories import CategoryService
from services.products.app.application.service import ProductService
from services.products.app.core_settings import get_settings
from services.products.app.infrastructure.clients import get_inventory_client
from services.products.app.infrastructure.db import get_db
from shared.clients import InventoryClient


def get_product_service(
    db: Session = Depends(get_db),
    inventory: InventoryClient = Depends(get_inventory_client),
) -> ProductService:
    return ProductService(db, inventory, get_settings())


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)
