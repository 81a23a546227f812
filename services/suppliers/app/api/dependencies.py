from fastapi import Depends
from sqlalchemy.orm import Session

from services.suppliers.app.application.product_suppliers import ProductSupplierService
from services.suppliers.app.application.purchase_orders import PurchaseOrderService
from services.suppliers.app.application.service import SupplierService
from services.suppliers.app.core_settings import get_settings
from services.suppliers.app.infrastructure.clients import get_inventory_client, get_product_client
from services.suppliers.app.infrastructure.db import get_db
from shared.clients import InventoryClient, ProductCatalogClient


def get_supplier_service(db: Session = Depends(get_db)) -> SupplierService:
    return SupplierService(db)


def get_product_supplier_service(
    db: Session = Depends(get_db),
    products: ProductCatalogClient = Depends(get_product_client),
) -> ProductSupplierService:
    return ProductSupplierService(db, products, get_settings())


def get_purchase_order_service(
    db: Session = Depends(get_db),
    inventory: InventoryClient = Depends(get_inventory_client),
    products: ProductCatalogClient = Depends(get_product_client),
) -> PurchaseOrderService:
    return PurchaseOrderService(db, inventory, products, get_settings())
