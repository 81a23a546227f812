from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from services.suppliers.app.core_settings import Settings
from services.suppliers.app.domain.models import ProductSupplier, Supplier
from shared.clients import ProductCatalogClient
from shared.core.errors import ConflictError, NotFoundError, reject_nulls
from shared.core.logging_config import get_logger

from .schemas import ProductSupplierCreate, ProductSupplierRead, ProductSupplierUpdate

logger = get_logger(__name__)

ENRICHMENT_WARNING = "Could not fetch complete product details"
REQUIRED_FIELDS = ("supplier_unit_price", "lead_time_days", "minimum_order_quantity", "is_preferred", "is_active")


class ProductSupplierService:
    """
    Product/supplier relationships.

    The product lives in the catalog service, so creation asks the catalog
    whether it exists, and the by-supplier view pulls names and SKUs from it.
    The views degrade to raw rows plus a warning when the catalog is down.
    """

    def __init__(self, db: Session, products: ProductCatalogClient, settings: Settings):
        self.db = db
        self.products = products
        self.settings = settings

    def list(
        self,
        supplier_id: Optional[int] = None,
        product_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ProductSupplier]:
        query = self.db.query(ProductSupplier)
        if supplier_id is not None:
            query = query.filter(ProductSupplier.supplier_id == supplier_id)
        if product_id is not None:
            query = query.filter(ProductSupplier.product_id == product_id)
        if is_active is not None:
            query = query.filter(ProductSupplier.is_active == is_active)
        return query.order_by(ProductSupplier.id).offset(skip).limit(limit).all()

    def get(self, relationship_id: int) -> ProductSupplier:
        link = self.db.get(ProductSupplier, relationship_id)
        if not link:
            raise NotFoundError("Product-supplier relationship not found")
        return link

    def find(self, product_id: int, supplier_id: int) -> Optional[ProductSupplier]:
        return self.db.query(ProductSupplier).filter(
            ProductSupplier.product_id == product_id,
            ProductSupplier.supplier_id == supplier_id,
        ).first()

    def create(self, data: ProductSupplierCreate) -> ProductSupplier:
        if not self.db.get(Supplier, data.supplier_id):
            raise NotFoundError("Supplier not found")
        if self.find(data.product_id, data.supplier_id):
            raise ConflictError("This product-supplier relationship already exists")
        if self.products.get_product(data.product_id, policy=self.settings.PRODUCT_LOOKUP_POLICY) is None:
            raise NotFoundError("Product not found in catalog")

        link = ProductSupplier(**data.model_dump())
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        logger.info(f"Product {link.product_id} linked to supplier {link.supplier_id}")
        return link

    def update(self, relationship_id: int, data: ProductSupplierUpdate) -> ProductSupplier:
        link = self.get(relationship_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, REQUIRED_FIELDS)
        for field, value in changes.items():
            setattr(link, field, value)
        self.db.commit()
        self.db.refresh(link)
        return link

    def delete(self, relationship_id: int) -> None:
        link = self.get(relationship_id)
        self.db.delete(link)
        self.db.commit()

    def by_supplier(self, supplier_id: int) -> Tuple[List[dict], Optional[str]]:
        """Active products for a supplier, with catalog name, SKU and list price."""
        links = self.db.query(ProductSupplier).filter(
            ProductSupplier.supplier_id == supplier_id,
            ProductSupplier.is_active.is_(True),
        ).order_by(ProductSupplier.is_preferred.desc(), ProductSupplier.id).all()

        catalog = self.products.get_products_batch(
            [link.product_id for link in links], policy=self.settings.PRODUCT_ENRICHMENT_POLICY
        )
        if catalog is None:
            return [_read(link) for link in links], ENRICHMENT_WARNING

        by_id = {p["id"]: p for p in catalog}
        rows = []
        for link in links:
            product = by_id.get(link.product_id, {})
            row = _read(link)
            row.update({
                "product_name": product.get("name", "Unknown Product"),
                "product_sku": product.get("sku", "N/A"),
                "product_description": product.get("description"),
                "catalog_price": product.get("unit_price"),
                "lifecycle_state": product.get("lifecycle_state"),
            })
            rows.append(row)
        return rows, None

    def by_product(self, product_id: int) -> List[dict]:
        """Active suppliers for a product, preferred first, then cheapest."""
        links = self.db.query(ProductSupplier).options(joinedload(ProductSupplier.supplier)).join(
            Supplier, Supplier.id == ProductSupplier.supplier_id
        ).filter(
            ProductSupplier.product_id == product_id,
            ProductSupplier.is_active.is_(True),
            Supplier.is_active.is_(True),
        ).order_by(
            ProductSupplier.is_preferred.desc(), ProductSupplier.supplier_unit_price, ProductSupplier.id
        ).all()

        rows = []
        for link in links:
            row = _read(link)
            row.update({
                "supplier_name": link.supplier.name,
                "supplier_email": link.supplier.email,
                "supplier_rating": Decimal(str(link.supplier.rating)) if link.supplier.rating is not None else None,
            })
            rows.append(row)
        return rows


def _read(link: ProductSupplier) -> dict:
    return ProductSupplierRead.model_validate(link).model_dump()
