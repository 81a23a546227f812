from typing import Iterable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from services.products.app.core_settings import Settings
from services.products.app.domain.models import Category, LifecycleState, Product
from shared.clients import InventoryClient
from shared.core.database import next_number
from shared.core.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError, reject_nulls
from shared.core.logging_config import get_logger

from .schemas import ProductCreate, ProductUpdate

logger = get_logger(__name__)

LIFECYCLE_TRANSITIONS = {
    LifecycleState.DRAFT: {LifecycleState.ACTIVE, LifecycleState.DISCONTINUED},
    LifecycleState.ACTIVE: {LifecycleState.DISCONTINUED},
    LifecycleState.DISCONTINUED: {LifecycleState.ACTIVE},
}


# Columns a partial update may not clear
REQUIRED_FIELDS = ("sku", "name", "is_active")


class ProductService:
    def __init__(self, db: Session, inventory: InventoryClient, settings: Settings):
        self.db = db
        self.inventory = inventory
        self.settings = settings

    def _generate_sku(self) -> str:
        """Generate a unique SKU in format: SKU#### (sequential)"""
        next_num = next_number(self.db, Product.sku, "SKU")
        # Hand-entered SKUs can occupy later numbers with other zero padding
        while self.db.query(Product.id).filter(Product.sku == f"SKU{next_num:04d}").first():
            next_num += 1
        return f"SKU{next_num:04d}"

    def list(
        self,
        category_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        search: Optional[str] = None,
        is_active: bool = True,
        lifecycle_state: Optional[LifecycleState] = None,
        skip: int = 0,
        limit: int = 100,
    ):
        query = self.db.query(Product).filter(Product.is_active == is_active)
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if supplier_id is not None:
            query = query.filter(Product.supplier_id == supplier_id)
        if lifecycle_state is not None:
            query = query.filter(Product.lifecycle_state == LifecycleState(lifecycle_state).value)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Product.name.ilike(pattern),
                Product.sku.ilike(pattern),
                Product.description.ilike(pattern),
            ))
        return query.order_by(Product.id).offset(skip).limit(limit).all()

    def get(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_by_sku(self, sku: str) -> Product:
        product = self.db.query(Product).filter(Product.sku == sku).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_batch(self, ids: Iterable[int]):
        ids = sorted(set(ids))
        if not ids:
            return []
        return self.db.query(Product).filter(Product.id.in_(ids)).order_by(Product.id).all()

    def create(self, data: ProductCreate):
        """
        Persist the product, then ask the inventory service for an empty
        stock row. Returns ``(product, inventory_created)``.
        """
        product_data = data.model_dump()
        product_data['lifecycle_state'] = data.lifecycle_state.value
        if not product_data.get('sku'):
            product_data['sku'] = self._generate_sku()
        self._check_sku(product_data['sku'])
        self._check_category(data.category_id)

        product = Product(**product_data)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info(
            "Product created",
            extra={"extra_fields": {"product_id": product.id, "sku": product.sku}},
        )

        # The product row is committed before the inventory service looks it up
        inventory = self.inventory.create_inventory(
            product.id,
            product.sku,
            quantity=0,
            warehouse_location=self.settings.DEFAULT_WAREHOUSE_LOCATION,
            reorder_level=self.settings.DEFAULT_REORDER_LEVEL,
            max_stock_level=self.settings.DEFAULT_MAX_STOCK_LEVEL,
            policy=self.settings.INVENTORY_CREATE_POLICY,
        )
        if inventory is None:
            logger.warning(f"Product {product.id} created without an inventory record")
        return product, inventory is not None

    def update(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get(product_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, REQUIRED_FIELDS)
        if changes.get("sku") and changes["sku"] != product.sku:
            self._check_sku(changes["sku"])
        if "category_id" in changes:
            self._check_category(changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def transition_lifecycle(self, product_id: int, target: LifecycleState) -> Product:
        product = self.get(product_id)
        current = LifecycleState(product.lifecycle_state)
        target = LifecycleState(target)
        if target not in LIFECYCLE_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot change lifecycle from {current.value} to {target.value}"
            )
        product.lifecycle_state = target.value
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Product {product_id} lifecycle {current.value} -> {target.value}")
        return product

    def delete(self, product_id: int) -> None:
        product = self.get(product_id)
        product.is_active = False
        self.db.commit()

    def _check_sku(self, sku: str) -> None:
        if self.db.query(Product).filter(Product.sku == sku).first():
            raise ConflictError("Product with this SKU already exists")

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and not self.db.get(Category, category_id):
            raise ValidationError("Category not found")
