from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from services.inventory.app.core_settings import Settings
from services.inventory.app.domain.models import Inventory, MovementType, StockMovement
from shared.clients import ProductCatalogClient
from shared.core.downstream import FailurePolicy
from shared.core.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError, reject_nulls
from shared.core.logging_config import current_user_id, get_logger

from .schemas import BulkCheckItem, InventoryCreate, InventoryUpdate, StockAdjustment

logger = get_logger(__name__)

ADDING_MOVEMENTS = {MovementType.IN, MovementType.RETURN}
REMOVING_MOVEMENTS = {MovementType.OUT, MovementType.DAMAGED, MovementType.EXPIRED}


class InventoryService:
    """
    Stock levels and the movement ledger.

    Every quantity change is one conditional UPDATE; the WHERE clause carries
    the stock rule, so a zero row count means the row is missing or the rule
    would be broken. The movement row is written in the same transaction.
    """

    def __init__(self, db: Session, products: ProductCatalogClient, settings: Settings):
        self.db = db
        self.products = products
        self.settings = settings

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def list(
        self,
        product_id: Optional[int] = None,
        low_stock: bool = False,
        warehouse_location: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Inventory]:
        query = self.db.query(Inventory)
        if product_id is not None:
            query = query.filter(Inventory.product_id == product_id)
        if low_stock:
            query = query.filter(Inventory.quantity <= Inventory.reorder_level)
        if warehouse_location:
            query = query.filter(Inventory.warehouse_location.ilike(f"%{warehouse_location}%"))
        return query.order_by(Inventory.id).offset(skip).limit(limit).all()

    def get(self, inventory_id: int) -> Inventory:
        inventory = self.db.get(Inventory, inventory_id)
        if not inventory:
            raise NotFoundError("Inventory not found")
        return inventory

    def get_by_product(self, product_id: int) -> Inventory:
        inventory = (
            self.db.query(Inventory)
            .filter(Inventory.product_id == product_id)
            .populate_existing()
            .first()
        )
        if not inventory:
            raise NotFoundError(f"Inventory not found for product {product_id}")
        return inventory

    def create(self, data: InventoryCreate) -> Inventory:
        if self.db.query(Inventory).filter(Inventory.product_id == data.product_id).first():
            raise ConflictError("Inventory already exists for this product")

        policy = self.settings.PRODUCT_LOOKUP_POLICY
        product = self.products.get_product(data.product_id, policy=policy)
        if product is None and policy == FailurePolicy.FAIL_CLOSED:
            raise NotFoundError("Product not found")

        sku = data.sku or (product or {}).get("sku")
        inventory = Inventory(
            product_id=data.product_id,
            sku=sku,
            quantity=data.quantity,
            reserved_quantity=0,
            warehouse_location=data.warehouse_location,
            reorder_level=(
                data.reorder_level if data.reorder_level is not None else self.settings.DEFAULT_REORDER_LEVEL
            ),
            max_stock_level=(
                data.max_stock_level if data.max_stock_level is not None else self.settings.DEFAULT_MAX_STOCK_LEVEL
            ),
        )
        with self._transaction():
            self.db.add(inventory)
            self.db.flush()
            if data.quantity > 0:
                inventory.last_restocked_at = datetime.now(timezone.utc)
                self._record_movement(
                    inventory, MovementType.IN, data.quantity,
                    reference_type="initial_stock", notes="Initial stock",
                )
        self.db.refresh(inventory)
        logger.info(
            "Inventory created",
            extra={"extra_fields": {"product_id": inventory.product_id, "quantity": inventory.quantity}},
        )
        return inventory

    def update(self, inventory_id: int, data: InventoryUpdate) -> Inventory:
        inventory = self.get(inventory_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, ("reorder_level", "max_stock_level"))
        with self._transaction():
            for field, value in changes.items():
                setattr(inventory, field, value)
        self.db.refresh(inventory)
        return inventory

    def delete(self, inventory_id: int) -> None:
        inventory = self.get(inventory_id)
        with self._transaction():
            self.db.delete(inventory)

    # ------------------------------------------------------------------
    # Stock operations
    # ------------------------------------------------------------------

    def reserve_stock(self, product_id: int, quantity: int, order_id: Optional[int] = None) -> Inventory:
        self._require_positive(quantity)
        with self._transaction():
            inventory = self._conditional_update(
                product_id,
                Inventory.quantity - Inventory.reserved_quantity >= quantity,
                reserved_quantity=Inventory.reserved_quantity + quantity,
            )
            if inventory is None:
                self._raise_insufficient(product_id, quantity)
            self._record_movement(
                inventory, MovementType.ADJUSTMENT, quantity,
                reference_type="order_reservation", reference_id=order_id,
                notes=f"Reserved {quantity} units",
            )
        logger.info(
            "Stock reserved",
            extra={"extra_fields": {"product_id": product_id, "quantity": quantity, "order_id": order_id}},
        )
        return inventory

    def release_reserved_stock(self, product_id: int, quantity: int, order_id: Optional[int] = None) -> Inventory:
        self._require_positive(quantity)
        with self._transaction():
            inventory = self._conditional_update(
                product_id,
                Inventory.reserved_quantity >= quantity,
                reserved_quantity=Inventory.reserved_quantity - quantity,
            )
            if inventory is None:
                self._raise_not_reserved(product_id, quantity)
            self._record_movement(
                inventory, MovementType.ADJUSTMENT, quantity,
                reference_type="order_release", reference_id=order_id,
                notes=f"Released {quantity} reserved units",
            )
        logger.info(
            "Reserved stock released",
            extra={"extra_fields": {"product_id": product_id, "quantity": quantity, "order_id": order_id}},
        )
        return inventory

    def confirm_stock_deduction(self, product_id: int, quantity: int, order_id: Optional[int] = None) -> Inventory:
        self._require_positive(quantity)
        with self._transaction():
            inventory = self._conditional_update(
                product_id,
                Inventory.reserved_quantity >= quantity,
                quantity=Inventory.quantity - quantity,
                reserved_quantity=Inventory.reserved_quantity - quantity,
            )
            if inventory is None:
                self._raise_not_reserved(product_id, quantity)
            self._record_movement(
                inventory, MovementType.OUT, quantity,
                reference_type="order", reference_id=order_id,
                notes=f"Shipped {quantity} units",
            )
        logger.info(
            "Stock deduction confirmed",
            extra={"extra_fields": {"product_id": product_id, "quantity": quantity, "order_id": order_id}},
        )
        return inventory

    def receive_stock(
        self,
        product_id: int,
        quantity: int,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None,
        movement_type: MovementType = MovementType.IN,
        reference_type: str = "purchase_order",
        sku: Optional[str] = None,
    ) -> Inventory:
        self._require_positive(quantity)
        with self._transaction():
            inventory = self._conditional_update(
                product_id,
                None,
                quantity=Inventory.quantity + quantity,
                last_restocked_at=datetime.now(timezone.utc),
            )
            if inventory is None:
                raise NotFoundError(f"Inventory not found for product {product_id}")
            self._record_movement(
                inventory, movement_type, quantity,
                reference_type=reference_type, reference_id=reference_id,
                notes=notes, sku=sku,
            )
        logger.info(
            "Stock received",
            extra={"extra_fields": {
                "product_id": product_id,
                "quantity": quantity,
                "movement_type": MovementType(movement_type).value,
                "reference_type": reference_type,
                "reference_id": reference_id,
            }},
        )
        return inventory

    def return_stock(self, product_id: int, quantity: int, order_id: int) -> Inventory:
        return self.receive_stock(
            product_id, quantity,
            reference_id=order_id,
            notes=f"Returned from order {order_id}",
            movement_type=MovementType.RETURN,
            reference_type="order_return",
        )

    def adjust_stock(self, data: StockAdjustment) -> Inventory:
        movement_type = MovementType(data.movement_type)
        if movement_type in ADDING_MOVEMENTS:
            return self.receive_stock(
                data.product_id, data.quantity,
                reference_id=data.reference_id,
                notes=data.notes,
                movement_type=movement_type,
                reference_type=data.reference_type or "manual",
                sku=data.sku,
            )

        if movement_type in REMOVING_MOVEMENTS:
            self._require_positive(data.quantity)
            condition = Inventory.quantity - Inventory.reserved_quantity >= data.quantity
            delta = -data.quantity
        else:
            if data.quantity == 0:
                raise ValidationError("Adjustment quantity must not be zero")
            condition = Inventory.quantity + data.quantity >= Inventory.reserved_quantity
            delta = data.quantity

        with self._transaction():
            inventory = self._conditional_update(
                data.product_id, condition, quantity=Inventory.quantity + delta
            )
            if inventory is None:
                self._raise_insufficient(data.product_id, abs(delta))
            self._record_movement(
                inventory, movement_type, data.quantity,
                reference_type=data.reference_type or "manual",
                reference_id=data.reference_id,
                notes=data.notes,
                sku=data.sku,
            )
        logger.info(
            "Stock adjusted",
            extra={"extra_fields": {
                "product_id": data.product_id,
                "movement_type": movement_type.value,
                "delta": delta,
            }},
        )
        return inventory

    def bulk_stock_check(self, items: List[BulkCheckItem]) -> dict:
        if not items:
            raise ValidationError("Items array is required")
        rows = {
            inv.product_id: inv
            for inv in self.db.query(Inventory).filter(
                Inventory.product_id.in_(sorted({item.product_id for item in items}))
            )
        }
        results = []
        for item in items:
            inventory = rows.get(item.product_id)
            available = inventory.available_quantity if inventory else 0
            results.append({
                "product_id": item.product_id,
                "sku": inventory.sku if inventory else None,
                "requested": item.quantity,
                "available": available,
                "is_available": inventory is not None and available >= item.quantity,
            })
        return {
            "all_available": all(r["is_available"] for r in results),
            "items": results,
        }

    # ------------------------------------------------------------------
    # Ledger and reporting
    # ------------------------------------------------------------------

    def history(self, product_id: int, limit: int = 50) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(StockMovement.product_id == product_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )

    def list_movements(
        self,
        product_id: Optional[int] = None,
        movement_type: Optional[MovementType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[StockMovement]:
        query = self.db.query(StockMovement)
        if product_id is not None:
            query = query.filter(StockMovement.product_id == product_id)
        if movement_type is not None:
            query = query.filter(StockMovement.movement_type == MovementType(movement_type).value)
        if start_date is not None:
            query = query.filter(StockMovement.created_at >= start_date)
        if end_date is not None:
            query = query.filter(StockMovement.created_at <= end_date)
        return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()

    def analytics(self, days: int = 30) -> dict:
        available = Inventory.quantity - Inventory.reserved_quantity
        totals = self.db.query(
            func.count(Inventory.id),
            func.coalesce(func.sum(Inventory.quantity), 0),
            func.coalesce(func.sum(Inventory.reserved_quantity), 0),
            func.coalesce(func.sum(case(
                ((Inventory.reorder_level > 0) & (available < Inventory.reorder_level), 1), else_=0
            )), 0),
            func.coalesce(func.sum(case((available <= 0, 1), else_=0)), 0),
        ).one()
        total_items, total_quantity, total_reserved, low_stock, out_of_stock = totals

        since = datetime.now(timezone.utc) - timedelta(days=days)
        movements = (
            self.db.query(
                StockMovement.movement_type,
                func.count(StockMovement.id),
                func.coalesce(func.sum(StockMovement.quantity), 0),
            )
            .filter(StockMovement.created_at >= since)
            .group_by(StockMovement.movement_type)
            .all()
        )
        return {
            "total_items": total_items,
            "total_quantity": int(total_quantity),
            "total_reserved": int(total_reserved),
            "total_available": int(total_quantity) - int(total_reserved),
            "low_stock_items": int(low_stock),
            "out_of_stock_items": int(out_of_stock),
            "movements": {
                movement_type: {"count": count, "quantity": int(quantity)}
                for movement_type, count, quantity in movements
            },
            "period_days": days,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _conditional_update(self, product_id: int, condition, **values) -> Optional[Inventory]:
        stmt = update(Inventory).where(Inventory.product_id == product_id)
        if condition is not None:
            stmt = stmt.where(condition)
        stmt = stmt.values(**values).execution_options(synchronize_session=False)
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return self.get_by_product(product_id)

    def _record_movement(
        self,
        inventory: Inventory,
        movement_type: MovementType,
        quantity: int,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None,
        sku: Optional[str] = None,
    ) -> StockMovement:
        movement = StockMovement(
            product_id=inventory.product_id,
            sku=sku or inventory.sku,
            movement_type=MovementType(movement_type).value,
            quantity=quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
            created_by=current_user_id(),
        )
        self.db.add(movement)
        return movement

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")

    def _raise_insufficient(self, product_id: int, requested: int):
        inventory = self.get_by_product(product_id)
        available = inventory.available_quantity
        raise InsufficientStockError(
            f"Insufficient stock for {inventory.sku or product_id}. "
            f"Available: {available}, Requested: {requested}",
            details=[{
                "product_id": product_id,
                "sku": inventory.sku,
                "requested": requested,
                "available": available,
            }],
        )

    def _raise_not_reserved(self, product_id: int, requested: int):
        inventory = self.get_by_product(product_id)
        raise ValidationError(
            f"Cannot release {requested} units of {inventory.sku or product_id}; "
            f"only {inventory.reserved_quantity} reserved"
        )
