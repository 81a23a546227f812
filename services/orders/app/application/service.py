from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from services.orders.app.core_settings import Settings
from services.orders.app.domain.models import Order, OrderItem, OrderStatus
from shared.clients import InventoryClient, ProductCatalogClient
from shared.core.database import next_number
from shared.core.downstream import DownstreamError, FailurePolicy
from shared.core.errors import InsufficientStockError, InvalidTransitionError, NotFoundError, ValidationError, reject_nulls
from shared.core.logging_config import get_logger

from .schemas import OrderCreate, OrderUpdate

logger = get_logger(__name__)

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Orders in these states hold reserved stock
RESERVING_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}
DELETABLE_STATES = {OrderStatus.PENDING, OrderStatus.CANCELLED}


class OrderService:
    def __init__(self, db: Session, inventory: InventoryClient, products: ProductCatalogClient, settings: Settings):
        self.db = db
        self.inventory = inventory
        self.products = products
        self.settings = settings

    def _generate_order_number(self) -> str:
        """Generate a realistic order number in format ORD-YYYY-NNNNN"""
        year = datetime.now().year
        next_num = next_number(self.db, Order.order_number, f"ORD-{year}-")
        return f"ORD-{year}-{next_num:05d}"

    def list(
        self,
        status: Optional[OrderStatus] = None,
        customer_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Order]:
        query = self.db.query(Order)
        if status is not None:
            query = query.filter(Order.status == OrderStatus(status).value)
        if customer_id is not None:
            query = query.filter(Order.customer_id == customer_id)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit).all()

    def get(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def create(self, data: OrderCreate) -> Order:
        """
        Create a pending order and reserve stock for every line.

        Every line is tried so the error can list all shortages. If any line
        cannot be reserved the reservations already made are released and
        nothing is stored.
        """
        if not data.items:
            raise ValidationError("Order must contain at least one item")

        products = self._product_snapshots([item.product_id for item in data.items])
        order = Order(
            order_number=self._generate_order_number(),
            customer_id=data.customer_id,
            status=OrderStatus.PENDING.value,
            shipping_address=data.shipping_address,
            payment_method=data.payment_method,
            payment_status="pending",
            notes=data.notes,
        )
        total = Decimal("0")
        for line in data.items:
            product = products.get(line.product_id, {})
            unit_price = line.unit_price
            if unit_price is None and product.get("unit_price") is not None:
                unit_price = Decimal(str(product["unit_price"]))
            if unit_price is None:
                raise ValidationError(f"unit_price is required for product {line.product_id}")
            subtotal = unit_price * line.quantity
            total += subtotal
            order.items.append(OrderItem(
                product_id=line.product_id,
                sku=line.sku or product.get("sku"),
                quantity=line.quantity,
                unit_price=unit_price,
                subtotal=subtotal,
                product_name_snapshot=product.get("name"),
            ))
        order.total_amount = total

        try:
            self.db.add(order)
            self.db.flush()
            self._reserve_all(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(
            "Order created",
            extra={"extra_fields": {
                "order_id": order.id,
                "order_number": order.order_number,
                "items": len(order.items),
                "total_amount": str(order.total_amount),
            }},
        )
        return order

    def update(self, order_id: int, data: OrderUpdate) -> Order:
        order = self.get(order_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, ("payment_status",))
        for field, value in changes.items():
            setattr(order, field, value)
        self.db.commit()
        self.db.refresh(order)
        return order

    def update_status(self, order_id: int, status: OrderStatus) -> Order:
        order = self.get(order_id)
        current = OrderStatus(order.status)
        target = OrderStatus(status)
        if target not in ORDER_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot change order status from {current.value} to {target.value}"
            )

        if target == OrderStatus.CANCELLED:
            self._for_each_item(order, self.inventory.release, undo=self.inventory.reserve)
        elif target == OrderStatus.SHIPPED:
            self._for_each_item(order, self.inventory.confirm_deduction)

        order.status = target.value
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} status {current.value} -> {target.value}")
        return order

    def cancel(self, order_id: int) -> Order:
        return self.update_status(order_id, OrderStatus.CANCELLED)

    def delete(self, order_id: int) -> None:
        order = self.get(order_id)
        status = OrderStatus(order.status)
        if status not in DELETABLE_STATES:
            raise ValidationError("Only pending or cancelled orders can be deleted")
        if status in RESERVING_STATES:
            self._for_each_item(order, self.inventory.release, undo=self.inventory.reserve)
        self.db.delete(order)
        self.db.commit()
        logger.info(f"Order {order.order_number} deleted")

    def stats(self) -> dict:
        by_status = dict(
            self.db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
        )
        revenue, orders = self.db.query(
            func.coalesce(func.sum(Order.total_amount), 0), func.count(Order.id)
        ).filter(Order.status != OrderStatus.CANCELLED.value).one()
        revenue = Decimal(str(revenue))
        return {
            "total_orders": sum(by_status.values()),
            "by_status": {s.value: by_status.get(s.value, 0) for s in OrderStatus},
            "total_revenue": revenue,
            "average_order_value": (revenue / orders).quantize(Decimal("0.01")) if orders else Decimal("0"),
        }

    def _product_snapshots(self, product_ids: List[int]) -> dict:
        products = self.products.get_products_batch(product_ids, policy=self.settings.PRODUCT_SNAPSHOT_POLICY)
        return {p["id"]: p for p in products or []}

    def _reserve_all(self, order: Order) -> None:
        reserved: List[OrderItem] = []
        shortages = []
        try:
            for item in order.items:
                try:
                    self.inventory.reserve(item.product_id, item.quantity, order.id)
                    reserved.append(item)
                except DownstreamError as exc:
                    if exc.status_code not in (400, 404):
                        raise
                    shortages.append(self._shortage(item, exc))
        except DownstreamError:
            self._release(order, reserved)
            raise

        if shortages:
            self._release(order, reserved)
            logger.warning(
                "Order rejected, stock not available",
                extra={"extra_fields": {"order_number": order.order_number, "shortages": shortages}},
            )
            raise InsufficientStockError("Stock not available", details=shortages)

    @staticmethod
    def _shortage(item: OrderItem, exc: DownstreamError) -> dict:
        available = 0
        details = exc.payload.get("details") if isinstance(exc.payload, dict) else None
        if details:
            available = details[0].get("available", 0)
        return {
            "product_id": item.product_id,
            "sku": item.sku,
            "requested": item.quantity,
            "available": available,
            "error": exc.message,
        }

    def _release(self, order: Order, items: List[OrderItem]) -> None:
        for item in items:
            released = self.inventory.release(
                item.product_id, item.quantity, order.id, policy=FailurePolicy.FAIL_OPEN
            )
            if released is None:
                logger.error(
                    f"Could not release {item.quantity} units of product {item.product_id} "
                    f"for order {order.order_number}"
                )

    def _for_each_item(self, order: Order, action: Callable, undo: Optional[Callable] = None) -> None:
        """Apply an inventory call to every line; on failure undo the lines already done."""
        done: List[OrderItem] = []
        for item in order.items:
            try:
                action(item.product_id, item.quantity, order.id)
            except DownstreamError:
                for finished in done:
                    if undo is None:
                        logger.error(
                            f"Order {order.order_number}: inventory already updated for product "
                            f"{finished.product_id} before failure"
                        )
                    elif undo(finished.product_id, finished.quantity, order.id, policy=FailurePolicy.FAIL_OPEN) is None:
                        logger.error(f"Order {order.order_number}: could not undo product {finished.product_id}")
                raise
            done.append(item)
