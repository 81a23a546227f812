from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from services.suppliers.app.core_settings import Settings
from services.suppliers.app.domain.models import (
    InventorySyncOutbox,
    OutboxStatus,
    ProductSupplier,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    Supplier,
    SupplierResponse,
)
from shared.clients import InventoryClient, ProductCatalogClient
from shared.core.database import next_number
from shared.core.downstream import DownstreamError
from shared.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from shared.core.logging_config import current_user_id, get_logger

from .product_suppliers import ENRICHMENT_WARNING
from .schemas import (
    PurchaseOrderCreate,
    PurchaseOrderRead,
    PurchaseOrderUpdate,
    ShipmentUpdate,
    SupplierResponseRequest,
)

logger = get_logger(__name__)

PO_TRANSITIONS = {
    PurchaseOrderStatus.PENDING: {
        PurchaseOrderStatus.CONFIRMED, PurchaseOrderStatus.REJECTED, PurchaseOrderStatus.CANCELLED,
    },
    PurchaseOrderStatus.CONFIRMED: {PurchaseOrderStatus.PREPARING, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.PREPARING: {PurchaseOrderStatus.SHIPPED},
    PurchaseOrderStatus.SHIPPED: {PurchaseOrderStatus.RECEIVED},
    PurchaseOrderStatus.RECEIVED: set(),
    PurchaseOrderStatus.REJECTED: set(),
    PurchaseOrderStatus.CANCELLED: set(),
}

# Statuses with side effects that only their dedicated operation performs
DEDICATED_STATUS_OPERATIONS = {
    PurchaseOrderStatus.CONFIRMED: "Use the supplier response endpoint to confirm a purchase order",
    PurchaseOrderStatus.REJECTED: "Use the supplier response endpoint to reject a purchase order",
    PurchaseOrderStatus.RECEIVED: "Use the receipt confirmation endpoint to receive a purchase order",
}

RECEIPT_MOVEMENT_TYPE = "in"
RECEIPT_REFERENCE_TYPE = "purchase_order"


class PurchaseOrderService:
    def __init__(
        self,
        db: Session,
        inventory: InventoryClient,
        products: ProductCatalogClient,
        settings: Settings,
    ):
        self.db = db
        self.inventory = inventory
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

    def _generate_po_number(self) -> str:
        """PO-YYYYMMDD-NNN, numbered per day."""
        prefix = f"PO-{datetime.now():%Y%m%d}-"
        next_num = next_number(self.db, PurchaseOrder.po_number, prefix)
        return f"{prefix}{next_num:03d}"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(
        self,
        status: Optional[PurchaseOrderStatus] = None,
        supplier_id: Optional[int] = None,
        supplier_response: Optional[SupplierResponse] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PurchaseOrder]:
        query = self.db.query(PurchaseOrder)
        if status is not None:
            query = query.filter(PurchaseOrder.status == PurchaseOrderStatus(status).value)
        if supplier_id is not None:
            query = query.filter(PurchaseOrder.supplier_id == supplier_id)
        if supplier_response is not None:
            query = query.filter(PurchaseOrder.supplier_response == SupplierResponse(supplier_response).value)
        return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).offset(skip).limit(limit).all()

    def list_enriched(self, **filters) -> Tuple[List[dict], Optional[str]]:
        """
        Purchase orders with ``product_details`` from the catalog and the
        supplier's current ``supplier_price`` for the product.

        A catalog outage leaves ``product_details`` empty and returns a warning.
        """
        orders = self.list(**filters)
        prices = self._supplier_prices(orders)
        catalog = self.products.get_products_batch(
            [po.product_id for po in orders], policy=self.settings.PRODUCT_ENRICHMENT_POLICY
        )
        by_id = {p["id"]: p for p in catalog or []}

        rows = []
        for po in orders:
            row = PurchaseOrderRead.model_validate(po).model_dump()
            product = by_id.get(po.product_id)
            row["product_details"] = {
                "name": product.get("name"),
                "sku": product.get("sku"),
                "unit_price": product.get("unit_price"),
            } if product else None
            row["supplier_price"] = prices.get((po.product_id, po.supplier_id))
            rows.append(row)
        return rows, ENRICHMENT_WARNING if catalog is None else None

    def get(self, po_id: int) -> PurchaseOrder:
        po = self.db.get(PurchaseOrder, po_id)
        if not po:
            raise NotFoundError("Purchase order not found")
        return po

    def pending_requests(self, supplier_id: int) -> List[PurchaseOrder]:
        """Purchase orders still waiting for this supplier's answer."""
        if not self.db.get(Supplier, supplier_id):
            raise NotFoundError("Supplier not found")
        return self.db.query(PurchaseOrder).filter(
            PurchaseOrder.supplier_id == supplier_id,
            PurchaseOrder.supplier_response == SupplierResponse.PENDING.value,
            PurchaseOrder.status == PurchaseOrderStatus.PENDING.value,
        ).order_by(PurchaseOrder.created_at, PurchaseOrder.id).all()

    def stats(self, supplier_id: Optional[int] = None) -> dict:
        query = self.db.query(PurchaseOrder.status, func.count(PurchaseOrder.id))
        amount = self.db.query(func.coalesce(func.sum(PurchaseOrder.total_amount), 0)).filter(
            PurchaseOrder.status.notin_([PurchaseOrderStatus.CANCELLED.value, PurchaseOrderStatus.REJECTED.value])
        )
        if supplier_id is not None:
            query = query.filter(PurchaseOrder.supplier_id == supplier_id)
            amount = amount.filter(PurchaseOrder.supplier_id == supplier_id)
        by_status = dict(query.group_by(PurchaseOrder.status).all())
        return {
            "total": sum(by_status.values()),
            "by_status": {s.value: by_status.get(s.value, 0) for s in PurchaseOrderStatus},
            "total_amount": Decimal(str(amount.scalar())),
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, data: PurchaseOrderCreate) -> PurchaseOrder:
        link = self.db.query(ProductSupplier).filter(
            ProductSupplier.product_id == data.product_id,
            ProductSupplier.supplier_id == data.supplier_id,
        ).first()
        if link is None:
            raise ValidationError("This supplier cannot provide the selected product")
        if not link.is_active:
            raise ValidationError("This product-supplier relationship is not active")
        if data.requested_quantity < link.minimum_order_quantity:
            raise ValidationError(
                f"Minimum order quantity for this product from this supplier is {link.minimum_order_quantity}"
            )

        unit_price = data.unit_price if data.unit_price is not None else Decimal(str(link.supplier_unit_price))
        sku = data.sku or self._catalog_sku(data.product_id)
        total = unit_price * data.requested_quantity

        po = PurchaseOrder(
            po_number=self._generate_po_number(),
            supplier_id=data.supplier_id,
            product_id=data.product_id,
            sku=sku,
            requested_quantity=data.requested_quantity,
            unit_price=unit_price,
            total_amount=total,
            status=PurchaseOrderStatus.PENDING.value,
            supplier_response=SupplierResponse.PENDING.value,
            estimated_delivery_date=data.estimated_delivery_date,
            notes=data.notes,
            created_by=current_user_id(),
        )
        po.items.append(PurchaseOrderItem(
            product_id=data.product_id,
            sku=sku,
            quantity=data.requested_quantity,
            unit_price=unit_price,
            subtotal=total,
        ))
        with self._transaction():
            self.db.add(po)
        self.db.refresh(po)
        logger.info(
            "Purchase order created",
            extra={"extra_fields": {
                "po_number": po.po_number,
                "supplier_id": po.supplier_id,
                "product_id": po.product_id,
                "requested_quantity": po.requested_quantity,
            }},
        )
        return po

    def update(self, po_id: int, data: PurchaseOrderUpdate) -> PurchaseOrder:
        po = self.get(po_id)
        with self._transaction():
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(po, field, value)
        self.db.refresh(po)
        return po

    def update_status(self, po_id: int, status: PurchaseOrderStatus) -> PurchaseOrder:
        target = PurchaseOrderStatus(status)
        if target in DEDICATED_STATUS_OPERATIONS:
            raise ValidationError(DEDICATED_STATUS_OPERATIONS[target])
        po = self.get(po_id)
        with self._transaction():
            self._transition(po, target)
        self.db.refresh(po)
        return po

    def respond(self, po_id: int, data: SupplierResponseRequest) -> PurchaseOrder:
        """Record the supplier's answer to a pending purchase request."""
        po = self.get(po_id)
        if po.supplier_response != SupplierResponse.PENDING.value:
            raise ValidationError("Purchase order has already been responded to")

        response = SupplierResponse(data.response)
        if response == SupplierResponse.PENDING:
            raise ValidationError("Response must be approved, partially_approved or rejected")

        with self._transaction():
            if response == SupplierResponse.REJECTED:
                self._transition(po, PurchaseOrderStatus.REJECTED)
                po.rejection_reason = data.rejection_reason
            else:
                approved = self._approved_quantity(po, response, data.approved_quantity)
                self._transition(po, PurchaseOrderStatus.CONFIRMED)
                po.approved_quantity = approved
                unit_price = Decimal(str(po.unit_price))
                for item in po.items:
                    item.quantity = approved
                    item.subtotal = unit_price * approved
                po.total_amount = unit_price * approved
                if data.estimated_delivery_date is not None:
                    po.estimated_delivery_date = data.estimated_delivery_date

            po.supplier_response = response.value
            po.responded_at = datetime.utcnow()
            if data.supplier_notes is not None:
                po.supplier_notes = data.supplier_notes
        self.db.refresh(po)
        logger.info(f"Purchase order {po.po_number} {response.value} by supplier {po.supplier_id}")
        return po

    def mark_preparing(self, po_id: int) -> PurchaseOrder:
        return self.update_status(po_id, PurchaseOrderStatus.PREPARING)

    def ship(self, po_id: int, data: ShipmentUpdate) -> PurchaseOrder:
        po = self.get(po_id)
        with self._transaction():
            self._transition(po, PurchaseOrderStatus.SHIPPED)
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(po, field, value)
        self.db.refresh(po)
        return po

    def confirm_receipt(self, po_id: int, notes: Optional[str] = None) -> Tuple[PurchaseOrder, dict]:
        """
        Mark the purchase order received and add every line to inventory.

        The receipt stands even when inventory is unreachable: failed lines
        are reported back and queued in the sync outbox for a later retry.
        """
        po = self.get(po_id)
        with self._transaction():
            self._transition(po, PurchaseOrderStatus.RECEIVED)
            po.actual_delivery_date = datetime.utcnow()
            if notes:
                po.notes = notes

        errors = []
        with self._transaction():
            for item in po.items:
                try:
                    self._adjust_inventory(po.id, po.po_number, item.product_id, item.sku, item.quantity)
                except DownstreamError as exc:
                    errors.append({
                        "product_id": item.product_id,
                        "sku": item.sku,
                        "quantity": item.quantity,
                        "error": exc.message,
                    })
                    self.db.add(InventorySyncOutbox(
                        purchase_order_id=po.id,
                        po_number=po.po_number,
                        product_id=item.product_id,
                        sku=item.sku,
                        quantity=item.quantity,
                        status=OutboxStatus.PENDING.value,
                        attempts=1,
                        last_error=exc.message,
                    ))
        self.db.refresh(po)

        if errors:
            logger.warning(
                "Purchase order received, inventory update queued for retry",
                extra={"extra_fields": {"po_number": po.po_number, "errors": errors}},
            )
        else:
            logger.info(f"Purchase order {po.po_number} received into inventory")
        return po, {"successful": not errors, "errors": errors}

    def delete(self, po_id: int) -> None:
        po = self.get(po_id)
        with self._transaction():
            self.db.delete(po)
        logger.info(f"Purchase order {po.po_number} deleted")

    # ------------------------------------------------------------------
    # Inventory sync outbox
    # ------------------------------------------------------------------

    def list_outbox(self, status: Optional[OutboxStatus] = None) -> List[InventorySyncOutbox]:
        query = self.db.query(InventorySyncOutbox)
        if status is not None:
            query = query.filter(InventorySyncOutbox.status == OutboxStatus(status).value)
        return query.order_by(InventorySyncOutbox.id).all()

    def retry_inventory_sync(self) -> dict:
        """Re-send pending outbox rows; rows out of attempts become ``failed``."""
        entries = self.list_outbox(OutboxStatus.PENDING)
        summary = {"processed": len(entries), "sent": 0, "failed": 0, "pending": 0}
        for entry in entries:
            with self._transaction():
                entry.attempts += 1
                try:
                    self._adjust_inventory(
                        entry.purchase_order_id, entry.po_number, entry.product_id, entry.sku, entry.quantity
                    )
                except DownstreamError as exc:
                    entry.last_error = exc.message
                    if entry.attempts >= self.settings.OUTBOX_MAX_ATTEMPTS:
                        entry.status = OutboxStatus.FAILED.value
                        logger.error(
                            f"Inventory sync for {entry.po_number} product {entry.product_id} "
                            f"failed after {entry.attempts} attempts"
                        )
                    summary[entry.status] += 1
                    continue
                entry.status = OutboxStatus.SENT.value
                entry.last_error = None
                summary["sent"] += 1
        logger.info("Inventory sync retry finished", extra={"extra_fields": summary})
        return summary

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(self, po: PurchaseOrder, target: PurchaseOrderStatus) -> None:
        current = PurchaseOrderStatus(po.status)
        if target not in PO_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot change purchase order status from {current.value} to {target.value}"
            )
        po.status = target.value

    @staticmethod
    def _approved_quantity(po: PurchaseOrder, response: SupplierResponse, quantity: Optional[int]) -> int:
        if response == SupplierResponse.APPROVED:
            if quantity is not None and quantity != po.requested_quantity:
                raise ValidationError("Use partially_approved to approve a different quantity")
            return po.requested_quantity
        if quantity is None or not 0 < quantity <= po.requested_quantity:
            raise ValidationError(
                f"Approved quantity must be between 1 and {po.requested_quantity} for a partial approval"
            )
        return quantity

    def _adjust_inventory(
        self, po_id: int, po_number: Optional[str], product_id: int, sku: Optional[str], quantity: int
    ) -> None:
        self.inventory.adjust(
            product_id,
            quantity,
            RECEIPT_MOVEMENT_TYPE,
            sku=sku,
            notes=f"Received from PO {po_number}",
            reference_type=RECEIPT_REFERENCE_TYPE,
            reference_id=po_id,
        )

    def _catalog_sku(self, product_id: int) -> Optional[str]:
        product = self.products.get_product(product_id, policy=self.settings.PRODUCT_ENRICHMENT_POLICY)
        return product.get("sku") if product else None

    def _supplier_prices(self, orders: List[PurchaseOrder]) -> dict:
        supplier_ids = sorted({po.supplier_id for po in orders})
        if not supplier_ids:
            return {}
        links = self.db.query(ProductSupplier).filter(ProductSupplier.supplier_id.in_(supplier_ids)).all()
        return {(link.product_id, link.supplier_id): link.supplier_unit_price for link in links}
