from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.suppliers.app.application.purchase_orders import PurchaseOrderService
from services.suppliers.app.application.schemas import (
    OutboxEntryRead,
    PurchaseOrderCreate,
    PurchaseOrderRead,
    PurchaseOrderStatusUpdate,
    PurchaseOrderUpdate,
    ReceiptConfirmation,
    ShipmentUpdate,
    SupplierResponseRequest,
)
from services.suppliers.app.domain.models import OutboxStatus, PurchaseOrderStatus, SupplierResponse
from shared.core.responses import list_response, success_response

from .dependencies import get_purchase_order_service

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])


def _read(po) -> dict:
    return PurchaseOrderRead.model_validate(po).model_dump()


@router.get("")
def list_purchase_orders(
    status: Optional[PurchaseOrderStatus] = None,
    supplier_id: Optional[int] = None,
    supplier_response: Optional[SupplierResponse] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """List purchase orders with catalog product details and the supplier's price."""
    rows, warning = service.list_enriched(
        status=status, supplier_id=supplier_id, supplier_response=supplier_response, skip=skip, limit=limit
    )
    if warning:
        return list_response(rows, warning=warning)
    return list_response(rows)


@router.post("", status_code=201)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return success_response(_read(service.create(payload)), message="Purchase order created successfully")


@router.get("/stats")
def purchase_order_stats(
    supplier_id: Optional[int] = None,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return success_response(service.stats(supplier_id))


@router.get("/inventory-sync")
def list_inventory_sync(
    status: Optional[OutboxStatus] = None,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    entries = service.list_outbox(status)
    return list_response([OutboxEntryRead.model_validate(e).model_dump() for e in entries])


@router.post("/inventory-sync/retry")
def retry_inventory_sync(service: PurchaseOrderService = Depends(get_purchase_order_service)):
    summary = service.retry_inventory_sync()
    return success_response(summary, message=f"Inventory sync retried for {summary['processed']} entries")


@router.get("/supplier/{supplier_id}/pending")
def pending_for_supplier(
    supplier_id: int,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return list_response([_read(po) for po in service.pending_requests(supplier_id)])


@router.get("/{po_id}")
def get_purchase_order(po_id: int, service: PurchaseOrderService = Depends(get_purchase_order_service)):
    return success_response(_read(service.get(po_id)))


@router.put("/{po_id}")
def update_purchase_order(
    po_id: int,
    payload: PurchaseOrderUpdate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return success_response(_read(service.update(po_id, payload)), message="Purchase order updated successfully")


@router.patch("/{po_id}/status")
def update_purchase_order_status(
    po_id: int,
    payload: PurchaseOrderStatusUpdate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    po = service.update_status(po_id, payload.status)
    return success_response(_read(po), message="Purchase order status updated successfully")


@router.post("/{po_id}/respond")
def respond_to_purchase_order(
    po_id: int,
    payload: SupplierResponseRequest,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    po = service.respond(po_id, payload)
    return success_response(_read(po), message=f"Purchase request {po.supplier_response} successfully")


@router.post("/{po_id}/preparing")
def mark_preparing(po_id: int, service: PurchaseOrderService = Depends(get_purchase_order_service)):
    return success_response(_read(service.mark_preparing(po_id)), message="Order marked as preparing")


@router.post("/{po_id}/ship")
def ship_purchase_order(
    po_id: int,
    payload: ShipmentUpdate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return success_response(_read(service.ship(po_id, payload)), message="Order marked as shipped")


@router.post("/{po_id}/receive")
def confirm_receipt(
    po_id: int,
    payload: Optional[ReceiptConfirmation] = None,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    po, inventory_updates = service.confirm_receipt(po_id, payload.notes if payload else None)
    return success_response(
        _read(po),
        message="Purchase order receipt confirmed",
        inventory_updates=inventory_updates,
    )


@router.delete("/{po_id}")
def delete_purchase_order(po_id: int, service: PurchaseOrderService = Depends(get_purchase_order_service)):
    service.delete(po_id)
    return success_response(message="Purchase order deleted successfully")
