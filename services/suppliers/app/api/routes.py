from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.suppliers.app.application.purchase_orders import PurchaseOrderService
from services.suppliers.app.application.schemas import PurchaseOrderRead, SupplierCreate, SupplierRead, SupplierUpdate
from services.suppliers.app.application.service import SupplierService
from shared.core.responses import list_response, success_response

from .dependencies import get_purchase_order_service, get_supplier_service

router = APIRouter(prefix="/api/suppliers", tags=["suppliers"])


def _read(supplier) -> dict:
    return SupplierRead.model_validate(supplier).model_dump()


@router.get("")
def list_suppliers(
    is_active: bool = True,
    country: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: SupplierService = Depends(get_supplier_service),
):
    return list_response([_read(s) for s in service.list(is_active, country, search, skip, limit)])


@router.post("", status_code=201)
def create_supplier(payload: SupplierCreate, service: SupplierService = Depends(get_supplier_service)):
    return success_response(_read(service.create(payload)), message="Supplier created successfully")


@router.get("/{supplier_id}")
def get_supplier(supplier_id: int, service: SupplierService = Depends(get_supplier_service)):
    return success_response(_read(service.get(supplier_id)))


@router.get("/{supplier_id}/pending-requests")
def supplier_pending_requests(
    supplier_id: int,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    """Purchase requests waiting for the supplier to approve or reject."""
    orders = service.pending_requests(supplier_id)
    return list_response([PurchaseOrderRead.model_validate(po).model_dump() for po in orders])


@router.put("/{supplier_id}")
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    service: SupplierService = Depends(get_supplier_service),
):
    return success_response(_read(service.update(supplier_id, payload)), message="Supplier updated successfully")


@router.delete("/{supplier_id}")
def delete_supplier(supplier_id: int, service: SupplierService = Depends(get_supplier_service)):
    service.delete(supplier_id)
    return success_response(message="Supplier deleted successfully")
