from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.inventory.app.application.schemas import (
    BulkCheckRequest,
    InventoryCreate,
    InventoryRead,
    InventoryUpdate,
    OrderStockRequest,
    ReceiveRequest,
    ReserveRequest,
    StockAdjustment,
    StockMovementRead,
)
from services.inventory.app.application.service import InventoryService
from services.inventory.app.domain.models import MovementType
from shared.core.responses import list_response, success_response

from .dependencies import get_inventory_service

router = APIRouter(prefix="/api/inventory", tags=["inventory"])
movements_router = APIRouter(prefix="/api/stock-movements", tags=["stock-movements"])


def _read(inventory) -> dict:
    return InventoryRead.model_validate(inventory).model_dump()


def _movements(movements) -> list:
    return [StockMovementRead.model_validate(m).model_dump() for m in movements]


@router.get("")
def list_inventory(
    product_id: Optional[int] = None,
    low_stock: bool = False,
    warehouse_location: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: InventoryService = Depends(get_inventory_service),
):
    rows = service.list(product_id, low_stock, warehouse_location, skip, limit)
    return list_response([_read(row) for row in rows])


@router.post("", status_code=201)
def create_inventory(payload: InventoryCreate, service: InventoryService = Depends(get_inventory_service)):
    return success_response(_read(service.create(payload)), message="Inventory created successfully")


@router.get("/analytics")
def inventory_analytics(service: InventoryService = Depends(get_inventory_service)):
    return success_response(service.analytics())


@router.post("/bulk-check")
def bulk_stock_check(payload: BulkCheckRequest, service: InventoryService = Depends(get_inventory_service)):
    return success_response(service.bulk_stock_check(payload.items))


@router.post("/reserve")
def reserve_stock(payload: ReserveRequest, service: InventoryService = Depends(get_inventory_service)):
    inventory = service.reserve_stock(payload.product_id, payload.quantity, payload.order_id)
    return success_response(_read(inventory), message="Stock reserved successfully")


@router.post("/release")
def release_stock(payload: OrderStockRequest, service: InventoryService = Depends(get_inventory_service)):
    inventory = service.release_reserved_stock(payload.product_id, payload.quantity, payload.order_id)
    return success_response(_read(inventory), message="Stock released successfully")


@router.post("/confirm-deduction")
def confirm_deduction(payload: OrderStockRequest, service: InventoryService = Depends(get_inventory_service)):
    inventory = service.confirm_stock_deduction(payload.product_id, payload.quantity, payload.order_id)
    return success_response(_read(inventory), message="Stock deducted successfully")


@router.post("/return")
def return_stock(payload: OrderStockRequest, service: InventoryService = Depends(get_inventory_service)):
    inventory = service.return_stock(payload.product_id, payload.quantity, payload.order_id)
    return success_response(_read(inventory), message="Stock returned successfully")


@router.post("/receive")
def receive_stock(payload: ReceiveRequest, service: InventoryService = Depends(get_inventory_service)):
    inventory = service.receive_stock(
        payload.product_id,
        payload.quantity,
        reference_id=payload.supplier_order_id,
        notes=payload.notes,
    )
    return success_response(_read(inventory), message="Stock received successfully")


@router.post("/adjust")
def adjust_stock(payload: StockAdjustment, service: InventoryService = Depends(get_inventory_service)):
    inventory = service.adjust_stock(payload)
    return success_response(_read(inventory), message="Stock adjusted successfully")


@router.get("/history/{product_id}")
def stock_history(
    product_id: int,
    limit: int = Query(50, ge=1, le=500),
    service: InventoryService = Depends(get_inventory_service),
):
    return list_response(_movements(service.history(product_id, limit)))


@router.get("/product/{product_id}")
def get_inventory_by_product(product_id: int, service: InventoryService = Depends(get_inventory_service)):
    return success_response(_read(service.get_by_product(product_id)))


@router.get("/{inventory_id}")
def get_inventory(inventory_id: int, service: InventoryService = Depends(get_inventory_service)):
    return success_response(_read(service.get(inventory_id)))


@router.put("/{inventory_id}")
def update_inventory(
    inventory_id: int,
    payload: InventoryUpdate,
    service: InventoryService = Depends(get_inventory_service),
):
    return success_response(_read(service.update(inventory_id, payload)), message="Inventory updated successfully")


@router.delete("/{inventory_id}")
def delete_inventory(inventory_id: int, service: InventoryService = Depends(get_inventory_service)):
    service.delete(inventory_id)
    return success_response(message="Inventory deleted successfully")


@movements_router.get("")
def list_stock_movements(
    product_id: Optional[int] = None,
    movement_type: Optional[MovementType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    service: InventoryService = Depends(get_inventory_service),
):
    movements = service.list_movements(product_id, movement_type, start_date, end_date, limit)
    return list_response(_movements(movements))
