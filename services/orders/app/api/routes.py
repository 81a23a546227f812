from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.orders.app.application.schemas import OrderCreate, OrderRead, OrderStatusUpdate, OrderUpdate
from services.orders.app.application.service import OrderService
from services.orders.app.domain.models import OrderStatus
from shared.core.responses import list_response, success_response

from .dependencies import get_order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _read(order) -> dict:
    return OrderRead.model_validate(order).model_dump()


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    customer_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: OrderService = Depends(get_order_service),
):
    """List orders, newest first."""
    return list_response([_read(o) for o in service.list(status, customer_id, skip, limit)])


@router.post("", status_code=201)
def create_order(payload: OrderCreate, service: OrderService = Depends(get_order_service)):
    return success_response(_read(service.create(payload)), message="Order created successfully")


@router.get("/stats")
def order_stats(service: OrderService = Depends(get_order_service)):
    return success_response(service.stats())


@router.get("/{order_id}")
def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """Get a specific order with its items."""
    return success_response(_read(service.get(order_id)))


@router.put("/{order_id}")
def update_order(order_id: int, payload: OrderUpdate, service: OrderService = Depends(get_order_service)):
    return success_response(_read(service.update(order_id, payload)), message="Order updated successfully")


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
):
    order = service.update_status(order_id, payload.status)
    return success_response(_read(order), message="Order status updated successfully")


@router.post("/{order_id}/cancel")
def cancel_order(order_id: int, service: OrderService = Depends(get_order_service)):
    return success_response(_read(service.cancel(order_id)), message="Order cancelled successfully")


@router.delete("/{order_id}")
def delete_order(order_id: int, service: OrderService = Depends(get_order_service)):
    service.delete(order_id)
    return success_response(message="Order deleted successfully")
