from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.products.app.application.schemas import (
    LifecycleTransition,
    ProductBatchRequest,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from services.products.app.application.service import ProductService
from services.products.app.domain.models import LifecycleState
from shared.core.responses import list_response, success_response

from .dependencies import get_product_service

router = APIRouter(prefix="/api/products", tags=["products"])


def _read(product) -> dict:
    return ProductRead.model_validate(product).model_dump()


@router.get("")
def list_products(
    category_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
    search: Optional[str] = None,
    is_active: bool = True,
    lifecycle_state: Optional[LifecycleState] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: ProductService = Depends(get_product_service),
):
    products = service.list(category_id, supplier_id, search, is_active, lifecycle_state, skip, limit)
    return list_response([_read(p) for p in products])


@router.post("", status_code=201)
def create_product(payload: ProductCreate, service: ProductService = Depends(get_product_service)):
    product, inventory_created = service.create(payload)
    return success_response(
        _read(product),
        message="Product created successfully",
        inventory_created=inventory_created,
    )


@router.post("/batch")
def get_products_batch(payload: ProductBatchRequest, service: ProductService = Depends(get_product_service)):
    return list_response([_read(p) for p in service.get_batch(payload.ids)])


@router.get("/sku/{sku}")
def get_product_by_sku(sku: str, service: ProductService = Depends(get_product_service)):
    return success_response(_read(service.get_by_sku(sku)))


@router.get("/{product_id}")
def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return success_response(_read(service.get(product_id)))


@router.put("/{product_id}")
def update_product(
    product_id: int,
    payload: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    return success_response(_read(service.update(product_id, payload)), message="Product updated successfully")


@router.patch("/{product_id}/lifecycle")
def change_lifecycle(
    product_id: int,
    payload: LifecycleTransition,
    service: ProductService = Depends(get_product_service),
):
    product = service.transition_lifecycle(product_id, payload.lifecycle_state)
    return success_response(_read(product), message="Lifecycle updated successfully")


@router.delete("/{product_id}")
def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    service.delete(product_id)
    return success_response(message="Product deleted successfully")
