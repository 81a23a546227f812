from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.suppliers.app.application.product_suppliers import ProductSupplierService
from services.suppliers.app.application.schemas import (
    ProductSupplierCreate,
    ProductSupplierRead,
    ProductSupplierUpdate,
)
from shared.core.responses import list_response, success_response

from .dependencies import get_product_supplier_service

router = APIRouter(prefix="/api/product-suppliers", tags=["product-suppliers"])


def _read(link) -> dict:
    return ProductSupplierRead.model_validate(link).model_dump()


@router.get("")
def list_product_suppliers(
    supplier_id: Optional[int] = None,
    product_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    links = service.list(supplier_id, product_id, is_active, skip, limit)
    return list_response([_read(link) for link in links])


@router.post("", status_code=201)
def create_product_supplier(
    payload: ProductSupplierCreate,
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    return success_response(
        _read(service.create(payload)), message="Product-supplier relationship created successfully"
    )


@router.get("/supplier/{supplier_id}")
def products_for_supplier(
    supplier_id: int,
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    rows, warning = service.by_supplier(supplier_id)
    if warning:
        return list_response(rows, warning=warning)
    return list_response(rows)


@router.get("/product/{product_id}")
def suppliers_for_product(
    product_id: int,
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    return list_response(service.by_product(product_id))


@router.get("/{relationship_id}")
def get_product_supplier(
    relationship_id: int,
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    return success_response(_read(service.get(relationship_id)))


@router.put("/{relationship_id}")
def update_product_supplier(
    relationship_id: int,
    payload: ProductSupplierUpdate,
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    return success_response(
        _read(service.update(relationship_id, payload)),
        message="Product-supplier relationship updated successfully",
    )


@router.delete("/{relationship_id}")
def delete_product_supplier(
    relationship_id: int,
    service: ProductSupplierService = Depends(get_product_supplier_service),
):
    service.delete(relationship_id)
    return success_response(message="Product-supplier relationship deleted successfully")
