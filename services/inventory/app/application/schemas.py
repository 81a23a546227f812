from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from services.inventory.app.domain.models import MovementType


class InventoryCreate(BaseModel):
    product_id: int
    sku: Optional[str] = None
    quantity: int = Field(0, ge=0)
    warehouse_location: Optional[str] = None
    reorder_level: Optional[int] = Field(None, ge=0)
    max_stock_level: Optional[int] = Field(None, ge=0)


class InventoryUpdate(BaseModel):
    sku: Optional[str] = None
    warehouse_location: Optional[str] = None
    reorder_level: Optional[int] = Field(None, ge=0)
    max_stock_level: Optional[int] = Field(None, ge=0)


class InventoryRead(BaseModel):
    id: int
    product_id: int
    sku: Optional[str]
    quantity: int
    reserved_quantity: int
    available_quantity: int
    warehouse_location: Optional[str]
    reorder_level: int
    max_stock_level: int
    last_restocked_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ReserveRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    order_id: Optional[int] = None


class OrderStockRequest(BaseModel):
    """Release, confirm-deduction and return all refer to an order."""

    product_id: int
    quantity: int = Field(..., gt=0)
    order_id: int


class ReceiveRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    supplier_order_id: int
    notes: Optional[str] = None


class StockAdjustment(BaseModel):
    product_id: int
    quantity: int
    movement_type: MovementType
    sku: Optional[str] = None
    notes: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None


class BulkCheckItem(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class BulkCheckRequest(BaseModel):
    items: List[BulkCheckItem]


class StockMovementRead(BaseModel):
    id: int
    product_id: int
    sku: Optional[str]
    movement_type: str
    quantity: int
    reference_type: Optional[str]
    reference_id: Optional[int]
    notes: Optional[str]
    created_by: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class LowStockAlertRead(BaseModel):
    id: int
    product_id: int
    sku: Optional[str]
    current_quantity: int
    reorder_level: int
    status: str
    alerted_at: Optional[datetime]
    resolved_at: Optional[datetime]
    resolved_by: Optional[str]

    class Config:
        from_attributes = True
