from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from services.orders.app.domain.models import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: int
    sku: Optional[str] = None
    quantity: int = Field(..., gt=0)
    # Taken from the catalog when omitted
    unit_price: Optional[Decimal] = Field(None, ge=0)


class OrderCreate(BaseModel):
    customer_id: int
    shipping_address: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    items: list[OrderItemCreate] = []


class OrderUpdate(BaseModel):
    shipping_address: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemRead(BaseModel):
    id: int
    product_id: int
    sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    product_name_snapshot: Optional[str] = None

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: int
    order_number: str
    customer_id: int
    status: str
    total_amount: Decimal
    shipping_address: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: list[OrderItemRead]

    class Config:
        from_attributes = True
