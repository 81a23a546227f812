from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from services.suppliers.app.domain.models import PurchaseOrderStatus, SupplierResponse


class SupplierBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_person: Optional[str] = None
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=0, le=5)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_person: Optional[str] = None
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    rating: Optional[Decimal] = Field(None, ge=0, le=5)
    is_active: Optional[bool] = None


class SupplierRead(SupplierBase):
    id: int
    email: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductSupplierCreate(BaseModel):
    product_id: int
    supplier_id: int
    supplier_unit_price: Decimal = Field(..., ge=0)
    lead_time_days: int = Field(7, ge=0)
    minimum_order_quantity: int = Field(1, ge=1)
    is_preferred: bool = False
    notes: Optional[str] = None


class ProductSupplierUpdate(BaseModel):
    supplier_unit_price: Optional[Decimal] = Field(None, ge=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    minimum_order_quantity: Optional[int] = Field(None, ge=1)
    is_preferred: Optional[bool] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class ProductSupplierRead(BaseModel):
    id: int
    product_id: int
    supplier_id: int
    supplier_unit_price: Decimal
    lead_time_days: int
    minimum_order_quantity: int
    is_preferred: bool
    is_active: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    product_id: int
    sku: Optional[str] = None
    requested_quantity: int = Field(..., gt=0)
    # Defaults to the supplier's price for the product
    unit_price: Optional[Decimal] = Field(None, ge=0)
    estimated_delivery_date: Optional[date] = None
    notes: Optional[str] = None


class PurchaseOrderUpdate(BaseModel):
    estimated_delivery_date: Optional[date] = None
    tracking_number: Optional[str] = None
    supplier_notes: Optional[str] = None
    notes: Optional[str] = None


class PurchaseOrderStatusUpdate(BaseModel):
    status: PurchaseOrderStatus


class SupplierResponseRequest(BaseModel):
    response: SupplierResponse
    approved_quantity: Optional[int] = None
    rejection_reason: Optional[str] = None
    estimated_delivery_date: Optional[date] = None
    supplier_notes: Optional[str] = None


class ShipmentUpdate(BaseModel):
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[date] = None
    supplier_notes: Optional[str] = None


class ReceiptConfirmation(BaseModel):
    notes: Optional[str] = None


class PurchaseOrderItemRead(BaseModel):
    id: int
    product_id: int
    sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class PurchaseOrderRead(BaseModel):
    id: int
    po_number: str
    supplier_id: int
    product_id: int
    sku: Optional[str] = None
    requested_quantity: int
    approved_quantity: Optional[int] = None
    unit_price: Decimal
    total_amount: Decimal
    status: str
    supplier_response: str
    responded_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    estimated_delivery_date: Optional[date] = None
    actual_delivery_date: Optional[datetime] = None
    tracking_number: Optional[str] = None
    supplier_notes: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: list[PurchaseOrderItemRead] = []

    class Config:
        from_attributes = True


class OutboxEntryRead(BaseModel):
    id: int
    purchase_order_id: int
    po_number: Optional[str] = None
    product_id: int
    sku: Optional[str] = None
    quantity: int
    status: str
    attempts: int
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
