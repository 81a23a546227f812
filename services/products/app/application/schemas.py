from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime

from services.products.app.domain.models import LifecycleState


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    sku: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    size: Optional[str] = None
    color: Optional[str] = None
    unit_price: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    lifecycle_state: LifecycleState = LifecycleState.DRAFT
    attributes: Optional[Dict[str, Any]] = None


class ProductUpdate(BaseModel):
    sku: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    size: Optional[str] = None
    color: Optional[str] = None
    unit_price: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    is_active: Optional[bool] = None
    attributes: Optional[Dict[str, Any]] = None


class LifecycleTransition(BaseModel):
    lifecycle_state: LifecycleState


class ProductBatchRequest(BaseModel):
    ids: List[int]


class ProductRead(BaseModel):
    id: int
    sku: str
    name: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    size: Optional[str] = None
    color: Optional[str] = None
    unit_price: Optional[Decimal] = None
    supplier_id: Optional[int] = None
    is_active: bool
    lifecycle_state: str
    attributes: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
