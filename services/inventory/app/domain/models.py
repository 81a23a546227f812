from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    RETURN = "return"
    DAMAGED = "damaged"
    EXPIRED = "expired"
    ADJUSTMENT = "adjustment"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class Inventory(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved_non_negative"),
        CheckConstraint("reserved_quantity <= quantity", name="ck_inventory_reserved_within_quantity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # Product ID - no foreign key in microservices architecture
    product_id: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    sku: Mapped[Optional[str]] = mapped_column(String(50), index=True, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    reserved_quantity: Mapped[int] = mapped_column(Integer, default=0)
    warehouse_location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reorder_level: Mapped[int] = mapped_column(Integer, default=10)
    max_stock_level: Mapped[int] = mapped_column(Integer, default=1000)
    last_restocked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity


class StockMovement(Base):
    """Append-only ledger of inventory changes."""

    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, index=True)
    sku: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    movement_type: Mapped[str] = mapped_column(String(20), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    reference_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)


class LowStockAlert(Base):
    __tablename__ = "low_stock_alerts"
    __table_args__ = (
        # At most one active alert per product
        Index(
            "uq_low_stock_alerts_active_product",
            "product_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, index=True)
    sku: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    current_quantity: Mapped[int] = mapped_column(Integer)
    reorder_level: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default=AlertStatus.ACTIVE.value, index=True)
    alerted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
