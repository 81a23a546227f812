"""Low-stock alerts and reorder suggestions."""

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, distinct, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from services.inventory.app.core_settings import Settings
from services.inventory.app.domain.models import AlertStatus, Inventory, LowStockAlert
from shared.clients import ProductCatalogClient
from shared.clients.product_catalog import ACTIVE_LIFECYCLE_STATE
from shared.core.errors import NotFoundError, ValidationError
from shared.core.logging_config import get_logger

from .schemas import LowStockAlertRead

logger = get_logger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
REORDER_SUGGESTION_LIMIT = 50


class LowStockAlertService:
    def __init__(self, db: Session, products: ProductCatalogClient, settings: Settings):
        self.db = db
        self.products = products
        self.settings = settings

    def check_low_stock(self) -> List[LowStockAlert]:
        """
        Raise an alert for every product whose available stock is under its
        reorder level and that has no active alert yet.

        Only products the catalog reports as ``active`` are considered when
        ``LOW_STOCK_ACTIVE_PRODUCTS_ONLY`` is set. If the catalog cannot be
        asked and the lifecycle policy is fail-open, every candidate is
        alerted on.
        """
        try:
            return self._check_low_stock()
        except IntegrityError:
            # A concurrent check inserted an active alert first; rerun against what it stored
            logger.info("Low stock check raced another check, retrying")
            return self._check_low_stock()

    def _active_alert_product_ids(self, product_ids: List[int]) -> set:
        return {
            product_id
            for (product_id,) in self.db.query(LowStockAlert.product_id).filter(
                LowStockAlert.status == AlertStatus.ACTIVE.value,
                LowStockAlert.product_id.in_(product_ids),
            )
        }

    def _check_low_stock(self) -> List[LowStockAlert]:
        try:
            candidates = (
                self.db.query(Inventory)
                .filter(
                    Inventory.reorder_level > 0,
                    Inventory.quantity - Inventory.reserved_quantity < Inventory.reorder_level,
                )
                .order_by(Inventory.product_id)
                .all()
            )
            if not candidates:
                return []

            if self.settings.LOW_STOCK_ACTIVE_PRODUCTS_ONLY:
                active_ids = self.products.active_product_ids(
                    [inv.product_id for inv in candidates],
                    policy=self.settings.LOW_STOCK_LIFECYCLE_POLICY,
                )
                if active_ids is None:
                    logger.warning("Product lifecycle unavailable, checking all low-stock candidates")
                else:
                    candidates = [inv for inv in candidates if inv.product_id in active_ids]

            alerted = self._active_alert_product_ids([inv.product_id for inv in candidates])

            created = []
            for inventory in candidates:
                if inventory.product_id in alerted:
                    continue
                alert = LowStockAlert(
                    product_id=inventory.product_id,
                    sku=inventory.sku,
                    current_quantity=inventory.available_quantity,
                    reorder_level=inventory.reorder_level,
                    status=AlertStatus.ACTIVE.value,
                )
                self.db.add(alert)
                created.append(alert)
                logger.info(
                    "Low stock alert created",
                    extra={"extra_fields": {
                        "product_id": inventory.product_id,
                        "sku": inventory.sku,
                        "available": inventory.available_quantity,
                        "reorder_level": inventory.reorder_level,
                    }},
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for alert in created:
            self.db.refresh(alert)
        logger.info(f"Low stock check complete, {len(created)} new alerts")
        return created

    def list_alerts(self, status: AlertStatus = AlertStatus.ACTIVE) -> List[dict]:
        """Alerts with live stock figures and product names."""
        rows = (
            self.db.query(LowStockAlert, Inventory)
            .outerjoin(Inventory, Inventory.product_id == LowStockAlert.product_id)
            .filter(LowStockAlert.status == AlertStatus(status).value)
            .order_by(LowStockAlert.alerted_at.desc(), LowStockAlert.id.desc())
            .all()
        )
        if not rows:
            return []

        products = self._products_by_id(alert.product_id for alert, _ in rows)
        alerts = []
        for alert, inventory in rows:
            product = products.get(alert.product_id) if products is not None else None
            if products is not None and self.settings.LOW_STOCK_ACTIVE_PRODUCTS_ONLY:
                if product is None or product.get("lifecycle_state") != ACTIVE_LIFECYCLE_STATE:
                    continue
            item = LowStockAlertRead.model_validate(alert).model_dump()
            item["product_name"] = product["name"] if product else UNKNOWN_PRODUCT
            if inventory is not None:
                item.update(
                    warehouse_location=inventory.warehouse_location,
                    actual_quantity=inventory.quantity,
                    reserved_quantity=inventory.reserved_quantity,
                    available_quantity=inventory.available_quantity,
                    actual_reorder_level=inventory.reorder_level,
                )
            alerts.append(item)
        return alerts

    def resolve(self, alert_id: int, resolved_by: Optional[str] = None) -> LowStockAlert:
        return self._close(alert_id, AlertStatus.RESOLVED, resolved_by)

    def ignore(self, alert_id: int, resolved_by: Optional[str] = None) -> LowStockAlert:
        return self._close(alert_id, AlertStatus.IGNORED, resolved_by)

    def stats(self, days: int = 30) -> dict:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        total, active, resolved, ignored, products = (
            self.db.query(
                func.count(LowStockAlert.id),
                func.coalesce(func.sum(case((LowStockAlert.status == AlertStatus.ACTIVE.value, 1), else_=0)), 0),
                func.coalesce(func.sum(case((LowStockAlert.status == AlertStatus.RESOLVED.value, 1), else_=0)), 0),
                func.coalesce(func.sum(case((LowStockAlert.status == AlertStatus.IGNORED.value, 1), else_=0)), 0),
                func.count(distinct(LowStockAlert.product_id)),
            )
            .filter(LowStockAlert.alerted_at >= since)
            .one()
        )
        return {
            "total_alerts": total,
            "active_alerts": int(active),
            "resolved_alerts": int(resolved),
            "ignored_alerts": int(ignored),
            "affected_products": products,
            "period_days": days,
        }

    def reorder_suggestions(self) -> List[dict]:
        rows = (
            self.db.query(Inventory)
            .filter(Inventory.quantity <= Inventory.reorder_level)
            .order_by((Inventory.reorder_level - Inventory.quantity).desc(), Inventory.product_id)
            .limit(REORDER_SUGGESTION_LIMIT)
            .all()
        )
        products = self._products_by_id(inv.product_id for inv in rows) or {}
        return [
            {
                "product_id": inv.product_id,
                "sku": inv.sku,
                "product_name": products.get(inv.product_id, {}).get("name", UNKNOWN_PRODUCT),
                "warehouse_location": inv.warehouse_location,
                "current_quantity": inv.quantity,
                "reserved_quantity": inv.reserved_quantity,
                "available_quantity": inv.available_quantity,
                "reorder_level": inv.reorder_level,
                "max_stock_level": inv.max_stock_level,
                "suggested_order_quantity": max(inv.max_stock_level - inv.quantity, 0),
            }
            for inv in rows
        ]

    def _close(self, alert_id: int, status: AlertStatus, resolved_by: Optional[str]) -> LowStockAlert:
        alert = self.db.get(LowStockAlert, alert_id)
        if not alert:
            raise NotFoundError("Alert not found")
        if alert.status != AlertStatus.ACTIVE.value:
            raise ValidationError(f"Alert is already {alert.status}")
        try:
            alert.status = status.value
            alert.resolved_at = datetime.now(timezone.utc)
            alert.resolved_by = resolved_by
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(alert)
        logger.info(f"Low stock alert {alert_id} marked {status.value}")
        return alert

    def _products_by_id(self, ids: Iterable[int]) -> Optional[Dict[int, dict]]:
        products = self.products.get_products_batch(ids, policy=self.settings.ALERT_ENRICHMENT_POLICY)
        if products is None:
            return None
        return {p["id"]: p for p in products}
