"""Client for the inventory service."""

from typing import List, Optional

from shared.core.downstream import DownstreamClient, FailurePolicy, unwrap


class InventoryClient:
    def __init__(self, client: DownstreamClient):
        self.client = client

    def _post(self, path: str, body: dict, policy: FailurePolicy, fallback=None):
        return unwrap(self.client.call("POST", path, json=body, policy=policy, fallback=fallback))

    def create_inventory(
        self,
        product_id: int,
        sku: str,
        quantity: int = 0,
        warehouse_location: Optional[str] = None,
        reorder_level: Optional[int] = None,
        max_stock_level: Optional[int] = None,
        policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
    ) -> Optional[dict]:
        body = {"product_id": product_id, "sku": sku, "quantity": quantity}
        if warehouse_location is not None:
            body["warehouse_location"] = warehouse_location
        if reorder_level is not None:
            body["reorder_level"] = reorder_level
        if max_stock_level is not None:
            body["max_stock_level"] = max_stock_level
        return self._post("/inventory", body, policy)

    def bulk_check(self, items: List[dict], policy: FailurePolicy = FailurePolicy.FAIL_CLOSED) -> dict:
        return self._post("/inventory/bulk-check", {"items": items}, policy)

    def reserve(
        self, product_id: int, quantity: int, order_id: Optional[int] = None,
        policy: FailurePolicy = FailurePolicy.FAIL_CLOSED,
    ) -> dict:
        body = {"product_id": product_id, "quantity": quantity, "order_id": order_id}
        return self._post("/inventory/reserve", body, policy)

    def release(
        self, product_id: int, quantity: int, order_id: int,
        policy: FailurePolicy = FailurePolicy.FAIL_CLOSED,
    ) -> dict:
        body = {"product_id": product_id, "quantity": quantity, "order_id": order_id}
        return self._post("/inventory/release", body, policy)

    def confirm_deduction(
        self, product_id: int, quantity: int, order_id: int,
        policy: FailurePolicy = FailurePolicy.FAIL_CLOSED,
    ) -> dict:
        body = {"product_id": product_id, "quantity": quantity, "order_id": order_id}
        return self._post("/inventory/confirm-deduction", body, policy)

    def adjust(
        self,
        product_id: int,
        quantity: int,
        movement_type: str,
        sku: Optional[str] = None,
        notes: Optional[str] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[int] = None,
        policy: FailurePolicy = FailurePolicy.FAIL_CLOSED,
    ) -> dict:
        body = {
            "product_id": product_id,
            "sku": sku,
            "quantity": quantity,
            "movement_type": movement_type,
            "notes": notes,
            "reference_type": reference_type,
            "reference_id": reference_id,
        }
        return self._post("/inventory/adjust", body, policy)
