"""Client for the product-catalog service."""

import threading
from typing import Iterable, List, Optional, Set

from cachetools import TTLCache

from shared.core.downstream import DownstreamClient, DownstreamError, FailurePolicy, unwrap

ACTIVE_LIFECYCLE_STATE = "active"


class ProductCatalogClient:
    """
    Product lookups used for existence checks, lifecycle filtering and
    name enrichment.

    Single-product lookups are cached for ``cache_ttl`` seconds when it is
    positive; batch lookups always go to the service.
    """

    def __init__(self, client: DownstreamClient, cache_ttl: float = 0, cache_size: int = 1024):
        self.client = client
        self._cache = TTLCache(maxsize=cache_size, ttl=cache_ttl) if cache_ttl > 0 else None
        self._cache_lock = threading.Lock()

    def get_product(
        self, product_id: int, policy: FailurePolicy = FailurePolicy.FAIL_CLOSED
    ) -> Optional[dict]:
        """Return the product, or ``None`` when it does not exist.

        Under ``FAIL_OPEN`` an unreachable catalog also yields ``None``.
        """
        if self._cache is not None:
            with self._cache_lock:
                cached = self._cache.get(product_id)
            if cached is not None:
                return cached

        try:
            product = unwrap(self.client.call("GET", f"/products/{product_id}", policy=policy))
        except DownstreamError as exc:
            if exc.status_code == 404:
                return None
            raise

        if product is not None and self._cache is not None:
            with self._cache_lock:
                self._cache[product_id] = product
        return product

    def get_products_batch(
        self, ids: Iterable[int], policy: FailurePolicy = FailurePolicy.FAIL_CLOSED
    ) -> Optional[List[dict]]:
        """Products for ``ids`` in one call; ``None`` if the catalog failed under FAIL_OPEN."""
        unique_ids = sorted(set(ids))
        if not unique_ids:
            return []
        payload = self.client.call(
            "POST", "/products/batch", json={"ids": unique_ids}, policy=policy
        )
        if payload is None:
            return None
        return unwrap(payload) or []

    def active_product_ids(
        self, ids: Iterable[int], policy: FailurePolicy = FailurePolicy.FAIL_OPEN
    ) -> Optional[Set[int]]:
        products = self.get_products_batch(ids, policy=policy)
        if products is None:
            return None
        return {p["id"] for p in products if p.get("lifecycle_state") == ACTIVE_LIFECYCLE_STATE}
