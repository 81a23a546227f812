import json

import httpx

from shared.clients import ProductCatalogClient
from shared.core.downstream import CircuitBreaker, DownstreamClient


class CatalogStub:
    """
    In-memory product catalog answering the two endpoints other services
    use (``GET /products/{id}`` and ``POST /products/batch``) through
    ``httpx.MockTransport``, so the real client code runs in tests.

    Set ``down`` to make every call fail with a connection error.
    """

    base_url = "http://product-catalog.test/api"

    def __init__(self):
        self.products = {}
        self.down = False
        self.requests = []

    def add(self, product_id: int, sku: str, name: str = None, lifecycle_state: str = "active") -> dict:
        product = {
            "id": product_id,
            "sku": sku,
            "name": name or f"Product {sku}",
            "lifecycle_state": lifecycle_state,
            "is_active": True,
            "unit_price": "10.00",
        }
        self.products[product_id] = product
        return product

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if request.method == "POST" and path == "/api/products/batch":
            ids = json.loads(request.content)["ids"]
            found = [self.products[i] for i in ids if i in self.products]
            return httpx.Response(200, json={"success": True, "data": found})

        if request.method == "GET" and path.startswith("/api/products/"):
            product = self.products.get(int(path.rsplit("/", 1)[1]))
            if product is None:
                return httpx.Response(404, json={"success": False, "message": "Product not found"})
            return httpx.Response(200, json={"success": True, "data": product})

        return httpx.Response(404, json={"success": False, "message": "Route not found"})

    def downstream(self) -> DownstreamClient:
        return DownstreamClient(
            "product-catalog-service",
            self.base_url,
            breaker=CircuitBreaker(failure_threshold=1000),
            http_client=httpx.Client(transport=httpx.MockTransport(self.handler)),
        )

    def client(self) -> ProductCatalogClient:
        return ProductCatalogClient(self.downstream())
