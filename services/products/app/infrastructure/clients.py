from functools import lru_cache

from services.products.app.core_settings import get_settings
from shared.clients import InventoryClient
from shared.core.downstream import CircuitBreaker, DownstreamClient


@lru_cache
def inventory_breaker() -> CircuitBreaker:
    settings = get_settings()
    return CircuitBreaker(settings.CIRCUIT_FAILURE_THRESHOLD, settings.CIRCUIT_RESET_SECONDS)


@lru_cache
def get_inventory_client() -> InventoryClient:
    settings = get_settings()
    return InventoryClient(DownstreamClient(
        "inventory-service",
        settings.INVENTORY_SERVICE_URL,
        timeout=settings.DOWNSTREAM_TIMEOUT_SECONDS,
        breaker=inventory_breaker(),
    ))


def breakers() -> dict:
    return {"inventory-service": inventory_breaker()}
