from functools import lru_cache

from services.suppliers.app.core_settings import get_settings
from shared.clients import InventoryClient, ProductCatalogClient
from shared.core.downstream import CircuitBreaker, DownstreamClient


@lru_cache
def inventory_breaker() -> CircuitBreaker:
    settings = get_settings()
    return CircuitBreaker(settings.CIRCUIT_FAILURE_THRESHOLD, settings.CIRCUIT_RESET_SECONDS)


@lru_cache
def product_catalog_breaker() -> CircuitBreaker:
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


@lru_cache
def get_product_client() -> ProductCatalogClient:
    settings = get_settings()
    client = DownstreamClient(
        "product-catalog-service",
        settings.PRODUCT_CATALOG_SERVICE_URL,
        timeout=settings.DOWNSTREAM_TIMEOUT_SECONDS,
        breaker=product_catalog_breaker(),
    )
    return ProductCatalogClient(client, cache_ttl=settings.PRODUCT_CACHE_TTL_SECONDS)


def breakers() -> dict:
    return {
        "inventory-service": inventory_breaker(),
        "product-catalog-service": product_catalog_breaker(),
    }
