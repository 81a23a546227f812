"""Typed clients for calls between sibling services."""

from .inventory import InventoryClient
from .product_catalog import ProductCatalogClient

__all__ = ["InventoryClient", "ProductCatalogClient"]
