"""Helpers for service test suites."""

from .catalog import CatalogStub
from .envelope import assert_error, data_of
from .inventory import InventoryStub

__all__ = ["CatalogStub", "InventoryStub", "assert_error", "data_of"]
