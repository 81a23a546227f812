"""
Test-wide configuration.

Every service reads its database URL when its ``infrastructure.db`` module is
imported, so the in-memory SQLite URL has to be in the environment before any
service module is collected.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
