"""Post store SPI and implementations."""

from .base import PostStore
from .sqlite_store import SQLitePostStore, build_store

__all__ = ["PostStore", "SQLitePostStore", "build_store"]
