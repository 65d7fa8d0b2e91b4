"""Infra layer utilities (SQLite connections, request throttling)."""

from .storage import SQLiteManager
from .throttle import DomainThrottle

__all__ = ["DomainThrottle", "SQLiteManager"]
