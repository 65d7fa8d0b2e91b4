"""Engine components orchestrating fetch -> parse -> dedup -> store."""

from .dedup import DedupGate
from .fetcher import FetchError, FetchRequest, FetchResponse, Fetcher
from .parser import DetailPage, ListingItem, Parser, TextBlock
from .store import PostStore, SQLitePostStore, build_store

__all__ = [
    "DedupGate",
    "DetailPage",
    "FetchError",
    "FetchRequest",
    "FetchResponse",
    "Fetcher",
    "ListingItem",
    "Parser",
    "PostStore",
    "SQLitePostStore",
    "TextBlock",
    "build_store",
]
