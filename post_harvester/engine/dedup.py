"""Deduplication gate backed by the post store's primary key."""

from __future__ import annotations

from .store import PostStore


class DedupGate:
    """Answer "have we already captured this post?" with a fresh store lookup.

    Every call goes to the store; nothing is cached between passes.
    """

    def __init__(self, store: PostStore) -> None:
        self.store = store

    def is_known(self, post_id: str) -> bool:
        return self.store.exists(post_id)


__all__ = ["DedupGate"]
