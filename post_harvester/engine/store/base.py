"""Post store Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ...models import Post


class PostStore(ABC):
    """Durable posts keyed by identifier; writes are last-write-wins upserts."""

    @abstractmethod
    def exists(self, post_id: str) -> bool:
        """Return True when a post with this identifier is stored."""

    @abstractmethod
    def upsert(self, post: Post) -> Post:
        """Insert or overwrite the post and stamp a fresh ``processed_at``."""

    @abstractmethod
    def list_all(self) -> list[Post]:
        """Return every stored post, newest origin timestamp first."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["PostStore"]
