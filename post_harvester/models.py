"""Records produced by a scrape pass and kept by the store."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class Comment(BaseModel):
    """Top-level comment attached to a post."""

    author: str
    body: str


class Post(BaseModel):
    """A forum post keyed by its stable identifier."""

    id: str
    title: str = ""
    body: str = ""
    author: str = ""
    url: str = ""
    timestamp: datetime
    comments: list[Comment] = Field(default_factory=list)
    processed_at: datetime | None = None

    @field_validator("timestamp", "processed_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_api(self) -> dict:
        payload = self.model_dump(mode="json")
        if not self.comments:
            payload.pop("comments")
        return payload


__all__ = ["Comment", "Post"]
