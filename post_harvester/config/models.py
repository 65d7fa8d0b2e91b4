"""Pydantic models describing the harvester configuration."""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

_DURATION_PATTERN = re.compile(r"(?P<value>\d+(?:\.\d+)?)(?P<unit>ms|s|m|h)", re.IGNORECASE)


def parse_duration(value: Any) -> timedelta:
    """Parse ``90s``, ``5m``, ``1h30m`` style durations or plain seconds."""

    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(seconds=float(value))
    if not isinstance(value, str):
        raise ValueError(f"Unsupported duration value: {value!r}")
    text = value.strip().lower()
    if not text:
        raise ValueError("Duration cannot be empty")
    try:
        return timedelta(seconds=float(text))
    except (ValueError, OverflowError):
        pass
    total = timedelta()
    index = 0
    for match in _DURATION_PATTERN.finditer(text):
        if match.start() != index:
            raise ValueError(f"Unsupported duration format: {value}")
        magnitude = float(match.group("value"))
        unit = match.group("unit")
        if unit == "ms":
            total += timedelta(milliseconds=magnitude)
        elif unit == "s":
            total += timedelta(seconds=magnitude)
        elif unit == "m":
            total += timedelta(minutes=magnitude)
        else:
            total += timedelta(hours=magnitude)
        index = match.end()
    if index != len(text):
        raise ValueError(f"Unsupported duration format: {value}")
    return total


class ScraperConfig(BaseModel):
    """Which forum sections to poll and how politely."""

    subreddits: list[str] = Field(default_factory=lambda: ["internships"])
    poll_interval: timedelta = Field(default=timedelta(minutes=5))
    base_url: str = "https://old.reddit.com"
    request_delay: float = 2.0
    request_jitter: float = 1.0
    request_timeout: float = 15.0
    max_comments: int = 25
    user_agent: str = DEFAULT_USER_AGENT
    allowed_domains: list[str] = Field(default_factory=list)

    @field_validator("subreddits", mode="before")
    @classmethod
    def _coerce_subreddits(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            raise ValueError("subreddits expects a list or comma separated string")
        names = [str(item).strip() for item in value if str(item).strip()]
        if not names:
            raise ValueError("At least one subreddit must be configured")
        return names

    @field_validator("poll_interval", mode="before")
    @classmethod
    def _coerce_interval(cls, value: Any) -> timedelta:
        interval = parse_duration(value)
        if interval <= timedelta():
            raise ValueError("poll_interval must be positive")
        return interval

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not urlparse(value).hostname:
            raise ValueError(f"base_url must be an absolute URL: {value}")
        return value

    @model_validator(mode="after")
    def _validate_limits(self) -> "ScraperConfig":
        if self.request_delay < 0 or self.request_jitter < 0:
            raise ValueError("request_delay and request_jitter must be >= 0")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.max_comments < 0:
            raise ValueError("max_comments must be >= 0")
        return self

    def resolved_allowed_domains(self) -> list[str]:
        if self.allowed_domains:
            return [domain.lower() for domain in self.allowed_domains]
        return [urlparse(self.base_url).hostname or ""]


class StorageConfig(BaseModel):
    """Persistent store selection."""

    type: str = "sqlite"
    path: Path = Field(default=Path("data/posts.db"))

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)


class ServerConfig(BaseModel):
    """HTTP bind address."""

    host: str = "0.0.0.0"
    port: int = 8080

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port out of range: {value}")
        return value


class AppConfig(BaseModel):
    """Top level configuration document."""

    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @property
    def bind_address(self) -> str:
        return f"{self.server.host}:{self.server.port}"


__all__ = [
    "AppConfig",
    "DEFAULT_USER_AGENT",
    "ScraperConfig",
    "ServerConfig",
    "StorageConfig",
    "parse_duration",
]
