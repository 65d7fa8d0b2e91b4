"""Pytest configuration providing shared fixtures."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from post_harvester.config import ScraperConfig
from post_harvester.engine import Fetcher, SQLitePostStore
from post_harvester.infra import DomainThrottle, SQLiteManager

from pages import BASE_URL


@pytest.fixture(scope="session", autouse=True)
def _isolated_home(tmp_path_factory: pytest.TempPathFactory) -> Iterable[Path]:
    """Keep log files out of the working tree."""

    home = tmp_path_factory.mktemp("home")
    previous = os.environ.get("POST_HARVESTER_HOME")
    os.environ["POST_HARVESTER_HOME"] = str(home)
    yield home
    if previous is None:
        os.environ.pop("POST_HARVESTER_HOME", None)
    else:
        os.environ["POST_HARVESTER_HOME"] = previous


@pytest.fixture
def scraper_config() -> Callable[..., ScraperConfig]:
    def _builder(**overrides: Any) -> ScraperConfig:
        base: dict[str, Any] = {
            "subreddits": ["python"],
            "base_url": BASE_URL,
            "request_delay": 0.0,
            "request_jitter": 0.0,
            "max_comments": 10,
        }
        base.update(overrides)
        return ScraperConfig(**base)

    return _builder


@pytest.fixture
def store(tmp_path: Path) -> Iterable[SQLitePostStore]:
    post_store = SQLitePostStore(tmp_path / "posts.db", manager=SQLiteManager())
    yield post_store
    post_store.close()


@dataclass
class FakeSite:
    """Serve canned pages through ``httpx.MockTransport`` and record every hit."""

    pages: dict[str, str] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    errors: set[str] = field(default_factory=set)
    requests: list[str] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.errors:
            raise httpx.ConnectError("connection refused", request=request)
        if url in self.failures:
            return httpx.Response(self.failures[url], text="error", request=request)
        if url in self.pages:
            return httpx.Response(
                200, text=self.pages[url], headers={"Content-Type": "text/html"}, request=request
            )
        return httpx.Response(404, text="not found", request=request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def fetcher_for(fake_site: FakeSite) -> Iterable[Callable[[ScraperConfig], Fetcher]]:
    created: list[Fetcher] = []

    def _build(config: ScraperConfig) -> Fetcher:
        fetcher = Fetcher(
            config,
            throttle=DomainThrottle(0.0, 0.0, sleep=lambda _seconds: None),
            transport=fake_site.transport(),
        )
        created.append(fetcher)
        return fetcher

    yield _build
    for fetcher in created:
        fetcher.close()
