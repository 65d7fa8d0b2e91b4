"""HTTP fetching with per-domain throttling and a domain allow-list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict
from urllib.parse import urlparse

import httpx
import structlog

from ..config import ScraperConfig
from ..infra import DomainThrottle


class FetchError(RuntimeError):
    """Raised when a page cannot be retrieved; callers log and move on."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason


@dataclass(slots=True)
class FetchRequest:
    """Input for the fetcher."""

    url: str
    method: str = "GET"
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    timeout: float | None = None


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Issue throttled GET requests; no retries, every failure raises ``FetchError``."""

    def __init__(
        self,
        config: ScraperConfig,
        throttle: DomainThrottle | None = None,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self.throttle = throttle or DomainThrottle(config.request_delay, config.request_jitter)
        self.logger = logger or structlog.get_logger("post_harvester.fetcher")
        self.allowed_domains = set(config.resolved_allowed_domains())
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=config.request_timeout,
            headers={"User-Agent": config.user_agent},
            transport=transport,
            event_hooks={"request": [self._guard_domain]},
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, request: FetchRequest) -> FetchResponse:
        if not self.is_allowed(request.url):
            raise FetchError(request.url, "Domain not allowed")

        self.throttle.wait(request.url)
        self.logger.debug("visiting", url=request.url)
        try:
            response = self._client.request(
                request.method,
                request.url,
                params=request.params,
                headers=request.headers,
                timeout=request.timeout or self.config.request_timeout,
            )
        except httpx.HTTPError as exc:
            self.logger.warning("fetch_error", url=request.url, error=str(exc))
            raise FetchError(request.url, f"Request failed ({exc.__class__.__name__})") from exc
        finally:
            # Spacing counts from the end of this exchange, not its start
            self.throttle.release(request.url)

        if self._is_failure(response):
            self.logger.warning("fetch_bad_status", url=request.url, status=response.status_code)
            raise FetchError(request.url, f"Unexpected status {response.status_code}")

        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
            raw=response,
        )

    def _guard_domain(self, request: httpx.Request) -> None:
        """Refuse redirect hops that leave the allowed domains before they are sent."""

        url = str(request.url)
        if not self.is_allowed(url):
            self.logger.warning("redirect_blocked", url=url)
            raise FetchError(url, "Domain not allowed")

    def is_allowed(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        if not host:
            return False
        return any(host == domain or host.endswith("." + domain) for domain in self.allowed_domains)

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return not 200 <= status_code < 300


__all__ = ["FetchError", "FetchRequest", "FetchResponse", "Fetcher"]
