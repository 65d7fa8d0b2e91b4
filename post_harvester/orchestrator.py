"""Scrape pass coordinator wiring fetching, parsing, dedup and storage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog

from .config import ScraperConfig
from .engine import DedupGate, FetchError, FetchRequest, Fetcher, ListingItem, Parser, PostStore
from .logging_conf import configure_logging, source_logger
from .models import Post


@dataclass(slots=True)
class PassSummary:
    """Outcome of one scrape pass."""

    found: int = 0
    saved: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"found": self.found, "saved": self.saved, "failed": self.failed}


class Orchestrator:
    """Run scrape passes over every configured forum section."""

    def __init__(
        self,
        config: ScraperConfig,
        fetcher: Fetcher,
        store: PostStore,
        dedup: DedupGate | None = None,
        parser: Parser | None = None,
        logger_factory: Callable[[str], structlog.BoundLogger] = source_logger,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.store = store
        self.dedup = dedup or DedupGate(store)
        self.parser = parser or Parser()
        self.logger_factory = logger_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = configure_logging().bind(component="orchestrator")

    # ------------------------------------------------------------------
    def run_pass(self) -> PassSummary:
        """Scrape every source and persist what was found."""

        posts = self.scrape_new()
        summary = PassSummary(found=len(posts))
        if posts:
            summary.saved, summary.failed = self.save_posts(posts)
        self.logger.info("pass_completed", **summary.as_dict())
        return summary

    def scrape_new(self) -> list[Post]:
        new_posts: list[Post] = []
        for source in self.config.subreddits:
            try:
                new_posts.extend(self.scrape_source(source))
            except Exception as exc:  # noqa: BLE001
                self.logger_factory(source).error(
                    "source_failed", error=str(exc), error_type=exc.__class__.__name__
                )
                continue
        return new_posts

    def listing_url(self, source: str) -> str:
        return f"{self.config.base_url}/r/{source}/new"

    def scrape_source(self, source: str) -> list[Post]:
        log = self.logger_factory(source)
        url = self.listing_url(source)
        log.info("listing_fetch", url=url)
        response = self.fetcher.fetch(FetchRequest(url=url))
        items = self.parser.parse_listing(
            response.text, response.url, base_url=self.config.base_url, now=self._clock()
        )

        posts: list[Post] = []
        skipped = 0
        for item in items:
            try:
                known = self.dedup.is_known(item.id)
            except Exception as exc:  # noqa: BLE001
                log.error("dedup_check_failed", post_id=item.id, error=str(exc))
                continue
            if known:
                skipped += 1
                continue
            post = self._build_post(item, log)
            posts.append(post)
            log.info(
                "post_found",
                post_id=post.id,
                title=post.title,
                posted=post.timestamp.isoformat(),
                comments=len(post.comments),
            )
        log.info("listing_done", url=url, candidates=len(items), new=len(posts), known=skipped)
        return posts

    def save_posts(self, posts: list[Post]) -> tuple[int, int]:
        """Upsert each post; a failing record is logged and skipped."""

        saved = failed = 0
        for post in posts:
            try:
                self.store.upsert(post)
            except Exception as exc:  # noqa: BLE001
                failed += 1
                self.logger.error("save_failed", post_id=post.id, error=str(exc))
                continue
            saved += 1
            self.logger.info("post_saved", post_id=post.id)
        return saved, failed

    # ------------------------------------------------------------------
    def _build_post(self, item: ListingItem, log: structlog.BoundLogger) -> Post:
        if item.timestamp_estimated:
            # Origin time unknown; capture time stands in for it.
            log.warning("timestamp_fallback", post_id=item.id, substituted=item.timestamp.isoformat())
        post = Post(
            id=item.id,
            title=item.title,
            author=item.author,
            url=item.url,
            timestamp=item.timestamp,
        )
        if item.detail_url:
            post = self._enrich(post, item.detail_url, log)
        return post

    def _enrich(self, post: Post, detail_url: str, log: structlog.BoundLogger) -> Post:
        try:
            response = self.fetcher.fetch(FetchRequest(url=detail_url))
        except FetchError as exc:
            log.warning("detail_fetch_failed", post_id=post.id, url=detail_url, error=str(exc))
            return post
        page = self.parser.parse_detail(response.text, max_comments=self.config.max_comments)
        return post.model_copy(update={"body": page.body, "comments": page.comments})


__all__ = ["Orchestrator", "PassSummary"]
