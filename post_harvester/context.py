"""Application context shared by the scheduler job, HTTP handlers and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from .config import AppConfig, ConfigRepository
from .engine import DedupGate, Fetcher, PostStore, build_store
from .infra import DomainThrottle, SQLiteManager
from .logging_conf import configure_logging
from .orchestrator import Orchestrator, PassSummary
from .scheduler import APSchedulerAdapter


@dataclass
class AppContext:
    config: AppConfig
    store: PostStore
    fetcher: Fetcher
    orchestrator: Orchestrator
    scheduler: APSchedulerAdapter | None = None

    @property
    def logger(self) -> structlog.BoundLogger:
        return configure_logging().bind(component="context")

    def run_scheduled_pass(self) -> PassSummary | None:
        self.logger.info("scheduled_scrape")
        try:
            return self.orchestrator.run_pass()
        except Exception as exc:  # noqa: BLE001
            self.logger.error("scrape_error", error=str(exc))
            return None

    def start_background(self) -> None:
        if self.scheduler is None:
            return
        self.scheduler.schedule_interval(self.run_scheduled_pass, self.config.scraper.poll_interval)
        self.scheduler.start()

    def close(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()
        self.fetcher.close()
        self.store.close()


def build_context(
    config_path: Path | None = None,
    verbose: bool = False,
    with_scheduler: bool = False,
    repository: ConfigRepository | None = None,
) -> AppContext:
    """Load configuration and construct every long-lived component once.

    Raises ``pydantic.ValidationError`` for malformed settings and
    ``ValueError`` for an unsupported storage type.
    """

    logger = configure_logging(verbose=verbose)
    repository = repository or ConfigRepository()
    config = repository.load(config_path)

    store = build_store(config.storage.type, config.storage.path, manager=SQLiteManager())
    scraper_cfg = config.scraper
    fetcher = Fetcher(
        scraper_cfg,
        throttle=DomainThrottle(scraper_cfg.request_delay, scraper_cfg.request_jitter),
    )
    orchestrator = Orchestrator(scraper_cfg, fetcher=fetcher, store=store, dedup=DedupGate(store))
    scheduler = APSchedulerAdapter() if with_scheduler else None
    logger.info(
        "context_ready",
        config_file=str(repository.source_path) if repository.source_path else None,
        subreddits=scraper_cfg.subreddits,
        poll_interval=str(scraper_cfg.poll_interval),
        storage=str(config.storage.path),
    )
    return AppContext(
        config=config,
        store=store,
        fetcher=fetcher,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )


__all__ = ["AppContext", "build_context"]
