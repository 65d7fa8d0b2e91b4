"""APScheduler wrapper driving periodic scrape passes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..logging_conf import configure_logging

SCRAPE_JOB_ID = "scrape::interval"


class APSchedulerAdapter:
    """Run one scrape job on a fixed interval, never overlapping itself."""

    def __init__(self) -> None:
        self.scheduler = BackgroundScheduler(timezone=timezone.utc)
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_interval(
        self, callback: Callable[[], object], interval: timedelta, run_immediately: bool = True
    ) -> None:
        trigger = self._build_trigger(interval)
        options: dict = {}
        if run_immediately:
            options["next_run_time"] = datetime.now(timezone.utc)
        # max_instances=1: a tick that lands while a pass is still running is skipped
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=SCRAPE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **options,
        )
        self.logger.info("job_scheduled", interval_seconds=interval.total_seconds())

    @staticmethod
    def _build_trigger(interval: timedelta) -> IntervalTrigger:
        seconds = interval.total_seconds()
        if seconds <= 0:
            raise ValueError("Interval must be positive")
        return IntervalTrigger(seconds=seconds)


__all__ = ["APSchedulerAdapter", "SCRAPE_JOB_ID"]
