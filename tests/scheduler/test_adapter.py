from __future__ import annotations

from datetime import timedelta

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from post_harvester.scheduler import APSchedulerAdapter
from post_harvester.scheduler.apsched_adapter import SCRAPE_JOB_ID


class StubScheduler:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def add_job(self, callback, trigger, **kwargs):  # noqa: ANN001
        self.calls.append({"callback": callback, "trigger": trigger, **kwargs})

    def start(self):
        self.calls.append({"event": "started"})

    def shutdown(self, wait=False):  # noqa: ARG002
        self.calls.append({"event": "shutdown"})


def test_build_trigger_uses_interval_seconds() -> None:
    trigger = APSchedulerAdapter._build_trigger(timedelta(minutes=5))
    assert isinstance(trigger, IntervalTrigger)
    assert trigger.interval.total_seconds() == 300


def test_build_trigger_rejects_non_positive() -> None:
    with pytest.raises(ValueError):
        APSchedulerAdapter._build_trigger(timedelta())


def test_schedule_interval_never_overlaps() -> None:
    adapter = APSchedulerAdapter()
    stub = StubScheduler()
    adapter.scheduler = stub  # type: ignore[assignment]

    def job() -> None:
        return None

    adapter.schedule_interval(job, timedelta(seconds=30))
    adapter.start()
    adapter.start()
    adapter.shutdown()

    scheduled = stub.calls[0]
    assert scheduled["callback"] is job
    assert scheduled["id"] == SCRAPE_JOB_ID
    assert scheduled["max_instances"] == 1
    assert scheduled["coalesce"] is True
    assert scheduled["replace_existing"] is True
    assert scheduled["next_run_time"] is not None
    assert [call.get("event") for call in stub.calls[1:]] == ["started", "shutdown"]


def test_schedule_without_immediate_run_leaves_first_fire_to_trigger() -> None:
    adapter = APSchedulerAdapter()
    stub = StubScheduler()
    adapter.scheduler = stub  # type: ignore[assignment]
    adapter.schedule_interval(lambda: None, timedelta(minutes=1), run_immediately=False)
    assert "next_run_time" not in stub.calls[0]
