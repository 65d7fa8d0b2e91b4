from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from post_harvester.config import AppConfig, ScraperConfig, ServerConfig, parse_duration


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("5m", timedelta(minutes=5)),
        ("90s", timedelta(seconds=90)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("250ms", timedelta(milliseconds=250)),
        ("300", timedelta(seconds=300)),
        (45, timedelta(seconds=45)),
        (timedelta(minutes=2), timedelta(minutes=2)),
    ],
)
def test_parse_duration(raw, expected) -> None:
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "5 minutes", "m5", "5m garbage", None])
def test_parse_duration_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_defaults_follow_reference_deployment() -> None:
    config = AppConfig()
    assert config.scraper.subreddits == ["internships"]
    assert config.scraper.poll_interval == timedelta(minutes=5)
    assert config.scraper.base_url == "https://old.reddit.com"
    assert config.storage.type == "sqlite"
    assert str(config.storage.path) == "data/posts.db"
    assert config.bind_address == "0.0.0.0:8080"


def test_subreddits_accept_comma_string() -> None:
    config = ScraperConfig(subreddits=" python, learnpython ,,")
    assert config.subreddits == ["python", "learnpython"]


def test_empty_subreddits_rejected() -> None:
    with pytest.raises(ValidationError):
        ScraperConfig(subreddits=[])


def test_poll_interval_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        ScraperConfig(poll_interval="0s")


def test_base_url_trailing_slash_and_domains() -> None:
    config = ScraperConfig(base_url="https://old.reddit.com/")
    assert config.base_url == "https://old.reddit.com"
    assert config.resolved_allowed_domains() == ["old.reddit.com"]
    assert ScraperConfig(allowed_domains=["Reddit.com"]).resolved_allowed_domains() == ["reddit.com"]


def test_relative_base_url_rejected() -> None:
    with pytest.raises(ValidationError):
        ScraperConfig(base_url="/r/python")


def test_negative_limits_rejected() -> None:
    with pytest.raises(ValidationError):
        ScraperConfig(request_delay=-1)
    with pytest.raises(ValidationError):
        ScraperConfig(max_comments=-5)


def test_port_range() -> None:
    with pytest.raises(ValidationError):
        ServerConfig(port=70000)
