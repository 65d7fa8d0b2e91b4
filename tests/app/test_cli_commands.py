from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import yaml
from typer.testing import CliRunner

from post_harvester.app import app
from post_harvester.config import AppConfig
from post_harvester.models import Post
from post_harvester.orchestrator import PassSummary


class StubOrchestrator:
    def __init__(self, summary: PassSummary) -> None:
        self.summary = summary
        self.calls = 0

    def run_pass(self) -> PassSummary:
        self.calls += 1
        return self.summary


class StubStore:
    def __init__(self, posts: list[Post]) -> None:
        self.posts = posts

    def list_all(self) -> list[Post]:
        return list(self.posts)


class StubContext(SimpleNamespace):
    closed = False

    def close(self) -> None:
        self.closed = True


def make_context(posts=(), summary=PassSummary()) -> StubContext:
    return StubContext(
        config=AppConfig(),
        store=StubStore(list(posts)),
        orchestrator=StubOrchestrator(summary),
    )


def test_cli_scrape_prints_summary(monkeypatch) -> None:
    context = make_context(summary=PassSummary(found=3, saved=2, failed=1))
    monkeypatch.setattr("post_harvester.app.build_context", lambda **kwargs: context)

    result = CliRunner().invoke(app, ["scrape"])

    assert result.exit_code == 0, result.stdout
    assert "Scrape completed: 3 new, 2 saved, 1 failed." in result.stdout
    assert context.orchestrator.calls == 1
    assert context.closed


def test_cli_posts_lists_table(monkeypatch) -> None:
    posts = [
        Post(id="t3_new", title="Hiring interns", author="alice", timestamp=datetime(2024, 6, 1, tzinfo=timezone.utc)),
        Post(id="t3_old", title="Older", timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    ]
    monkeypatch.setattr("post_harvester.app.build_context", lambda **kwargs: make_context(posts=posts))

    result = CliRunner().invoke(app, ["posts", "--limit", "1"])

    assert result.exit_code == 0, result.stdout
    assert "Stored posts" in result.stdout
    assert "t3_new" in result.stdout
    assert "t3_old" not in result.stdout


def test_cli_posts_empty(monkeypatch) -> None:
    monkeypatch.setattr("post_harvester.app.build_context", lambda **kwargs: make_context())
    result = CliRunner().invoke(app, ["posts"])
    assert result.exit_code == 0, result.stdout
    assert "No posts stored yet." in result.stdout


def test_cli_passes_global_options(monkeypatch, tmp_path: Path) -> None:
    seen: dict = {}

    def fake_build(**kwargs):
        seen.update(kwargs)
        return make_context()

    monkeypatch.setattr("post_harvester.app.build_context", fake_build)
    config_file = tmp_path / "config.yaml"
    result = CliRunner().invoke(app, ["--verbose", "--config", str(config_file), "scrape"])

    assert result.exit_code == 0, result.stdout
    assert seen["verbose"] is True
    assert seen["config_path"] == config_file
    assert seen["with_scheduler"] is False


def test_cli_configuration_error_exits_non_zero(monkeypatch) -> None:
    def broken(**kwargs):
        raise ValueError("Unsupported storage type: postgres")

    monkeypatch.setattr("post_harvester.app.build_context", broken)
    result = CliRunner().invoke(app, ["scrape"])

    assert result.exit_code == 1
    assert "Unsupported storage type" in result.stdout


def test_cli_init_config_writes_defaults(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    runner = CliRunner()

    result = runner.invoke(app, ["init-config", str(target)])
    assert result.exit_code == 0, result.stdout
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert data["scraper"]["subreddits"] == ["internships"]
    assert data["scraper"]["poll_interval"] == 300.0
    assert data["server"]["port"] == 8080

    again = runner.invoke(app, ["init-config", str(target)])
    assert again.exit_code == 1

    forced = runner.invoke(app, ["init-config", str(target), "--force"])
    assert forced.exit_code == 0, forced.stdout


def test_cli_log_show_reads_source_log(_isolated_home: Path) -> None:
    sources = _isolated_home / "logs" / "sources"
    sources.mkdir(parents=True, exist_ok=True)
    (sources / "clitest.log").write_text("first\nsecond\nthird\n", encoding="utf-8")

    runner = CliRunner()
    listed = runner.invoke(app, ["log", "list"])
    assert listed.exit_code == 0, listed.stdout
    assert "clitest.log" in listed.stdout

    shown = runner.invoke(app, ["log", "show", "--source", "clitest", "--tail", "2"])
    assert shown.exit_code == 0, shown.stdout
    assert "second" in shown.stdout
    assert "third" in shown.stdout
    assert "first" not in shown.stdout


def test_cli_malformed_config_file_is_reported(tmp_path: Path) -> None:
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("scraper: [unclosed\n", encoding="utf-8")

    result = CliRunner().invoke(app, ["--config", str(config_file), "scrape"])

    assert result.exit_code == 1
    assert "Configuration error" in result.stdout
    assert "Malformed configuration file" in result.stdout
