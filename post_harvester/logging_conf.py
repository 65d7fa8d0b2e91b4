"""structlog front end over stdlib handlers writing JSON lines.

Layout under the log root (``$POST_HARVESTER_HOME/logs`` or ``./logs``)::

    harvester.log        every INFO+ event of the application
    error.log            ERROR+ only
    sources/<name>.log   events of one forum section
"""

from __future__ import annotations

import logging
import logging.config
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import structlog

ROOT_LOGGER = "post_harvester"
SOURCE_LOGGER_PREFIX = f"{ROOT_LOGGER}.source"
JSON_FORMATTER = "pythonjsonlogger.jsonlogger.JsonFormatter"

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]+")
_configured = False


@dataclass(frozen=True)
class LogPaths:
    root: Path

    @property
    def main(self) -> Path:
        return self.root / "harvester.log"

    @property
    def errors(self) -> Path:
        return self.root / "error.log"

    @property
    def sources(self) -> Path:
        return self.root / "sources"

    def source(self, name: str) -> Path:
        return self.sources / f"{_UNSAFE_FILENAME.sub('_', name) or 'unnamed'}.log"

    def ensure(self) -> "LogPaths":
        self.sources.mkdir(parents=True, exist_ok=True)
        self.main.touch(exist_ok=True)
        self.errors.touch(exist_ok=True)
        return self


def log_dir() -> Path:
    home = os.environ.get("POST_HARVESTER_HOME")
    if home:
        return Path(home).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _dict_config(paths: LogPaths, level: str) -> dict[str, Any]:
    def file_handler(path: Path, handler_level: str) -> dict[str, Any]:
        return {
            "class": "logging.FileHandler",
            "level": handler_level,
            "filename": str(path),
            "encoding": "utf-8",
            "formatter": "json",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JSON_FORMATTER, "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s"}
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
            "main_file": file_handler(paths.main, "INFO"),
            "error_file": file_handler(paths.errors, "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER: {
                "handlers": ["console", "main_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Set up handlers once per process and return the application logger."""

    global _configured
    paths = LogPaths(log_dir()).ensure()
    if not _configured:
        logging.config.dictConfig(_dict_config(paths, "DEBUG" if verbose else "INFO"))
        # Events stay dicts until the JSON formatter on each handler renders them
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured = True
    return structlog.get_logger(ROOT_LOGGER)


def _has_file_handler(logger: logging.Logger, path: Path) -> bool:
    target = str(path.resolve())
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in logger.handlers
    )


def source_logger(source_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger for one forum section; also writes to ``sources/<name>.log``."""

    configure_logging(verbose)
    path = LogPaths(log_dir()).ensure().source(source_name)
    std_logger = logging.getLogger(f"{SOURCE_LOGGER_PREFIX}.{source_name}")
    if not _has_file_handler(std_logger, path):
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(logging.INFO)
        parent_handlers = logging.getLogger(ROOT_LOGGER).handlers
        if parent_handlers:
            handler.setFormatter(parent_handlers[0].formatter)
        std_logger.addHandler(handler)
    return structlog.get_logger(std_logger.name).bind(source=source_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.is_file():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return stream.readlines()[-line_count:]


def available_source_logs() -> Iterable[Path]:
    sources = LogPaths(log_dir()).sources
    if not sources.is_dir():
        return []
    return sorted(sources.glob("*.log"))


__all__ = [
    "LogPaths",
    "available_source_logs",
    "configure_logging",
    "log_dir",
    "source_logger",
    "tail_log",
]
