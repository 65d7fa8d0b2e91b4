"""Configuration loading helpers for post-harvester."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml

from .models import AppConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_BASENAME = "config"

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SCRAPER_SUBREDDITS": ("scraper", "subreddits"),
    "SCRAPER_POLL_INTERVAL": ("scraper", "poll_interval"),
    "SCRAPER_BASE_URL": ("scraper", "base_url"),
    "STORAGE_TYPE": ("storage", "type"),
    "STORAGE_PATH": ("storage", "path"),
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
}


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"Malformed configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve the directories searched for a configuration file."""

    project_root: Path | None = None
    search_dirs: list[Path] = field(default_factory=list)

    def __post_init__(self) -> None:
        root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        if not self.search_dirs:
            self.search_dirs = [root, root / "config"]

    def find_config(self) -> Path | None:
        for directory in self.search_dirs:
            for suffix in CONFIG_EXTENSIONS:
                candidate = directory / f"{CONFIG_BASENAME}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def resolve(self, path: Path) -> Path:
        """Anchor relative paths (e.g. the storage file) at the project root."""

        if path.is_absolute():
            return path
        return (self.project_root / path).resolve()


class ConfigRepository:
    """Load the configuration document: defaults < file < environment."""

    def __init__(
        self,
        locator: ConfigLocator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.locator = locator or ConfigLocator()
        self.environ = os.environ if environ is None else environ
        self.logger = structlog.get_logger("post_harvester.config")
        self._cache: AppConfig | None = None
        self.source_path: Path | None = None

    def load(self, path: Path | None = None) -> AppConfig:
        if self._cache is not None and path is None:
            return self._cache
        if path is not None:
            if not path.is_file():
                raise FileNotFoundError(f"Configuration file not found: {path}")
            payload = _read_file(path)
        else:
            path = self.locator.find_config()
            if path is None:
                self.logger.info("config_file_missing", search_dirs=[str(d) for d in self.locator.search_dirs])
                payload = {}
            else:
                payload = _read_file(path)
        self.source_path = path
        payload = self._apply_env(payload)
        config = AppConfig.model_validate(payload)
        config.storage.path = self.locator.resolve(config.storage.path)
        self._cache = config
        return config

    def save(self, config: AppConfig, path: Path) -> None:
        payload = config.model_dump(mode="json")
        payload["scraper"]["poll_interval"] = config.scraper.poll_interval.total_seconds()
        _write_file(path, payload)

    def _apply_env(self, payload: dict[str, Any]) -> dict[str, Any]:
        merged = {key: dict(value) if isinstance(value, dict) else value for key, value in payload.items()}
        for env_name, (section, key) in ENV_OVERRIDES.items():
            raw = self.environ.get(env_name)
            if raw is None or raw == "":
                continue
            target = merged.setdefault(section, {})
            if not isinstance(target, dict):
                raise ValueError(f"Configuration section `{section}` must be a mapping")
            target[key] = raw
        return merged


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository", "ENV_OVERRIDES"]
