from __future__ import annotations

"""
Config Service
--------------
Loads ``config.toml`` into :class:`AppConfig` and keeps the live copy for the
process. Sessions take a snapshot at start, so edits made while a scan runs
apply to the next scan only.

- Lookup order: ``$POTO_CONFIG``, ``~/.config/Poto/config.toml``, ``./config.toml``.
- A missing or broken file falls back to defaults; it never stops startup.
- ``POTO_*`` environment variables override individual values.
"""

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from poto.constants import CONFIG_ENV_KEY
from poto.schemas.config import AppConfig, FolderRule
from poto.services.exceptions import InvalidConfigError
from poto.services.scan_policy import normalize_dir

logger = logging.getLogger(__name__)


def _normalize_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _int_env(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return None


def default_config_path() -> Path:
    return Path.home() / ".config" / "Poto" / "config.toml"


def resolve_config_path(explicit: Optional[str | Path] = None) -> Optional[Path]:
    candidates: list[Path] = []
    if explicit:
        candidates.append(Path(explicit).expanduser())
    env_path = os.environ.get(CONFIG_ENV_KEY)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(default_config_path())
    candidates.append(Path("config.toml"))
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def apply_env_overrides(config: AppConfig) -> AppConfig:
    data = config.model_dump()
    workers = _int_env("POTO_WORKER_THREADS")
    if workers is not None:
        data["performance"]["worker_threads"] = workers
    batch = _int_env("POTO_BATCH_SIZE")
    if batch is not None:
        data["performance"]["batch_size"] = batch
    if "POTO_IGNORE_HIDDEN" in os.environ:
        data["scanner"]["ignore_hidden"] = _normalize_bool(
            os.environ.get("POTO_IGNORE_HIDDEN"), default=data["scanner"]["ignore_hidden"]
        )
    if "POTO_VIDEO_THUMBNAILS" in os.environ:
        data["preview"]["video_thumbnails"] = _normalize_bool(
            os.environ.get("POTO_VIDEO_THUMBNAILS"), default=data["preview"]["video_thumbnails"]
        )
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        logger.warning("Environment overrides rejected, keeping file values: %s", exc)
        return config


def parse_config(raw: str) -> AppConfig:
    """Parse TOML text into a validated config; raises :class:`InvalidConfigError`."""
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise InvalidConfigError(f"invalid TOML: {exc}") from exc
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigError(str(exc)) from exc


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    resolved = resolve_config_path(path)
    if resolved is None:
        logger.info("No config file found, using defaults")
        return apply_env_overrides(AppConfig())
    try:
        config = parse_config(resolved.read_text(encoding="utf-8"))
        logger.info("Loaded config from %s", resolved)
    except (OSError, InvalidConfigError) as exc:
        logger.warning("Could not load config file %s (%s), using defaults", resolved, exc)
        config = AppConfig()
    return apply_env_overrides(config)


class ConfigStore:
    """Thread-safe holder of the live configuration."""

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self._lock = threading.Lock()
        self._config = config if config is not None else AppConfig()

    def get(self) -> AppConfig:
        with self._lock:
            return self._config.model_copy(deep=True)

    def replace(self, config: AppConfig) -> AppConfig:
        with self._lock:
            self._config = config.model_copy(deep=True)
            return self._config.model_copy(deep=True)

    # Paths are compared after normalization, so "~/Pictures" and its
    # absolute form count as the same directory.

    def add_scan_directory(self, directory: str) -> AppConfig:
        target = normalize_dir(directory)
        with self._lock:
            dirs = self._config.scanner.scan_directories
            if all(normalize_dir(d) != target for d in dirs):
                dirs.append(target)
            return self._config.model_copy(deep=True)

    def remove_scan_directory(self, directory: str) -> AppConfig:
        target = normalize_dir(directory)
        with self._lock:
            scanner = self._config.scanner
            scanner.scan_directories = [d for d in scanner.scan_directories if normalize_dir(d) != target]
            return self._config.model_copy(deep=True)

    def add_folder_rule(self, folder: str, rule: FolderRule) -> AppConfig:
        target = normalize_dir(folder)
        with self._lock:
            rules = self._config.scanner.per_folder_rules
            for key in [k for k in rules if normalize_dir(k) == target]:
                del rules[key]
            rules[target] = rule.model_copy(deep=True)
            return self._config.model_copy(deep=True)

    def remove_folder_rule(self, folder: str) -> AppConfig:
        target = normalize_dir(folder)
        with self._lock:
            rules = self._config.scanner.per_folder_rules
            for key in [k for k in rules if normalize_dir(k) == target]:
                del rules[key]
            return self._config.model_copy(deep=True)

    def add_ignore_pattern(self, pattern: str) -> AppConfig:
        with self._lock:
            patterns = self._config.scanner.ignore_patterns
            if pattern not in patterns:
                patterns.append(pattern)
            return self._config.model_copy(deep=True)

    def remove_ignore_pattern(self, pattern: str) -> AppConfig:
        with self._lock:
            scanner = self._config.scanner
            scanner.ignore_patterns = [p for p in scanner.ignore_patterns if p != pattern]
            return self._config.model_copy(deep=True)
