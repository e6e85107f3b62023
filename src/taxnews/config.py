"""Configuration management."""

import os
import types
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union, get_args, get_origin

import yaml

from taxnews.core.classifier import KeywordSets
from taxnews.core.exceptions import ConfigurationError

DEFAULT_SOURCES: list[dict[str, str]] = [
    {
        "id": "taxheaven",
        "name": "Taxheaven.gr",
        "url": "https://www.taxheaven.gr/rss/news.xml",
        "category": "taxation",
        "priority": "high",
    },
    {
        "id": "kathimerini-economy",
        "name": "Καθημερινή - Οικονομία",
        "url": "https://www.kathimerini.gr/rss/economy",
        "category": "economy",
        "priority": "high",
    },
    {
        "id": "capital",
        "name": "Capital.gr",
        "url": "https://www.capital.gr/rss",
        "category": "economy",
        "priority": "high",
    },
    {
        "id": "naftemporiki",
        "name": "Ναυτεμπορική",
        "url": "https://www.naftemporiki.gr/rss",
        "category": "economy",
        "priority": "medium",
    },
]


@dataclass
class CacheConfig:
    """News cache settings."""
    ttl_seconds: int = 600


@dataclass
class FetchConfig:
    """Feed download settings."""
    timeout_seconds: float = 10.0
    user_agent: str = "taxnews/0.1 (+https://github.com/taxnews/taxnews)"


@dataclass
class SchedulerConfig:
    """Background refresh settings."""
    enabled: bool = True
    # None: refresh every cache.ttl_seconds.
    interval_seconds: Optional[int] = None
    run_on_startup: bool = True


@dataclass
class ApiConfig:
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class Settings:
    """Application settings."""

    log_level: str = "INFO"

    cache: CacheConfig = field(default_factory=CacheConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    classifier: KeywordSets = field(default_factory=KeywordSets)
    sources: list[dict[str, Any]] = field(default_factory=lambda: [dict(s) for s in DEFAULT_SOURCES])


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    return config


def _apply_section(target: Any, name: str, values: Any) -> None:
    if not isinstance(values, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")

    known = {f.name: f.type for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            raise ConfigurationError(f"Unknown key '{name}.{key}'")
        _check_type(f"{name}.{key}", value, known[key])
        setattr(target, key, value)


_TYPE_NAMES = {
    bool: "true or false",
    int: "an integer",
    float: "a number",
    str: "a string",
    list: "a list",
    dict: "a mapping",
}


def _check_type(key: str, value: Any, expected: Any) -> None:
    """Raise ConfigurationError unless value fits a dataclass field type."""
    if get_origin(expected) in (Union, types.UnionType):
        if value is None:
            return
        expected = next(arg for arg in get_args(expected) if arg is not type(None))

    expected = get_origin(expected) or expected
    if expected is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif expected is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, expected)

    if not ok:
        wanted = _TYPE_NAMES.get(expected, expected.__name__)
        raise ConfigurationError(f"{key} must be {wanted}, got {value!r}")


def _validate_classifier(keywords: KeywordSets) -> None:
    for name in ("high_priority", "medium_priority", "breaking"):
        value = getattr(keywords, name)
        if not isinstance(value, list) or not all(isinstance(k, str) for k in value):
            raise ConfigurationError(f"classifier.{name} must be a list of strings")

    if not isinstance(keywords.tags, dict):
        raise ConfigurationError("classifier.tags must be a mapping of label to keywords")
    for label, words in keywords.tags.items():
        if not isinstance(words, list) or not all(isinstance(k, str) for k in words):
            raise ConfigurationError(f"classifier.tags.{label} must be a list of strings")


def get_settings(config_path: Path | None = None) -> Settings:
    """Get application settings from YAML config and environment.

    The config path defaults to $TAXNEWS_CONFIG, then ./config.yaml.
    PORT and LOG_LEVEL override the file.
    """
    if config_path is None:
        config_path = Path(os.getenv("TAXNEWS_CONFIG", "config.yaml"))

    config = load_config(config_path)
    settings = Settings()

    for key, value in config.items():
        if key == "log_level":
            settings.log_level = str(value)
        elif key == "sources":
            if not isinstance(value, list):
                raise ConfigurationError("'sources' must be a list")
            settings.sources = value
        elif key in ("cache", "fetch", "scheduler", "api", "classifier"):
            _apply_section(getattr(settings, key), key, value)
        else:
            raise ConfigurationError(f"Unknown config section '{key}'")

    _validate_classifier(settings.classifier)

    port = os.getenv("PORT")
    if port:
        try:
            settings.api.port = int(port)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {port!r}") from None

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        settings.log_level = log_level

    if settings.cache.ttl_seconds <= 0:
        raise ConfigurationError("cache.ttl_seconds must be positive")
    interval = settings.scheduler.interval_seconds
    if interval is not None and interval <= 0:
        raise ConfigurationError("scheduler.interval_seconds must be positive")

    return settings
