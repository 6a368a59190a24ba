"""Application configuration (``config.toml`` / ``config.yaml``)."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from articlestash.errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "articlestash"

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "curl/8.11",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36",
)


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

def config_dir() -> Path:
    """Return the directory holding ``config.toml`` and ``sites.toml``."""
    override = os.environ.get("ARTICLESTASH_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME") or "~/.config"
    return Path(base).expanduser() / APP_NAME


def cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME") or "~/.cache"
    return Path(base).expanduser() / APP_NAME


# ---------------------------------------------------------------------------
# Structured file reader (shared with articlestash.sites)
# ---------------------------------------------------------------------------

def read_structured(path: str | Path) -> dict[str, Any]:
    """Parse a TOML or YAML file into a dict, chosen by file suffix.

    Raises:
        ConfigError: If the file cannot be read, does not parse, or its top
            level is not a mapping.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read file: {exc}", path) from exc

    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = tomllib.loads(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"parse error: {exc}", path) from exc

    if not isinstance(data, dict):
        raise ConfigError("top level must be a table/mapping", path)
    return data


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class RemoteConfig(BaseModel):
    """Settings for the remote push sink."""

    model_config = {"extra": "forbid"}

    endpoint: str
    token: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: int = 30
    max_retries: int = 2

    @field_validator("endpoint")
    @classmethod
    def check_endpoint(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("endpoint must be an http(s) URL")
        return v


class AppConfig(BaseModel):
    """Top-level application settings.  Every key is optional."""

    model_config = {"extra": "forbid"}

    output_dir: Path = Path("~/Documents/articles")
    sink: str = "epub"
    sites_file: Path | None = None
    user_agents: tuple[str, ...] = DEFAULT_USER_AGENTS
    timeout: int = 30
    max_retries: int = 3
    lenient_dates: bool = True
    error_log: Path | None = None
    remote: RemoteConfig | None = None

    @field_validator("output_dir", "sites_file", "error_log", mode="after")
    @classmethod
    def expand_user(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("user_agents", mode="after")
    @classmethod
    def check_user_agents(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("at least one user agent is required")
        return v

    @property
    def resolved_sites_file(self) -> Path:
        return self.sites_file or config_dir() / "sites.toml"

    @property
    def resolved_error_log(self) -> Path:
        return self.error_log or cache_dir() / f"{APP_NAME}-error.log"


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load :class:`AppConfig` from *path* (default: ``<config dir>/config.toml``).

    A missing default file yields the defaults; an explicitly requested file
    must exist.
    """
    explicit = path is not None
    path = Path(path) if path is not None else config_dir() / "config.toml"
    if not path.exists():
        if explicit:
            raise ConfigError("config file not found", path)
        logger.debug("No config file at %s; using defaults", path)
        return AppConfig()

    data = read_structured(path)
    try:
        config = AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc), path) from exc
    logger.debug("Loaded config from %s", path)
    return config
