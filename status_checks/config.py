"""Configuration: the site list and runtime settings."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from status_checks.probe import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT

logger = structlog.get_logger(__name__)


class ConfigError(Exception):
    """Missing or invalid configuration. Fatal before any probing starts."""


class Site(BaseModel):
    """A monitored endpoint. The url is its identity key in the status store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1, description="Display label")
    url: str = Field(description="Endpoint to probe")
    expected_status: int = Field(
        alias="expectedStatus", ge=100, le=599, description="HTTP status code returned when healthy"
    )

    @field_validator("url")
    @classmethod
    def _url_must_be_http(cls, value: str) -> str:
        url = value.strip()
        if not url.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return url


class MonitorSettings(BaseModel):
    """Runtime settings for one check cycle."""

    sites_path: str = Field(default="config.json", description="Path to the site list")
    status_cache_path: str = Field(default="status_cache.json", description="Path to the persisted status store")
    discord_webhook_url: Optional[str] = Field(default=None, description="Discord webhook for notifications")
    probe_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Per-probe timeout")
    check_concurrency: int = Field(default=1, ge=1, description="Sites probed at once (1 = sequential)")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header sent with every probe")
    log_level: str = Field(default="INFO", description="Logging level")


ENV_OVERRIDES = {
    "sites_path": "SITES_PATH",
    "status_cache_path": "STATUS_CACHE_PATH",
    "discord_webhook_url": "DISCORD_WEBHOOK_URL",
    "probe_timeout_seconds": "PROBE_TIMEOUT_SECONDS",
    "check_concurrency": "CHECK_CONCURRENCY",
    "user_agent": "USER_AGENT",
    "log_level": "LOG_LEVEL",
}


def load_settings(environ: Mapping[str, str] | None = None) -> MonitorSettings:
    """Build settings from defaults overridden by environment variables."""
    env = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    for key, var in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or not value.strip():
            continue
        data[key] = value.strip()

    try:
        return MonitorSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def _read_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Site list not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read site list {path}: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Site list {path} is not valid: {e}") from e


def parse_sites(raw: Any) -> list[Site]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError("Site list must be a non-empty list")

    sites: list[Site] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"Site #{idx} must be a mapping, got {type(item).__name__}")
        try:
            sites.append(Site.model_validate(item))
        except ValidationError as e:
            raise ConfigError(f"Site #{idx} is invalid: {e}") from e

    seen: set[str] = set()
    for site in sites:
        if site.url in seen:
            logger.warning("Duplicate site url; the last entry wins in the status store", url=site.url)
        seen.add(site.url)
    return sites


def load_sites(path: Path) -> list[Site]:
    return parse_sites(_read_document(path))
