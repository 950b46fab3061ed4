"""Configuration loader for the Salmon Run rotation bot."""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from typing import Any

from dotenv import load_dotenv
import yaml


@dataclass(frozen=True)
class DiscordConfig:
    """Discord credentials and destination, read from the environment."""

    token: str
    channel_id: int
    background_override: str | None


@dataclass(frozen=True)
class FeedConfig:
    """Upstream splatoon3.ink endpoints."""

    schedule_url: str
    translation_url: str
    timeout_seconds: int


@dataclass(frozen=True)
class AssetConfig:
    """Local asset locations for compositing."""

    asset_dir: str
    scratch_dir: str
    output_path: str


@dataclass(frozen=True)
class SchedulerConfig:
    """Rotation loop behaviour."""

    suppress_initial_notification: bool
    retry_base_seconds: float
    retry_max_seconds: float
    fallback_recheck_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    discord: DiscordConfig
    feed: FeedConfig
    assets: AssetConfig
    scheduler: SchedulerConfig
    log: LoggingConfig

    def with_suppressed_initial_notification(self) -> "AppConfig":
        return replace(self, scheduler=replace(self.scheduler, suppress_initial_notification=True))


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _require_section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = _require_key(data, name, name)
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' config must be a mapping")
    return section


def _load_discord_env() -> DiscordConfig:
    token = os.environ.get("DISCORD_TOKEN", "").strip()
    channel_raw = os.environ.get("SCHEDULE_CHANNEL", "").strip()
    background = os.environ.get("BACKGROUND_CANVAS", "").strip() or None
    if not channel_raw:
        channel_id = 0
    else:
        try:
            channel_id = int(channel_raw)
        except ValueError as exc:
            raise ValueError(f"SCHEDULE_CHANNEL must be a numeric channel id, got {channel_raw!r}") from exc
    return DiscordConfig(token=token, channel_id=channel_id, background_override=background)


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file and the environment."""
    load_dotenv()
    discord = _load_discord_env()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    feed_section = _require_section(data, "feed")
    assets_section = _require_section(data, "assets")
    scheduler_section = _require_section(data, "scheduler")
    logging_section = _require_section(data, "logging")

    feed = FeedConfig(
        schedule_url=_require_key(feed_section, "schedule_url", "feed"),
        translation_url=_require_key(feed_section, "translation_url", "feed"),
        timeout_seconds=_require_key(feed_section, "timeout_seconds", "feed"),
    )

    assets = AssetConfig(
        asset_dir=_require_key(assets_section, "asset_dir", "assets"),
        scratch_dir=_require_key(assets_section, "scratch_dir", "assets"),
        output_path=_require_key(assets_section, "output_path", "assets"),
    )

    scheduler = SchedulerConfig(
        suppress_initial_notification=bool(
            _require_key(scheduler_section, "suppress_initial_notification", "scheduler")
        ),
        retry_base_seconds=float(_require_key(scheduler_section, "retry_base_seconds", "scheduler")),
        retry_max_seconds=float(_require_key(scheduler_section, "retry_max_seconds", "scheduler")),
        fallback_recheck_seconds=float(
            _require_key(scheduler_section, "fallback_recheck_seconds", "scheduler")
        ),
    )
    if scheduler.retry_base_seconds <= 0 or scheduler.retry_max_seconds < scheduler.retry_base_seconds:
        raise ValueError("scheduler retry delays must satisfy 0 < retry_base_seconds <= retry_max_seconds")

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    return AppConfig(discord=discord, feed=feed, assets=assets, scheduler=scheduler, log=logging)


__all__ = [
    "AppConfig",
    "AssetConfig",
    "DiscordConfig",
    "FeedConfig",
    "LoggingConfig",
    "SchedulerConfig",
    "load_config",
]
