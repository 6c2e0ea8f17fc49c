"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, FeedConfig) are defined in hazardwatch/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from hazardwatch.core.config import Config, FeedConfig, default_feeds
from hazardwatch.core.filters import (
    DEFAULT_CATEGORIES,
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_MIN_SEVERITY,
    FilterCriteria,
)


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _resolve_value(value: Any) -> Any:
    """Expand ${VAR} placeholders from the environment.

    Unset variables are left in place (and logged) so validation can
    report them.
    """
    if not isinstance(value, str):
        return value

    def replace(match: re.Match) -> str:
        name = match.group(1)
        env_value = os.environ.get(name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", name)
        return match.group(0)

    return _PLACEHOLDER.sub(replace, value)


def _parse_criteria(data: dict[str, Any]) -> FilterCriteria:
    """Parse the startup filter criteria."""
    categories = data.get("categories")
    return FilterCriteria(
        active_categories=frozenset(categories) if categories is not None else DEFAULT_CATEGORIES,
        min_severity=int(data.get("min_severity", DEFAULT_MIN_SEVERITY)),
        max_age_hours=int(data.get("max_age_hours", DEFAULT_MAX_AGE_HOURS)),
    )


def _parse_feed(data: dict[str, Any]) -> FeedConfig:
    """Parse a feed entry from config data."""
    feed_type = data.get("type", data.get("name"))
    min_magnitude = data.get("min_magnitude")
    url = data.get("url")

    return FeedConfig(
        name=str(data.get("name", feed_type)),
        feed_type=str(feed_type),
        url=_resolve_value(url) if url else None,
        timeout_seconds=int(data.get("timeout_seconds", 30)),
        user_agent=_resolve_value(data.get("user_agent", FeedConfig.user_agent)),
        lookback_hours=int(data.get("lookback_hours", 168)),
        min_magnitude=float(min_magnitude) if min_magnitude is not None else None,
        days=int(data.get("days", 7)),
        default_severity=int(data.get("default_severity", 3)),
        records=tuple(data.get("records", [])),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    if "feeds" in data:
        feeds = [_parse_feed(f) for f in data.get("feeds") or []]
    else:
        feeds = default_feeds()

    notifications = data.get("notifications") or {}
    map_data = data.get("map") or {}

    webhook_url = notifications.get("slack_webhook_url")

    return Config(
        refresh_interval_seconds=int(data.get("refresh_interval_seconds", 300)),
        refetch_on_criteria_change=bool(data.get("refetch_on_criteria_change", True)),
        recent_window_hours=int(data.get("recent_window_hours", 6)),
        high_severity_threshold=int(data.get("high_severity_threshold", 4)),
        default_criteria=_parse_criteria(data.get("default_criteria") or {}),
        feeds=feeds,
        slack_webhook_url=_resolve_value(webhook_url) if webhook_url else None,
        notification_ttl_seconds=float(notifications.get("ttl_seconds", 5.0)),
        map_tile_url=map_data.get("tile_url"),
        snapshot_path=map_data.get("snapshot_path"),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d feeds, refresh every %ds",
        len(config.feeds),
        config.refresh_interval_seconds,
    )

    return config


def load_config_from_env() -> Config:
    """Load minimal configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        HAZARD_FEEDS: Comma-separated feed types (default: usgs,nws)
        REFRESH_INTERVAL_SECONDS: Refresh period
        MIN_SEVERITY: Default minimum severity filter
        SLACK_WEBHOOK_URL: Forward warnings and errors to this webhook

    Returns:
        Config object from environment
    """
    feed_types = [
        t.strip()
        for t in os.environ.get("HAZARD_FEEDS", "usgs,nws").split(",")
        if t.strip()
    ]
    feeds = [FeedConfig(name=t, feed_type=t) for t in feed_types]

    criteria = FilterCriteria(
        min_severity=int(os.environ.get("MIN_SEVERITY", DEFAULT_MIN_SEVERITY)),
    )

    webhook_url = os.environ.get("SLACK_WEBHOOK_URL")
    if not webhook_url:
        logger.info("SLACK_WEBHOOK_URL not set, notifications stay local")

    return Config(
        refresh_interval_seconds=int(os.environ.get("REFRESH_INTERVAL_SECONDS", "300")),
        default_criteria=criteria,
        feeds=feeds,
        slack_webhook_url=webhook_url or None,
    )
