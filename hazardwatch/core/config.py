"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field
from typing import Any

from hazardwatch.core.filters import TIME_RANGE_OPTIONS, FilterCriteria
from hazardwatch.core.records import MAX_SEVERITY, MIN_SEVERITY


FEED_TYPES = ("usgs", "nws", "eonet", "static")

USGS_API_BASE = "https://earthquake.usgs.gov/fdsnws/event/1/query"
NWS_ALERTS_URL = "https://api.weather.gov/alerts/active"
EONET_EVENTS_URL = "https://eonet.gsfc.nasa.gov/api/v3/events"

DEFAULT_USER_AGENT = "hazardwatch/1.0"


@dataclass(frozen=True)
class FeedConfig:
    """One configured hazard feed.

    Only the fields relevant to `feed_type` are used.

    Attributes:
        name: Feed name, unique across feeds; part of record identity
        feed_type: One of FEED_TYPES
        url: Endpoint override (None uses the feed type's default)
        timeout_seconds: HTTP timeout
        user_agent: User-Agent header (required by NWS)
        lookback_hours: How far back to query (usgs)
        min_magnitude: Minimum magnitude to query (usgs)
        days: How many days of events to query (eonet)
        default_severity: Severity for events without a known scale (eonet)
        records: Declared records (static)
    """
    name: str
    feed_type: str
    url: str | None = None
    timeout_seconds: int = 30
    user_agent: str = DEFAULT_USER_AGENT
    lookback_hours: int = 168
    min_magnitude: float | None = None
    days: int = 7
    default_severity: int = 3
    records: tuple[dict[str, Any], ...] = ()


def default_feeds() -> list[FeedConfig]:
    """Feeds used when the configuration does not declare any."""
    return [
        FeedConfig(name="usgs", feed_type="usgs"),
        FeedConfig(name="nws", feed_type="nws"),
    ]


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        refresh_interval_seconds: Period of the refresh timer
        refetch_on_criteria_change: Also fetch when filters change (filters
            always re-apply immediately)
        recent_window_hours: Window for the "recent" counter
        high_severity_threshold: Minimum severity for the "high" counter
        default_criteria: Filter criteria at startup
        feeds: Feeds in declaration order
        slack_webhook_url: Forward warnings and errors to this webhook
        notification_ttl_seconds: Lifetime of informational notifications
        map_tile_url: Tile URL template for map snapshots
        snapshot_path: Where to write a map snapshot after each cycle
    """
    refresh_interval_seconds: int = 300
    refetch_on_criteria_change: bool = True
    recent_window_hours: int = 6
    high_severity_threshold: int = 4
    default_criteria: FilterCriteria = field(default_factory=FilterCriteria)
    feeds: list[FeedConfig] = field(default_factory=default_feeds)
    slack_webhook_url: str | None = None
    notification_ttl_seconds: float = 5.0
    map_tile_url: str | None = None
    snapshot_path: str | None = None


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: Any, lon: Any, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return [ValidationError(
            field=field_name,
            message=f"Coordinates ({lat}, {lon}) are not numbers",
        )]

    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_feed(feed: FeedConfig, field_name: str) -> list[ValidationError]:
    """Validate a single feed configuration.

    Pure function.
    """
    errors = []

    if not feed.name:
        errors.append(ValidationError(
            field=f"{field_name}.name",
            message="Feed name must not be empty",
        ))

    if feed.feed_type not in FEED_TYPES:
        errors.append(ValidationError(
            field=f"{field_name}.type",
            message=f"Unknown feed type '{feed.feed_type}', expected one of {FEED_TYPES}",
        ))

    if feed.timeout_seconds <= 0:
        errors.append(ValidationError(
            field=f"{field_name}.timeout_seconds",
            message=f"Timeout must be positive, got {feed.timeout_seconds}",
        ))

    if feed.feed_type == "usgs" and feed.lookback_hours <= 0:
        errors.append(ValidationError(
            field=f"{field_name}.lookback_hours",
            message=f"Lookback must be positive, got {feed.lookback_hours}",
        ))

    if feed.feed_type == "eonet":
        if feed.days <= 0:
            errors.append(ValidationError(
                field=f"{field_name}.days",
                message=f"Days must be positive, got {feed.days}",
            ))
        if not MIN_SEVERITY <= feed.default_severity <= MAX_SEVERITY:
            errors.append(ValidationError(
                field=f"{field_name}.default_severity",
                message=f"Default severity {feed.default_severity} out of range [1, 5]",
            ))

    if feed.feed_type == "static":
        if not feed.records:
            errors.append(ValidationError(
                field=f"{field_name}.records",
                message="Static feed declares no records",
                severity="warning",
            ))
        for i, record in enumerate(feed.records):
            errors.extend(validate_coordinates(
                record.get("latitude"), record.get("longitude"),
                f"{field_name}.records[{i}]",
            ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.refresh_interval_seconds <= 0:
        errors.append(ValidationError(
            field="refresh_interval_seconds",
            message=f"Refresh interval must be positive, got {config.refresh_interval_seconds}",
        ))

    if config.recent_window_hours <= 0:
        errors.append(ValidationError(
            field="recent_window_hours",
            message=f"Recent window must be positive, got {config.recent_window_hours}",
        ))

    if not MIN_SEVERITY <= config.high_severity_threshold <= MAX_SEVERITY:
        errors.append(ValidationError(
            field="high_severity_threshold",
            message=f"High severity threshold {config.high_severity_threshold} out of range [1, 5]",
        ))

    if config.default_criteria.max_age_hours not in TIME_RANGE_OPTIONS:
        errors.append(ValidationError(
            field="default_criteria.max_age_hours",
            message=(
                f"Time range {config.default_criteria.max_age_hours}h is not one of "
                f"the offered options {TIME_RANGE_OPTIONS}"
            ),
            severity="warning",
        ))

    # Feed names are part of record identity
    seen: set[str] = set()
    for i, feed in enumerate(config.feeds):
        errors.extend(validate_feed(feed, f"feeds[{i}]"))
        if feed.name in seen:
            errors.append(ValidationError(
                field=f"feeds[{i}].name",
                message=f"Duplicate feed name '{feed.name}'",
            ))
        seen.add(feed.name)

    if not config.feeds:
        errors.append(ValidationError(
            field="feeds",
            message="No feeds configured",
            severity="warning",
        ))

    if config.slack_webhook_url and config.slack_webhook_url.startswith("${"):
        errors.append(ValidationError(
            field="notifications.slack_webhook_url",
            message="Webhook URL not resolved (still contains placeholder)",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
