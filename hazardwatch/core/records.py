"""Hazard record model and severity normalization - Pure functions.

Every feed adapter maps its source-specific payload into HazardRecord.
Severity scales differ between sources (magnitudes, qualitative alert
levels, wind speeds), so the mapping onto the common 1-5 range lives here.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from hazardwatch.core.errors import RecordParseError


MIN_SEVERITY = 1
MAX_SEVERITY = 5

# Display labels for the categories the bundled adapters produce.
# The set is open: any other string is a valid category.
EARTHQUAKE = "Earthquake"
FLOOD = "Flood"
FIRE = "Fire"
VOLCANO = "Volcano"
WEATHER = "Weather"

KNOWN_CATEGORIES = (EARTHQUAKE, FLOOD, FIRE, VOLCANO, WEATHER)

# Qualitative levels, including the CAP severities used by NWS alerts
SEVERITY_LEVELS: dict[str, int] = {
    "unknown": 1,
    "minor": 1,
    "low": 2,
    "moderate": 3,
    "medium": 3,
    "elevated": 3,
    "severe": 4,
    "high": 4,
    "extreme": 5,
    "critical": 5,
}

RecordKey = tuple[str, str]


@dataclass(frozen=True)
class HazardRecord:
    """Immutable, normalized hazard event.

    Attributes:
        feed: Name of the feed that produced the record
        id: Source identifier, unique within its feed only
        category: Display label (e.g. "Earthquake"); matched case-insensitively
        severity: Normalized severity in [1, 5]
        latitude: Event latitude
        longitude: Event longitude
        location: Human-readable place description
        observed_at: Timezone-aware event timestamp
        description: Free text summary
        forecast: Secondary outlook text, None when the source has none
        url: Link to the source event page (optional)
    """
    feed: str
    id: str
    category: str
    severity: int
    latitude: float
    longitude: float
    location: str
    observed_at: datetime
    description: str
    forecast: str | None = None
    url: str = ""

    def __post_init__(self) -> None:
        if not MIN_SEVERITY <= self.severity <= MAX_SEVERITY:
            raise ValueError(f"Severity {self.severity} out of range [1, 5]")
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Latitude {self.latitude} out of range [-90, 90]")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Longitude {self.longitude} out of range [-180, 180]")
        if self.observed_at.tzinfo is None:
            raise ValueError("observed_at must be timezone-aware")

    @property
    def key(self) -> RecordKey:
        """Identity used across cycles: (feed, id)."""
        return (self.feed, self.id)

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)

    @property
    def category_key(self) -> str:
        """Lower-cased category used for filtering and counting."""
        return normalize_category(self.category)


def normalize_category(category: str) -> str:
    """Case-normalize a category tag for matching.

    Pure function.
    """
    return category.strip().lower()


def clamp_severity(value: int) -> int:
    """Clamp an integer into [1, 5].

    Pure function.
    """
    return max(MIN_SEVERITY, min(MAX_SEVERITY, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity.

    Pure function. Unlike round(), 2.5 becomes 3.
    """
    return math.floor(value + 0.5)


def severity_from_magnitude(magnitude: float) -> int:
    """Map a numeric scale (e.g. Richter magnitude) onto [1, 5].

    Pure function. Rounds to the nearest integer, then clamps:
    6.7 rounds to 7 and clamps to 5; 0.3 rounds to 0 and clamps to 1.

    Raises:
        RecordParseError: If the value is NaN or infinite
    """
    if math.isnan(magnitude) or math.isinf(magnitude):
        raise RecordParseError(None, f"Severity value {magnitude} is not finite")
    return clamp_severity(round_half_up(magnitude))


def severity_from_level(level: str) -> int:
    """Map a qualitative level (e.g. "Minor", "Severe") onto [1, 5].

    Pure function.

    Raises:
        RecordParseError: If the level is not recognized
    """
    try:
        return SEVERITY_LEVELS[level.strip().lower()]
    except KeyError:
        raise RecordParseError(None, f"Unknown severity level '{level}'") from None


def severity_from_thresholds(value: float, thresholds: tuple[float, ...]) -> int:
    """Map a value onto [1, 5] using ascending lower bounds for levels 2-5.

    Pure function. With thresholds (34, 64, 96, 113), 50 maps to 2 and
    120 maps to 5.
    """
    severity = MIN_SEVERITY
    for bound in thresholds:
        if value >= bound:
            severity += 1
    return clamp_severity(severity)


def normalize_severity(raw: Any) -> int:
    """Normalize a raw severity of unknown type onto [1, 5].

    Pure function. Numbers and numeric strings are treated as a magnitude
    scale; other strings as qualitative levels.

    Raises:
        RecordParseError: If the value cannot be interpreted
    """
    if isinstance(raw, bool) or raw is None:
        raise RecordParseError(None, f"Invalid severity value {raw!r}")

    if isinstance(raw, (int, float)):
        return severity_from_magnitude(float(raw))

    if isinstance(raw, str):
        try:
            numeric = float(raw)
        except ValueError:
            return severity_from_level(raw)
        return severity_from_magnitude(numeric)

    raise RecordParseError(None, f"Invalid severity value {raw!r}")
