"""NASA EONET natural event parsing - Pure functions.

EONET tracks wildfires, volcanoes, storms and floods as events with a
history of geometries. The most recent geometry is the current position.
"""

from typing import Any

from hazardwatch.core.errors import RecordParseError
from hazardwatch.core.parsing import (
    ParseResult,
    build_record,
    geometry_centroid,
    parse_entries,
    parse_timestamp,
    require_list,
)
from hazardwatch.core.records import (
    EARTHQUAKE,
    FIRE,
    FLOOD,
    VOLCANO,
    WEATHER,
    HazardRecord,
    clamp_severity,
    severity_from_thresholds,
)


CATEGORY_BY_ID: dict[str, str] = {
    "wildfires": FIRE,
    "volcanoes": VOLCANO,
    "floods": FLOOD,
    "severeStorms": WEATHER,
    "earthquakes": EARTHQUAKE,
}

# Lower bounds (knots) for severities 2-5: tropical storm, then
# Saffir-Simpson categories 1, 3 and 5.
WIND_SPEED_THRESHOLDS_KTS = (34.0, 64.0, 96.0, 137.0)


def categorize_event(categories: list[dict[str, Any]]) -> str:
    """Map EONET categories onto a hazard category.

    Pure function. Uses the first category; unknown ids fall back to the
    category title.
    """
    if not categories:
        return "Unknown"

    first = categories[0]
    category_id = str(first.get("id") or "")
    if category_id in CATEGORY_BY_ID:
        return CATEGORY_BY_ID[category_id]
    return str(first.get("title") or category_id or "Unknown")


def severity_from_geometry(geometry: dict[str, Any], default_severity: int) -> int:
    """Derive severity from a geometry's reported magnitude.

    Pure function. Only wind speeds in knots have a known scale; every
    other event uses the feed's default severity.
    """
    value = geometry.get("magnitudeValue")
    unit = str(geometry.get("magnitudeUnit") or "").lower()

    if value is not None and unit == "kts":
        return severity_from_thresholds(float(value), WIND_SPEED_THRESHOLDS_KTS)
    return clamp_severity(default_severity)


def parse_eonet_event(
    feed: str,
    event: dict[str, Any],
    default_severity: int = 3,
) -> HazardRecord:
    """Parse a single EONET event into a HazardRecord.

    Pure function.

    Raises:
        RecordParseError: If the event has no id or no usable geometry
    """
    record_id = event.get("id")
    if not record_id:
        raise RecordParseError(None, "Event has no id")
    record_id = str(record_id)

    geometries = event.get("geometry") or []
    if not geometries:
        raise RecordParseError(record_id, "Event has no geometry")
    latest = geometries[-1]

    latitude, longitude = geometry_centroid(latest, record_id)
    observed_at = parse_timestamp(latest.get("date"), record_id)
    title = str(event.get("title") or "")

    return build_record(
        feed=feed,
        id=record_id,
        category=categorize_event(event.get("categories") or []),
        severity=severity_from_geometry(latest, default_severity),
        latitude=latitude,
        longitude=longitude,
        location=title or "Unknown location",
        observed_at=observed_at,
        description=str(event.get("description") or title),
        url=str(event.get("link") or ""),
    )


def parse_eonet_events(
    feed: str,
    payload: Any,
    default_severity: int = 3,
) -> ParseResult:
    """Parse an EONET events response.

    Pure function.

    Raises:
        FeedSchemaError: If the payload has no events list
    """
    events = require_list(payload, "events", feed)
    return parse_entries(
        events,
        lambda event: parse_eonet_event(feed, event, default_severity),
    )
