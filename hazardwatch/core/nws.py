"""NWS weather alert parsing - Pure functions.

Maps api.weather.gov active-alert GeoJSON features into HazardRecords.
Alerts carry CAP qualitative severities and polygon geometries; alerts
issued for forecast zones only (no geometry) cannot be placed on a map
and are dropped.
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
    severity_from_level,
)


# First matching keyword wins; anything else is a weather alert
EVENT_CATEGORY_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("flood", FLOOD),
    ("fire", FIRE),
    ("volcan", VOLCANO),
    ("ashfall", VOLCANO),
    ("earthquake", EARTHQUAKE),
    ("tsunami", EARTHQUAKE),
)


def categorize_event(event: str) -> str:
    """Derive a hazard category from an NWS event name.

    Pure function.

    Examples:
        "Flash Flood Warning" -> "Flood"
        "Red Flag Warning" -> "Weather"
        "Fire Weather Watch" -> "Fire"
    """
    text = event.lower()
    for keyword, category in EVENT_CATEGORY_KEYWORDS:
        if keyword in text:
            return category
    return WEATHER


def parse_nws_alert(feed: str, feature: dict[str, Any]) -> HazardRecord:
    """Parse a single NWS alert feature into a HazardRecord.

    Pure function.

    Raises:
        RecordParseError: If the alert has no id, geometry, timestamp or a
            recognizable severity
    """
    props = feature.get("properties") or {}
    record_id = feature.get("id") or props.get("id")
    if not record_id:
        raise RecordParseError(None, "Alert has no id")
    record_id = str(record_id)

    latitude, longitude = geometry_centroid(feature.get("geometry"), record_id)

    observed_at = parse_timestamp(
        props.get("effective") or props.get("onset") or props.get("sent"),
        record_id,
    )

    try:
        severity = severity_from_level(str(props.get("severity") or "unknown"))
    except RecordParseError as e:
        raise RecordParseError(record_id, e.reason) from None

    event = str(props.get("event") or "Weather Alert")
    forecast = props.get("description")

    return build_record(
        feed=feed,
        id=record_id,
        category=categorize_event(event),
        severity=severity,
        latitude=latitude,
        longitude=longitude,
        location=props.get("areaDesc") or "Unknown location",
        observed_at=observed_at,
        description=str(props.get("headline") or event),
        forecast=str(forecast) if forecast is not None else None,
        url=str(props.get("@id") or feature.get("id") or ""),
    )


def parse_nws_alerts(feed: str, geojson: Any) -> ParseResult:
    """Parse an NWS active-alerts FeatureCollection.

    Pure function.

    Raises:
        FeedSchemaError: If the payload has no features list
    """
    features = require_list(geojson, "features", feed)
    return parse_entries(features, lambda feature: parse_nws_alert(feed, feature))
