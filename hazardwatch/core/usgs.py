"""USGS earthquake feed parsing - Pure functions.

This module maps USGS GeoJSON features into HazardRecords. All functions
are pure with no side effects.
"""

from typing import Any

from hazardwatch.core.errors import RecordParseError
from hazardwatch.core.parsing import (
    ParseResult,
    build_record,
    parse_entries,
    parse_timestamp,
    require_list,
)
from hazardwatch.core.records import EARTHQUAKE, HazardRecord, severity_from_magnitude


def describe_earthquake(magnitude: float, depth_km: float | None) -> str:
    """Build the human-readable description of an earthquake.

    Pure function.
    """
    if depth_km is None:
        return f"Magnitude {magnitude:g} earthquake detected"
    return f"Magnitude {magnitude:g} earthquake detected at depth {depth_km:g}km"


def parse_usgs_feature(feed: str, feature: dict[str, Any]) -> HazardRecord:
    """Parse a single GeoJSON feature into a HazardRecord.

    Pure function.

    Args:
        feed: Name of the feed the feature came from
        feature: GeoJSON feature dict from the USGS API

    Returns:
        Normalized HazardRecord

    Raises:
        RecordParseError: If the feature lacks an id, magnitude, time or
            coordinates, or any of them is invalid
    """
    record_id = feature.get("id")
    if not record_id:
        raise RecordParseError(None, "Feature has no id")
    record_id = str(record_id)

    props = feature.get("properties") or {}
    geometry = feature.get("geometry") or {}
    coords = geometry.get("coordinates") or []

    if len(coords) < 2:
        raise RecordParseError(record_id, "Missing coordinates")

    magnitude = props.get("mag")
    if magnitude is None:
        raise RecordParseError(record_id, "Missing magnitude")
    magnitude = float(magnitude)

    # USGS uses milliseconds since epoch
    observed_at = parse_timestamp(props.get("time"), record_id)

    depth_km = float(coords[2]) if len(coords) > 2 and coords[2] is not None else None

    try:
        severity = severity_from_magnitude(magnitude)
    except RecordParseError as e:
        raise RecordParseError(record_id, e.reason) from None

    return build_record(
        feed=feed,
        id=record_id,
        category=EARTHQUAKE,
        severity=severity,
        longitude=float(coords[0]),
        latitude=float(coords[1]),
        location=props.get("place") or "Unknown location",
        observed_at=observed_at,
        description=describe_earthquake(magnitude, depth_km),
        url=props.get("url") or "",
    )


def parse_usgs_feed(feed: str, geojson: Any) -> ParseResult:
    """Parse a USGS GeoJSON FeatureCollection.

    Pure function: invalid features are dropped and reported in the
    result; feature order is preserved.

    Raises:
        FeedSchemaError: If the payload is not a FeatureCollection-like object
    """
    features = require_list(geojson, "features", feed)
    return parse_entries(features, lambda feature: parse_usgs_feature(feed, feature))
