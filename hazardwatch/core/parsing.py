"""Shared payload parsing helpers - Pure functions.

Each feed has its own parser module (usgs, nws, eonet). They share the
rules defined here: how timestamps and geometries are read, how a record
is validated, and how a batch tolerates malformed entries.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from hazardwatch.core.errors import FeedSchemaError, RecordParseError
from hazardwatch.core.records import HazardRecord, normalize_severity


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one feed payload.

    Attributes:
        records: Successfully normalized records, in payload order
        errors: One error per dropped entry
    """
    records: tuple[HazardRecord, ...] = ()
    errors: tuple[RecordParseError, ...] = field(default_factory=tuple)

    @property
    def dropped(self) -> int:
        """Number of entries that failed to parse."""
        return len(self.errors)


def parse_timestamp(value: Any, record_id: str | None = None) -> datetime:
    """Parse a source timestamp into an aware UTC-based datetime.

    Pure function. Accepts epoch milliseconds (int/float) or ISO 8601
    strings; a trailing "Z" and naive values are read as UTC.

    Raises:
        RecordParseError: If the value is missing or not a valid instant
    """
    if value is None or isinstance(value, bool):
        raise RecordParseError(record_id, "Missing timestamp")

    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    except (ValueError, OverflowError, OSError):
        raise RecordParseError(record_id, f"Invalid timestamp {value!r}") from None

    raise RecordParseError(record_id, f"Invalid timestamp {value!r}")


def _geometry_points(geometry: dict[str, Any]) -> list[tuple[float, float]]:
    """Flatten a GeoJSON geometry into (lon, lat) points."""
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates")
    if coords is None:
        return []

    if geom_type == "Point":
        return [(float(coords[0]), float(coords[1]))]
    if geom_type == "Polygon":
        return [(float(p[0]), float(p[1])) for ring in coords for p in ring]
    if geom_type == "MultiPolygon":
        return [
            (float(p[0]), float(p[1]))
            for polygon in coords
            for ring in polygon
            for p in ring
        ]
    return []


def geometry_centroid(
    geometry: dict[str, Any] | None,
    record_id: str | None = None,
) -> tuple[float, float]:
    """Return (latitude, longitude) for a GeoJSON geometry.

    Pure function. Points return their own position; polygons return the
    centre of their bounding box.

    Raises:
        RecordParseError: If the geometry is missing or unsupported
    """
    if not geometry:
        raise RecordParseError(record_id, "Missing geometry")

    try:
        points = _geometry_points(geometry)
    except (IndexError, TypeError, ValueError):
        raise RecordParseError(record_id, "Malformed geometry coordinates") from None

    if not points:
        raise RecordParseError(
            record_id, f"Unsupported or empty geometry '{geometry.get('type')}'"
        )

    lons = [p[0] for p in points]
    lats = [p[1] for p in points]
    return ((min(lats) + max(lats)) / 2.0, (min(lons) + max(lons)) / 2.0)


def build_record(**fields: Any) -> HazardRecord:
    """Construct a HazardRecord, converting validation failures.

    Pure function.

    Raises:
        RecordParseError: If the record violates a HazardRecord invariant
    """
    try:
        return HazardRecord(**fields)
    except (TypeError, ValueError) as e:
        raise RecordParseError(fields.get("id"), str(e)) from None


def parse_entries(
    entries: Iterable[Any],
    parse_entry: Callable[[Any], HazardRecord],
) -> ParseResult:
    """Parse every entry, dropping the ones that fail.

    Pure function. A RecordParseError (or a malformed entry raising
    KeyError/TypeError/ValueError) removes only that entry.
    """
    records: list[HazardRecord] = []
    errors: list[RecordParseError] = []

    for entry in entries:
        try:
            records.append(parse_entry(entry))
        except RecordParseError as e:
            errors.append(e)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            record_id = entry.get("id") if isinstance(entry, dict) else None
            errors.append(RecordParseError(
                str(record_id) if record_id is not None else None,
                f"Malformed entry: {e}",
            ))

    return ParseResult(records=tuple(records), errors=tuple(errors))


def require_list(payload: Any, key: str, feed: str) -> list[Any]:
    """Return payload[key] if the payload has the expected top-level shape.

    Pure function.

    Raises:
        FeedSchemaError: If payload is not an object or payload[key] is not a list
    """
    if not isinstance(payload, dict):
        raise FeedSchemaError(feed, f"Expected a JSON object, got {type(payload).__name__}")

    entries = payload.get(key)
    if not isinstance(entries, list):
        raise FeedSchemaError(feed, f"Payload has no '{key}' list")

    return entries


def parse_static_entry(feed: str, entry: dict[str, Any]) -> HazardRecord:
    """Parse one record declared in configuration.

    Pure function. Expected keys: id, category, severity, latitude,
    longitude, observed_at; optional location, description, forecast, url.
    """
    record_id = entry.get("id")
    if not record_id:
        raise RecordParseError(None, "Static entry has no id")
    record_id = str(record_id)

    try:
        severity = normalize_severity(entry.get("severity"))
    except RecordParseError as e:
        raise RecordParseError(record_id, e.reason) from None

    if entry.get("latitude") is None or entry.get("longitude") is None:
        raise RecordParseError(record_id, "Missing coordinates")

    forecast = entry.get("forecast")

    return build_record(
        feed=feed,
        id=record_id,
        category=str(entry.get("category") or "Unknown"),
        severity=severity,
        latitude=float(entry["latitude"]),
        longitude=float(entry["longitude"]),
        location=str(entry.get("location") or "Unknown location"),
        observed_at=parse_timestamp(entry.get("observed_at"), record_id),
        description=str(entry.get("description") or ""),
        forecast=str(forecast) if forecast is not None else None,
        url=str(entry.get("url") or ""),
    )


def parse_static_entries(feed: str, entries: list[dict[str, Any]]) -> ParseResult:
    """Parse records declared in configuration.

    Pure function.
    """
    return parse_entries(entries, lambda entry: parse_static_entry(feed, entry))
