"""Record presentation - Pure functions.

Builds marker icons, popup models, list summaries and JSON-ready
snapshots from hazard records. All functions are pure with no side
effects.
"""

import html
from dataclasses import dataclass
from datetime import timezone
from typing import Any, Iterable

from hazardwatch.core.records import HazardRecord, normalize_category
from hazardwatch.core.stats import Stats, most_active_category


CATEGORY_SYMBOLS: dict[str, str] = {
    "earthquake": "🌋",
    "flood": "🌊",
    "fire": "🔥",
    "volcano": "🗻",
    "weather": "⛈️",
}
DEFAULT_SYMBOL = "⚠️"

SEVERITY_COLORS: dict[int, str] = {
    5: "#ef4444",  # red-500
    4: "#f97316",  # orange-500
    3: "#eab308",  # yellow-500
    2: "#3b82f6",  # blue-500
}
DEFAULT_SEVERITY_COLOR = "#22c55e"  # green-500

TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class MarkerIcon:
    """Visual identity of a marker.

    Attributes:
        symbol: Emoji shown on the marker
        color: Hex color for the severity
        css_class: Category class name for backends that style markers
    """
    symbol: str
    color: str
    css_class: str


@dataclass(frozen=True)
class PopupContent:
    """Model of a marker popup.

    Attributes:
        title: Popup heading (the category)
        severity: Normalized severity
        location: Place description
        observed: Formatted observation time
        description: Event description
        forecast: Outlook text, None when absent
    """
    title: str
    severity: int
    location: str
    observed: str
    description: str
    forecast: str | None = None

    def to_html(self) -> str:
        """Render the popup as an HTML fragment. All fields are escaped."""
        parts = [
            '<div class="hazard-popup">',
            f"<h3>{html.escape(self.title)}</h3>",
            f"<p>Severity: {self.severity}</p>",
            f"<p>{html.escape(self.location)}</p>",
            f"<p>{html.escape(self.observed)}</p>",
            f"<p>{html.escape(self.description)}</p>",
        ]
        if self.forecast:
            parts.append(
                f'<p class="forecast">Forecast: {html.escape(self.forecast)}</p>'
            )
        parts.append("</div>")
        return "".join(parts)


def get_category_symbol(category: str) -> str:
    """Get the emoji for a category.

    Pure function.
    """
    return CATEGORY_SYMBOLS.get(normalize_category(category), DEFAULT_SYMBOL)


def get_severity_color(severity: int) -> str:
    """Get hex color for a severity level.

    Pure function.
    """
    return SEVERITY_COLORS.get(severity, DEFAULT_SEVERITY_COLOR)


def icon_for_record(record: HazardRecord) -> MarkerIcon:
    """Build the marker icon for a record.

    Pure function.
    """
    return MarkerIcon(
        symbol=get_category_symbol(record.category),
        color=get_severity_color(record.severity),
        css_class=f"hazard-type-{record.category_key}",
    )


def format_time(record: HazardRecord) -> str:
    """Format the observation time in UTC.

    Pure function.
    """
    return record.observed_at.astimezone(timezone.utc).strftime(TIME_FORMAT)


def build_popup(record: HazardRecord) -> PopupContent:
    """Build the popup model for a record.

    Pure function.
    """
    return PopupContent(
        title=record.category,
        severity=record.severity,
        location=record.location,
        observed=format_time(record),
        description=record.description,
        forecast=record.forecast,
    )


def format_record_summary(record: HazardRecord) -> str:
    """Format a one-line summary of a record for list views.

    Pure function.
    """
    return (
        f"{get_category_symbol(record.category)} {record.category} "
        f"(severity {record.severity}/5) - {record.location} at {format_time(record)}"
    )


def format_record_details(record: HazardRecord) -> list[str]:
    """Format the detail lines shown when a record is selected.

    Pure function.
    """
    lines = [
        f"Time: {format_time(record)}",
        f"Severity: {record.severity}/5",
        record.description,
    ]
    if record.forecast:
        lines.append(f"Forecast: {record.forecast}")
    return lines


def record_to_dict(record: HazardRecord) -> dict[str, Any]:
    """Convert a record to a JSON-serializable dict.

    Pure function.
    """
    return {
        "feed": record.feed,
        "id": record.id,
        "category": record.category,
        "severity": record.severity,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "location": record.location,
        "observed_at": record.observed_at.isoformat(),
        "description": record.description,
        "forecast": record.forecast,
        "url": record.url,
    }


def stats_to_dict(stats: Stats) -> dict[str, Any]:
    """Convert stats to a JSON-serializable dict.

    Pure function.
    """
    return {
        "total": stats.total,
        "high_severity_count": stats.high_severity_count,
        "recent_count": stats.recent_count,
        "counts_by_category": dict(sorted(stats.counts_by_category.items())),
        "most_active_category": most_active_category(stats),
    }


def format_snapshot(records: Iterable[HazardRecord], stats: Stats) -> dict[str, Any]:
    """Build the JSON snapshot served to presentation clients.

    Pure function.
    """
    return {
        "records": [record_to_dict(r) for r in records],
        "stats": stats_to_dict(stats),
    }
