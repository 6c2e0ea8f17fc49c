"""Summary statistics - Pure functions.

Derives the dashboard counters from the filtered record set.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable

from hazardwatch.core.records import HazardRecord


HIGH_SEVERITY_THRESHOLD = 4
RECENT_WINDOW_HOURS = 6


@dataclass(frozen=True)
class Stats:
    """Dashboard counters for one record set.

    Attributes:
        total: Number of records
        high_severity_count: Records with severity >= the high threshold
        recent_count: Records observed within the recent window
        counts_by_category: Record count per lower-cased category
    """
    total: int = 0
    high_severity_count: int = 0
    recent_count: int = 0
    counts_by_category: dict[str, int] = field(default_factory=dict)


def summarize(
    records: Iterable[HazardRecord],
    now: datetime | None = None,
    recent_window_hours: float = RECENT_WINDOW_HOURS,
    high_severity_threshold: int = HIGH_SEVERITY_THRESHOLD,
) -> Stats:
    """Compute summary counters for a record collection.

    Pure function (given `now`). Total over any finite input; an empty
    input gives all-zero counters and an empty category map.

    Args:
        records: Records to summarize
        now: Reference time for the recent window (defaults to current UTC time)
        recent_window_hours: Width of the "recent" window in hours
        high_severity_threshold: Minimum severity counted as high

    Returns:
        Stats for the records
    """
    if now is None:
        now = datetime.now(timezone.utc)

    recent_window = timedelta(hours=recent_window_hours)
    total = 0
    high = 0
    recent = 0
    by_category: dict[str, int] = {}

    for record in records:
        total += 1
        if record.severity >= high_severity_threshold:
            high += 1
        if now - record.observed_at <= recent_window:
            recent += 1
        category = record.category_key
        by_category[category] = by_category.get(category, 0) + 1

    return Stats(
        total=total,
        high_severity_count=high,
        recent_count=recent,
        counts_by_category=by_category,
    )


def most_active_category(stats: Stats) -> str | None:
    """Return the category with the most records.

    Pure function. Ties are broken by category name in ascending order,
    so the result is deterministic for equal counts.

    Returns:
        Category name, or None when there are no records
    """
    if not stats.counts_by_category:
        return None

    ranked = sorted(
        stats.counts_by_category.items(),
        key=lambda item: (-item[1], item[0]),
    )
    return ranked[0][0]
