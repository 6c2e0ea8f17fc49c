"""Record filtering - Pure functions.

Filters narrow the aggregated records down to what the user asked to
see. The three predicates are conjunctive and independent, so the order
in which they are applied never changes the result.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable

from hazardwatch.core.records import (
    MAX_SEVERITY,
    MIN_SEVERITY,
    HazardRecord,
    normalize_category,
)


DEFAULT_CATEGORIES = frozenset({"earthquake", "flood", "fire", "weather"})
DEFAULT_MIN_SEVERITY = 3
DEFAULT_MAX_AGE_HOURS = 24

# Time ranges offered to the user: 24h, 48h, 7 days
TIME_RANGE_OPTIONS = (24, 48, 168)


@dataclass(frozen=True)
class FilterCriteria:
    """What the user currently wants to see.

    Replaced (never mutated) on every user interaction.

    Attributes:
        active_categories: Lower-cased categories to include; empty means none
        min_severity: Minimum severity (inclusive), 1-5
        max_age_hours: Maximum record age in hours (inclusive)
    """
    active_categories: frozenset[str] = field(default=DEFAULT_CATEGORIES)
    min_severity: int = DEFAULT_MIN_SEVERITY
    max_age_hours: int = DEFAULT_MAX_AGE_HOURS

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "active_categories",
            frozenset(normalize_category(c) for c in self.active_categories),
        )
        if isinstance(self.min_severity, bool) or not isinstance(self.min_severity, int):
            raise ValueError(f"min_severity must be an integer, got {self.min_severity!r}")
        if not MIN_SEVERITY <= self.min_severity <= MAX_SEVERITY:
            raise ValueError(
                f"min_severity must be in [{MIN_SEVERITY}, {MAX_SEVERITY}], got {self.min_severity}"
            )
        if self.max_age_hours <= 0:
            raise ValueError(f"max_age_hours must be positive, got {self.max_age_hours}")

    def toggle_category(self, category: str) -> "FilterCriteria":
        """Return criteria with the category switched on or off."""
        category = normalize_category(category)
        if category in self.active_categories:
            categories = self.active_categories - {category}
        else:
            categories = self.active_categories | {category}
        return replace(self, active_categories=categories)

    def with_min_severity(self, min_severity: int) -> "FilterCriteria":
        """Return criteria with a new minimum severity.

        Raises:
            ValueError: If the value is not a whole number in [1, 5]
        """
        if isinstance(min_severity, float) and min_severity.is_integer():
            min_severity = int(min_severity)
        return replace(self, min_severity=min_severity)

    def with_max_age_hours(self, max_age_hours: int) -> "FilterCriteria":
        """Return criteria with a new time range.

        Raises:
            ValueError: If the range is not one of TIME_RANGE_OPTIONS
        """
        if max_age_hours not in TIME_RANGE_OPTIONS:
            raise ValueError(
                f"max_age_hours must be one of {TIME_RANGE_OPTIONS}, got {max_age_hours}"
            )
        return replace(self, max_age_hours=max_age_hours)


def matches_category(record: HazardRecord, criteria: FilterCriteria) -> bool:
    """Check if the record's category is active.

    Pure function.
    """
    return record.category_key in criteria.active_categories


def matches_severity(record: HazardRecord, criteria: FilterCriteria) -> bool:
    """Check if the record meets the minimum severity.

    Pure function.
    """
    return record.severity >= criteria.min_severity


def matches_age(record: HazardRecord, criteria: FilterCriteria, now: datetime) -> bool:
    """Check if the record is within the time range.

    Pure function. Records stamped in the future count as fresh.
    """
    return now - record.observed_at <= timedelta(hours=criteria.max_age_hours)


def matches_criteria(record: HazardRecord, criteria: FilterCriteria, now: datetime) -> bool:
    """Check a record against all three predicates.

    Pure function.
    """
    return (
        matches_category(record, criteria)
        and matches_severity(record, criteria)
        and matches_age(record, criteria, now)
    )


def apply_filters(
    records: Iterable[HazardRecord],
    criteria: FilterCriteria,
    now: datetime | None = None,
) -> list[HazardRecord]:
    """Return the records that pass every filter, in their original order.

    Pure function (given `now`). Idempotent: filtering an already
    filtered list with the same criteria and time returns it unchanged.

    Args:
        records: Records to filter
        criteria: Current filter criteria
        now: Reference time for the age filter (defaults to current UTC time)

    Returns:
        Filtered list of records
    """
    if not criteria.active_categories:
        return []

    if now is None:
        now = datetime.now(timezone.utc)

    return [r for r in records if matches_criteria(r, criteria, now)]
