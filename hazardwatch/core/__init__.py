"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Hazard record model and severity normalization
- Feed payload parsing (USGS, NWS, EONET, static)
- Aggregation, filtering and summary statistics
- Marker reconciliation planning
- Popup, list and notification formatting

All functions here are deterministic and have no I/O.
"""

from hazardwatch.core.records import HazardRecord, normalize_severity
from hazardwatch.core.aggregate import FeedBatch, FeedOutcome, aggregate, merge
from hazardwatch.core.filters import FilterCriteria, apply_filters
from hazardwatch.core.stats import Stats, most_active_category, summarize
from hazardwatch.core.reconcile import ReconcilePlan, plan_reconciliation
from hazardwatch.core.formatter import build_popup, icon_for_record

__all__ = [
    # Records
    "HazardRecord",
    "normalize_severity",
    # Aggregation
    "FeedBatch",
    "FeedOutcome",
    "aggregate",
    "merge",
    # Filters
    "FilterCriteria",
    "apply_filters",
    # Stats
    "Stats",
    "summarize",
    "most_active_category",
    # Reconciliation
    "ReconcilePlan",
    "plan_reconciliation",
    # Formatter
    "build_popup",
    "icon_for_record",
]
