"""Unit tests for notification building.

Pure function tests - no mocks needed.
"""

from datetime import datetime, timezone

from hazardwatch.core.aggregate import AggregateResult
from hazardwatch.core.errors import CycleFailure
from hazardwatch.core.notifications import (
    DEFAULT_TTL_SECONDS,
    Notification,
    NotificationKind,
    cycle_failed,
    data_updated,
    feeds_unavailable,
    format_slack_notification,
    record_details,
)
from hazardwatch.core.records import HazardRecord


def make_record() -> HazardRecord:
    return HazardRecord(
        feed="usgs",
        id="us1",
        category="Earthquake",
        severity=5,
        latitude=35.6762,
        longitude=139.6503,
        location="Tokyo, Japan",
        observed_at=datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc),
        description="Magnitude 6.7 earthquake detected at depth 24.5km",
    )


class TestCycleNotifications:
    """Tests for notifications raised after a cycle."""

    def test_data_updated_is_info(self):
        result = AggregateResult(records=(make_record(),), succeeded_feeds=("usgs",))
        notification = data_updated(result)

        assert notification.kind is NotificationKind.INFO
        assert notification.title == "Data Updated"
        assert "1 events from 1 feed." in notification.message
        assert notification.ttl_seconds == DEFAULT_TTL_SECONDS

    def test_feeds_unavailable_names_failed_feeds(self):
        result = AggregateResult(
            records=(),
            succeeded_feeds=("usgs",),
            failed_feeds=(("nws", "timeout"), ("eonet", "bad json")),
        )
        notification = feeds_unavailable(result)

        assert notification.kind is NotificationKind.WARNING
        assert "nws, eonet" in notification.message

    def test_cycle_failed_is_destructive_and_sticky(self):
        notification = cycle_failed(CycleFailure([("usgs", "down")]), has_previous_data=True)

        assert notification.kind is NotificationKind.DESTRUCTIVE
        assert notification.title == "Error"
        assert notification.ttl_seconds is None
        assert "last successfully loaded" in notification.message

    def test_cycle_failed_without_previous_data(self):
        notification = cycle_failed(CycleFailure([("usgs", "down")]), has_previous_data=False)
        assert "Please try again." in notification.message


class TestRecordDetails:
    def test_title_and_body(self):
        notification = record_details(make_record())

        assert notification.title == "Earthquake Alert - Tokyo, Japan"
        assert notification.message.splitlines() == [
            "Time: 2024-06-01 10:00 UTC",
            "Severity: 5/5",
            "Magnitude 6.7 earthquake detected at depth 24.5km",
        ]


class TestFormatSlackNotification:
    def test_payload(self):
        payload = format_slack_notification(
            Notification(NotificationKind.WARNING, "Some feeds unavailable", "nws down")
        )

        assert payload["text"] == "⚠️ Some feeds unavailable: nws down"
        assert payload["blocks"][0]["type"] == "header"
        assert payload["blocks"][1]["text"]["text"] == "nws down"
