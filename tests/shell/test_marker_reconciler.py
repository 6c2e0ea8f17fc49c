"""Tests for the marker reconciler.

Drives a StaticMapBackend (in memory, no tiles fetched) and a mock
backend to check which map operations are issued.
"""

import pytest
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import MagicMock

from hazardwatch.core.records import HazardRecord
from hazardwatch.shell.map_backend import StaticMapBackend
from hazardwatch.shell.marker_reconciler import MarkerReconciler, ReconcileSummary


def record(record_id: str, severity: int = 3, description: str = "") -> HazardRecord:
    return HazardRecord(
        feed="usgs",
        id=record_id,
        category="Earthquake",
        severity=severity,
        latitude=10.0,
        longitude=20.0,
        location="Somewhere",
        observed_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        description=description,
    )


@pytest.fixture
def backend():
    return StaticMapBackend()


@pytest.fixture
def selected():
    return []


@pytest.fixture
def reconciler(backend, selected):
    return MarkerReconciler(backend, on_select=selected.append)


class TestReconcile:
    """Tests for MarkerReconciler.reconcile()."""

    def test_creates_markers(self, reconciler, backend):
        summary = reconciler.reconcile([record("a"), record("b")])

        assert summary == ReconcileSummary(created=2)
        assert reconciler.keys == [("usgs", "a"), ("usgs", "b")]
        assert len(backend.markers) == 2

    def test_three_way_diff(self, reconciler, backend):
        reconciler.reconcile([record("a"), record("b"), record("c")])
        handle_b = reconciler.markers[("usgs", "b")].marker

        summary = reconciler.reconcile([record("b"), record("c"), record("d")])

        assert summary == ReconcileSummary(created=1, updated=2, removed=1)
        assert set(reconciler.keys) == {("usgs", "b"), ("usgs", "c"), ("usgs", "d")}
        assert reconciler.markers[("usgs", "b")].marker == handle_b
        assert len(backend.markers) == 3

    def test_retained_marker_updated_in_place(self, reconciler, backend):
        reconciler.reconcile([record("a", severity=2)])
        handle = reconciler.markers[("usgs", "a")].marker

        moved = replace(record("a", severity=5), latitude=11.0)
        reconciler.reconcile([moved])

        marker = backend.markers[handle]
        assert marker.coordinates == (11.0, 20.0)
        assert marker.icon.color == "#ef4444"
        assert marker.popup.severity == 5
        assert marker.updates == 1

    def test_unchanged_record_still_updated(self):
        backend = MagicMock()
        reconciler = MarkerReconciler(backend)

        reconciler.reconcile([record("a")])
        reconciler.reconcile([record("a")])

        assert backend.create_marker.call_count == 1
        assert backend.update_marker.call_count == 1
        backend.remove_marker.assert_not_called()

    def test_to_empty(self, reconciler, backend):
        reconciler.reconcile([record("a")])
        reconciler.reconcile([])
        assert reconciler.marker_count == 0
        assert backend.markers == {}

    def test_open_popup_survives_update(self, reconciler, backend):
        reconciler.reconcile([record("a")])
        handle = reconciler.markers[("usgs", "a")].marker
        backend.click(handle)

        reconciler.reconcile([record("a", description="changed")])

        assert reconciler.markers[("usgs", "a")].popup_open
        assert backend.markers[handle].popup_open


class TestClickDispatch:
    """Tests for marker click handling."""

    def test_click_selects_and_toggles_popup(self, reconciler, backend, selected):
        reconciler.reconcile([record("a")])
        handle = reconciler.markers[("usgs", "a")].marker

        backend.click(handle)
        assert [r.id for r in selected] == ["a"]
        assert backend.markers[handle].popup_open

        backend.click(handle)
        assert len(selected) == 2
        assert not backend.markers[handle].popup_open

    def test_click_sees_latest_record(self, reconciler, backend, selected):
        reconciler.reconcile([record("a", description="old")])
        handle = reconciler.markers[("usgs", "a")].marker
        reconciler.reconcile([record("a", description="new")])

        backend.click(handle)

        assert selected[0].description == "new"

    def test_stale_click_is_ignored(self, reconciler, selected):
        reconciler.reconcile([record("a")])
        reconciler.reconcile([])

        reconciler._handle_click(("usgs", "a"))

        assert selected == []

    def test_open_popup(self, reconciler, backend):
        reconciler.reconcile([record("a")])
        assert reconciler.open_popup(("usgs", "a"))
        assert not reconciler.open_popup(("usgs", "missing"))


class TestHover:
    """Tests for hover state."""

    def test_enter_and_leave(self, reconciler, backend):
        reconciler.reconcile([record("a")])
        handle = reconciler.markers[("usgs", "a")].marker

        backend.pointer_enter(handle)
        assert reconciler.hovered_key == ("usgs", "a")

        backend.pointer_leave(handle)
        assert reconciler.hovered_key is None

    def test_survives_reconcile(self, reconciler):
        reconciler.reconcile([record("a")])
        reconciler.pointer_enter(("usgs", "a"))
        reconciler.reconcile([record("a"), record("b")])
        assert reconciler.hovered_key == ("usgs", "a")

    def test_cleared_on_removal(self, reconciler):
        reconciler.reconcile([record("a")])
        reconciler.pointer_enter(("usgs", "a"))
        reconciler.reconcile([])
        assert reconciler.hovered_key is None

    def test_leave_other_key_keeps_hover(self, reconciler):
        reconciler.reconcile([record("a"), record("b")])
        reconciler.pointer_enter(("usgs", "a"))
        reconciler.pointer_leave(("usgs", "b"))
        assert reconciler.hovered_key == ("usgs", "a")


class TestClear:
    def test_releases_everything(self, reconciler, backend):
        reconciler.reconcile([record("a"), record("b")])
        reconciler.pointer_enter(("usgs", "a"))

        reconciler.clear()

        assert reconciler.marker_count == 0
        assert backend.markers == {}
        assert reconciler.hovered_key is None
