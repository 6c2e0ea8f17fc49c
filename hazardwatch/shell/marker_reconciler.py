"""Marker Reconciler - Imperative Shell.

Keeps the map's markers in step with the current filtered records. The
diff itself is computed by core.reconcile; this module applies it to a
MapBackend and owns the resulting handles, popup state and hover state.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from hazardwatch.core.formatter import (
    MarkerIcon,
    PopupContent,
    build_popup,
    icon_for_record,
)
from hazardwatch.core.reconcile import plan_reconciliation
from hazardwatch.core.records import HazardRecord, RecordKey
from hazardwatch.shell.map_backend import MapBackend


logger = logging.getLogger(__name__)


SelectionListener = Callable[[HazardRecord], None]


@dataclass
class MarkerHandle:
    """A live marker owned by the reconciler.

    Attributes:
        key: (feed, id) of the record the marker shows
        marker: Opaque handle returned by the backend
        popup: Popup model currently bound to the marker
        icon: Icon currently shown
        popup_open: Whether the popup is open
    """
    key: RecordKey
    marker: Any
    popup: PopupContent
    icon: MarkerIcon
    popup_open: bool = False


@dataclass(frozen=True)
class ReconcileSummary:
    """Counts of the operations applied by one reconcile call."""
    created: int = 0
    updated: int = 0
    removed: int = 0


class MarkerReconciler:
    """Applies record-set changes to a map backend.

    Every marker's click callback routes through _handle_click with the
    record key bound, so the callback always sees the record as of the
    latest reconcile rather than the one it was created for.
    """

    def __init__(
        self,
        backend: MapBackend,
        on_select: SelectionListener | None = None,
    ) -> None:
        self.backend = backend
        self.on_select = on_select
        self.markers: dict[RecordKey, MarkerHandle] = {}
        self._records: dict[RecordKey, HazardRecord] = {}
        self.hovered_key: RecordKey | None = None

    @property
    def keys(self) -> list[RecordKey]:
        """Keys that currently have a marker."""
        return list(self.markers)

    @property
    def marker_count(self) -> int:
        return len(self.markers)

    def reconcile(self, records: Sequence[HazardRecord]) -> ReconcileSummary:
        """Bring the markers in line with `records`.

        Retained markers are always updated in place; a marker is never
        removed and recreated for a key that is still present.
        """
        plan = plan_reconciliation(self.markers.keys(), records)

        for key in plan.remove:
            self._remove(key)

        for record in plan.update:
            self._update(record)

        for record in plan.create:
            self._create(record)

        summary = ReconcileSummary(
            created=len(plan.create),
            updated=len(plan.update),
            removed=len(plan.remove),
        )

        logger.debug(
            "Reconciled markers: %d created, %d updated, %d removed",
            summary.created,
            summary.updated,
            summary.removed,
        )

        return summary

    def _create(self, record: HazardRecord) -> None:
        icon = icon_for_record(record)
        popup = build_popup(record)
        marker = self.backend.create_marker(record.coordinates, icon, popup)

        self.backend.on_marker_click(marker, functools.partial(self._handle_click, record.key))
        self.backend.on_marker_hover(
            marker,
            functools.partial(self.pointer_enter, record.key),
            functools.partial(self.pointer_leave, record.key),
        )

        self.markers[record.key] = MarkerHandle(
            key=record.key,
            marker=marker,
            popup=popup,
            icon=icon,
        )
        self._records[record.key] = record

    def _update(self, record: HazardRecord) -> None:
        handle = self.markers[record.key]
        handle.icon = icon_for_record(record)
        handle.popup = build_popup(record)
        self.backend.update_marker(handle.marker, record.coordinates, handle.popup, handle.icon)
        self._records[record.key] = record

    def _remove(self, key: RecordKey) -> None:
        handle = self.markers.pop(key)
        self._records.pop(key, None)
        self.backend.remove_marker(handle.marker)
        if self.hovered_key == key:
            self.hovered_key = None

    def _handle_click(self, key: RecordKey) -> None:
        """Dispatch a marker click for the record currently under `key`."""
        record = self._records.get(key)
        handle = self.markers.get(key)
        if record is None or handle is None:
            # Click raced with removal
            return

        if self.on_select is not None:
            self.on_select(record)

        handle.popup_open = not handle.popup_open
        self.backend.set_popup_open(handle.marker, handle.popup_open)

    def open_popup(self, key: RecordKey) -> bool:
        """Open the popup for a key. Returns False if it has no marker."""
        handle = self.markers.get(key)
        if handle is None:
            return False
        handle.popup_open = True
        self.backend.set_popup_open(handle.marker, True)
        return True

    def pointer_enter(self, key: RecordKey) -> None:
        if key in self.markers:
            self.hovered_key = key

    def pointer_leave(self, key: RecordKey) -> None:
        if self.hovered_key == key:
            self.hovered_key = None

    def clear(self) -> None:
        """Remove every marker and release popups."""
        for key in list(self.markers):
            self._remove(key)
        self.hovered_key = None
