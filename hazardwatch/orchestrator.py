"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components. One Orchestrator is one
dashboard session: it owns the current filter criteria, the last good
record set, the marker reconciler and the refresh scheduler.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from hazardwatch.core.aggregate import AggregateResult, FeedOutcome, aggregate
from hazardwatch.core.config import Config
from hazardwatch.core.errors import FetchError
from hazardwatch.core.filters import FilterCriteria, apply_filters
from hazardwatch.core.formatter import format_snapshot
from hazardwatch.core.notifications import (
    Notification,
    cycle_failed,
    data_updated,
    feeds_unavailable,
    record_details,
)
from hazardwatch.core.records import HazardRecord, RecordKey
from hazardwatch.core.stats import Stats, summarize
from hazardwatch.core.view_state import ViewState
from hazardwatch.scheduler import RefreshScheduler, SchedulerState
from hazardwatch.shell.adapters import FeedAdapter, build_adapters
from hazardwatch.shell.map_backend import MapBackend, MapImageResult, StaticMapBackend
from hazardwatch.shell.marker_reconciler import MarkerReconciler, ReconcileSummary
from hazardwatch.shell.notifier import ActiveNotification, NotificationCenter
from hazardwatch.shell.slack_client import SlackClient


logger = logging.getLogger(__name__)


SelectionListener = Callable[[HazardRecord], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleResult:
    """Result of applying one refresh cycle.

    Attributes:
        fetched: Records aggregated across all successful feeds
        displayed: Records passing the current filters
        succeeded_feeds: Feeds that produced a batch
        failed_feeds: (feed, error) pairs for feeds that failed
        dropped: Malformed entries dropped across feeds
        markers: Marker operations applied
    """
    fetched: int
    displayed: int
    succeeded_feeds: tuple[str, ...]
    failed_feeds: tuple[tuple[str, str], ...]
    dropped: int
    markers: ReconcileSummary

    @property
    def success(self) -> bool:
        """Returns True if every feed succeeded."""
        return len(self.failed_feeds) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the cycle."""
        return (
            f"Fetched {self.fetched} records from {len(self.succeeded_feeds)} feeds, "
            f"{self.displayed} displayed, "
            f"{len(self.failed_feeds)} feeds failed, "
            f"{self.dropped} entries dropped"
        )


class Orchestrator:
    """Coordinates feed refresh, filtering and map synchronization.

    This class wires together:
    - Feed adapters (fetch and normalize records)
    - Core functions (aggregation, filters, stats, notifications)
    - Marker reconciler (keeps the map in step with the records)
    - Notification center (user-facing messages, Slack forwarding)
    - Refresh scheduler (periodic, non-overlapping cycles)
    """

    def __init__(
        self,
        config: Config,
        adapters: Sequence[FeedAdapter] | None = None,
        map_backend: MapBackend | None = None,
        notification_center: NotificationCenter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            adapters: Feed adapters (built from config.feeds if not provided)
            map_backend: Map backend (StaticMapBackend if not provided)
            notification_center: Notification center (created if not provided)
            clock: Returns the current aware datetime
        """
        self.config = config
        self.adapters = list(adapters) if adapters is not None else build_adapters(config.feeds)
        self.map_backend = map_backend or StaticMapBackend(tile_url=config.map_tile_url)

        if notification_center is None:
            slack_client = SlackClient(config.slack_webhook_url) if config.slack_webhook_url else None
            notification_center = NotificationCenter(slack_client=slack_client)
        self.notification_center = notification_center

        self._clock = clock
        self.criteria = config.default_criteria
        self.view_state = ViewState()
        self.reconciler = MarkerReconciler(self.map_backend, on_select=self._on_marker_selected)
        self.scheduler = RefreshScheduler(
            run_cycle=self.collect,
            on_success=self.apply_cycle,
            on_failure=self.handle_cycle_failure,
            interval_seconds=config.refresh_interval_seconds,
        )

        self.records: list[HazardRecord] = []
        self.filtered_records: list[HazardRecord] = []
        self.stats = Stats()
        self.last_error: Exception | None = None
        self.last_cycle: CycleResult | None = None
        self._listeners: list[SelectionListener] = []

    # ----- Refresh cycle -----

    async def _fetch_feed(self, adapter: FeedAdapter) -> FeedOutcome:
        """Fetch one feed, turning any failure into a failed outcome."""
        try:
            batch = await adapter.fetch()
        except FetchError as e:
            logger.warning("Feed %s failed: %s", adapter.name, e.message)
            return FeedOutcome(feed=adapter.name, error=e.message)
        except Exception as e:
            logger.exception("Unexpected error fetching feed %s", adapter.name)
            return FeedOutcome(feed=adapter.name, error=str(e))

        return FeedOutcome(feed=adapter.name, batch=batch)

    async def collect(self) -> AggregateResult:
        """Fetch all feeds concurrently and aggregate them.

        Raises:
            CycleFailure: If every configured feed failed
        """
        logger.info("Refreshing %d feeds", len(self.adapters))

        # gather keeps declaration order regardless of completion order
        outcomes = await asyncio.gather(
            *(self._fetch_feed(adapter) for adapter in self.adapters)
        )

        return aggregate(outcomes)

    def apply_cycle(self, result: AggregateResult) -> CycleResult:
        """Install a successful cycle's records and update everything derived."""
        markers = self._refresh_view(records=list(result.records))
        self.last_error = None

        self._post(data_updated(result))
        if result.failed_feeds:
            self._post(feeds_unavailable(result))

        self.last_cycle = CycleResult(
            fetched=len(result.records),
            displayed=len(self.filtered_records),
            succeeded_feeds=result.succeeded_feeds,
            failed_feeds=result.failed_feeds,
            dropped=result.dropped,
            markers=markers,
        )

        logger.info("Completed: %s", self.last_cycle.summary)

        return self.last_cycle

    def handle_cycle_failure(self, error: Exception) -> None:
        """Keep the last good records and tell the user the cycle failed."""
        self.last_error = error
        logger.error(
            "Refresh failed, keeping %d previous records: %s",
            len(self.records),
            error,
        )
        self._post(cycle_failed(error, has_previous_data=bool(self.records)))

    def _refresh_view(
        self,
        records: list[HazardRecord] | None = None,
        criteria: FilterCriteria | None = None,
    ) -> ReconcileSummary:
        """Filter records and push the result to the map.

        The new records, criteria, filtered set and stats are only
        installed once the markers have been reconciled. If the map
        backend fails, the markers are put back to the previous filtered
        set and the error propagates with the previous view intact.
        """
        records = self.records if records is None else records
        criteria = self.criteria if criteria is None else criteria

        now = self._clock()
        filtered = apply_filters(records, criteria, now)
        stats = summarize(
            filtered,
            now=now,
            recent_window_hours=self.config.recent_window_hours,
            high_severity_threshold=self.config.high_severity_threshold,
        )

        try:
            markers = self.reconciler.reconcile(filtered)
        except Exception:
            self._restore_markers()
            raise

        self.records = records
        self.criteria = criteria
        self.filtered_records = filtered
        self.stats = stats
        self.view_state.retain_selection({r.key for r in filtered})
        return markers

    def _restore_markers(self) -> None:
        """Reconcile the markers back to the displayed records after a failure."""
        logger.warning(
            "Marker update failed, restoring %d previous markers",
            len(self.filtered_records),
        )
        try:
            self.reconciler.reconcile(self.filtered_records)
        except Exception:
            logger.exception("Could not restore previous markers")

    def _post(self, notification: Notification) -> int:
        if notification.ttl_seconds is not None:
            notification = replace(notification, ttl_seconds=self.config.notification_ttl_seconds)
        return self.notification_center.post(notification)

    # ----- Filter criteria -----

    def set_criteria(self, criteria: FilterCriteria) -> None:
        """Replace the filter criteria and re-filter immediately."""
        self._refresh_view(criteria=criteria)

        logger.debug("Criteria changed: %s", criteria)

        if self.config.refetch_on_criteria_change and self.scheduler.running:
            self.scheduler.trigger()

    def toggle_category(self, category: str) -> None:
        self.set_criteria(self.criteria.toggle_category(category))

    def set_min_severity(self, min_severity: int) -> None:
        self.set_criteria(self.criteria.with_min_severity(min_severity))

    def set_max_age_hours(self, max_age_hours: int) -> None:
        self.set_criteria(self.criteria.with_max_age_hours(max_age_hours))

    # ----- Selection -----

    def on_record_selected(self, listener: SelectionListener) -> None:
        """Register a listener called whenever a record is selected."""
        self._listeners.append(listener)

    def select_record(self, key: RecordKey) -> HazardRecord | None:
        """Select a displayed record, as when it is activated in the list.

        Returns:
            The selected record, or None if it is not displayed
        """
        record = next((r for r in self.filtered_records if r.key == key), None)
        if record is None:
            logger.debug("Ignoring selection of hidden record %s", key)
            return None

        self._select(record)
        self.reconciler.open_popup(key)
        return record

    def _on_marker_selected(self, record: HazardRecord) -> None:
        self._select(record)

    def _select(self, record: HazardRecord) -> None:
        self.view_state.select(record.key)
        self._post(record_details(record))
        for listener in self._listeners:
            listener(record)

    # ----- Presentation surface -----

    @property
    def loading_state(self) -> SchedulerState:
        return self.scheduler.state

    @property
    def notifications(self) -> list[ActiveNotification]:
        return self.notification_center.active()

    def dismiss_notification(self, notification_id: int) -> bool:
        return self.notification_center.dismiss(notification_id)

    def snapshot(self) -> dict:
        """JSON-ready view of the displayed records and stats."""
        return format_snapshot(self.filtered_records, self.stats)

    def render_map(self) -> MapImageResult:
        """Render the current markers as a PNG.

        Only available with a backend that supports rendering.
        """
        render = getattr(self.map_backend, "render", None)
        if render is None:
            return MapImageResult(success=False, error="Map backend cannot render images")
        return render()

    def write_map_snapshot(self, path: str | Path) -> MapImageResult:
        """Render the current markers and write them to a PNG file."""
        result = self.render_map()
        if result.success and result.image_bytes is not None:
            Path(path).write_bytes(result.image_bytes)
            logger.info("Wrote map snapshot to %s", path)
        return result

    # ----- Lifecycle -----

    def start(self) -> None:
        """Start periodic refresh. Must be called inside the event loop."""
        self.scheduler.start()

    async def refresh_once(self) -> CycleResult | None:
        """Run one cycle and wait for it.

        Returns:
            The cycle result, or None if the cycle failed or the
            orchestrator has been closed
        """
        started = self.scheduler.trigger()
        if not started and self.scheduler.state is not SchedulerState.FETCHING:
            # Scheduler has been shut down
            return None

        await self.scheduler.wait_idle()

        if self.scheduler.last_outcome is SchedulerState.SUCCESS:
            return self.last_cycle
        return None

    async def close(self) -> None:
        """Stop refreshing and release all markers."""
        await self.scheduler.shutdown()
        await self.notification_center.flush()
        self.reconciler.clear()
        self.notification_center.clear()
        logger.info("Orchestrator closed")
