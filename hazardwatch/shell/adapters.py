"""Feed Adapters - Imperative Shell.

An adapter turns one external source into a FeedBatch of HazardRecords.
Retrieval is blocking (requests), so it runs in a worker thread while
the event loop keeps serving; parsing is delegated to the pure core.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from hazardwatch.core.aggregate import FeedBatch
from hazardwatch.core.config import FeedConfig
from hazardwatch.core.eonet import parse_eonet_events
from hazardwatch.core.nws import parse_nws_alerts
from hazardwatch.core.parsing import ParseResult, parse_static_entries
from hazardwatch.core.usgs import parse_usgs_feed
from hazardwatch.shell.eonet_client import EONETClient
from hazardwatch.shell.nws_client import NWSClient
from hazardwatch.shell.usgs_client import USGSClient


logger = logging.getLogger(__name__)


class FeedAdapter(ABC):
    """Fetches one source and normalizes it into HazardRecords.

    Subclasses implement _retrieve (blocking I/O) and _parse (pure).
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def _retrieve(self) -> Any:
        """Fetch the raw payload. Blocking; runs in a worker thread."""
        raise NotImplementedError

    @abstractmethod
    def _parse(self, payload: Any) -> ParseResult:
        """Normalize a raw payload. Must be pure."""
        raise NotImplementedError

    async def fetch(self) -> FeedBatch:
        """Fetch and normalize the feed.

        Returns:
            FeedBatch with the valid records and the number dropped

        Raises:
            FetchError: If retrieval fails or the payload has the wrong shape
        """
        payload = await asyncio.to_thread(self._retrieve)
        result = self._parse(payload)

        if result.dropped:
            logger.warning(
                "Dropped %d malformed entries from %s",
                result.dropped,
                self.name,
            )
            for error in result.errors:
                logger.debug("Dropped entry from %s: %s", self.name, error)

        logger.info("Feed %s produced %d records", self.name, len(result.records))

        return FeedBatch(
            feed=self.name,
            records=result.records,
            dropped=result.dropped,
        )


class USGSFeedAdapter(FeedAdapter):
    """Earthquakes from the USGS FDSN event service."""

    def __init__(
        self,
        name: str,
        client: USGSClient,
        lookback_hours: int = 168,
        min_magnitude: float | None = None,
    ) -> None:
        super().__init__(name)
        self.client = client
        self.lookback_hours = lookback_hours
        self.min_magnitude = min_magnitude

    def _retrieve(self) -> Any:
        return self.client.fetch_recent(
            min_magnitude=self.min_magnitude,
            hours=self.lookback_hours,
        )

    def _parse(self, payload: Any) -> ParseResult:
        return parse_usgs_feed(self.name, payload)


class NWSAlertsAdapter(FeedAdapter):
    """Active weather alerts from the US National Weather Service."""

    def __init__(self, name: str, client: NWSClient) -> None:
        super().__init__(name)
        self.client = client

    def _retrieve(self) -> Any:
        return self.client.fetch_active_alerts()

    def _parse(self, payload: Any) -> ParseResult:
        return parse_nws_alerts(self.name, payload)


class EONETFeedAdapter(FeedAdapter):
    """Open natural events from NASA EONET."""

    def __init__(
        self,
        name: str,
        client: EONETClient,
        days: int = 7,
        default_severity: int = 3,
    ) -> None:
        super().__init__(name)
        self.client = client
        self.days = days
        self.default_severity = default_severity

    def _retrieve(self) -> Any:
        return self.client.fetch_open_events(days=self.days)

    def _parse(self, payload: Any) -> ParseResult:
        return parse_eonet_events(self.name, payload, self.default_severity)


class StaticFeedAdapter(FeedAdapter):
    """Records declared in configuration, such as standing advisories."""

    def __init__(self, name: str, entries: list[dict[str, Any]]) -> None:
        super().__init__(name)
        self.entries = entries

    def _retrieve(self) -> Any:
        return list(self.entries)

    def _parse(self, payload: Any) -> ParseResult:
        return parse_static_entries(self.name, payload)


def build_adapter(feed: FeedConfig) -> FeedAdapter:
    """Create the adapter for a feed configuration.

    Raises:
        ValueError: If the feed type is unknown
    """
    if feed.feed_type == "usgs":
        client = USGSClient(feed=feed.name, timeout=feed.timeout_seconds, user_agent=feed.user_agent)
        if feed.url:
            client.base_url = feed.url
        return USGSFeedAdapter(
            feed.name,
            client,
            lookback_hours=feed.lookback_hours,
            min_magnitude=feed.min_magnitude,
        )

    if feed.feed_type == "nws":
        client = NWSClient(feed=feed.name, timeout=feed.timeout_seconds, user_agent=feed.user_agent)
        if feed.url:
            client.base_url = feed.url
        return NWSAlertsAdapter(feed.name, client)

    if feed.feed_type == "eonet":
        client = EONETClient(feed=feed.name, timeout=feed.timeout_seconds, user_agent=feed.user_agent)
        if feed.url:
            client.base_url = feed.url
        return EONETFeedAdapter(
            feed.name,
            client,
            days=feed.days,
            default_severity=feed.default_severity,
        )

    if feed.feed_type == "static":
        return StaticFeedAdapter(feed.name, list(feed.records))

    raise ValueError(f"Unknown feed type '{feed.feed_type}'")


def build_adapters(feeds: list[FeedConfig]) -> list[FeedAdapter]:
    """Create adapters for all feeds, preserving declaration order."""
    return [build_adapter(feed) for feed in feeds]
