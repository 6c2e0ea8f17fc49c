"""EONET Client - Imperative Shell.

Fetches open natural events (wildfires, volcanoes, storms, floods) from
NASA's Earth Observatory Natural Event Tracker.
"""

import logging
from typing import Any

from hazardwatch.core.config import DEFAULT_USER_AGENT, EONET_EVENTS_URL
from hazardwatch.shell.http import get_json


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30


class EONETClient:
    """Client for the EONET v3 events endpoint.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        feed: str = "eonet",
        base_url: str = EONET_EVENTS_URL,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.feed = feed
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_open_events(self, days: int = 7) -> Any:
        """Fetch events that are still open and were active recently.

        This method performs HTTP I/O.

        Args:
            days: Only include events with activity in the last N days

        Returns:
            Raw JSON response with an "events" list

        Raises:
            TransientFetchError: If the request fails
            FeedSchemaError: If the response is not JSON
        """
        logger.info("Fetching open events from EONET (last %d days)", days)

        data = get_json(
            self.feed,
            self.base_url,
            params={"status": "open", "days": str(days)},
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )

        if isinstance(data, dict):
            logger.info("Fetched %d events from EONET", len(data.get("events") or []))

        return data
