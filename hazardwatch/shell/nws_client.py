"""NWS Alerts Client - Imperative Shell.

Fetches active weather alerts from api.weather.gov. The service rejects
requests without a User-Agent identifying the application.
"""

import logging
from typing import Any

from hazardwatch.core.config import DEFAULT_USER_AGENT, NWS_ALERTS_URL
from hazardwatch.shell.http import get_json


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30


class NWSClient:
    """Client for the NWS active alerts endpoint.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        feed: str = "nws",
        base_url: str = NWS_ALERTS_URL,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.feed = feed
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_active_alerts(self, status: str = "actual") -> Any:
        """Fetch currently active alerts as GeoJSON.

        This method performs HTTP I/O.

        Args:
            status: CAP message status to request

        Returns:
            Raw GeoJSON FeatureCollection

        Raises:
            TransientFetchError: If the request fails
            FeedSchemaError: If the response is not JSON
        """
        logger.info("Fetching active alerts from NWS")

        data = get_json(
            self.feed,
            self.base_url,
            params={"status": status},
            headers={
                "User-Agent": self.user_agent,
                "Accept": "application/geo+json",
            },
            timeout=self.timeout,
        )

        if isinstance(data, dict):
            logger.info("Fetched %d alerts from NWS", len(data.get("features") or []))

        return data
