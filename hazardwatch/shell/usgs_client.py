"""USGS API Client - Imperative Shell.

This module handles HTTP communication with the USGS Earthquake API.
All I/O is contained here; parsing is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from hazardwatch.core.config import DEFAULT_USER_AGENT, USGS_API_BASE
from hazardwatch.shell.http import get_json


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


@dataclass
class USGSQueryParams:
    """Parameters for USGS API query.

    Attributes:
        min_magnitude: Minimum magnitude to fetch
        start_time: Fetch earthquakes after this time
        end_time: Fetch earthquakes before this time
        limit: Maximum number of results (None for the service default)
    """
    min_magnitude: float | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int | None = None


class USGSClient:
    """Client for fetching earthquake data from USGS API.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        feed: str = "usgs",
        base_url: str = USGS_API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """Initialize USGS client.

        Args:
            feed: Feed name used in errors and logs
            base_url: USGS FDSN event query URL
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
        """
        self.feed = feed
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent

    def _build_params(self, query: USGSQueryParams) -> dict[str, str]:
        """Build query parameters for USGS API request.

        Args:
            query: Query parameters

        Returns:
            Dict of URL query parameters
        """
        params: dict[str, str] = {
            "format": "geojson",
            "orderby": "time",
        }

        if query.min_magnitude is not None:
            params["minmagnitude"] = str(query.min_magnitude)

        if query.start_time is not None:
            params["starttime"] = query.start_time.strftime("%Y-%m-%dT%H:%M:%S")

        if query.end_time is not None:
            params["endtime"] = query.end_time.strftime("%Y-%m-%dT%H:%M:%S")

        if query.limit is not None:
            params["limit"] = str(query.limit)

        return params

    def fetch_earthquakes(self, query: USGSQueryParams) -> Any:
        """Fetch earthquake data from USGS API.

        This method performs HTTP I/O.

        Args:
            query: Query parameters

        Returns:
            Raw GeoJSON response from USGS

        Raises:
            TransientFetchError: If the request fails
            FeedSchemaError: If the response is not JSON
        """
        params = self._build_params(query)

        logger.info(
            "Fetching earthquakes from USGS",
            extra={"params": params},
        )

        data = get_json(
            self.feed,
            self.base_url,
            params=params,
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )

        if isinstance(data, dict):
            logger.info(
                "Fetched %d earthquakes from USGS",
                data.get("metadata", {}).get("count", len(data.get("features") or [])),
            )

        return data

    def fetch_recent(
        self,
        min_magnitude: float | None = None,
        hours: int = 168,
        limit: int | None = None,
    ) -> Any:
        """Convenience method to fetch recent earthquakes.

        Args:
            min_magnitude: Minimum magnitude
            hours: How many hours back to fetch
            limit: Maximum results

        Returns:
            Raw GeoJSON response
        """
        now = datetime.now(timezone.utc)
        start = now - timedelta(hours=hours)

        query = USGSQueryParams(
            min_magnitude=min_magnitude,
            start_time=start,
            end_time=now,
            limit=limit,
        )

        return self.fetch_earthquakes(query)
