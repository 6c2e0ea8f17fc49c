"""Shared HTTP retrieval - Imperative Shell.

Feed clients use get_json so that every network and decoding failure
reaches the pipeline as a FetchError subclass.
"""

import logging
from typing import Any

import requests

from hazardwatch.core.errors import FeedSchemaError, TransientFetchError


logger = logging.getLogger(__name__)


def get_json(
    feed: str,
    url: str,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    timeout: int = 30,
) -> Any:
    """GET a URL and decode its JSON body.

    This function performs HTTP I/O.

    Args:
        feed: Feed name, for errors and logs
        url: Endpoint URL
        params: Query parameters
        headers: Request headers
        timeout: Request timeout in seconds

    Returns:
        Decoded JSON payload

    Raises:
        TransientFetchError: On timeouts, connection errors and HTTP errors
        FeedSchemaError: If the body is not valid JSON
    """
    try:
        response = requests.get(
            url,
            params=params,
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.Timeout:
        logger.warning("Request to %s timed out after %ds", feed, timeout)
        raise TransientFetchError(feed, "Request timed out") from None
    except requests.RequestException as e:
        logger.warning("Request to %s failed: %s", feed, e)
        raise TransientFetchError(feed, str(e)) from e

    try:
        return response.json()
    except ValueError:
        logger.warning("Response from %s is not valid JSON", feed)
        raise FeedSchemaError(feed, "Response is not valid JSON") from None
