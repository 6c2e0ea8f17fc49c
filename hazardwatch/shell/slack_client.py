"""Slack Webhook Client - Imperative Shell.

Forwards dashboard notifications to a Slack incoming webhook so that
feed outages are visible to whoever operates the deployment.
"""

import logging
from dataclasses import dataclass

import requests

from hazardwatch.core.notifications import Notification, format_slack_notification


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10


@dataclass
class SlackResponse:
    """Response from Slack webhook.

    Attributes:
        success: Whether the message was accepted
        status_code: HTTP status code (0 if no response was received)
        error: Error message if failed
    """
    success: bool
    status_code: int
    error: str | None = None


class SlackClient:
    """Posts notifications to a single Slack webhook.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(self, webhook_url: str, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send_notification(self, notification: Notification) -> SlackResponse:
        """Post a notification to the webhook.

        This method performs HTTP I/O. Failures are reported in the
        response rather than raised; forwarding is best effort.
        """
        payload = format_slack_notification(notification)

        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("Slack webhook request timed out")
            return SlackResponse(success=False, status_code=0, error="Request timed out")
        except requests.RequestException as e:
            logger.error("Slack webhook request failed: %s", str(e))
            return SlackResponse(success=False, status_code=0, error=str(e))

        if response.status_code != 200:
            logger.warning(
                "Slack webhook returned non-200: %d - %s",
                response.status_code,
                response.text,
            )
            return SlackResponse(
                success=False,
                status_code=response.status_code,
                error=response.text,
            )

        logger.info("Forwarded '%s' notification to Slack", notification.title)
        return SlackResponse(success=True, status_code=response.status_code)
