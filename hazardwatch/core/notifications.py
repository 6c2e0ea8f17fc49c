"""User notifications - Pure functions.

Builds the transient messages shown to the user after a cycle or a
selection, and the Slack payloads they are forwarded as. Delivery and
dismissal are handled by the shell's NotificationCenter.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from hazardwatch.core.aggregate import AggregateResult
from hazardwatch.core.formatter import format_record_details
from hazardwatch.core.records import HazardRecord


DEFAULT_TTL_SECONDS = 5.0


class NotificationKind(str, Enum):
    """How a notification is presented."""
    INFO = "info"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    """A transient, dismissible message.

    Attributes:
        kind: Presentation kind
        title: Short heading
        message: Body text
        ttl_seconds: Seconds until it expires on its own (None = until dismissed)
    """
    kind: NotificationKind
    title: str
    message: str
    ttl_seconds: float | None = DEFAULT_TTL_SECONDS


def data_updated(result: AggregateResult) -> Notification:
    """Informational notification after a successful cycle.

    Pure function.
    """
    feeds = len(result.succeeded_feeds)
    return Notification(
        kind=NotificationKind.INFO,
        title="Data Updated",
        message=(
            f"Latest hazard information loaded: {len(result.records)} events "
            f"from {feeds} feed{'s' if feeds != 1 else ''}."
        ),
    )


def feeds_unavailable(result: AggregateResult) -> Notification:
    """Warning after a cycle in which some feeds failed.

    Pure function. The other feeds' data is still shown.
    """
    names = ", ".join(feed for feed, _ in result.failed_feeds)
    return Notification(
        kind=NotificationKind.WARNING,
        title="Some feeds unavailable",
        message=f"Could not refresh {names}. Showing data from the remaining feeds.",
    )


def cycle_failed(error: Exception, has_previous_data: bool) -> Notification:
    """Destructive notification after a failed cycle.

    Pure function. Stays until dismissed.
    """
    if has_previous_data:
        suffix = "Showing the last successfully loaded data."
    else:
        suffix = "Please try again."
    return Notification(
        kind=NotificationKind.DESTRUCTIVE,
        title="Error",
        message=f"Failed to fetch hazard data ({error}). {suffix}",
        ttl_seconds=None,
    )


def record_details(record: HazardRecord) -> Notification:
    """Detail notification shown when a record is selected.

    Pure function.
    """
    return Notification(
        kind=NotificationKind.INFO,
        title=f"{record.category} Alert - {record.location}",
        message="\n".join(format_record_details(record)),
    )


def format_slack_notification(notification: Notification) -> dict[str, Any]:
    """Format a notification as a Slack webhook payload.

    Pure function.
    """
    prefix = {
        NotificationKind.INFO: "ℹ️",
        NotificationKind.WARNING: "⚠️",
        NotificationKind.DESTRUCTIVE: "🚨",
    }[notification.kind]

    return {
        "text": f"{prefix} {notification.title}: {notification.message}",
        "blocks": [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"{prefix} {notification.title}",
                },
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": notification.message,
                },
            },
        ],
    }

