"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Feed clients and adapters (HTTP)
- Map backend and marker reconciliation
- Notification center and Slack forwarding (HTTP)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from hazardwatch.shell.adapters import FeedAdapter, build_adapters
from hazardwatch.shell.map_backend import MapBackend, StaticMapBackend
from hazardwatch.shell.marker_reconciler import MarkerReconciler
from hazardwatch.shell.notifier import NotificationCenter
from hazardwatch.shell.slack_client import SlackClient
from hazardwatch.shell.config_loader import load_config

__all__ = [
    "FeedAdapter",
    "build_adapters",
    "MapBackend",
    "StaticMapBackend",
    "MarkerReconciler",
    "NotificationCenter",
    "SlackClient",
    "load_config",
]
