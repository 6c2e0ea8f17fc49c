"""Hazard Watch - hazard feed aggregation and live map synchronization."""

__version__ = "1.0.0"
