"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the hazardwatch package.
"""

from hazardwatch.main import hazard_snapshot

__all__ = [
    "hazard_snapshot",
]
