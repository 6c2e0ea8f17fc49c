"""Cloud Function Entry Point and local runner.

hazard_snapshot runs one refresh cycle and returns the filtered records
and stats as JSON. Running this module directly starts the refresh loop
locally, or runs a single cycle with --once.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Mapping

import functions_framework
from flask import Request

from hazardwatch.core.config import Config, validate_config
from hazardwatch.core.errors import CycleFailure
from hazardwatch.core.filters import FilterCriteria
from hazardwatch.orchestrator import Orchestrator
from hazardwatch.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif os.environ.get("HAZARD_FEEDS"):
        # Simple env-based config
        return load_config_from_env()
    else:
        # Try default config path
        return load_config()


def criteria_from_args(args: Mapping[str, str], base: FilterCriteria) -> FilterCriteria:
    """Apply query-string overrides to filter criteria.

    Recognized keys: categories (comma-separated, may be empty),
    min_severity, max_age_hours.

    Raises:
        ValueError: If a value is not valid
    """
    criteria = base

    if "categories" in args:
        names = [c for c in args["categories"].split(",") if c.strip()]
        criteria = replace(criteria, active_categories=frozenset(names))

    if "min_severity" in args:
        criteria = criteria.with_min_severity(int(args["min_severity"]))

    if "max_age_hours" in args:
        criteria = criteria.with_max_age_hours(int(args["max_age_hours"]))

    return criteria


async def run_snapshot(config: Config) -> tuple[dict[str, Any], int]:
    """Run one cycle and build the HTTP response for it."""
    orchestrator = Orchestrator(config)

    try:
        result = await orchestrator.refresh_once()

        if result is None:
            error = orchestrator.last_error
            status = 503 if isinstance(error, CycleFailure) else 500
            return {"status": "error", "message": str(error)}, status

        response = {
            "status": "success" if result.success else "partial_failure",
            "summary": result.summary,
            **orchestrator.snapshot(),
        }

        if result.failed_feeds:
            response["failed_feeds"] = {feed: error for feed, error in result.failed_feeds}

        # 207 = Multi-Status
        return response, 200 if result.success else 207
    finally:
        await orchestrator.close()


@functions_framework.http
def hazard_snapshot(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Runs a single refresh cycle with criteria taken from the query string
    and returns the displayed records and stats.

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting hazard snapshot")

    try:
        config = _get_config()

        try:
            criteria = criteria_from_args(request.args, config.default_criteria)
        except ValueError as e:
            logger.warning("Rejected snapshot request: %s", e)
            return {"status": "error", "message": str(e)}, 400

        return asyncio.run(run_snapshot(replace(config, default_criteria=criteria)))

    except Exception as e:
        logger.exception("Unexpected error in hazard snapshot")
        return {
            "status": "error",
            "message": str(e),
        }, 500


async def _run_forever(orchestrator: Orchestrator, snapshot_path: str | None) -> None:
    orchestrator.start()
    try:
        while True:
            await asyncio.sleep(orchestrator.config.refresh_interval_seconds)
            await orchestrator.scheduler.wait_idle()
            if snapshot_path:
                await asyncio.to_thread(orchestrator.write_map_snapshot, snapshot_path)
    finally:
        await orchestrator.close()


async def _run_once(orchestrator: Orchestrator, snapshot_path: str | None) -> int:
    try:
        result = await orchestrator.refresh_once()
        if result is None:
            print(f"Refresh failed: {orchestrator.last_error}", file=sys.stderr)
            return 1

        print(json.dumps(orchestrator.snapshot(), indent=2))

        if snapshot_path:
            image = await asyncio.to_thread(orchestrator.write_map_snapshot, snapshot_path)
            if not image.success:
                print(f"Map snapshot failed: {image.error}", file=sys.stderr)
                return 1
        return 0
    finally:
        await orchestrator.close()


def main(argv: list[str] | None = None) -> int:
    """Local command-line runner."""
    parser = argparse.ArgumentParser(description="Hazard feed dashboard core")
    parser.add_argument("--config", help="Path to YAML config (default: CONFIG_PATH or config/config.yaml)")
    parser.add_argument("--once", action="store_true", help="Run one cycle, print the snapshot and exit")
    parser.add_argument("--snapshot", help="Write a PNG map snapshot to this path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config warning: %s - %s", warning.field, warning.message)
    if not validation.valid:
        for error in validation.critical_errors:
            logger.error("Config error: %s - %s", error.field, error.message)
        return 1

    snapshot_path = args.snapshot or config.snapshot_path
    orchestrator = Orchestrator(config)

    if args.once:
        return asyncio.run(_run_once(orchestrator, snapshot_path))

    try:
        asyncio.run(_run_forever(orchestrator, snapshot_path))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
