"""Hazard Watch API - FastAPI service.

Long-running service that owns one dashboard session. The refresh
scheduler runs inside the server's event loop; the endpoints expose the
filtered records, stats, notifications and map, and accept filter and
selection changes from the front end.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from hazardwatch import __version__
from hazardwatch.core.filters import TIME_RANGE_OPTIONS, FilterCriteria
from hazardwatch.core.formatter import record_to_dict, stats_to_dict
from hazardwatch.orchestrator import Orchestrator
from hazardwatch.shell.config_loader import load_config


logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ===== Request Models =====

class CriteriaUpdate(BaseModel):
    """Partial update of the filter criteria. Omitted fields are kept."""
    categories: list[str] | None = None
    min_severity: int | None = Field(default=None, ge=1, le=5)
    max_age_hours: int | None = None


class RecordSelection(BaseModel):
    feed: str
    id: str


# ===== Helpers =====

def _default_orchestrator() -> Orchestrator:
    return Orchestrator(load_config())


def _get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def _criteria_to_dict(criteria: FilterCriteria) -> dict[str, Any]:
    return {
        "categories": sorted(criteria.active_categories),
        "min_severity": criteria.min_severity,
        "max_age_hours": criteria.max_age_hours,
        "time_range_options": list(TIME_RANGE_OPTIONS),
    }


def _state_to_dict(orchestrator: Orchestrator) -> dict[str, Any]:
    error = orchestrator.last_error
    return {
        "loading_state": orchestrator.loading_state.value,
        "last_error": str(error) if error is not None else None,
    }


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Build the API application.

    Args:
        orchestrator_factory: Creates the session when the app starts
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        orchestrator = orchestrator_factory()
        app.state.orchestrator = orchestrator
        orchestrator.start()
        logger.info("Hazard Watch API started")
        try:
            yield
        finally:
            await orchestrator.close()

    app = FastAPI(
        title="Hazard Watch API",
        description="Aggregated natural-hazard feeds for the dashboard",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ===== Records and Stats =====

    @app.get("/api/hazards")
    async def get_hazards(request: Request):
        """Records currently displayed, with stats and refresh state."""
        orchestrator = _get_orchestrator(request)
        selected = orchestrator.view_state.selected_key
        return {
            **orchestrator.snapshot(),
            "criteria": _criteria_to_dict(orchestrator.criteria),
            "selected": list(selected) if selected else None,
            **_state_to_dict(orchestrator),
            "fetched_at": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/stats")
    async def get_stats(request: Request):
        return stats_to_dict(_get_orchestrator(request).stats)

    @app.post("/api/hazards/select")
    async def select_hazard(selection: RecordSelection, request: Request):
        """Select a displayed record, as when it is clicked in the list."""
        orchestrator = _get_orchestrator(request)
        record = orchestrator.select_record((selection.feed, selection.id))
        if record is None:
            raise HTTPException(
                status_code=404,
                detail=f"Record {selection.feed}/{selection.id} is not displayed",
            )
        return record_to_dict(record)

    # ===== Filter Criteria =====

    @app.get("/api/criteria")
    async def get_criteria(request: Request):
        return _criteria_to_dict(_get_orchestrator(request).criteria)

    @app.put("/api/criteria")
    async def update_criteria(update: CriteriaUpdate, request: Request):
        """Change the filters. Records are re-filtered immediately."""
        orchestrator = _get_orchestrator(request)
        criteria = orchestrator.criteria

        try:
            if update.categories is not None:
                criteria = FilterCriteria(
                    active_categories=frozenset(update.categories),
                    min_severity=criteria.min_severity,
                    max_age_hours=criteria.max_age_hours,
                )
            if update.min_severity is not None:
                criteria = criteria.with_min_severity(update.min_severity)
            if update.max_age_hours is not None:
                criteria = criteria.with_max_age_hours(update.max_age_hours)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        orchestrator.set_criteria(criteria)

        return {
            "criteria": _criteria_to_dict(orchestrator.criteria),
            "displayed": len(orchestrator.filtered_records),
        }

    # ===== Refresh =====

    @app.post("/api/refresh")
    async def refresh(request: Request):
        """Run a refresh cycle now and wait for it to finish."""
        orchestrator = _get_orchestrator(request)
        result = await orchestrator.refresh_once()

        if result is None:
            raise HTTPException(
                status_code=503,
                detail=f"Refresh failed: {orchestrator.last_error}",
            )

        return {
            "status": "success" if result.success else "partial_failure",
            "summary": result.summary,
            "failed_feeds": {feed: error for feed, error in result.failed_feeds},
        }

    # ===== Notifications =====

    @app.get("/api/notifications")
    async def get_notifications(request: Request):
        return [
            {
                "id": active.id,
                "kind": active.notification.kind.value,
                "title": active.notification.title,
                "message": active.notification.message,
            }
            for active in _get_orchestrator(request).notifications
        ]

    @app.delete("/api/notifications/{notification_id}")
    async def dismiss_notification(notification_id: int, request: Request):
        if not _get_orchestrator(request).dismiss_notification(notification_id):
            raise HTTPException(status_code=404, detail="Notification not found")
        return {"dismissed": notification_id}

    # ===== Map =====

    @app.get("/api/map.png")
    async def get_map(request: Request):
        """Static PNG of the markers currently on the map."""
        orchestrator = _get_orchestrator(request)
        result = await asyncio.to_thread(orchestrator.render_map)

        if not result.success or result.image_bytes is None:
            raise HTTPException(status_code=502, detail=f"Failed to render map: {result.error}")

        return Response(content=result.image_bytes, media_type="image/png")

    # ===== Health =====

    @app.get("/health")
    async def health(request: Request):
        return {"status": "healthy", **_state_to_dict(_get_orchestrator(request))}

    return app


app = create_app()
