"""Tracking API routes: pixel, sent-record ingestion and queries"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from mailtrack.core.config import settings
from mailtrack.core.metrics import open_events_counter
from mailtrack.core.security import get_client_ip, require_admin_token
from mailtrack.models import OpenRecord, SentRecord
from mailtrack.schemas.tracking import (
    ClearResponse, ReportResponse, SentAckResponse, StatsResponse, TrackingStatusResponse
)
from mailtrack.services.aggregator import build_report, compute_stats
from mailtrack.services.event_store import (
    EventStore, ObserverContext, OpenResult, get_event_store
)
from mailtrack.utils.pixel import pixel_response

logger = logging.getLogger(__name__)

# Serves the pixel at /track/{tracking_id}
pixel_router = APIRouter(tags=["pixel"])
router = APIRouter(prefix="/api", tags=["tracking"])

OBSERVED_HEADERS = (
    "accept",
    "accept-language",
    "dnt",
    "via",
    "forwarded",
    "x-forwarded-for",
    "x-real-ip",
)

# 200 years
MAX_RECENT_WINDOW_HOURS = 24 * 365 * 200


def build_observer_context(request: Request) -> ObserverContext:
    """Collect what we know about whoever fetched the pixel"""
    headers = {
        name: request.headers[name]
        for name in OBSERVED_HEADERS
        if name in request.headers
    }
    return ObserverContext(
        user_agent=request.headers.get("User-Agent", ""),
        forwarded_for=request.headers.get("X-Forwarded-For"),
        remote_addr=request.client.host if request.client else None,
        referer=request.headers.get("Referer"),
        headers=headers,
    )


@pixel_router.get("/track/{tracking_id}")
def track_open(
    tracking_id: str,
    request: Request,
    store: EventStore = Depends(get_event_store)
):
    """Record an open and always answer with the tracking pixel"""
    try:
        store.record_open(tracking_id, build_observer_context(request))
    except Exception as e:
        # The remote party must never learn whether recording worked
        logger.error(f"Failed to record open for {tracking_id}: {e}", exc_info=True)
        open_events_counter.labels(result=OpenResult.FAILED.value).inc()

    return pixel_response()


@router.post("/track", response_model=SentAckResponse)
def record_sent(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    store: EventStore = Depends(get_event_store)
):
    """Store tracking data for an outbound message (requires `id`)"""
    message_id = store.record_sent(payload, client_ip=get_client_ip(request))
    return {"status": "success", "id": message_id}


@router.get("/tracking/{tracking_id}", response_model=TrackingStatusResponse)
def get_tracking_status(
    tracking_id: str,
    store: EventStore = Depends(get_event_store)
):
    """Check if an email was opened"""
    return store.get_tracking_status(tracking_id)


@router.get("/opens", response_model=List[OpenRecord])
def list_opens(store: EventStore = Depends(get_event_store)):
    """All stored open records"""
    return store.list_opens()


@router.get("/opens/recent", response_model=List[OpenRecord])
def get_recent_opens(
    hours: Optional[float] = Query(
        None, gt=0, le=MAX_RECENT_WINDOW_HOURS, allow_inf_nan=False, description="Window size in hours"
    ),
    store: EventStore = Depends(get_event_store)
):
    """Opens observed within the last `hours` hours"""
    if hours is None:
        hours = settings.DEFAULT_RECENT_WINDOW_HOURS
    return store.get_recent_opens(timedelta(hours=hours))


@router.get("/tracked", response_model=List[SentRecord])
def get_all_tracked(store: EventStore = Depends(get_event_store)):
    """All sent records"""
    return store.get_all_tracked()


@router.get("/stats", response_model=StatsResponse)
def get_stats(store: EventStore = Depends(get_event_store)):
    return compute_stats(store.snapshot())


@router.get("/report", response_model=ReportResponse)
def get_report(store: EventStore = Depends(get_event_store)):
    return build_report(store.snapshot(), recent_limit=settings.REPORT_RECENT_OPENS)


@router.post("/admin/clear", response_model=ClearResponse)
def clear_all(
    _: None = Depends(require_admin_token),
    store: EventStore = Depends(get_event_store)
):
    """Delete every sent and open record (truncates both event logs)"""
    store.clear_all()
    return {"status": "success", "message": "All tracking data cleared"}
