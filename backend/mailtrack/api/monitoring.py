"""Monitoring API routes for health checks and metrics"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mailtrack.core.metrics import update_store_gauges
from mailtrack.services.aggregator import compute_stats
from mailtrack.services.event_store import EventStore, get_event_store

router = APIRouter(tags=["monitoring"])


@router.get("/")
def root():
    """Service banner with the main endpoints"""
    return {
        "message": "Mail tracking server is running",
        "endpoints": {
            "trackingPixel": "/track/{trackingId}",
            "checkStatus": "/api/tracking/{trackingId}",
            "recordSent": "/api/track",
            "stats": "/api/stats",
            "report": "/api/report",
            "healthCheck": "/health"
        }
    }


@router.get("/metrics")
def metrics_endpoint(store: EventStore = Depends(get_event_store)):
    """Prometheus metrics endpoint - updates gauges before export"""
    update_store_gauges(compute_stats(store.snapshot()))
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
