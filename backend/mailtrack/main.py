"""FastAPI application entry point"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from mailtrack.api import monitoring, tracking
from mailtrack.core import otel
from mailtrack.core.config import settings
from mailtrack.core.exceptions import TrackingError
from mailtrack.core.logging import setup_logging
from mailtrack.core.middleware import (
    access_log_middleware, global_exception_handler,
    setup_cors_middleware, tracking_error_handler
)
from mailtrack.services.event_store import EventStore

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    if not otel.initialize_otel():
        logger.info("OpenTelemetry not configured - running without distributed tracing")

    logger.info(f"Loading event logs from {settings.DATA_DIR}...")
    store = EventStore.from_settings(settings)
    store.load()
    app.state.event_store = store

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Mailtrack",
    description="Email open tracking via a single-pixel read receipt",
    version="1.0.0",
    lifespan=lifespan
)

otel.instrument_fastapi(app)
setup_cors_middleware(app)
app.middleware("http")(access_log_middleware)

app.add_exception_handler(TrackingError, tracking_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Include routers
app.include_router(monitoring.router)
app.include_router(tracking.pixel_router)
app.include_router(tracking.router)


def run():
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
