"""Middleware and exception handlers for the FastAPI application"""
import logging

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mailtrack.core.config import settings
from mailtrack.core.exceptions import PersistenceFailure, TrackingError
from mailtrack.core.security import log_api_access

logger = logging.getLogger(__name__)


def setup_cors_middleware(app):
    """Open CORS: pixels and status checks come from arbitrary clients"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


async def access_log_middleware(request: Request, call_next):
    """Log every request with its final status code"""
    status_code = 500
    error = None
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    except Exception as e:
        error = str(e)
        raise
    finally:
        log_api_access(request, status_code, error)


async def tracking_error_handler(request: Request, exc: TrackingError):
    """Map the tracking error taxonomy to HTTP responses"""
    if isinstance(exc, PersistenceFailure):
        # Keep file paths and OS errors out of the response
        logger.error(f"Persistence failure on {request.url.path}: {exc.message}", exc_info=exc)
        detail = exc.public_message
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        detail = exc.message

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=headers
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )
