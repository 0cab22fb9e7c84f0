"""Security dependencies and API access logging"""
import hmac
import json
from datetime import datetime, timezone
from typing import Optional

from fastapi import Header, Request

from mailtrack.core.config import settings
from mailtrack.core.exceptions import Unauthorized
from mailtrack.core.logging import api_access_logger, security_logger


def resolve_client_ip(forwarded_for: Optional[str], remote_addr: Optional[str]) -> str:
    """First X-Forwarded-For hop, else the socket peer"""
    client_ip = (forwarded_for or "").split(",")[0].strip()
    if not client_ip:
        client_ip = remote_addr or "unknown"
    return client_ip


def get_client_ip(request: Request) -> str:
    return resolve_client_ip(
        request.headers.get("X-Forwarded-For"),
        request.client.host if request.client else None
    )


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    # Bare token without a scheme
    return authorization.strip() if not token else None


def require_admin_token(
    request: Request,
    authorization: Optional[str] = Header(None)
) -> None:
    """Dependency: admin credential, enforced only in production"""
    if not settings.is_production:
        return

    token = _extract_token(authorization)
    expected = settings.ADMIN_TOKEN
    if not token or not expected or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        security_logger.warning(
            f"Admin authorization failed - IP: {get_client_ip(request)}, "
            f"Path: {request.url.path}"
        )
        raise Unauthorized("Invalid or missing authorization")


def log_api_access(
    request: Request,
    status_code: int = 200,
    error: Optional[str] = None
):
    """Log detailed API access information"""
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": request.method,
        "path": request.url.path,
        "query": str(request.url.query) if request.url.query else None,
        "client_ip": get_client_ip(request),
        "user_agent": request.headers.get("User-Agent", "unknown"),
        "origin": request.headers.get("Origin", "none"),
        "referer": request.headers.get("Referer", "none"),
        "status_code": status_code,
        "error": error
    }

    if error or status_code >= 400:
        api_access_logger.warning(f"API Access: {json.dumps(log_data)}")
    else:
        api_access_logger.info(f"API Access: {json.dumps(log_data)}")
