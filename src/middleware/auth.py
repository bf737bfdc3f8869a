"""Admin API key check for the dashboard endpoints.

The key travels in the ``X-Admin-API-Key`` header and is compared in
constant time with ``ADMIN_API_KEY``.  When no key is configured,
development deployments allow the request with a warning and
production deployments refuse it.
"""

from __future__ import annotations

import hmac

import structlog
from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from config.settings import settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_api_key_header = APIKeyHeader(name="X-Admin-API-Key", auto_error=False)


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def require_admin_api_key(
    request: Request,
    api_key: str | None = Security(_api_key_header),
) -> str:
    """FastAPI dependency; returns the accepted key or raises 401/403/503."""
    configured_key = settings.admin_api_key

    if not configured_key:
        if settings.is_production:
            logger.error("auth.admin_key_not_configured_production")
            raise HTTPException(status_code=503, detail="Admin authentication is not configured.")
        logger.warning("auth.admin_key_not_configured", path=request.url.path)
        return ""

    if not api_key:
        logger.warning("auth.missing_api_key", path=request.url.path, client_ip=_client(request))
        raise HTTPException(
            status_code=401,
            detail="Missing X-Admin-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not hmac.compare_digest(api_key.encode(), configured_key.encode()):
        logger.warning("auth.invalid_api_key", path=request.url.path, client_ip=_client(request))
        raise HTTPException(status_code=403, detail="Invalid API key.")

    return api_key
