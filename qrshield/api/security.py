"""
API key dependency.

A key is only enforced when `settings.api_token` is set. The header name
comes from `settings.api_token_header` (X-API-Key by default).
"""

import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from qrshield.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name=settings.api_token_header, auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_token(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """Reject the request unless it carries the configured API key."""
    expected = settings.api_token
    if not expected:
        if settings.is_production:
            logger.warning("API token not configured in production mode!")
        return None

    client_host = request.client.host if request.client else "unknown"

    if not api_key:
        logger.warning("Missing API key from %s", client_host)
        raise _unauthorized(f"Missing API key. Provide the {settings.api_token_header} header.")

    if not hmac.compare_digest(api_key.encode(), expected.encode()):
        logger.warning("Invalid API key from %s", client_host)
        raise _unauthorized("Invalid API key.")

    return api_key
