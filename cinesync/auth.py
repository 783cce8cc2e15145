"""
API key check for maintenance endpoints.

User-facing endpoints authenticate with session tokens (see session.py).
Maintenance endpoints such as reconciliation are called by operators and
schedulers instead, and take an X-API-Key header. If ADMIN_API_KEY is not
configured the check is skipped (local development).
"""

import logging
import secrets

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from .config import config

logger = logging.getLogger(__name__)

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_admin_key(api_key: str | None = Security(API_KEY_HEADER)) -> str:
    """
    Verify the admin API key from request headers.

    Returns:
        The validated API key, or "" when no key is configured

    Raises:
        HTTPException: If a key is configured and the header is missing or wrong
    """
    configured_key = config.ADMIN_API_KEY

    if not configured_key:
        return ""

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    # Constant-time comparison
    if not secrets.compare_digest(api_key, configured_key):
        logger.warning("Rejected maintenance request with an invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key
