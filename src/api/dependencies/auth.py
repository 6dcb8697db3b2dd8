"""
X-API-Key gate for the /tasks router.

Enabled with API_AUTH_ENABLED=true; the expected key is API_KEY.
Both are read at import time.
"""

import os
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "false").lower() == "true"
API_KEY = os.getenv("API_KEY", "")

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    """Reject the request with 401 unless auth is off or the key matches."""
    if not API_AUTH_ENABLED:
        return

    if not api_key:
        raise _unauthorized("Missing API key. Provide X-API-Key header.")

    if not secrets.compare_digest(api_key, API_KEY):
        raise _unauthorized("Invalid API key")
