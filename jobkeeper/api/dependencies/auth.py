"""
API Key authentication dependency.

Optional authentication controlled by API_AUTH_ENABLED environment variable.
When enabled, every job endpoint requires an X-API-Key header matching the
API_KEY environment variable. /health is never authenticated.
"""

import hmac
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

load_dotenv()

API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "false").lower() == "true"
API_KEY = os.getenv("API_KEY", "")

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,
    description="API key (required when API_AUTH_ENABLED=true)",
)


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """
    Verify the X-API-Key header.

    Raises:
        HTTPException: 401 if auth is enabled and the key is missing or wrong

    Returns:
        The API key if valid, None if auth is disabled
    """
    if not API_AUTH_ENABLED:
        return None

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not hmac.compare_digest(api_key.encode(), API_KEY.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key
