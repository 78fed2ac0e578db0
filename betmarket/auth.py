"""
Simple API Key authentication
Each key maps to a bettor id in the users table
"""

from fastapi import Security, HTTPException, status
from fastapi.security import APIKeyHeader
import os
from functools import lru_cache
from typing import Dict, Optional
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# API Key header
API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


@lru_cache(maxsize=1)
def get_valid_api_keys() -> Dict[str, str]:
    """
    Load valid API keys from environment variables.

    ``API_KEY_USER1=<key>`` maps ``<key>`` to bettor ``user1``.
    ``API_KEY_USER1=<key>:<user_id>`` maps it to an explicit bettor id.
    """
    keys = {}

    # Support up to 5 users
    for i in range(1, 6):
        raw = os.getenv(f"API_KEY_USER{i}")
        if raw:
            key, _, user_id = raw.partition(":")
            keys[key] = user_id or f"user{i}"

    if not keys:
        # Development fallback (never use in production)
        if os.getenv("ENVIRONMENT") == "development":
            keys["dev-key-insecure"] = "dev_user"
        else:
            raise ValueError("No API keys configured! Set API_KEY_USER1 in environment")

    return keys


def _lookup(api_key: Optional[str]) -> Optional[str]:
    if not api_key:
        return None
    return get_valid_api_keys().get(api_key)


async def verify_api_key(api_key: str = Security(API_KEY_HEADER)) -> str:
    """
    Verify API key and return the bettor id

    Usage in FastAPI routes:
        @app.post("/api/games/{game_id}/bets")
        async def place_bet(user: str = Depends(verify_api_key)):
            ...
    """
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Include 'X-API-Key' header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    user = _lookup(api_key)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return user


async def optional_api_key(api_key: str = Security(API_KEY_HEADER)) -> Optional[str]:
    """Bettor id when a valid key is sent, else None (anonymous viewer)."""
    return _lookup(api_key)
