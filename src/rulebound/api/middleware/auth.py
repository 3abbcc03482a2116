"""
API key authentication middleware.

Bearer token validation against RULEBOUND_API_KEY.

Usage:
    Set RULEBOUND_API_KEY in the environment:  RULEBOUND_API_KEY=your-secret-key
    Clients pass:                             Authorization: Bearer your-secret-key

Security:
    - In production (ENV=production), RULEBOUND_API_KEY is REQUIRED. Startup
      fails if it's missing. Set AUTH_DISABLED=true to explicitly opt out.
    - In development (default), auth is optional for convenience.
    - Key comparison uses constant-time hmac.compare_digest.
"""

import hashlib
import hmac
import logging
import os
from dataclasses import dataclass

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

API_KEY_ENV = "RULEBOUND_API_KEY"

security_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """Who is calling. client_id is a short SHA-256 prefix of the key, or "anon"."""

    api_key: str | None = None
    client_id: str = "anon"


def get_api_key() -> str | None:
    """Load the API key from the environment. None means auth is disabled."""
    return os.environ.get(API_KEY_ENV, "").strip() or None


def _is_production() -> bool:
    env = os.environ.get("ENV", os.environ.get("ENVIRONMENT", "development"))
    return env.lower() in ("production", "prod", "staging")


def _auth_explicitly_disabled() -> bool:
    return os.environ.get("AUTH_DISABLED", "").lower() in ("true", "1", "yes")


def check_production_auth() -> None:
    """
    Call on startup to verify auth is configured in production.

    Raises RuntimeError in production when no key is set, unless
    AUTH_DISABLED=true. In development only logs.
    """
    if _is_production():
        if get_api_key() is None:
            if _auth_explicitly_disabled():
                logger.warning(
                    "[Auth] AUTH_DISABLED=true in production. "
                    "All endpoints are unauthenticated."
                )
            else:
                raise RuntimeError(
                    f"{API_KEY_ENV} is required in production mode. "
                    f"Set {API_KEY_ENV} in the environment, or set "
                    f"AUTH_DISABLED=true to explicitly disable auth."
                )
    elif get_api_key() is None:
        logger.info(f"[Auth] No {API_KEY_ENV} set (dev mode). Endpoints are unauthenticated.")


async def verify_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),
) -> AuthContext:
    """401 without credentials, 403 with a wrong key. No-op when no key is configured."""
    expected_key = get_api_key()

    if expected_key is None:
        return AuthContext()

    client_host = request.client.host if request.client else "unknown"
    if credentials is None:
        logger.warning(f"[Auth] Missing credentials from {client_host}")
        raise HTTPException(status_code=401, detail="Missing API key")

    if not hmac.compare_digest(credentials.credentials, expected_key):
        logger.warning(f"[Auth] Invalid API key from {client_host}")
        raise HTTPException(status_code=403, detail="Invalid API key")

    key = credentials.credentials
    return AuthContext(api_key=key, client_id=hashlib.sha256(key.encode()).hexdigest()[:16])
