"""
Rate limiting -- caps validation requests per client IP.

In-memory sliding window counter. For multiple replicas, put a shared
limiter in front of the service instead.

Configuration via environment:
  RATE_LIMIT_PER_MINUTE=60  (default: 60 requests per minute per IP)
"""

import logging
import os
import time
from collections import defaultdict

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 60
WINDOW_SECONDS = 60.0

_request_log: dict[str, list[float]] = defaultdict(list)


def _get_rate_limit() -> int:
    try:
        return int(os.environ.get("RATE_LIMIT_PER_MINUTE", DEFAULT_RATE_LIMIT))
    except ValueError:
        return DEFAULT_RATE_LIMIT


def reset_rate_limits() -> None:
    """Forget all recorded requests."""
    _request_log.clear()


async def check_rate_limit(request: Request) -> None:
    """Route dependency. Raises HTTP 429 once a client exceeds the limit."""
    client_ip = request.client.host if request.client else "unknown"
    limit = _get_rate_limit()

    cutoff = time.time() - WINDOW_SECONDS
    _request_log[client_ip] = [ts for ts in _request_log[client_ip] if ts > cutoff]

    if len(_request_log[client_ip]) >= limit:
        logger.warning(f"[RateLimit] Client {client_ip} exceeded {limit}/min")
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded ({limit} requests per minute)",
            headers={"Retry-After": "60"},
        )

    _request_log[client_ip].append(time.time())
