"""
Redis Client for the CodeCrew API.

Holds short-lived OAuth login state (the CSRF `state` parameter) with a TTL,
so any API worker can complete a callback started on another.
"""

import logging
from typing import Optional

import redis
from redis.exceptions import RedisError, ConnectionError

from .config import settings
from .constants import OAUTH_STATE_TTL_SECONDS

# Initialize logger
logger = logging.getLogger(__name__)

# =============================================================================
# Redis Connection
# =============================================================================

REDIS_URL = settings.redis_url

if settings.testing:
    redis_client = None
else:
    try:
        redis_client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30
        )
        redis_client.ping()
        logger.info(f"Redis connected: {REDIS_URL}")
    except (RedisError, ConnectionError) as e:
        logger.warning(f"Redis connection failed: {e}. OAuth login disabled.")
        redis_client = None


# =============================================================================
# OAuth State
# =============================================================================

def _state_key(state: str) -> str:
    return f"oauth_state:{state}"


def store_oauth_state(client, state: str, provider: str, ttl: int = OAUTH_STATE_TTL_SECONDS) -> None:
    """
    Remember an issued OAuth state value.

    Args:
        client: Redis client
        state: Random state sent to the provider
        provider: OAuth provider name the state belongs to
        ttl: Seconds before the state expires
    """
    client.setex(_state_key(state), ttl, provider)


def pop_oauth_state(client, state: str) -> Optional[str]:
    """
    Consume a state value, returning its provider or None if unknown/expired.

    A state can be used only once.
    """
    key = _state_key(state)
    provider = client.get(key)
    if provider is not None:
        client.delete(key)
    return provider
