"""Redis client for the moderation event bus.

Redis only carries post-commit notifications, so an unconfigured or
unreachable Redis never blocks a ledger write: ``get_redis`` returns None and
publishers skip the event.
"""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str | None) -> None:
    """Connect the event bus. An empty URL leaves events disabled."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("No Redis URL configured; video decision events are disabled")
        return
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """The event bus client, or None when events are disabled."""
    return _client
