"""Shared FastAPI dependencies."""

import random
from collections.abc import AsyncGenerator

import redis.asyncio as redis

from dojoxp.database import get_session as _get_session
from dojoxp.redis_client import get_redis

get_db = _get_session

_rng = random.SystemRandom()


async def get_redis_dep() -> AsyncGenerator[redis.Redis | None, None]:
    """Yield the event bus client; None when Redis is not configured."""
    yield get_redis()


def get_rng() -> random.Random:
    """Random source for spot-check sampling. Overridden in tests."""
    return _rng
