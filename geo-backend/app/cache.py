"""JSON result cache for detection and station requests.

Backed by Redis when REDIS_URL points at a reachable server, otherwise a
NoopCache that never hits. Redis failures during a request count as misses.
Stored keys carry a namespace prefix ("geo:detect:<sha1>" by default).
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class NoopCache:
    async def get_json(self, key: str) -> Optional[Any]:
        return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        return False

    async def close(self) -> None:
        return None


class RedisCache:
    def __init__(self, client: Any, prefix: str = "geo", default_ttl: int = 3600):
        self.client = client
        self.prefix = prefix.rstrip(":")
        self.default_ttl = default_ttl

    def _k(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    async def get_json(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(self._k(key))
        except (RedisError, OSError) as e:  # pragma: no cover (network issues)
            logger.debug("cache read %s skipped: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Discarding undecodable cache entry %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        data = json.dumps(value, separators=(",", ":"))
        ex = ttl if ttl is not None else self.default_ttl
        try:
            await self.client.set(self._k(key), data, ex=ex)
        except (RedisError, OSError) as e:  # pragma: no cover
            logger.debug("cache write %s skipped: %s", key, e)
            return False
        return True

    async def close(self) -> None:  # pragma: no cover - needs a live server
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.debug("Redis close failed: %s", e)


async def build_cache_from_env() -> RedisCache | NoopCache:
    """Pick the cache backend from the environment.

    CACHE_DISABLE=1 or a missing REDIS_URL gives a NoopCache. CACHE_PREFIX
    (default "geo") namespaces keys; CACHE_TTL_SECONDS (default 3600) sets the
    expiry applied when set_json gets no explicit ttl.
    """
    if os.getenv("CACHE_DISABLE") == "1":
        return NoopCache()
    url = os.getenv("REDIS_URL")
    if not url:
        return NoopCache()
    client = redis.from_url(url, encoding="utf-8", decode_responses=False)
    try:
        # startup must not hang on an unreachable server
        await asyncio.wait_for(client.ping(), timeout=0.75)
    except (RedisError, OSError, asyncio.TimeoutError) as e:  # pragma: no cover (network issues)
        logger.info("cache disabled, Redis ping failed: %s", e)
        return NoopCache()
    prefix = os.getenv("CACHE_PREFIX", "geo")
    try:
        ttl = int(os.getenv("CACHE_TTL_SECONDS", "3600"))
    except ValueError:
        ttl = 3600
    return RedisCache(client, prefix=prefix, default_ttl=ttl)


__all__ = ["NoopCache", "RedisCache", "build_cache_from_env"]
