"""
Redis-backed response cache.

Each entry is a hash with the response body and its headers (JSON). The
store only decides *whether* and *for how long* to keep an entry; eviction
is left to Redis.
"""

import json
import logging
import re

from redis.asyncio import Redis

from image_proxy.config import settings
from image_proxy.infrastructure.redis_client import get_redis
from image_proxy.services.models import ProxyResponse

logger = logging.getLogger(__name__)

_KEY_PREFIX = "image-proxy"
_MAX_AGE_RE = re.compile(r"(?:^|,)\s*(s-maxage|max-age)\s*=\s*(\d+)", re.IGNORECASE)


def cache_ttl(cache_control: str, default_ttl: int) -> int:
    """
    Seconds to keep a response, from its Cache-Control header.
    0 means the response must not be stored.
    """
    directives = cache_control.lower()
    if "no-store" in directives or "private" in directives:
        return 0

    ages = {name.lower(): int(value) for name, value in _MAX_AGE_RE.findall(cache_control)}
    if "s-maxage" in ages:
        return ages["s-maxage"]
    if "max-age" in ages:
        return ages["max-age"]
    return default_ttl


class ResponseCache:
    def __init__(self, redis: Redis, namespace: str, default_ttl: int):
        self._redis = redis
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{_KEY_PREFIX}:{self.namespace}:{key}"

    async def match(self, key: str) -> ProxyResponse | None:
        entry = await self._redis.hgetall(self._key(key))
        if not entry:
            return None
        headers = json.loads(entry[b"headers"])
        return ProxyResponse(body=entry[b"body"], headers=headers)

    async def put(self, key: str, response: ProxyResponse) -> bool:
        if not response.ok:
            return False
        ttl = cache_ttl(response.headers.get("Cache-Control", ""), self.default_ttl)
        if ttl <= 0:
            logger.debug(f"Not caching {key[:80]}: upstream forbids storage")
            return False

        redis_key = self._key(key)
        await self._redis.hset(redis_key, mapping={"body": response.body, "headers": json.dumps(response.headers)})
        await self._redis.expire(redis_key, ttl)
        return True


def open_cache(namespace: str = settings.cache_namespace) -> ResponseCache | None:
    redis = get_redis()
    if redis is None:
        return None
    return ResponseCache(redis, namespace, settings.cache_default_ttl)
