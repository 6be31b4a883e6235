import logging

from redis.asyncio import ConnectionPool, Redis

from image_proxy.config import settings

logger = logging.getLogger(__name__)

_pool: ConnectionPool | None = None
_client: Redis | None = None


async def init_redis() -> None:
    global _pool, _client
    if not settings.redis_host:
        logger.warning("REDIS_HOST not configured, response cache disabled")
        return
    # Cached bodies are binary, keep responses as bytes
    _pool = ConnectionPool(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=False,
        max_connections=10,
    )
    _client = Redis(connection_pool=_pool)
    logger.info("Redis client initialized")


async def close_redis() -> None:
    global _client, _pool
    if _client is None:
        return
    # The client does not own an explicitly passed pool
    await _client.aclose()
    await _pool.disconnect()
    _client = _pool = None
    logger.info("Redis client closed, response cache offline")


def get_redis() -> Redis | None:
    return _client
