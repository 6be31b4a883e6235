import logging

import httpx

from image_proxy.config import settings

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


async def init_http_client() -> None:
    global _client
    _client = httpx.AsyncClient(timeout=settings.fetch_timeout, follow_redirects=True)
    logger.info("HTTP client initialized")


async def close_http_client() -> None:
    global _client
    if _client:
        await _client.aclose()
        _client = None
    logger.info("HTTP client closed")


def get_http_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("HTTP client not initialized, call init_http_client() first")
    return _client
