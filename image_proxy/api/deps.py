from functools import lru_cache

import httpx

from image_proxy.config import ProxyConfig, settings
from image_proxy.infrastructure.codec import PillowCodec
from image_proxy.infrastructure.http_client import get_http_client
from image_proxy.infrastructure.response_cache import ResponseCache, open_cache


@lru_cache
def get_proxy_config() -> ProxyConfig:
    return settings.proxy_config()


def get_codec() -> PillowCodec:
    return PillowCodec()


def get_source_client() -> httpx.AsyncClient:
    return get_http_client()


def get_response_cache() -> ResponseCache | None:
    return open_cache(settings.cache_namespace)
