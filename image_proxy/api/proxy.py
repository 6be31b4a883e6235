import logging
import re
from urllib.parse import unquote

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse, Response

from image_proxy.api.deps import get_codec, get_proxy_config, get_response_cache, get_source_client
from image_proxy.config import ProxyConfig
from image_proxy.errors import HttpError
from image_proxy.infrastructure.codec import PillowCodec
from image_proxy.infrastructure.response_cache import ResponseCache
from image_proxy.middleware.cors import PREFLIGHT_HEADERS, with_cors_headers
from image_proxy.services.domain_validator import is_allowed
from image_proxy.services.fetcher import fetch_source_image
from image_proxy.services.format_negotiator import select_format
from image_proxy.services.image_service import transform
from image_proxy.services.models import ProxyResponse
from image_proxy.services.options_parser import ImageProxyOptions, OptionsParseError, parse_options

logger = logging.getLogger(__name__)

HEALTH_TEXT = "Image Proxy Worker"

# /{operations}/{source_url}, the source url keeps its own slashes
_PROXY_PATH_RE = re.compile(r"^/([^/]+)/(.+)$")

router = APIRouter()


@router.options("/{full_path:path}")
async def preflight(full_path: str):
    return Response(status_code=204, headers=PREFLIGHT_HEADERS)


@router.api_route("/{full_path:path}", methods=["POST", "PUT", "PATCH", "DELETE", "HEAD"])
async def method_not_allowed(full_path: str):
    return PlainTextResponse("Method Not Allowed", status_code=405)


@router.get("/")
@router.get("/health")
async def health():
    return PlainTextResponse(HEALTH_TEXT)


def _cache_key(request_url: str, options: ImageProxyOptions, accept: str | None) -> str:
    # Negotiated output depends on Accept, keep the variants apart
    if not options.original and options.format == "auto":
        return f"{request_url}|{select_format(options.format, accept)}"
    return request_url


async def _cache_match(cache: ResponseCache | None, key: str) -> ProxyResponse | None:
    if cache is None:
        return None
    try:
        return await cache.match(key)
    except Exception as e:
        logger.warning(f"Cache lookup failed, treating as miss: {e!r}")
        return None


async def _cache_put(cache: ResponseCache, key: str, response: ProxyResponse) -> None:
    try:
        await cache.put(key, response)
    except Exception as e:
        logger.warning(f"Cache store failed: {e!r}")


def _raw_path(request: Request) -> str:
    # Undecoded path, so escapes inside the source url (%3F, %2F, %23) reach the source intact
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    return raw.decode("latin-1").split("?", 1)[0]


def _to_response(result: ProxyResponse, cache_state: str) -> Response:
    headers = with_cors_headers({**result.headers, "X-Cache": cache_state})
    return Response(content=result.body, status_code=result.status, headers=headers)


@router.get("/{full_path:path}")
async def proxy_image(
    request: Request,
    background_tasks: BackgroundTasks,
    config: ProxyConfig = Depends(get_proxy_config),
    codec: PillowCodec = Depends(get_codec),
    client: httpx.AsyncClient = Depends(get_source_client),
    cache: ResponseCache | None = Depends(get_response_cache),
):
    """
    GET /{operations}/{source_url}

    Example:
        GET /w_400,f_webp/https://picsum.photos/800/600
    """
    try:
        match = _PROXY_PATH_RE.match(_raw_path(request))
        if not match:
            raise HttpError("Invalid URL format. Expected: /{operations}/{source_url}", 400)

        operations, source_url = match.groups()
        operations = unquote(operations)
        if "://" not in source_url:
            # Whole source url sent percent-encoded
            source_url = unquote(source_url)
        if request.url.query:
            source_url = f"{source_url}?{request.url.query}"

        if not is_allowed(source_url, config.allowed_domains):
            raise HttpError("Domain not allowed", 403)

        try:
            options = parse_options(operations, config)
        except OptionsParseError as e:
            raise HttpError(f"Invalid options: {e}", 400) from e

        cache_key = _cache_key(str(request.url), options, request.headers.get("accept"))
        cached = await _cache_match(cache, cache_key)
        if cached is not None:
            logger.debug(f"Cache hit: {cache_key[:80]}")
            return _to_response(cached, "HIT")

        source = await fetch_source_image(client, source_url, request.headers)
        result = await transform(source, options, codec)

        if result.ok and cache is not None:
            background_tasks.add_task(_cache_put, cache, cache_key, result)

        return _to_response(result, "MISS")
    except HttpError as e:
        if e.status >= 500:
            logger.error(f"Request failed ({e.status}): {e.message}")
        else:
            logger.warning(f"Request rejected ({e.status}): {e.message}")
        return PlainTextResponse(e.message, status_code=e.status)
    except Exception as e:
        logger.error(f"Error processing request: {e}", exc_info=True)
        return PlainTextResponse("Internal Server Error", status_code=500)
