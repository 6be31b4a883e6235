import logging
from collections.abc import Mapping

import httpx

from image_proxy.errors import HttpError
from image_proxy.services.models import SourceImage

logger = logging.getLogger(__name__)

# Never forwarded to the source
_SKIP_HEADERS = {
    "host",
    "accept-encoding",
    "connection",
    "keep-alive",
    "content-length",
    "transfer-encoding",
    "te",
    "trailer",
    "upgrade",
    "proxy-authorization",
    "proxy-connection",
}


def forwardable_headers(request_headers: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in request_headers.items() if k.lower() not in _SKIP_HEADERS}


async def fetch_source_image(
    client: httpx.AsyncClient,
    source_url: str,
    request_headers: Mapping[str, str],
) -> SourceImage:
    """
    Fetch the source with the client's headers.

    Non-2xx upstream statuses are propagated as-is; transport failures become 502.
    """
    try:
        response = await client.get(source_url, headers=forwardable_headers(request_headers))
    except httpx.HTTPError as e:
        logger.error(f"Source fetch failed: {source_url[:80]}: {e!r}")
        raise HttpError("Failed to fetch source image", 502) from e

    if not response.is_success:
        raise HttpError(
            f"Failed to fetch source image: {response.status_code}",
            response.status_code,
        )

    content_type = response.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise HttpError("Source is not an image", 400)

    return SourceImage(
        body=response.content,
        content_type=content_type,
        cache_control=response.headers.get("cache-control", ""),
        etag=response.headers.get("etag", ""),
        last_modified=response.headers.get("last-modified", ""),
        accept=request_headers.get("accept"),
    )
