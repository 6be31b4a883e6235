import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from image_proxy.errors import HttpError
from image_proxy.infrastructure.codec import DecodedImage, ImageDecodeError, PillowCodec
from image_proxy.services.dimensions import compute_target_size
from image_proxy.services.format_negotiator import select_format
from image_proxy.services.models import ProxyResponse, SourceImage
from image_proxy.services.options_parser import ImageProxyOptions

logger = logging.getLogger(__name__)


class _ImageScope:
    """Holds the single live decoded image of a request."""

    def __init__(self, codec: PillowCodec, image: DecodedImage):
        self._codec = codec
        self.image = image

    def replace(self, image: DecodedImage) -> None:
        previous, self.image = self.image, image
        self._codec.release(previous)


@contextmanager
def decoded_image(codec: PillowCodec, data: bytes) -> Iterator[_ImageScope]:
    """Decode ``data`` and release whatever image is live when the block exits."""
    try:
        image = codec.decode(data)
    except ImageDecodeError as e:
        logger.warning(f"Source image could not be decoded: {e}")
        raise HttpError("Invalid or unsupported image format", 400) from e

    scope = _ImageScope(codec, image)
    try:
        yield scope
    finally:
        codec.release(scope.image)


def render_image(
    codec: PillowCodec,
    data: bytes,
    options: ImageProxyOptions,
    accept: str | None = None,
) -> tuple[bytes, str]:
    """
    Decode, resize and re-encode an image.
    Returns (output_bytes, output_format).
    """
    with decoded_image(codec, data) as scope:
        if options.width or options.height:
            width, height = scope.image.width, scope.image.height
            new_width, new_height = compute_target_size(width, height, options.width, options.height)
            if (new_width, new_height) != (width, height):
                scope.replace(codec.resize(scope.image, new_width, new_height))

        output_format = select_format(options.format, accept)
        return codec.encode(scope.image, output_format, options.quality), output_format


async def transform(
    source: SourceImage,
    options: ImageProxyOptions,
    codec: PillowCodec,
) -> ProxyResponse:
    """Turn a fetched source into the final response body and headers."""
    if options.original:
        return ProxyResponse(
            body=source.body,
            headers={"Content-Type": source.content_type, **source.passthrough_headers()},
        )

    try:
        body, output_format = await asyncio.to_thread(
            render_image, codec, source.body, options, source.accept
        )
    except HttpError:
        raise
    except Exception as e:
        logger.error(f"Error processing image: {e}", exc_info=True)
        raise HttpError("Failed to process image", 500) from e

    return ProxyResponse(
        body=body,
        headers={"Content-Type": f"image/{output_format}", **source.passthrough_headers()},
    )
