from typing import Literal

EncodedFormat = Literal["webp", "jpeg", "png"]


def select_format(requested_format: str | None, accept_header: str | None = None) -> EncodedFormat:
    """Explicit format wins; ``auto`` picks WebP when the client accepts it, else JPEG."""
    if requested_format and requested_format != "auto":
        return requested_format  # type: ignore[return-value]

    if accept_header and "image/webp" in accept_header:
        return "webp"

    return "jpeg"
