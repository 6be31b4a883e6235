"""
Operations grammar parser.

The operations segment is either ``_`` (return the source untouched) or a
comma-separated list of ``key_value`` tokens::

    w_400,h_300,f_webp,q_80
    s_800x600

Parsing happens in two passes. The tokenizer is tolerant: unknown keys and
tokens whose value fails its own check are dropped. The merged candidate is
then validated as a whole by ``ImageProxyOptions``; only that second pass can
reject a request.
"""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from image_proxy.config import ProxyConfig

OutputFormat = Literal["webp", "jpeg", "png", "auto"]

FORMATS = ("webp", "jpeg", "png", "auto")
DEFAULT_QUALITY = 85
ORIGINAL_TOKEN = "_"

_INT_RE = re.compile(r"^[0-9]+$")
_SIZE_RE = re.compile(r"^([0-9]+)x([0-9]+)$")


class OptionsParseError(ValueError):
    pass


class ImageProxyOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    width: int | None = None
    height: int | None = None
    format: OutputFormat = "auto"
    quality: int = DEFAULT_QUALITY
    original: bool = False

    @field_validator("width", "height")
    @classmethod
    def _within_bounds(cls, value: int | None, info: ValidationInfo) -> int | None:
        if value is None:
            return value
        if value <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        limit = (info.context or {}).get(f"max_{info.field_name}")
        if limit is not None and value > limit:
            raise ValueError(f"{info.field_name} must be <= {limit}")
        return value

    @field_validator("quality")
    @classmethod
    def _quality_range(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("quality must be between 1 and 100")
        return value


def _positive_int(raw: str, limit: int) -> int | None:
    if not _INT_RE.match(raw):
        return None
    value = int(raw)
    if 0 < value <= limit:
        return value
    return None


def tokenize(operations: str, max_width: int, max_height: int) -> dict[str, Any]:
    """Build the candidate field map, silently dropping bad tokens. Last token wins."""
    if operations == ORIGINAL_TOKEN:
        return {"original": True}

    candidate: dict[str, Any] = {}
    for part in operations.split(","):
        key, _, value = part.strip().partition("_")

        if key == "w":
            width = _positive_int(value, max_width)
            if width is not None:
                candidate["width"] = width
        elif key == "h":
            height = _positive_int(value, max_height)
            if height is not None:
                candidate["height"] = height
        elif key == "s":
            match = _SIZE_RE.match(value)
            if match:
                width = _positive_int(match.group(1), max_width)
                height = _positive_int(match.group(2), max_height)
                # Both or neither
                if width is not None and height is not None:
                    candidate["width"] = width
                    candidate["height"] = height
        elif key == "f":
            if value in FORMATS:
                candidate["format"] = value
        elif key == "q":
            quality = _positive_int(value, 100)
            if quality is not None:
                candidate["quality"] = quality

    return candidate


def parse_options(operations: str, config: ProxyConfig) -> ImageProxyOptions:
    candidate = tokenize(operations, config.max_width, config.max_height)
    try:
        return ImageProxyOptions.model_validate(
            candidate,
            context={"max_width": config.max_width, "max_height": config.max_height},
        )
    except ValidationError as e:
        raise OptionsParseError(str(e)) from e


def format_options(options: ImageProxyOptions) -> str:
    """Render options back into the operations grammar."""
    if options.original:
        return ORIGINAL_TOKEN

    tokens = []
    if options.width is not None:
        tokens.append(f"w_{options.width}")
    if options.height is not None:
        tokens.append(f"h_{options.height}")
    tokens.append(f"f_{options.format}")
    tokens.append(f"q_{options.quality}")
    return ",".join(tokens)
