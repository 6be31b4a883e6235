import io

from PIL import Image, UnidentifiedImageError

_PIL_FORMATS = {"jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}
_PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


class ImageDecodeError(Exception):
    pass


class DecodedImage:
    """In-memory bitmap owned by exactly one request. Call ``PillowCodec.release`` when done."""

    def __init__(self, image: Image.Image):
        self._image: Image.Image | None = image

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError("Decoded image already released")
        return self._image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def released(self) -> bool:
        return self._image is None

    def close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None


class PillowCodec:
    """Decode / resize / encode primitives backed by Pillow."""

    def decode(self, data: bytes) -> DecodedImage:
        try:
            img = Image.open(io.BytesIO(data))
            # Force pixel decoding so truncated files fail here, not at encode time
            img.load()
        except (UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(str(e)) from e
        return DecodedImage(img)

    def resize(self, decoded: DecodedImage, width: int, height: int) -> DecodedImage:
        return DecodedImage(decoded.image.resize((width, height), Image.LANCZOS))

    def encode(self, decoded: DecodedImage, format: str, quality: int | None = None) -> bytes:
        img = decoded.image
        buf = io.BytesIO()
        save_kwargs: dict = {}
        converted: Image.Image | None = None

        if format == "jpeg":
            if img.mode not in ("RGB", "L"):
                converted = img = img.convert("RGB")
            save_kwargs = {"quality": quality or 85, "progressive": True}
        elif format == "webp":
            if img.mode not in ("RGB", "RGBA"):
                converted = img = img.convert("RGBA")
            save_kwargs = {"quality": quality or 85}
        elif img.mode not in _PNG_MODES:
            # PNG is lossless, quality does not apply; CMYK/YCbCr/LAB/HSV need RGB first
            converted = img = img.convert("RGBA" if "A" in img.getbands() else "RGB")

        try:
            img.save(buf, format=_PIL_FORMATS[format], **save_kwargs)
        finally:
            if converted is not None:
                converted.close()
        return buf.getvalue()

    def release(self, decoded: DecodedImage) -> None:
        decoded.close()
