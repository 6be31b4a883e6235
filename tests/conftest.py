import io

import pytest
from PIL import Image


def make_image(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """生成测试用图片"""
    img = Image.new(mode, (width, height), color="red")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_800x600() -> bytes:
    return make_image(800, 600, "PNG")
