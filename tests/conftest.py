import io

import pytest
from PIL import Image


def _make_image(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """生成测试用图片"""
    img = Image.new(mode, (width, height), color="red" if mode in ("RGB", "RGBA") else 0)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    return _make_image


@pytest.fixture
def png_200x100() -> bytes:
    return _make_image(200, 100, "PNG")


@pytest.fixture
def jpeg_200x100() -> bytes:
    return _make_image(200, 100, "JPEG")
