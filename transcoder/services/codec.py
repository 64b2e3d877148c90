import io
import logging
from typing import Protocol

from PIL import Image, ImageOps, features

from transcoder.errors import ProcessingFailure
from transcoder.models.image import (
    DecodedImage,
    EncodeParams,
    ImageInfo,
    ResizeFit,
    ResizeGeometry,
    SupportedFormat,
)

logger = logging.getLogger(__name__)

# Pillow reports some JPEGs (camera multi-picture files) as MPO
_FORMAT_ALIASES = {"mpo": "jpeg"}

_PIL_FORMATS = {
    SupportedFormat.JPEG: "JPEG",
    SupportedFormat.PNG: "PNG",
    SupportedFormat.WEBP: "WEBP",
    SupportedFormat.AVIF: "AVIF",
    SupportedFormat.TIFF: "TIFF",
    SupportedFormat.GIF: "GIF",
}

# Pixel modes each encoder writes directly; TIFF takes any mode Pillow holds
_WRITABLE_MODES: dict[SupportedFormat, frozenset[str]] = {
    SupportedFormat.JPEG: frozenset({"L", "RGB"}),
    SupportedFormat.PNG: frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}),
    SupportedFormat.WEBP: frozenset({"RGB", "RGBA"}),
    SupportedFormat.AVIF: frozenset({"RGB", "RGBA"}),
    SupportedFormat.GIF: frozenset({"1", "L", "P", "RGB", "RGBA"}),
}


class CodecEngine(Protocol):
    def decode(self, data: bytes) -> DecodedImage: ...

    def probe(self, data: bytes) -> ImageInfo: ...

    def resize(self, image: DecodedImage, geometry: ResizeGeometry) -> DecodedImage: ...

    def encode(self, image: DecodedImage, fmt: SupportedFormat, params: EncodeParams) -> bytes: ...


def _normalize_format(pil_format: str | None) -> str | None:
    if not pil_format:
        return None
    name = pil_format.lower()
    return _FORMAT_ALIASES.get(name, name)


def _normalize_mode(img: Image.Image, fmt: SupportedFormat) -> Image.Image:
    """Convert ``img`` to a pixel mode the ``fmt`` encoder can write."""
    allowed = _WRITABLE_MODES.get(fmt)
    if allowed is None or img.mode in allowed:
        return img

    # float and 32/16-bit integer pixels go through 8-bit greyscale first
    if img.mode in ("F", "I") or img.mode.startswith("I;"):
        img = img.convert("L")
        if img.mode in allowed:
            return img

    # JPEG has no alpha channel
    if fmt is not SupportedFormat.JPEG and img.has_transparency_data:
        return img.convert("RGBA")
    return img.convert("RGB")


def avif_supported() -> bool:
    return bool(features.check("avif"))


def target_size(
    source_width: int, source_height: int, geometry: ResizeGeometry
) -> tuple[int, int] | None:
    """
    Output size for ``geometry`` applied to a source, or None to keep the
    source untouched. Never larger than the source in either dimension.
    """
    width, height, fit = geometry.width, geometry.height, geometry.fit

    if fit in (ResizeFit.INSIDE, ResizeFit.OUTSIDE) or width is None or height is None:
        ratios = []
        if width is not None:
            ratios.append(width / source_width)
        if height is not None:
            ratios.append(height / source_height)
        scale = max(ratios) if fit is ResizeFit.OUTSIDE and width and height else min(ratios)
        scale = min(scale, 1.0)
        if scale >= 1.0:
            return None
        return (
            max(1, round(source_width * scale)),
            max(1, round(source_height * scale)),
        )

    # cover / contain / fill produce exactly the requested box
    if width > source_width or height > source_height:
        return None
    if (width, height) == (source_width, source_height):
        return None
    return width, height


class PillowCodec:
    """CodecEngine backed by Pillow."""

    resample = Image.Resampling.LANCZOS

    def decode(self, data: bytes) -> DecodedImage:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except Exception as e:
            raise ProcessingFailure(f"Failed to decode image: {e}") from e
        return DecodedImage(
            image=img,
            format=_normalize_format(img.format),
            width=img.width,
            height=img.height,
        )

    def probe(self, data: bytes) -> ImageInfo:
        try:
            with Image.open(io.BytesIO(data)) as img:
                return ImageInfo(
                    format=_normalize_format(img.format),
                    width=img.width,
                    height=img.height,
                )
        except Exception as e:
            raise ProcessingFailure(f"Failed to read image metadata: {e}") from e

    def resize(self, image: DecodedImage, geometry: ResizeGeometry) -> DecodedImage:
        size = target_size(image.width, image.height, geometry)
        if size is None:
            return image

        img = image.image
        if img.mode in ("P", "1"):
            img = img.convert("RGBA")
        elif img.mode.startswith("I;16"):
            img = img.convert("I")

        try:
            if geometry.fit is ResizeFit.COVER and geometry.width and geometry.height:
                out = ImageOps.fit(img, size, method=self.resample)
            elif geometry.fit is ResizeFit.CONTAIN and geometry.width and geometry.height:
                out = ImageOps.pad(img, size, method=self.resample)
            else:
                out = img.resize(size, self.resample)
        except Exception as e:
            raise ProcessingFailure(f"Failed to resize image: {e}") from e

        return DecodedImage(image=out, format=image.format, width=out.width, height=out.height)

    def encode(self, image: DecodedImage, fmt: SupportedFormat, params: EncodeParams) -> bytes:
        save_kwargs: dict = {}

        if fmt is SupportedFormat.JPEG:
            save_kwargs = {"quality": params.quality, "progressive": True}
        elif fmt is SupportedFormat.PNG:
            save_kwargs = {"compress_level": params.compression_level}
        elif fmt is SupportedFormat.WEBP:
            if params.lossless:
                save_kwargs = {"lossless": True}
            else:
                save_kwargs = {"quality": params.quality}
        elif fmt is SupportedFormat.AVIF:
            save_kwargs = {"quality": params.quality}

        save_kwargs = {k: v for k, v in save_kwargs.items() if v is not None}

        buf = io.BytesIO()
        try:
            img = _normalize_mode(image.image, fmt)
            img.save(buf, format=_PIL_FORMATS[fmt], **save_kwargs)
        except Exception as e:
            raise ProcessingFailure(f"Failed to encode image as {fmt.value}: {e}") from e
        return buf.getvalue()
