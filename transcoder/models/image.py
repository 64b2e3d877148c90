from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SupportedFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"
    TIFF = "tiff"
    GIF = "gif"

    @classmethod
    def parse(cls, value: str | None) -> "SupportedFormat | None":
        """Case-insensitive lookup; anything outside the enum yields None."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def extension(self) -> str:
        return "jpg" if self is SupportedFormat.JPEG else self.value


class ResizeFit(str, Enum):
    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"

    @classmethod
    def parse(cls, value: str | None) -> "ResizeFit | None":
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class ResizeRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int | None = None
    height: int | None = None
    format: SupportedFormat | None = None
    fit: ResizeFit | None = None


class EncodeRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    quality: int | None = None
    format: SupportedFormat | None = None
    compression_level: int | None = None  # PNG
    lossless: bool | None = None  # WebP


@dataclass(frozen=True)
class ResizeGeometry:
    """Resolved resize step: at least one of width/height is set."""

    width: int | None
    height: int | None
    fit: ResizeFit


@dataclass(frozen=True)
class EncodeParams:
    """Clamped, format-specific encode parameters."""

    quality: int | None = None
    compression_level: int | None = None
    lossless: bool | None = None


@dataclass(frozen=True)
class ImageInfo:
    format: str | None
    width: int | None
    height: int | None


@dataclass(frozen=True)
class DecodedImage:
    """Codec-engine pixel handle plus what the engine knows about it."""

    image: Any
    format: str | None
    width: int
    height: int


@dataclass(frozen=True)
class PipelineResult:
    data: bytes
    format: SupportedFormat
    operations: tuple[str, ...]
    parameters: dict[str, Any]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ImageDescriptor(_CamelModel):
    filename: str
    size: int
    format: str
    width: int | None = None
    height: int | None = None


class ProcessedImageDescriptor(ImageDescriptor):
    encoded_data: str


class ProcessingInfo(_CamelModel):
    operations: list[str]
    parameters: dict[str, Any]


class ProcessingResult(_CamelModel):
    success: bool = True
    original_image: ImageDescriptor
    processed_image: ProcessedImageDescriptor
    processing: ProcessingInfo


class ErrorResponse(_CamelModel):
    success: bool = False
    error: str
