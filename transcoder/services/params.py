from transcoder.config.config import settings
from transcoder.models.image import EncodeParams, SupportedFormat

QUALITY_RANGE = (1, 100)
COMPRESSION_LEVEL_RANGE = (0, 9)


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, int(value)))


def clamp_quality(quality: int) -> int:
    return _clamp(quality, QUALITY_RANGE)


def clamp_compression_level(level: int) -> int:
    return _clamp(level, COMPRESSION_LEVEL_RANGE)


def clamp_params(
    fmt: SupportedFormat,
    quality: int | None = None,
    compression_level: int | None = None,
    lossless: bool | None = None,
    default_quality: int | None = None,
    default_compression_level: int | None = None,
) -> EncodeParams:
    """
    Bound the caller's encode options to what ``fmt`` accepts.

    jpeg/avif take a quality, png a compression level, webp either a quality
    or lossless mode (quality dropped). tiff and gif take nothing and use the
    codec defaults. Missing values fall back to the configured defaults.
    """
    if quality is None:
        quality = settings.default_quality if default_quality is None else default_quality
    if compression_level is None:
        compression_level = (
            settings.default_compression_level
            if default_compression_level is None
            else default_compression_level
        )

    if fmt in (SupportedFormat.JPEG, SupportedFormat.AVIF):
        return EncodeParams(quality=clamp_quality(quality))
    if fmt is SupportedFormat.PNG:
        return EncodeParams(compression_level=clamp_compression_level(compression_level))
    if fmt is SupportedFormat.WEBP:
        if lossless:
            return EncodeParams(lossless=True)
        return EncodeParams(quality=clamp_quality(quality), lossless=False)
    return EncodeParams()
