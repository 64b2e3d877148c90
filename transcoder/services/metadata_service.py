import os

from transcoder.models.image import ImageDescriptor, SupportedFormat
from transcoder.services.codec import CodecEngine, PillowCodec


def rename_for_format(filename: str, fmt: SupportedFormat) -> str:
    """Replace the extension so it matches ``fmt`` (jpeg -> .jpg)."""
    stem, _ = os.path.splitext(filename)
    return f"{stem}.{fmt.extension}"


class MetadataService:
    def __init__(self, codec: CodecEngine | None = None):
        self._codec = codec or PillowCodec()

    def describe(
        self,
        data: bytes,
        filename: str,
        format_override: SupportedFormat | None = None,
    ) -> ImageDescriptor:
        info = self._codec.probe(data)
        if format_override is not None:
            filename = rename_for_format(filename, format_override)
        return ImageDescriptor(
            filename=filename,
            size=len(data),
            format=info.format or "unknown",
            width=info.width,
            height=info.height,
        )
