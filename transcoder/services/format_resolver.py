"""Output format resolution.

Candidates are tried in priority order; the first one that names a
``SupportedFormat`` wins and ``jpeg`` is the final fallback, so the result is
always a member of the enum.
"""

import os

from transcoder.models.image import SupportedFormat

DEFAULT_FORMAT = SupportedFormat.JPEG

_EXTENSION_FORMATS: dict[str, SupportedFormat] = {
    "jpg": SupportedFormat.JPEG,
    "jpeg": SupportedFormat.JPEG,
    "png": SupportedFormat.PNG,
    "webp": SupportedFormat.WEBP,
    "avif": SupportedFormat.AVIF,
    "tif": SupportedFormat.TIFF,
    "tiff": SupportedFormat.TIFF,
    "gif": SupportedFormat.GIF,
}


def detect_format(filename: str | None) -> SupportedFormat | None:
    """Infer the format from a filename extension, None when unrecognized."""
    if not filename:
        return None
    _, ext = os.path.splitext(filename)
    return _EXTENSION_FORMATS.get(ext.lstrip(".").lower())


def resolve_format(
    explicit: SupportedFormat | str | None = None,
    extension: SupportedFormat | str | None = None,
    source: SupportedFormat | str | None = None,
) -> SupportedFormat:
    """explicit > filename extension > decoded source format > jpeg."""
    return first_format(explicit, extension, source)


def first_format(*candidates: SupportedFormat | str | None) -> SupportedFormat:
    for candidate in candidates:
        fmt = SupportedFormat.parse(candidate)
        if fmt is not None:
            return fmt
    return DEFAULT_FORMAT
