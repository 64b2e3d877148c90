"""Lenient parsing of multipart text fields into optional request values."""

import re

from transcoder.models.image import ResizeFit, SupportedFormat

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_int(value: str | None) -> int | None:
    """Leading integer of the text ("12.5" -> 12, "100px" -> 100), None if there is none."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def parse_dimension(value: str | None) -> int | None:
    number = parse_int(value)
    return number if number is not None and number > 0 else None


def parse_format(value: str | None) -> SupportedFormat | None:
    return SupportedFormat.parse(value)


def parse_fit(value: str | None) -> ResizeFit | None:
    return ResizeFit.parse(value)


def parse_bool(value: str | None) -> bool | None:
    if value is None or not value.strip():
        return None
    return value.strip().lower() == "true"
