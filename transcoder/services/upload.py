from fastapi import UploadFile

from transcoder.config.config import settings
from transcoder.errors import FileTooLarge, MissingFile

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size: int) -> str:
    """1536 -> '1.5 KB'"""
    if size <= 0:
        return "0 Bytes"
    value, i = float(size), 0
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[i]}"


def check_upload_size(size: int, limit: int | None = None) -> None:
    limit = settings.max_upload_size if limit is None else limit
    if size > limit:
        raise FileTooLarge(
            f"File size too large. Maximum allowed size is "
            f"{format_file_size(limit).replace(' ', '')}, received {format_file_size(size)}"
        )


async def read_upload(file: UploadFile | None) -> tuple[bytes, str]:
    """Return (data, filename) for an upload within the size ceiling."""
    if file is None:
        raise MissingFile()

    # declared size first, then the bytes actually read
    if file.size is not None:
        check_upload_size(file.size)
    data = await file.read()
    if not data:
        raise MissingFile()
    check_upload_size(len(data))
    return data, file.filename or "image"
