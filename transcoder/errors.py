from enum import Enum


class ErrorKind(Enum):
    MISSING_FILE = 400
    FILE_TOO_LARGE = 413
    PROCESSING_FAILURE = 500
    NOT_FOUND = 404

    @property
    def status_code(self) -> int:
        return self.value


class ImageServiceError(Exception):
    """Base error carrying the kind that decides the HTTP status."""

    kind: ErrorKind = ErrorKind.PROCESSING_FAILURE

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class MissingFile(ImageServiceError):
    kind = ErrorKind.MISSING_FILE

    def __init__(self, message: str = "No image file provided"):
        super().__init__(message)


class FileTooLarge(ImageServiceError):
    kind = ErrorKind.FILE_TOO_LARGE


class ProcessingFailure(ImageServiceError):
    kind = ErrorKind.PROCESSING_FAILURE
