import base64

from fastapi.responses import JSONResponse

from transcoder.errors import ImageServiceError
from transcoder.models.image import (
    ErrorResponse,
    ImageDescriptor,
    PipelineResult,
    ProcessedImageDescriptor,
    ProcessingInfo,
    ProcessingResult,
)


def encode_data_url(data: bytes, fmt: str) -> str:
    return f"data:image/{fmt};base64,{base64.b64encode(data).decode('ascii')}"


def build_result(
    original: ImageDescriptor, processed: ImageDescriptor, result: PipelineResult
) -> ProcessingResult:
    return ProcessingResult(
        original_image=original,
        processed_image=ProcessedImageDescriptor(
            **processed.model_dump(),
            encoded_data=encode_data_url(result.data, processed.format),
        ),
        processing=ProcessingInfo(
            operations=list(result.operations),
            parameters=result.parameters,
        ),
    )


def success_response(result: ProcessingResult) -> JSONResponse:
    return JSONResponse(content=result.model_dump(by_alias=True, exclude_none=True))


def error_response(error: ImageServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(error=error.message).model_dump(by_alias=True),
    )
