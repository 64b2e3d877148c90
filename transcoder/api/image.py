import asyncio
import logging
from collections.abc import Callable

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from transcoder.api.form import parse_bool, parse_dimension, parse_fit, parse_format, parse_int
from transcoder.api.response import build_result, error_response, success_response
from transcoder.errors import ImageServiceError, ProcessingFailure
from transcoder.models.image import (
    EncodeRequest,
    PipelineResult,
    ProcessingResult,
    ResizeRequest,
)
from transcoder.services.format_resolver import detect_format
from transcoder.services.image_service import ImagePipeline
from transcoder.services.metadata_service import MetadataService
from transcoder.services.upload import read_upload

logger = logging.getLogger(__name__)

router = APIRouter()

pipeline = ImagePipeline()
metadata_service = MetadataService()

Operation = Callable[[bytes, str | None], PipelineResult]


def _process(data: bytes, filename: str, prefix: str, operation: Operation) -> ProcessingResult:
    original = metadata_service.describe(data, filename)
    source_format = detect_format(filename) or original.format
    result = operation(data, source_format)
    processed = metadata_service.describe(result.data, f"{prefix}_{filename}", result.format)
    return build_result(original, processed, result)


async def _handle(image: UploadFile | None, prefix: str, operation: Operation) -> JSONResponse:
    try:
        data, filename = await read_upload(image)
        result = await asyncio.to_thread(_process, data, filename, prefix, operation)
        return success_response(result)
    except ProcessingFailure as e:
        logger.error(f"Image {prefix} failed: {e.message}", exc_info=True)
        return error_response(e)
    except ImageServiceError as e:
        logger.warning(f"Image {prefix} rejected: {e.message}")
        return error_response(e)
    except Exception as e:
        logger.error(f"Image {prefix} failed: {e}", exc_info=True)
        return error_response(ProcessingFailure(str(e)))


@router.post("/resize")
async def resize_endpoint(
    image: UploadFile | None = File(None),
    width: str | None = Form(None),
    height: str | None = Form(None),
    format: str | None = Form(None),
    fit: str | None = Form(None),
):
    resize = ResizeRequest(
        width=parse_dimension(width),
        height=parse_dimension(height),
        format=parse_format(format),
        fit=parse_fit(fit),
    )
    return await _handle(
        image, "resized", lambda data, source: pipeline.resize_only(data, resize, source)
    )


@router.post("/compress")
async def compress_endpoint(
    image: UploadFile | None = File(None),
    quality: str | None = Form(None),
    format: str | None = Form(None),
    compressionLevel: str | None = Form(None),
    lossless: str | None = Form(None),
):
    encode = EncodeRequest(
        quality=parse_int(quality),
        format=parse_format(format),
        compression_level=parse_int(compressionLevel),
        lossless=parse_bool(lossless),
    )
    return await _handle(
        image, "compressed", lambda data, source: pipeline.compress_only(data, encode, source)
    )


@router.post("/process")
async def process_endpoint(
    image: UploadFile | None = File(None),
    width: str | None = Form(None),
    height: str | None = Form(None),
    fit: str | None = Form(None),
    quality: str | None = Form(None),
    format: str | None = Form(None),
    compressionLevel: str | None = Form(None),
    lossless: str | None = Form(None),
):
    # one format field drives both the resize and the encode step
    output_format = parse_format(format)
    resize = ResizeRequest(
        width=parse_dimension(width),
        height=parse_dimension(height),
        format=output_format,
        fit=parse_fit(fit),
    )
    encode = EncodeRequest(
        quality=parse_int(quality),
        format=output_format,
        compression_level=parse_int(compressionLevel),
        lossless=parse_bool(lossless),
    )
    return await _handle(
        image,
        "processed",
        lambda data, source: pipeline.resize_and_compress(data, resize, encode, source),
    )
