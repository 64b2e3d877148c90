import logging
from collections.abc import Callable
from typing import Any

from transcoder.config.config import Settings, settings
from transcoder.errors import ImageServiceError, ProcessingFailure
from transcoder.models.image import (
    EncodeParams,
    EncodeRequest,
    PipelineResult,
    ResizeGeometry,
    ResizeRequest,
    SupportedFormat,
)
from transcoder.services.codec import CodecEngine, PillowCodec
from transcoder.services.fit_resolver import resolve_fit
from transcoder.services.format_resolver import first_format, resolve_format
from transcoder.services.params import clamp_params

logger = logging.getLogger(__name__)


def _parameters(
    geometry: ResizeGeometry | None, fmt: SupportedFormat, params: EncodeParams
) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if geometry is not None:
        values["width"] = geometry.width
        values["height"] = geometry.height
        values["fit"] = geometry.fit.value
    values["format"] = fmt.value
    values["quality"] = params.quality
    values["compressionLevel"] = params.compression_level
    values["lossless"] = params.lossless
    return {k: v for k, v in values.items() if v is not None}


class ImagePipeline:
    """
    图片处理流水线：解码 -> 缩放（可选）-> 编码。

    ``source_format`` is the format the caller already knows about the upload
    (usually from the filename); the decoded format is the next fallback.
    """

    def __init__(self, codec: CodecEngine | None = None, config: Settings | None = None):
        self._codec = codec or PillowCodec()
        self._config = config or settings

    def resize_only(
        self, data: bytes, resize: ResizeRequest, source_format: str | None = None
    ) -> PipelineResult:
        geometry = self._geometry(resize)
        return self._run(
            data,
            geometry=geometry,
            format_for=lambda decoded: resolve_format(resize.format, source_format, decoded),
            encode=EncodeRequest(quality=self._config.resize_quality),
            operations=("resize",),
        )

    def compress_only(
        self, data: bytes, encode: EncodeRequest, source_format: str | None = None
    ) -> PipelineResult:
        return self._run(
            data,
            geometry=None,
            format_for=lambda decoded: resolve_format(encode.format, source_format, decoded),
            encode=encode,
            operations=("compress",),
        )

    def resize_and_compress(
        self,
        data: bytes,
        resize: ResizeRequest,
        encode: EncodeRequest,
        source_format: str | None = None,
    ) -> PipelineResult:
        geometry = self._geometry(resize)

        def format_for(decoded: str | None) -> SupportedFormat:
            resize_format = resolve_format(resize.format, source_format, decoded)
            return first_format(encode.format, resize_format)

        return self._run(
            data,
            geometry=geometry,
            format_for=format_for,
            encode=encode,
            operations=("resize", "compress"),
        )

    def _geometry(self, resize: ResizeRequest) -> ResizeGeometry | None:
        return resolve_fit(resize.width, resize.height, resize.fit, self._config.default_fit)

    def _run(
        self,
        data: bytes,
        geometry: ResizeGeometry | None,
        format_for: Callable[[str | None], SupportedFormat],
        encode: EncodeRequest,
        operations: tuple[str, ...],
    ) -> PipelineResult:
        try:
            image = self._codec.decode(data)
            fmt = format_for(image.format)
            params = clamp_params(
                fmt,
                quality=encode.quality,
                compression_level=encode.compression_level,
                lossless=encode.lossless,
                default_quality=self._config.default_quality,
                default_compression_level=self._config.default_compression_level,
            )

            # encode parameters only apply to the already-resized pixels
            if geometry is not None:
                image = self._codec.resize(image, geometry)
            output = self._codec.encode(image, fmt, params)
        except ImageServiceError:
            raise
        except Exception as e:
            raise ProcessingFailure(str(e)) from e

        logger.info(
            f"Image {'+'.join(operations)}: {len(data)} -> {len(output)} bytes as {fmt.value}"
        )
        return PipelineResult(
            data=output,
            format=fmt,
            operations=operations,
            parameters=_parameters(geometry, fmt, params),
        )
