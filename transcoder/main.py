import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from transcoder.api.router import api_router
from transcoder.config.config import settings
from transcoder.errors import ErrorKind
from transcoder.middleware.cors import cors_middleware
from transcoder.models.image import ErrorResponse
from transcoder.services.codec import avif_supported

logger = logging.getLogger(__name__)

ROOT_TEXT = (
    "Image Processing Server\n\n"
    "Endpoints:\n"
    "- POST /api/resize - Resize images\n"
    "- POST /api/compress - Compress images\n"
    "- POST /api/process - Resize and compress images\n"
    "- GET /api/health - Health check"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Image service starting: max upload {settings.max_upload_size} bytes, "
        f"default fit {settings.default_fit}"
    )
    if not avif_supported():
        logger.warning("Pillow built without AVIF support, avif requests will fail")

    yield


app = FastAPI(title="image-transcoder", version=os.getenv("GIT_SHA", "dev"), lifespan=lifespan)

app.middleware("http")(cors_middleware)
app.include_router(api_router, prefix="/api")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # unknown paths and wrong methods on known paths are both "not found"
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not Found", status_code=ErrorKind.NOT_FOUND.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(by_alias=True),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=f"Invalid request fields: {fields}").model_dump(by_alias=True),
    )


@app.get("/", response_class=PlainTextResponse)
async def root():
    return ROOT_TEXT


@app.get("/api/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def run() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    run()
