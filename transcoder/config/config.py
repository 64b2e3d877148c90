from pydantic_settings import BaseSettings

from transcoder.models.image import ResizeFit


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_size: int = 6 * 1024 * 1024  # 6MB

    # Encoding defaults
    default_quality: int = 80
    default_compression_level: int = 6
    resize_quality: int = 90  # resize-only re-encode

    # Fit used when both width and height are given without an explicit fit
    default_fit: ResizeFit = ResizeFit.INSIDE

    log_level: str = "info"

    model_config = {"env_prefix": "TRANSCODER_"}


settings = Settings()
