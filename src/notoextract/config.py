"""Configuration management for the text extraction service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Remote OCR provider (OCR.space compatible)
    ocrspace_api_key: str = "helloworld"
    ocrspace_api_url: str = "https://api.ocr.space/parse/image"
    ocrspace_engine: int = 2
    ocr_language: str = "eng"
    ocr_max_payload_bytes: int = 1024 * 1024
    ocr_max_pages_per_request: int = 3
    ocr_timeout_seconds: float = 30.0  # total deadline per request, body included
    ocr_chunk_concurrency: int = 2

    # Image recompression for oversize handwritten uploads
    image_max_width: int = 2400
    image_jpeg_quality: int = 85

    # Local OCR fallback for low-text PDFs
    fallback_max_pages: int = 3
    fallback_render_dpi: int = 150
    tesseract_language: str = "eng"
    tesseract_timeout_seconds: float = 30.0

    # Diagnostic thresholds (characters)
    pdf_low_text_threshold: int = 100
    word_min_chars: int = 50
    powerpoint_min_chars: int = 10
    text_min_chars: int = 50
    ocr_min_text_chars: int = 10

    # Downloads of already-stored files
    download_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
