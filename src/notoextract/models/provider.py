"""Remote OCR provider configuration and response models."""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .base import BaseIRModel

# Public demo key published by OCR.space; heavily rate limited.
DEMO_API_KEY = "helloworld"


class OCRProviderConfig(BaseIRModel):
    """Read-only remote OCR settings, resolved once at startup."""

    api_key: str = Field(default=DEMO_API_KEY, repr=False)
    engine_id: int = Field(default=2, description="Engine 2 is tuned for handwriting")
    endpoint_url: str = Field(default="https://api.ocr.space/parse/image")
    language: str = Field(default="eng")
    max_payload_bytes: int = Field(default=1024 * 1024, gt=0)
    max_pages_per_request: int = Field(default=3, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @classmethod
    def from_settings(cls, settings: Any) -> "OCRProviderConfig":
        """Build provider config from application settings."""
        return cls(
            api_key=settings.ocrspace_api_key,
            engine_id=settings.ocrspace_engine,
            endpoint_url=settings.ocrspace_api_url,
            language=settings.ocr_language,
            max_payload_bytes=settings.ocr_max_payload_bytes,
            max_pages_per_request=settings.ocr_max_pages_per_request,
            timeout_seconds=settings.ocr_timeout_seconds,
        )

    @property
    def is_test_key(self) -> bool:
        """Check if the public demo key is configured."""
        return self.api_key == DEMO_API_KEY

    @property
    def is_available(self) -> bool:
        """Check if a real API key is configured."""
        return bool(self.api_key) and not self.is_test_key


def _join_messages(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value if v) or None
    return str(value) or None


class ParsedPageResult(BaseModel):
    """One entry of the provider's per-page results."""

    file_parse_exit_code: int = Field(..., alias="FileParseExitCode")
    parsed_text: Optional[str] = Field(None, alias="ParsedText")
    error_message: Optional[str] = Field(None, alias="ErrorMessage")
    error_details: Optional[str] = Field(None, alias="ErrorDetails")

    @field_validator("error_message", "error_details", mode="before")
    @classmethod
    def normalize_messages(cls, value: Any) -> Optional[str]:
        return _join_messages(value)

    @property
    def ok(self) -> bool:
        """Check if the page parsed successfully."""
        return self.file_parse_exit_code == 1

    class Config:
        populate_by_name = True
        extra = "ignore"


class OCRSpaceResponse(BaseModel):
    """Top-level provider response body."""

    ocr_exit_code: Optional[int] = Field(None, alias="OCRExitCode")
    is_errored_on_processing: bool = Field(default=False, alias="IsErroredOnProcessing")
    error_message: Optional[str] = Field(None, alias="ErrorMessage")
    error_details: Optional[str] = Field(None, alias="ErrorDetails")
    processing_time_ms: Optional[Union[int, float, str]] = Field(
        None, alias="ProcessingTimeInMilliseconds"
    )
    parsed_results: list[ParsedPageResult] = Field(default_factory=list, alias="ParsedResults")

    @field_validator("error_message", "error_details", mode="before")
    @classmethod
    def normalize_messages(cls, value: Any) -> Optional[str]:
        return _join_messages(value)

    @field_validator("parsed_results", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return value or []

    class Config:
        populate_by_name = True
        extra = "ignore"


class RemoteOCRResult(BaseIRModel):
    """Merged text for one successful provider call."""

    text: str
    parsed_pages: list[int] = Field(
        default_factory=list, description="1-indexed payload pages that parsed"
    )
    pages_failed: int = Field(default=0, ge=0)
    has_text: bool = Field(default=True, description="False when the no-text message was substituted")

    @property
    def pages_parsed(self) -> int:
        """Number of pages that parsed."""
        return len(self.parsed_pages)
