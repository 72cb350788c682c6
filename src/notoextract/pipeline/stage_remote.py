"""Remote OCR Stage - Submit documents to an OCR.space-compatible API.

The provider's handwriting engine is selected by numeric id. One request
carries one payload (image or PDF of at most the provider's page ceiling)
and returns per-page parse results plus an overall exit status.

Failure classes:
- OCRTransportError: timeout, unexpected status, malformed body. Scoped to
  the request; the pipeline records it against one chunk.
- OCRProviderError: rate limit, rejected key, processing-level error flag,
  unknown exit code. Aborts the whole extraction.
"""

import json
import logging
import time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from notoextract.config import settings
from notoextract.exceptions import OCRProviderError, OCRTransportError
from notoextract.models import OCRProviderConfig, OCRSpaceResponse, RemoteOCRResult

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = (
    "No readable text found in the handwritten document. The image may be too blurry, "
    "low quality, or the handwriting may be unclear."
)

# OCRExitCode 1 = all pages parsed, 2 = some pages parsed
ACCEPTED_EXIT_CODES = {1, 2}


def parse_ocr_response(data: Any, min_text_chars: Optional[int] = None) -> RemoteOCRResult:
    """Turn a provider response body into merged page text.

    Args:
        data: Decoded JSON body.
        min_text_chars: Below this length the no-text message is returned.

    Returns:
        RemoteOCRResult with '--- Page N ---' markers per parsed page.

    Raises:
        OCRProviderError: Processing-level error or unknown exit code.
        OCRTransportError: Body does not match the expected shape.
    """
    min_text_chars = settings.ocr_min_text_chars if min_text_chars is None else min_text_chars

    if not isinstance(data, dict):
        raise OCRTransportError(f"Unexpected OCR response body: {str(data)[:200]}")

    try:
        response = OCRSpaceResponse.model_validate(data)
    except ValidationError as e:
        raise OCRTransportError(f"Malformed OCR response: {e.error_count()} validation error(s)") from e

    if response.is_errored_on_processing:
        logger.error("OCR processing error: %s", response.error_message)
        raise OCRProviderError(response.error_message or "OCR processing failed")

    if response.ocr_exit_code not in ACCEPTED_EXIT_CODES:
        logger.error("OCR invalid exit code: %s", response.ocr_exit_code)
        raise OCRProviderError(f"OCR failed with exit code: {response.ocr_exit_code}")

    if not response.parsed_results:
        logger.warning("No ParsedResults found in OCR response")

    parts = []
    parsed_pages = []
    pages_failed = 0
    for page_num, page in enumerate(response.parsed_results, start=1):
        if page.ok:
            page_text = page.parsed_text or ""
            parts.append(f"--- Page {page_num} ---\n{page_text}")
            parsed_pages.append(page_num)
            logger.debug("OCR page %d parsed: %d chars", page_num, len(page_text))
        else:
            pages_failed += 1
            logger.warning(
                "OCR page %d parsing failed (exit code %d): %s",
                page_num, page.file_parse_exit_code, page.error_message,
            )

    text = "\n\n".join(parts).strip()

    if len(text) < min_text_chars:
        return RemoteOCRResult(
            text=NO_TEXT_MESSAGE,
            parsed_pages=parsed_pages,
            pages_failed=pages_failed,
            has_text=False,
        )

    return RemoteOCRResult(text=text, parsed_pages=parsed_pages, pages_failed=pages_failed)


class OCRSpaceClient:
    """HTTP client for the remote OCR provider.

    Thread-safe: the underlying httpx.Client may be shared by the chunk
    worker pool.
    """

    def __init__(
        self,
        config: OCRProviderConfig,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize client.

        Args:
            config: Provider configuration.
            http_client: Preconfigured client (tests inject a MockTransport).
        """
        self.config = config
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=config.timeout_seconds)

        if config.is_test_key:
            logger.warning(
                "Using the public demo OCR API key; handwriting results will be poor "
                "and requests are heavily rate limited. Set OCRSPACE_API_KEY."
            )

    def close(self) -> None:
        """Close the owned HTTP client."""
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "OCRSpaceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _form_fields(self) -> dict[str, str]:
        return {
            "apikey": self.config.api_key,
            "OCREngine": str(self.config.engine_id),
            "language": self.config.language,
            "isOverlayRequired": "false",
            "detectOrientation": "true",
            "scale": "true",
            "isTable": "false",
        }

    def perform_ocr(self, content: bytes, file_name: str, mime_type: str) -> RemoteOCRResult:
        """Submit one payload and parse the response.

        Args:
            content: Image or PDF bytes within the provider's limits.
            file_name: Filename sent with the multipart upload.
            mime_type: Content type of the payload.

        Returns:
            RemoteOCRResult for this payload.
        """
        logger.info(
            "Sending to OCR API: file=%s, size=%.2f KB, engine=%d",
            file_name, len(content) / 1024, self.config.engine_id,
        )

        deadline = time.monotonic() + self.config.timeout_seconds
        try:
            with self.http_client.stream(
                "POST",
                self.config.endpoint_url,
                data=self._form_fields(),
                files={"file": (file_name, content, mime_type or "application/octet-stream")},
                timeout=self.config.timeout_seconds,
            ) as response:
                self._raise_for_status(response)
                body = self._read_body(response, deadline)
        except httpx.TimeoutException as e:
            raise self._timed_out() from e
        except httpx.HTTPError as e:
            raise OCRTransportError(f"OCR API error: {e}") from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise OCRTransportError("OCR API returned a non-JSON body") from e

        if isinstance(data, dict):
            logger.info(
                "OCR API response: exit_code=%s, errored=%s, time_ms=%s, pages=%d",
                data.get("OCRExitCode"),
                data.get("IsErroredOnProcessing"),
                data.get("ProcessingTimeInMilliseconds"),
                len(data.get("ParsedResults") or []),
            )

        return parse_ocr_response(data)

    def _timed_out(self) -> OCRTransportError:
        return OCRTransportError(
            f"OCR API request timed out after {self.config.timeout_seconds:g}s"
        )

    def _read_body(self, response: httpx.Response, deadline: float) -> bytes:
        """Read the streamed body, failing once the request deadline passes."""
        parts = []
        for part in response.iter_bytes():
            parts.append(part)
            if time.monotonic() > deadline:
                raise self._timed_out()
        return b"".join(parts)

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status == 429:
            raise OCRProviderError("OCR API rate limit reached. Please try again later.")
        if status in (401, 403):
            raise OCRProviderError(f"OCR API rejected the request (HTTP {status}); check the API key")
        if status >= 400:
            raise OCRTransportError(f"OCR API error: HTTP {status}")

    def status(self) -> dict[str, Any]:
        """Describe the configured provider."""
        return {
            "available": self.config.is_available,
            "engine": self.config.engine_id,
            "max_file_size": f"{self.config.max_payload_bytes / 1024 / 1024:.2f} MB",
            "max_pages_per_request": self.config.max_pages_per_request,
            "api_url": self.config.endpoint_url,
        }
