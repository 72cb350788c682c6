"""Extraction orchestrator - single entry point for text extraction.

Routes a document either to the structured extractors (typed documents)
or to the handwritten OCR pipeline, and turns every failure into
diagnostic text. Callers always get a string back.
"""

import asyncio
import logging
from functools import partial
from typing import Optional, Union

import httpx

from notoextract.config import Settings, settings as default_settings
from notoextract.models import (
    DocumentType,
    ExtractionMethod,
    ExtractionResult,
    ExtractionStrategy,
    OCRProviderConfig,
)
from notoextract.pipeline.stage_classify import classify
from notoextract.pipeline.stage_fallback import LocalOCRFallback
from notoextract.pipeline.stage_htr import HandwrittenOCRPipeline
from notoextract.pipeline.stage_ocr import TesseractOCR
from notoextract.pipeline.stage_render import PDFRenderer
from notoextract.pipeline.stage_structured import (
    PDFTextExtractor,
    PlainTextExtractor,
    PowerPointExtractor,
    StructuredExtractor,
    WordExtractor,
)

logger = logging.getLogger(__name__)

DOWNLOAD_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def handwritten_failure_message(file_name: str, error: Union[Exception, str]) -> str:
    return (
        f'Unable to extract handwritten text from "{file_name}". '
        f"This may be due to image quality or OCR limitations. Error: {error}"
    )


def extraction_failure_message(file_name: str, error: Union[Exception, str]) -> str:
    return f'Unable to extract text from "{file_name}". Error: {error}'


def unsupported_type_message(file_name: str, mime_type: str) -> str:
    return (
        f'Document "{file_name}" ({mime_type}) is supported for download but '
        "text extraction is not available for this file type."
    )


class TextExtractionService:
    """Extracts plain text from uploaded documents.

    Usage:
        service = TextExtractionService()
        text = service.extract(content, "notes.pdf", "application/pdf", "handwritten")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        handwritten_pipeline: Optional[HandwrittenOCRPipeline] = None,
        extractors: Optional[dict[ExtractionStrategy, StructuredExtractor]] = None,
    ):
        """Initialize the service.

        Args:
            settings: Application settings (default: process-wide settings).
            handwritten_pipeline: Remote OCR pipeline for handwritten documents.
            extractors: Structured extractor per strategy.
        """
        self.settings = settings or default_settings
        self.provider_config = OCRProviderConfig.from_settings(self.settings)
        self._owns_pipeline = handwritten_pipeline is None
        self._handwritten_pipeline = handwritten_pipeline
        self.extractors = extractors or self._default_extractors()

    def close(self) -> None:
        """Release the HTTP client of a pipeline this service built."""
        if self._owns_pipeline and self._handwritten_pipeline is not None:
            self._handwritten_pipeline.close()
            self._handwritten_pipeline = None

    def __enter__(self) -> "TextExtractionService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _default_extractors(self) -> dict[ExtractionStrategy, StructuredExtractor]:
        fallback = LocalOCRFallback(
            renderer=PDFRenderer(dpi=self.settings.fallback_render_dpi),
            ocr_engine=TesseractOCR(
                language=self.settings.tesseract_language,
                timeout_seconds=self.settings.tesseract_timeout_seconds,
            ),
            max_pages=self.settings.fallback_max_pages,
        )
        return {
            ExtractionStrategy.PDF: PDFTextExtractor(
                fallback=fallback,
                low_text_threshold=self.settings.pdf_low_text_threshold,
                fallback_max_pages=self.settings.fallback_max_pages,
            ),
            ExtractionStrategy.WORD: WordExtractor(min_chars=self.settings.word_min_chars),
            ExtractionStrategy.POWERPOINT: PowerPointExtractor(
                min_chars=self.settings.powerpoint_min_chars
            ),
            ExtractionStrategy.PLAIN_TEXT: PlainTextExtractor(
                min_chars=self.settings.text_min_chars
            ),
        }

    @property
    def handwritten_pipeline(self) -> HandwrittenOCRPipeline:
        """Lazily built so typed-only use never creates an HTTP client."""
        if self._handwritten_pipeline is None:
            self._handwritten_pipeline = HandwrittenOCRPipeline(
                self.provider_config,
                concurrency=self.settings.ocr_chunk_concurrency,
                image_max_width=self.settings.image_max_width,
                image_quality=self.settings.image_jpeg_quality,
            )
        return self._handwritten_pipeline

    def extract(
        self,
        content: bytes,
        file_name: str,
        mime_type: str,
        document_type: Union[DocumentType, str] = DocumentType.TYPED,
    ) -> str:
        """Extract text from a document. Never raises.

        Args:
            content: Raw file bytes.
            file_name: Original filename.
            mime_type: MIME type reported by the uploader.
            document_type: "typed" or "handwritten".

        Returns:
            Extracted text, or a diagnostic message explaining why there is none.
        """
        return self.extract_result(content, file_name, mime_type, document_type).text

    def extract_result(
        self,
        content: bytes,
        file_name: str,
        mime_type: str,
        document_type: Union[DocumentType, str] = DocumentType.TYPED,
    ) -> ExtractionResult:
        """Extract text and return the full result model. Never raises."""
        try:
            document_type = DocumentType(document_type)
        except ValueError:
            logger.warning("Unknown document type %r for %s; treating as typed", document_type, file_name)
            document_type = DocumentType.TYPED

        logger.info(
            "Extracting text: file=%s, mime=%s, type=%s, size=%.2f KB",
            file_name, mime_type, document_type.value, len(content) / 1024,
        )

        if document_type == DocumentType.HANDWRITTEN:
            try:
                return self.handwritten_pipeline.extract_handwritten(content, file_name, mime_type)
            except Exception as e:
                logger.exception("Handwritten extraction failed for %s", file_name)
                return self._failure(handwritten_failure_message(file_name, e), file_name, e)

        try:
            strategy = classify(mime_type, file_name)
            if strategy == ExtractionStrategy.UNSUPPORTED or strategy not in self.extractors:
                logger.info("No text extraction for %s (%s)", file_name, mime_type)
                return ExtractionResult(
                    text=unsupported_type_message(file_name, mime_type),
                    file_name=file_name,
                    strategy=ExtractionStrategy.UNSUPPORTED,
                    method=ExtractionMethod.NONE,
                    is_diagnostic=True,
                )

            return self.extractors[strategy].extract(content, file_name)
        except Exception as e:
            logger.exception("Text extraction failed for %s", file_name)
            return self._failure(extraction_failure_message(file_name, e), file_name, e)

    def _failure(self, text: str, file_name: str, error: Exception) -> ExtractionResult:
        return ExtractionResult(
            text=text,
            file_name=file_name,
            method=ExtractionMethod.NONE,
            is_diagnostic=True,
            error=str(error),
        )

    def extract_from_url(
        self,
        url: str,
        file_name: str,
        mime_type: str,
        document_type: Union[DocumentType, str] = DocumentType.TYPED,
        http_client: Optional[httpx.Client] = None,
    ) -> str:
        """Download a stored file and extract its text. Never raises.

        Args:
            url: Location of the stored file.
            file_name: Original filename.
            mime_type: MIME type of the stored file.
            document_type: "typed" or "handwritten".
            http_client: Client to download with (default: a short-lived one).
        """
        try:
            content = self._download(url, http_client)
        except Exception as e:
            logger.error("Download failed for %s: %s", file_name, e)
            return extraction_failure_message(file_name, e)

        return self.extract(content, file_name, mime_type, document_type)

    def _download(self, url: str, http_client: Optional[httpx.Client]) -> bytes:
        headers = {"User-Agent": DOWNLOAD_USER_AGENT}
        timeout = self.settings.download_timeout_seconds

        if http_client is not None:
            response = http_client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
        else:
            with httpx.Client(timeout=timeout, follow_redirects=True) as client:
                response = client.get(url, headers=headers)

        response.raise_for_status()
        logger.info("Downloaded %s: %.2f KB", url, len(response.content) / 1024)
        return response.content

    async def extract_async(
        self,
        content: bytes,
        file_name: str,
        mime_type: str,
        document_type: Union[DocumentType, str] = DocumentType.TYPED,
    ) -> str:
        """Run `extract` in the default executor, off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            partial(self.extract, content, file_name, mime_type, document_type),
        )
