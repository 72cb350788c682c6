"""Tests for the extraction orchestrator."""

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from notoextract.config import Settings
from notoextract.exceptions import OCRProviderError
from notoextract.models import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStrategy,
    OCRProviderConfig,
)
from notoextract.pipeline.stage_htr import HandwrittenOCRPipeline
from notoextract.service import TextExtractionService

ESSAY = ("The mitochondria is the powerhouse of the cell. " * 3).encode("utf-8")


@pytest.fixture
def test_settings():
    return Settings(ocrspace_api_key="test-key-123", ocr_chunk_concurrency=1)


@pytest.fixture
def handwritten_pipeline():
    pipeline = MagicMock(spec=HandwrittenOCRPipeline)
    pipeline.extract_handwritten.return_value = ExtractionResult(
        text="--- Page 1 ---\nDear diary",
        file_name="diary.jpg",
        method=ExtractionMethod.REMOTE_OCR,
    )
    return pipeline


@pytest.fixture
def service(test_settings, handwritten_pipeline):
    return TextExtractionService(test_settings, handwritten_pipeline=handwritten_pipeline)


class TestRouting:
    """Tests for document routing."""

    def test_plain_text(self, service):
        assert service.extract(ESSAY, "essay.txt", "text/plain") == ESSAY.decode("utf-8")

    def test_short_plain_text(self, service):
        text = service.extract(b"twenty bytes of text", "note.txt", "text/plain")

        assert "very short or empty" in text
        assert "20 characters" in text

    def test_pdf(self, service, make_pdf):
        content = make_pdf([
            "Chapter one introduces cellular respiration\n"
            "and the role of oxygen in energy production\n"
            "inside every living eukaryotic cell."
        ])

        result = service.extract_result(content, "chapter1.pdf", "application/pdf")

        assert result.strategy == ExtractionStrategy.PDF
        assert "cellular respiration" in result.text

    def test_extension_used_for_generic_type(self, service, make_pptx):
        content = make_pptx([["Lecture 4: Enzymes"], ["Enzymes lower activation energy"]])

        result = service.extract_result(content, "lecture4.pptx", "application/octet-stream")

        assert result.strategy == ExtractionStrategy.POWERPOINT
        assert "Enzymes lower activation energy" in result.text

    def test_unsupported_type(self, service):
        text = service.extract(b"PK\x03\x04", "archive.zip", "application/zip")

        assert text == (
            'Document "archive.zip" (application/zip) is supported for download but '
            "text extraction is not available for this file type."
        )

    def test_handwritten_bypasses_classification(self, service, handwritten_pipeline):
        """Handwritten documents go to remote OCR whatever their MIME type."""
        text = service.extract(ESSAY, "diary.txt", "text/plain", "handwritten")

        assert text == "--- Page 1 ---\nDear diary"
        handwritten_pipeline.extract_handwritten.assert_called_once_with(ESSAY, "diary.txt", "text/plain")

    def test_unknown_document_type_treated_as_typed(self, service, handwritten_pipeline):
        service.extract(ESSAY, "essay.txt", "text/plain", "scribbled")

        handwritten_pipeline.extract_handwritten.assert_not_called()


class TestNeverRaises:
    """Failures come back as diagnostic text."""

    def test_provider_error_becomes_text(self, service, handwritten_pipeline):
        """A processing-level provider error names the original file."""
        handwritten_pipeline.extract_handwritten.side_effect = OCRProviderError(
            "E500: Resource Exhaustion"
        )

        result = service.extract_result(b"jpeg", "lab-notes.jpg", "image/jpeg", "handwritten")

        assert result.is_diagnostic
        assert result.error == "E500: Resource Exhaustion"
        assert result.text == (
            'Unable to extract handwritten text from "lab-notes.jpg". This may be due to '
            "image quality or OCR limitations. Error: E500: Resource Exhaustion"
        )

    def test_processing_flag_end_to_end(self, test_settings, make_client):
        """IsErroredOnProcessing from the provider surfaces as diagnostic text."""
        client = make_client(responses={"scan.png": OCRProviderError("Unable to recognize the file type")})
        pipeline = HandwrittenOCRPipeline(OCRProviderConfig.from_settings(test_settings), client=client)
        service = TextExtractionService(test_settings, handwritten_pipeline=pipeline)

        text = service.extract(b"png", "scan.png", "image/png", "handwritten")

        assert text.startswith('Unable to extract handwritten text from "scan.png"')
        assert text.endswith("Error: Unable to recognize the file type")

    def test_extractor_crash_becomes_text(self, test_settings, handwritten_pipeline):
        exploding = MagicMock()
        exploding.extract.side_effect = MemoryError("out of memory")
        service = TextExtractionService(
            test_settings,
            handwritten_pipeline=handwritten_pipeline,
            extractors={ExtractionStrategy.PDF: exploding},
        )

        text = service.extract(b"%PDF", "big.pdf", "application/pdf")

        assert text == 'Unable to extract text from "big.pdf". Error: out of memory'

    def test_corrupt_word_document(self, service):
        text = service.extract(
            b"garbage",
            "report.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

        assert text.startswith('Word document "report.docx" could not be processed. Error:')


class TestExtractFromURL:
    """Tests for downloading stored files."""

    def test_downloads_and_extracts(self, service):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["user_agent"] = request.headers["user-agent"]
            return httpx.Response(200, content=ESSAY)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            text = service.extract_from_url(
                "https://files.example.test/essay.txt", "essay.txt", "text/plain", http_client=client
            )

        assert text == ESSAY.decode("utf-8")
        assert seen["user_agent"].startswith("Mozilla/5.0")

    def test_download_failure_is_text(self, service):
        with httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404))) as client:
            text = service.extract_from_url(
                "https://files.example.test/gone.pdf", "gone.pdf", "application/pdf", http_client=client
            )

        assert text.startswith('Unable to extract text from "gone.pdf". Error:')
        assert "404" in text


class TestExtractAsync:
    """Tests for the event-loop friendly entry point."""

    def test_runs_in_executor(self, service):
        text = asyncio.run(service.extract_async(ESSAY, "essay.txt", "text/plain"))

        assert text == ESSAY.decode("utf-8")



class TestClose:
    """Tests for releasing the remote OCR HTTP client."""

    def test_context_manager_closes_built_pipeline(self, test_settings):
        with TextExtractionService(test_settings) as service:
            http_client = service.handwritten_pipeline.client.http_client
            assert not http_client.is_closed

        assert http_client.is_closed

    def test_close_without_handwritten_use(self, test_settings):
        service = TextExtractionService(test_settings)

        service.close()

        assert service._handwritten_pipeline is None

    def test_injected_pipeline_left_open(self, service, handwritten_pipeline):
        service.close()

        handwritten_pipeline.close.assert_not_called()
