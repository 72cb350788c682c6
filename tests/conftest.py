"""Pytest configuration and fixtures."""

import io
import zipfile

import fitz
import pytest

from notoextract.models import OCRProviderConfig, RemoteOCRResult


def build_pdf(pages: list[str], title: str | None = None) -> bytes:
    """Create an in-memory PDF with one text string per page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    if title:
        doc.set_metadata({"title": title})
    content = doc.tobytes()
    doc.close()
    return content


def build_pptx(slides: list[list[str]]) -> bytes:
    """Create a minimal OOXML presentation with one text run per line."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for number, lines in enumerate(slides, start=1):
            paragraphs = "".join(
                f"<a:p><a:r><a:t>{line}</a:t></a:r></a:p>" for line in lines
            )
            archive.writestr(
                f"ppt/slides/slide{number}.xml",
                '<p:sld xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main" '
                'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main">'
                f"<p:cSld><p:spTree><p:sp><p:txBody>{paragraphs}</p:txBody></p:sp></p:spTree></p:cSld>"
                "</p:sld>",
            )
    return buffer.getvalue()


def payload_page_count(content: bytes, mime_type: str) -> int:
    """Pages the provider would see in a payload; images count as one."""
    if mime_type != "application/pdf":
        return 1
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            return doc.page_count
    except Exception:
        return 1


class FakeOCRClient:
    """Stands in for OCRSpaceClient; responses keyed by call order or chunk name."""

    def __init__(self, responses=None, default_text="handwritten words on the page"):
        self.responses = responses or {}
        self.default_text = default_text
        self.calls: list[tuple[str, int, str]] = []

    def perform_ocr(self, content: bytes, file_name: str, mime_type: str) -> RemoteOCRResult:
        self.calls.append((file_name, len(content), mime_type))
        response = self.responses.get(file_name)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, RemoteOCRResult):
            return response
        return RemoteOCRResult(
            text=f"--- Page 1 ---\n{self.default_text} ({file_name})",
            parsed_pages=list(range(1, payload_page_count(content, mime_type) + 1)),
        )


@pytest.fixture
def make_pdf():
    """Factory for in-memory PDFs."""
    return build_pdf


@pytest.fixture
def make_pptx():
    """Factory for in-memory presentations."""
    return build_pptx


@pytest.fixture
def provider_config():
    """Provider config with a real-looking key and default limits."""
    return OCRProviderConfig(
        api_key="test-key-123",
        engine_id=2,
        endpoint_url="https://ocr.example.test/parse/image",
        language="eng",
        max_payload_bytes=1024 * 1024,
        max_pages_per_request=3,
        timeout_seconds=5.0,
    )


@pytest.fixture
def fake_client():
    """Remote OCR client double."""
    return FakeOCRClient()


@pytest.fixture
def make_client():
    """Factory for remote OCR client doubles with scripted responses."""
    return FakeOCRClient


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir
