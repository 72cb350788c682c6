"""Structured Extraction Stage - Read the native text layer of typed documents.

One extractor per format:
- PDF: PyMuPDF text per page, optional local OCR fallback for low text
- Word: python-docx paragraphs and table cells (images ignored)
- PowerPoint: text runs from the OOXML slide parts
- Plain text: decoded directly

Every extractor returns an ExtractionResult. Expected problems (empty
documents, unreadable files, parser errors) come back as diagnostic text
rather than exceptions.
"""

import logging
import re
import zipfile
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Optional
from xml.etree import ElementTree

from docx import Document as DocxDocument

from notoextract.config import settings
from notoextract.models import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStrategy,
    PDFInfo,
)
from notoextract.pipeline.stage_fallback import LocalOCRFallback
from notoextract.pipeline.stage_render import open_pdf, read_pdf_info

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200

_HORIZONTAL_SPACE_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs while keeping paragraph breaks.

    Line endings become '\\n', runs of spaces/tabs become one space, lines
    are trimmed, and at most one blank line separates paragraphs.
    Applying it twice gives the same result as applying it once.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_HORIZONTAL_SPACE_RE.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS] or "[No text content found]"


# =====================
# Diagnostic messages
# =====================


def pdf_no_pages_message(file_name: str) -> str:
    return (
        f'PDF "{file_name}" was processed but contains no readable pages.\n\n'
        "Document Information:\n"
        f"- File: {file_name}\n"
        "- Pages: 0 or corrupted\n\n"
        "This might be due to:\n"
        "- Scanned document with images only (requires OCR)\n"
        "- Password-protected PDF\n"
        "- Corrupted file\n\n"
        "Suggestions:\n"
        "- Download the file to view it manually\n"
        "- If this is a scanned PDF, re-upload it as a handwritten document\n"
        "- Switch to Global Mode for general AI assistance"
    )


def pdf_low_text_message(file_name: str, page_count: int, text: str) -> str:
    return (
        f'PDF "{file_name}" was processed but contains very little readable text.\n\n'
        "Document Information:\n"
        f"- File: {file_name}\n"
        f"- Pages: {page_count}\n"
        f"- Content Length: {len(text)} characters\n\n"
        "This might be due to:\n"
        "- Scanned document with images only (requires OCR)\n"
        "- Handwritten or drawn content\n"
        "- Complex formatting with embedded objects\n\n"
        "Suggestions:\n"
        "- Download the file to view it manually\n"
        "- If this is a scanned PDF, re-upload it as a handwritten document\n"
        "- Switch to Global Mode for general AI assistance\n\n"
        "Content Preview:\n"
        f"{_preview(text)}"
    )


def ocr_result_message(file_name: str, page_count: int, ocr_text: str) -> str:
    return (
        f'OCR Text Extraction Results for "{file_name}"\n\n'
        "Document Information:\n"
        f"- File: {file_name}\n"
        f"- Pages: {page_count}\n"
        "- Extraction Method: OCR (Optical Character Recognition)\n"
        f"- Content Length: {len(ocr_text)} characters\n\n"
        "Note: OCR results may contain some errors or formatting issues.\n\n"
        "Extracted Content:\n"
        f"{ocr_text}"
    )


def powerpoint_low_text_message(file_name: str, text: str) -> str:
    return (
        f'PowerPoint presentation "{file_name}" was processed but contains very little readable text.\n\n'
        "Document Information:\n"
        f"- File: {file_name}\n"
        "- Type: PowerPoint Presentation\n"
        f"- Content Length: {len(text)} characters\n\n"
        "This might be due to:\n"
        "- Slides with mainly images or graphics\n"
        "- Complex formatting or embedded objects\n"
        "- Handwritten or drawn content\n\n"
        "Suggestions:\n"
        "- Download the file to view it manually\n"
        "- Switch to Global Mode for general AI assistance\n\n"
        "Content Preview:\n"
        f"{_preview(text)}"
    )


# =====================
# Extractors
# =====================


class StructuredExtractor(ABC):
    """Base class for format-specific extractors.

    Subclasses implement `_extract`; any exception it raises becomes a
    diagnostic result naming the file and the underlying error.
    """

    strategy: ExtractionStrategy
    failure_template: str = 'Document "{file_name}" could not be processed. Error: {error}'

    def extract(self, content: bytes, file_name: str) -> ExtractionResult:
        """Extract text from a document buffer.

        Args:
            content: Raw file bytes.
            file_name: Original filename (used in diagnostics).

        Returns:
            ExtractionResult with text or a diagnostic message.
        """
        try:
            return self._extract(content, file_name)
        except Exception as e:
            logger.exception("%s extraction failed for %s", self.strategy.value, file_name)
            return self._diagnostic(
                self.failure_template.format(file_name=file_name, error=e),
                file_name,
                error=str(e),
            )

    @abstractmethod
    def _extract(self, content: bytes, file_name: str) -> ExtractionResult:
        raise NotImplementedError

    def _content(self, text: str, file_name: str, **kwargs) -> ExtractionResult:
        return ExtractionResult(
            text=text,
            file_name=file_name,
            strategy=self.strategy,
            method=kwargs.pop("method", ExtractionMethod.STRUCTURED),
            **kwargs,
        )

    def _diagnostic(self, text: str, file_name: str, **kwargs) -> ExtractionResult:
        return ExtractionResult(
            text=text,
            file_name=file_name,
            strategy=self.strategy,
            method=ExtractionMethod.NONE,
            is_diagnostic=True,
            **kwargs,
        )


class PDFTextExtractor(StructuredExtractor):
    """Extracts the native text layer of a PDF with PyMuPDF."""

    strategy = ExtractionStrategy.PDF
    failure_template = 'PDF "{file_name}" could not be processed for text extraction. Error: {error}'

    def __init__(
        self,
        fallback: Optional[LocalOCRFallback] = None,
        low_text_threshold: Optional[int] = None,
        fallback_max_pages: Optional[int] = None,
    ):
        """Initialize PDF extractor.

        Args:
            fallback: Local OCR used when little text is found.
            low_text_threshold: Character count below which OCR is attempted.
            fallback_max_pages: Pages handed to the fallback at most.
        """
        self.fallback = fallback or LocalOCRFallback()
        self.low_text_threshold = low_text_threshold or settings.pdf_low_text_threshold
        self.fallback_max_pages = fallback_max_pages or settings.fallback_max_pages

    def _extract(self, content: bytes, file_name: str) -> ExtractionResult:
        with open_pdf(content) as pdf_doc:
            info = read_pdf_info(pdf_doc)
            if info.encrypted or info.page_count == 0:
                logger.warning(
                    "PDF %s has no readable pages (pages=%d, encrypted=%s)",
                    file_name, info.page_count, info.encrypted,
                )
                return self._diagnostic(pdf_no_pages_message(file_name), file_name, page_count=0)

            page_texts = [page.get_text("text") for page in pdf_doc]

        text = normalize_whitespace("\n\n".join(page_texts))
        logger.info("PDF text extracted: %s, pages=%d, chars=%d", file_name, info.page_count, len(text))

        if len(text) < self.low_text_threshold:
            return self._handle_low_text(content, file_name, text, info)

        if info.title and info.title != file_name:
            text = f"Document Title: {info.title}\n\n{text}"

        return self._content(text, file_name, page_count=info.page_count)

    def _handle_low_text(
        self,
        content: bytes,
        file_name: str,
        text: str,
        info: PDFInfo,
    ) -> ExtractionResult:
        """Try local OCR and keep whichever result is longer."""
        logger.info("Low text content in %s (%d chars), attempting local OCR", file_name, len(text))

        ocr_text = ""
        try:
            ocr_text = self.fallback.rasterize_and_recognize(
                content, min(info.page_count, self.fallback_max_pages)
            )
        except Exception as e:
            logger.warning("Local OCR fallback failed for %s: %s", file_name, e)

        if len(ocr_text) > len(text):
            logger.info("Local OCR provided better results for %s (%d chars)", file_name, len(ocr_text))
            return self._content(
                ocr_result_message(file_name, info.page_count, ocr_text),
                file_name,
                method=ExtractionMethod.LOCAL_OCR,
                page_count=info.page_count,
            )

        return self._diagnostic(
            pdf_low_text_message(file_name, info.page_count, text),
            file_name,
            page_count=info.page_count,
        )


class WordExtractor(StructuredExtractor):
    """Extracts raw text from Word documents with python-docx."""

    strategy = ExtractionStrategy.WORD
    failure_template = 'Word document "{file_name}" could not be processed. Error: {error}'

    def __init__(self, min_chars: Optional[int] = None):
        self.min_chars = min_chars or settings.word_min_chars

    def _extract(self, content: bytes, file_name: str) -> ExtractionResult:
        doc = DocxDocument(BytesIO(content))

        parts = [p.text for p in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        text = normalize_whitespace("\n".join(parts))
        logger.info("Word text extracted: %s, chars=%d", file_name, len(text))

        if len(text) < self.min_chars:
            return self._diagnostic(
                f'Word document "{file_name}" was processed but contains very little readable text.',
                file_name,
            )

        return self._content(text, file_name)


class PowerPointExtractor(StructuredExtractor):
    """Extracts text runs from PowerPoint (OOXML) presentations."""

    strategy = ExtractionStrategy.POWERPOINT
    failure_template = (
        'PowerPoint presentation "{file_name}" could not be processed for text extraction. '
        "Error: {error}"
    )

    SLIDE_PART_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
    DRAWING_NS = "{http://schemas.openxmlformats.org/drawingml/2006/main}"

    def __init__(self, min_chars: Optional[int] = None):
        self.min_chars = min_chars or settings.powerpoint_min_chars

    def _extract(self, content: bytes, file_name: str) -> ExtractionResult:
        slides: list[str] = []

        with zipfile.ZipFile(BytesIO(content)) as archive:
            slide_parts = []
            for name in archive.namelist():
                match = self.SLIDE_PART_RE.match(name)
                if match:
                    slide_parts.append((int(match.group(1)), name))

            for _, name in sorted(slide_parts):
                slide_text = self._slide_text(archive.read(name))
                if slide_text:
                    slides.append(slide_text)

        text = normalize_whitespace("\n\n".join(slides))
        logger.info("PowerPoint text extracted: %s, slides=%d, chars=%d", file_name, len(slides), len(text))

        if len(text) < self.min_chars:
            return self._diagnostic(powerpoint_low_text_message(file_name, text), file_name)

        return self._content(text, file_name, page_count=len(slide_parts))

    def _slide_text(self, xml_bytes: bytes) -> str:
        """Join the a:t runs of each a:p paragraph on one slide."""
        root = ElementTree.fromstring(xml_bytes)
        lines = []
        for paragraph in root.iter(f"{self.DRAWING_NS}p"):
            runs = [t.text for t in paragraph.iter(f"{self.DRAWING_NS}t") if t.text]
            line = "".join(runs).strip()
            if line:
                lines.append(line)
        return "\n".join(lines)


class PlainTextExtractor(StructuredExtractor):
    """Decodes text files directly."""

    strategy = ExtractionStrategy.PLAIN_TEXT
    failure_template = 'Text file "{file_name}" could not be processed. Error: {error}'

    def __init__(self, min_chars: Optional[int] = None):
        self.min_chars = min_chars or settings.text_min_chars

    def _extract(self, content: bytes, file_name: str) -> ExtractionResult:
        text = content.decode("utf-8-sig", errors="replace")
        logger.info("Text file processed: %s, chars=%d", file_name, len(text))

        if len(text) < self.min_chars:
            return self._diagnostic(
                f'Text file "{file_name}" is very short or empty. Content length: {len(text)} characters.',
                file_name,
            )

        return self._content(text, file_name)
