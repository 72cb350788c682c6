"""Low-Text Fallback Stage - Local OCR for PDFs with little embedded text.

Triggered when the native text layer of a PDF is nearly empty (scanned
or image-only pages). Rasterizes a bounded number of leading pages and
runs Tesseract on each. Best effort: a failing page is logged and skipped.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from notoextract.config import settings
from notoextract.pipeline.stage_ocr import TesseractOCR
from notoextract.pipeline.stage_render import PDFRenderer, open_pdf

logger = logging.getLogger(__name__)


class LocalOCRFallback:
    """Rasterize-and-recognize fallback for low-text PDFs."""

    def __init__(
        self,
        renderer: Optional[PDFRenderer] = None,
        ocr_engine: Optional[TesseractOCR] = None,
        max_pages: Optional[int] = None,
    ):
        """Initialize fallback.

        Args:
            renderer: Page renderer (default uses settings DPI).
            ocr_engine: Local OCR engine (default Tesseract, settings language).
            max_pages: Default page bound when the caller passes none.
        """
        self.renderer = renderer or PDFRenderer()
        self.ocr_engine = ocr_engine or TesseractOCR()
        self.max_pages = max_pages or settings.fallback_max_pages

    def rasterize_and_recognize(self, content: bytes, max_pages: Optional[int] = None) -> str:
        """OCR the first pages of a PDF.

        Rendered images live in a temporary directory that is removed on
        every exit path.

        Args:
            content: PDF bytes.
            max_pages: Upper bound on pages processed.

        Returns:
            Concatenated text with a '--- Page N ---' marker per page,
            or an empty string when nothing was recognized.
        """
        limit = max_pages or self.max_pages
        parts: list[str] = []

        with open_pdf(content) as pdf_doc, tempfile.TemporaryDirectory(
            prefix="notoextract-ocr-"
        ) as tmp_dir:
            page_total = min(pdf_doc.page_count, limit)
            logger.info("Local OCR on first %d page(s)", page_total)

            for page_num in range(page_total):
                text = self._recognize_page(pdf_doc, page_num, Path(tmp_dir))
                if text:
                    parts.append(f"--- Page {page_num + 1} ---\n{text}")

        return "\n\n".join(parts).strip()

    def _recognize_page(self, pdf_doc, page_num: int, tmp_dir: Path) -> str:
        """Render and OCR one page; failures contribute no text."""
        try:
            rendered = self.renderer.render_page(pdf_doc, page_num, tmp_dir)
            try:
                text = self.ocr_engine.extract_text(rendered.path)
            finally:
                rendered.path.unlink(missing_ok=True)
        except Exception as e:
            logger.warning("Local OCR failed for page %d: %s", page_num + 1, e)
            return ""

        logger.debug("Local OCR page %d: %d chars", page_num + 1, len(text))
        return text
