"""Render Stage - Open PDF buffers and rasterize single pages.

PDFs arrive as upload buffers, never as files. Pages are rasterized one
at a time into a caller-owned directory so the fallback can clean up and
skip bad pages independently.
"""

from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from notoextract.config import settings
from notoextract.models import RenderedPage, PDFInfo


def open_pdf(content: bytes) -> fitz.Document:
    """Open a PDF from an in-memory buffer.

    Raises:
        fitz.FileDataError: The buffer is not a readable PDF.
    """
    return fitz.open(stream=content, filetype="pdf")


def read_pdf_info(pdf_doc: fitz.Document) -> PDFInfo:
    """Page count, title/author and encryption state of an open PDF."""
    metadata = pdf_doc.metadata or {}

    def _field(name: str) -> Optional[str]:
        return (metadata.get(name) or "").strip() or None

    return PDFInfo(
        page_count=pdf_doc.page_count,
        title=_field("title"),
        author=_field("author"),
        encrypted=bool(pdf_doc.needs_pass),
    )


class PDFRenderer:
    """Rasterizes PDF pages to PNG at a fixed resolution."""

    def __init__(self, dpi: Optional[int] = None):
        self.dpi = dpi or settings.fallback_render_dpi

    def render_page(
        self,
        pdf_doc: fitz.Document,
        page_num: int,
        output_dir: Path,
    ) -> RenderedPage:
        """Write one page as `page_NNNN.png` under output_dir.

        Args:
            pdf_doc: Open PDF document.
            page_num: 0-indexed page number.
            output_dir: Directory owned (and cleaned up) by the caller.
        """
        image_file = Path(output_dir) / f"page_{page_num + 1:04d}.png"

        pixmap = pdf_doc.load_page(page_num).get_pixmap(dpi=self.dpi, alpha=False)
        pixmap.save(image_file)

        return RenderedPage(
            page_number=page_num + 1,
            image_path=str(image_file),
            width_pixels=pixmap.width,
            height_pixels=pixmap.height,
            dpi=self.dpi,
            file_size_bytes=image_file.stat().st_size,
        )
