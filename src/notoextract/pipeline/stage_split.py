"""Split Stage - Partition large PDFs into provider-sized chunks.

Remote OCR accepts a limited payload size and page count per request.
Chunk size is derived from the average bytes per page and capped by the
provider's page ceiling; pages are partitioned into consecutive,
non-overlapping ranges covering the document once, in order.
"""

import logging

import fitz  # PyMuPDF

from notoextract.models import ChunkPlan, ExtractionChunk, PageRange
from notoextract.pipeline.stage_render import open_pdf

logger = logging.getLogger(__name__)


def pages_per_chunk(
    total_bytes: int,
    total_pages: int,
    size_budget: int,
    page_ceiling: int,
) -> tuple[int, int]:
    """Compute how many pages each chunk may hold.

    Args:
        total_bytes: Encoded size of the whole PDF.
        total_pages: Page count of the whole PDF.
        size_budget: Byte budget per chunk.
        page_ceiling: Provider page-count ceiling.

    Returns:
        Tuple of (pages allowed by size, pages per chunk).
    """
    if total_pages < 1:
        raise ValueError("PDF has no pages")

    avg_bytes_per_page = total_bytes / total_pages
    if avg_bytes_per_page > 0:
        pages_by_size = int(size_budget // avg_bytes_per_page)
    else:
        pages_by_size = total_pages

    return pages_by_size, max(1, min(pages_by_size, page_ceiling))


def partition_pages(total_pages: int, chunk_pages: int) -> list[PageRange]:
    """Split pages 1..N into consecutive ranges of `chunk_pages` pages.

    The last range may be shorter.
    """
    if chunk_pages < 1:
        raise ValueError(f"chunk_pages must be >= 1, got {chunk_pages}")

    return [
        PageRange(start=start, end=min(start + chunk_pages - 1, total_pages))
        for start in range(1, total_pages + 1, chunk_pages)
    ]


def plan_chunks(
    total_bytes: int,
    total_pages: int,
    size_budget: int,
    page_ceiling: int,
) -> ChunkPlan:
    """Build the chunk plan for a PDF of known size and page count."""
    pages_by_size, chunk_pages = pages_per_chunk(
        total_bytes, total_pages, size_budget, page_ceiling
    )
    return ChunkPlan(
        total_pages=total_pages,
        total_bytes=total_bytes,
        pages_by_size=max(0, pages_by_size),
        page_ceiling=page_ceiling,
        pages_per_chunk=chunk_pages,
        ranges=partition_pages(total_pages, chunk_pages),
    )


class PDFSplitter:
    """Plans chunks and builds a sub-document for each planned page range."""

    def __init__(self, size_budget: int, page_ceiling: int):
        """Initialize splitter.

        Args:
            size_budget: Byte budget per chunk.
            page_ceiling: Maximum pages per chunk.
        """
        self.size_budget = size_budget
        self.page_ceiling = page_ceiling

    def plan(self, content: bytes) -> ChunkPlan:
        """Plan chunks for a PDF buffer."""
        with open_pdf(content) as pdf_doc:
            return self.plan_document(pdf_doc, len(content))

    def plan_document(self, pdf_doc: fitz.Document, total_bytes: int) -> ChunkPlan:
        """Plan chunks for an open PDF."""
        plan = plan_chunks(total_bytes, pdf_doc.page_count, self.size_budget, self.page_ceiling)

        logger.info(
            "Chunking strategy: pages=%d, avg=%.2f KB/page, by_size=%d, by_api=%d, "
            "pages_per_chunk=%d, chunks=%d",
            plan.total_pages,
            plan.avg_bytes_per_page / 1024,
            plan.pages_by_size,
            plan.page_ceiling,
            plan.pages_per_chunk,
            plan.chunk_count,
        )
        return plan

    def build_chunk(
        self,
        pdf_doc: fitz.Document,
        page_range: PageRange,
        sequence_number: int,
    ) -> ExtractionChunk:
        """Encode the pages of one range as a standalone PDF."""
        chunk = ExtractionChunk(
            content=build_sub_document(pdf_doc, page_range),
            page_range=page_range,
            sequence_number=sequence_number,
        )
        logger.debug(
            "Chunk %d built: pages %s, %.2f KB",
            sequence_number, page_range.label, chunk.size_kb,
        )
        return chunk


def build_sub_document(pdf_doc: fitz.Document, page_range: PageRange) -> bytes:
    """Encode a new PDF holding only the given page range."""
    chunk_doc = fitz.open()
    try:
        chunk_doc.insert_pdf(
            pdf_doc,
            from_page=page_range.start - 1,
            to_page=page_range.end - 1,
        )
        return chunk_doc.tobytes(garbage=3, deflate=True)
    finally:
        chunk_doc.close()
