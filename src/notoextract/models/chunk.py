"""Chunk models for size- and page-constrained remote OCR."""

from typing import Optional

from pydantic import Field

from .base import BaseIRModel, ChunkStatus, PageRange


class ExtractionChunk(BaseIRModel):
    """
    Sub-document covering consecutive pages of a source PDF.

    Chunks are owned by the pipeline call that created them and are
    discarded once their OCR result has been merged.
    """

    content: bytes = Field(..., repr=False, description="Encoded sub-document")
    page_range: PageRange
    sequence_number: int = Field(..., ge=1, description="1-indexed position in the plan")

    @property
    def size_bytes(self) -> int:
        """Encoded size in bytes."""
        return len(self.content)

    @property
    def size_kb(self) -> float:
        """Encoded size in KiB."""
        return len(self.content) / 1024


class ChunkPlan(BaseIRModel):
    """How a PDF will be partitioned before submission."""

    total_pages: int = Field(..., ge=1)
    total_bytes: int = Field(..., ge=0)
    pages_by_size: int = Field(..., ge=0, description="Pages per chunk allowed by size budget")
    page_ceiling: int = Field(..., ge=1, description="Provider page-count ceiling")
    pages_per_chunk: int = Field(..., ge=1)
    ranges: list[PageRange] = Field(default_factory=list)

    @property
    def avg_bytes_per_page(self) -> float:
        """Average encoded bytes per page."""
        return self.total_bytes / self.total_pages

    @property
    def chunk_count(self) -> int:
        """Number of planned chunks."""
        return len(self.ranges)


class ChunkOutcome(BaseIRModel):
    """Result of processing one chunk."""

    sequence_number: int = Field(..., ge=1)
    page_range: PageRange
    status: ChunkStatus
    text: str = Field(default="")
    reason: Optional[str] = Field(None, description="Failure or skip reason")
    size_bytes: int = Field(default=0, ge=0)
    pages_covered: list[PageRange] = Field(
        default_factory=list, description="Document pages the provider parsed"
    )

    @property
    def ok(self) -> bool:
        """Check if the chunk produced OCR text."""
        return self.status == ChunkStatus.OK

    def render(self) -> str:
        """Text block contributed to the merged result."""
        if self.status == ChunkStatus.OK:
            return f"=== Pages {self.page_range.label} ===\n{self.text}"
        if self.status == ChunkStatus.SKIPPED_TOO_LARGE:
            return f"[Pages {self.page_range.label}: Too large to process]"
        return f"[Pages {self.page_range.label}: Extraction failed - {self.reason}]"
