"""Extraction result models."""

from typing import Optional

from pydantic import Field

from .base import BaseIRModel, ChunkStatus, ExtractionMethod, ExtractionStrategy, PageRange
from .chunk import ChunkOutcome


class ExtractionResult(BaseIRModel):
    """
    Text produced for one extraction call.

    `text` is always present. When `is_diagnostic` is set it holds a
    human-readable explanation instead of document content; that is still
    a successful outcome from the caller's point of view.
    """

    text: str
    file_name: str
    strategy: Optional[ExtractionStrategy] = Field(
        None, description="Structured route; None for handwritten OCR"
    )
    method: ExtractionMethod = Field(default=ExtractionMethod.STRUCTURED)
    is_diagnostic: bool = Field(default=False)
    error: Optional[str] = Field(None, description="Underlying error message, if any")

    page_count: Optional[int] = Field(None, ge=0)
    pages_covered: list[PageRange] = Field(default_factory=list)
    chunk_outcomes: list[ChunkOutcome] = Field(default_factory=list)

    @property
    def char_count(self) -> int:
        """Length of the returned text."""
        return len(self.text)

    @property
    def chunk_status(self) -> dict[int, ChunkStatus]:
        """Status per chunk sequence number."""
        return {o.sequence_number: o.status for o in self.chunk_outcomes}

    @property
    def failed_chunks(self) -> list[ChunkOutcome]:
        """Chunks that failed or were skipped."""
        return [o for o in self.chunk_outcomes if not o.ok]
