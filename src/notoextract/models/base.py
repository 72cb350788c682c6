"""Base models and common types for the extraction pipeline."""

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field, model_validator


class DocumentType(str, Enum):
    """How the uploader described the document content."""

    TYPED = "typed"
    HANDWRITTEN = "handwritten"


class ExtractionStrategy(str, Enum):
    """Structured extraction route chosen by the format classifier."""

    PDF = "pdf"
    WORD = "word"
    POWERPOINT = "powerpoint"
    PLAIN_TEXT = "plain_text"
    UNSUPPORTED = "unsupported"


class ExtractionMethod(str, Enum):
    """Which technique produced the returned text."""

    STRUCTURED = "structured"  # Native text layer
    LOCAL_OCR = "local_ocr"  # Tesseract fallback
    REMOTE_OCR = "remote_ocr"  # Remote handwriting OCR
    NONE = "none"  # Diagnostic only


class ChunkStatus(str, Enum):
    """Outcome of a single chunk submission."""

    OK = "ok"
    FAILED = "failed"
    SKIPPED_TOO_LARGE = "skipped_too_large"


class BaseIRModel(BaseModel):
    """Base class for transient pipeline values.

    Instances are immutable once constructed.
    """

    class Config:
        frozen = True


class PageRange(BaseIRModel):
    """Inclusive, 1-indexed page range."""

    start: int = Field(..., ge=1, description="First page (1-indexed, inclusive)")
    end: int = Field(..., ge=1, description="Last page (1-indexed, inclusive)")

    @model_validator(mode="after")
    def check_order(self) -> "PageRange":
        if self.end < self.start:
            raise ValueError(f"end page {self.end} precedes start page {self.start}")
        return self

    @property
    def page_count(self) -> int:
        """Number of pages in the range."""
        return self.end - self.start + 1

    @property
    def label(self) -> str:
        """Human-readable 'a-b' label."""
        return f"{self.start}-{self.end}"


def page_runs(pages: Iterable[int], offset: int = 0) -> list[PageRange]:
    """Collapse page numbers into runs of consecutive pages.

    Args:
        pages: 1-indexed page numbers, in any order.
        offset: Added to every page (chunk-relative to document pages).

    Returns:
        One PageRange per run, in page order.
    """
    runs: list[PageRange] = []
    for page in sorted(set(pages)):
        page += offset
        if runs and runs[-1].end == page - 1:
            runs[-1] = PageRange(start=runs[-1].start, end=page)
        else:
            runs.append(PageRange(start=page, end=page))
    return runs
