"""Pydantic models for values flowing through the extraction pipeline.

Everything here is transient: values are created and discarded within a
single extraction call. Nothing is persisted by this package.

Model Hierarchy:
- SourceDocument → ExtractionChunk(s) → ChunkOutcome(s) → ExtractionResult
- OCRProviderConfig → remote OCR client → OCRSpaceResponse → RemoteOCRResult
"""

from .base import (
    BaseIRModel,
    ChunkStatus,
    DocumentType,
    ExtractionMethod,
    ExtractionStrategy,
    PageRange,
    page_runs,
)
from .chunk import (
    ChunkOutcome,
    ChunkPlan,
    ExtractionChunk,
)
from .document import (
    PDFInfo,
    SourceDocument,
)
from .page import RenderedPage
from .provider import (
    DEMO_API_KEY,
    OCRProviderConfig,
    OCRSpaceResponse,
    ParsedPageResult,
    RemoteOCRResult,
)
from .result import ExtractionResult

__all__ = [
    # Base types
    "BaseIRModel",
    "ChunkStatus",
    "DocumentType",
    "ExtractionMethod",
    "ExtractionStrategy",
    "PageRange",
    "page_runs",
    # Document
    "PDFInfo",
    "SourceDocument",
    # Page
    "RenderedPage",
    # Chunk
    "ChunkOutcome",
    "ChunkPlan",
    "ExtractionChunk",
    # Provider
    "DEMO_API_KEY",
    "OCRProviderConfig",
    "OCRSpaceResponse",
    "ParsedPageResult",
    "RemoteOCRResult",
    # Result
    "ExtractionResult",
]
