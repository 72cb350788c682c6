"""Error hierarchy for the extraction pipeline."""

from typing import Optional


class NotoExtractError(Exception):
    """Base exception for the notoextract package."""


class ExtractionError(NotoExtractError):
    """A structured extractor or pipeline step failed for one file."""

    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(message)
        self.file_name = file_name


class PipelineError(ExtractionError):
    """The handwritten OCR pipeline could not run to completion."""


class OCRError(NotoExtractError):
    """Base class for remote OCR failures."""


class OCRTransportError(OCRError):
    """Timeout, unexpected HTTP status, or malformed body.

    Scoped to a single request: when chunking, only that chunk fails.
    """


class OCRProviderError(OCRError):
    """Quota, authentication, or processing-level failure reported by the provider.

    Aborts the whole handwritten extraction.
    """
