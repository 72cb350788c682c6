"""Pipeline stages for text extraction.

Typed documents:
1. stage_classify - MIME type / extension to extraction strategy
2. stage_structured - Native text layer (PDF, Word, PowerPoint, text)
3. stage_render - PDF pages to PNG for local OCR
4. stage_ocr - Printed text OCR (Tesseract)
5. stage_fallback - Local OCR for low-text PDFs

Handwritten documents:
6. stage_compress - Oversize image recompression
7. stage_split - PDF chunking within provider limits
8. stage_remote - Remote OCR client
9. stage_htr - Handwriting recognition pipeline

Each stage is independent and can be run separately or
orchestrated through notoextract.service.
"""

from .stage_classify import classify
from .stage_compress import compress_image
from .stage_fallback import LocalOCRFallback
from .stage_htr import HandwrittenOCRPipeline
from .stage_ocr import TesseractOCR
from .stage_remote import OCRSpaceClient, parse_ocr_response
from .stage_render import PDFRenderer, open_pdf, read_pdf_info
from .stage_split import PDFSplitter, partition_pages, plan_chunks
from .stage_structured import (
    PDFTextExtractor,
    PlainTextExtractor,
    PowerPointExtractor,
    StructuredExtractor,
    WordExtractor,
    normalize_whitespace,
)

__all__ = [
    # Classification
    "classify",
    # Structured
    "StructuredExtractor",
    "PDFTextExtractor",
    "WordExtractor",
    "PowerPointExtractor",
    "PlainTextExtractor",
    "normalize_whitespace",
    # Render
    "PDFRenderer",
    "open_pdf",
    "read_pdf_info",
    # OCR (Printed Text)
    "TesseractOCR",
    "LocalOCRFallback",
    # Handwriting
    "compress_image",
    "PDFSplitter",
    "partition_pages",
    "plan_chunks",
    "OCRSpaceClient",
    "parse_ocr_response",
    "HandwrittenOCRPipeline",
]
