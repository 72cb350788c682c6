"""Handwriting Recognition Stage - Remote OCR within provider limits.

Handwritten uploads go to the remote OCR provider, which rejects payloads
above a size ceiling and ignores pages beyond a page-count ceiling:

1. Payloads within both ceilings are submitted directly.
2. Oversize images are downscaled and re-encoded once, then submitted
   (the provider has the final word on size).
3. PDFs above either ceiling are split into consecutive page chunks.
   Chunks still above the size ceiling are skipped; failed chunks are
   recorded. Neither stops the remaining chunks.
4. Chunk results are merged in page order with '=== Pages a-b ===' markers
   and bracketed notes for skipped or failed ranges.

Chunks are submitted through a small thread pool. Results are stored by
sequence number, so completion order never affects the merged text.
Provider-level errors (quota, key, processing flag) abort the call.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import PurePath
from typing import Optional

from notoextract.config import settings
from notoextract.exceptions import OCRProviderError, PipelineError
from notoextract.models import (
    ChunkOutcome,
    ChunkStatus,
    DocumentType,
    ExtractionChunk,
    ExtractionMethod,
    ExtractionResult,
    OCRProviderConfig,
    PageRange,
    SourceDocument,
    page_runs,
)
from notoextract.pipeline.stage_compress import COMPRESSED_MIME_TYPE, compress_image
from notoextract.pipeline.stage_remote import OCRSpaceClient
from notoextract.pipeline.stage_render import open_pdf
from notoextract.pipeline.stage_split import PDFSplitter

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


class HandwrittenOCRPipeline:
    """Fits handwritten documents to the remote provider and merges results."""

    def __init__(
        self,
        config: OCRProviderConfig,
        client: Optional[OCRSpaceClient] = None,
        concurrency: Optional[int] = None,
        image_max_width: Optional[int] = None,
        image_quality: Optional[int] = None,
    ):
        """Initialize pipeline.

        Args:
            config: Remote provider limits and credentials.
            client: Remote OCR client (default built from config).
            concurrency: Concurrent chunk requests (default from settings).
            image_max_width: Width cap for image recompression.
            image_quality: JPEG quality for image recompression.
        """
        self.config = config
        self._owns_client = client is None
        self.client = client or OCRSpaceClient(config)
        self.concurrency = max(1, concurrency or settings.ocr_chunk_concurrency)
        self.image_max_width = image_max_width or settings.image_max_width
        self.image_quality = image_quality or settings.image_jpeg_quality
        self.splitter = PDFSplitter(
            size_budget=config.max_payload_bytes,
            page_ceiling=config.max_pages_per_request,
        )

    def close(self) -> None:
        """Close the remote OCR client when this pipeline created it."""
        if self._owns_client:
            self.client.close()

    def extract_handwritten(
        self,
        content: bytes,
        file_name: str,
        mime_type: str,
    ) -> ExtractionResult:
        """Extract handwritten text from an image or PDF.

        Args:
            content: File bytes.
            file_name: Original filename.
            mime_type: MIME type of the upload.

        Returns:
            ExtractionResult with page-marked text.

        Raises:
            OCRError: Remote OCR failed for a directly submitted payload, or
                the provider reported a fatal error during chunking.
            PipelineError: The PDF could not be split or the image could
                not be compressed.
        """
        document = SourceDocument(
            content=content,
            file_name=file_name,
            mime_type=mime_type or "",
            document_type=DocumentType.HANDWRITTEN,
        )
        logger.info(
            "Starting handwritten extraction: file=%s, mime=%s, size=%.2f KB, limit=%.2f KB",
            file_name, mime_type, document.size_kb, self.config.max_payload_bytes / 1024,
        )

        oversize = document.size_bytes > self.config.max_payload_bytes

        if document.is_pdf:
            page_count = self._pdf_page_count(content)
            too_many_pages = (
                page_count is not None and page_count > self.config.max_pages_per_request
            )
            if oversize or too_many_pages:
                return self._extract_chunked(document)

        elif oversize and document.is_image:
            content = self._compress(content, file_name)
            mime_type = COMPRESSED_MIME_TYPE
            if len(content) > self.config.max_payload_bytes:
                logger.warning(
                    "Compressed image still exceeds the payload limit (%.2f KB); submitting anyway",
                    len(content) / 1024,
                )

        elif oversize:
            logger.warning(
                "File %s exceeds the payload limit and cannot be reduced; submitting anyway",
                file_name,
            )

        remote = self.client.perform_ocr(content, file_name, mime_type)
        logger.info("Handwritten extraction complete: %s, %d chars", file_name, len(remote.text))

        return ExtractionResult(
            text=remote.text,
            file_name=file_name,
            method=ExtractionMethod.REMOTE_OCR,
            is_diagnostic=not remote.has_text,
            page_count=remote.pages_parsed + remote.pages_failed,
            pages_covered=page_runs(remote.parsed_pages),
        )

    def _pdf_page_count(self, content: bytes) -> Optional[int]:
        """Page count of a PDF, or None when it cannot be opened."""
        try:
            with open_pdf(content) as pdf_doc:
                return pdf_doc.page_count
        except Exception as e:
            logger.warning("Could not read PDF page count: %s", e)
            return None

    def _compress(self, content: bytes, file_name: str) -> bytes:
        try:
            return compress_image(content, self.image_max_width, self.image_quality)
        except Exception as e:
            raise PipelineError(f"Failed to compress document for OCR: {e}", file_name) from e

    # =====================
    # Chunked PDF processing
    # =====================

    def _extract_chunked(self, document: SourceDocument) -> ExtractionResult:
        """Split a PDF, OCR every chunk, and merge results in page order."""
        file_name = document.file_name
        try:
            pdf_doc = open_pdf(document.content)
        except Exception as e:
            raise PipelineError(f"Failed to split PDF: {e}", file_name) from e

        with pdf_doc:
            try:
                plan = self.splitter.plan_document(pdf_doc, document.size_bytes)
            except ValueError as e:
                raise PipelineError(f"Failed to split PDF: {e}", file_name) from e

            outcomes: list[Optional[ChunkOutcome]] = [None] * plan.chunk_count

            with ThreadPoolExecutor(
                max_workers=self.concurrency,
                thread_name_prefix="ocr-chunk",
            ) as executor:
                futures: dict[Future, int] = {}
                try:
                    for index, page_range in enumerate(plan.ranges):
                        chunk_or_outcome = self._prepare_chunk(pdf_doc, page_range, index + 1)
                        if isinstance(chunk_or_outcome, ChunkOutcome):
                            outcomes[index] = chunk_or_outcome
                            continue
                        future = executor.submit(self._process_chunk, chunk_or_outcome, file_name)
                        futures[future] = index

                    for future in as_completed(futures):
                        outcomes[futures[future]] = future.result()
                except OCRProviderError:
                    for future in futures:
                        future.cancel()
                    raise

        return self._merge(file_name, plan.total_pages, [o for o in outcomes if o is not None])

    def _prepare_chunk(self, pdf_doc, page_range: PageRange, sequence_number: int):
        """Build one chunk, or an outcome when it cannot be submitted."""
        try:
            chunk = self.splitter.build_chunk(pdf_doc, page_range, sequence_number)
        except Exception as e:
            logger.error("Chunk %d (pages %s) could not be built: %s", sequence_number, page_range.label, e)
            return ChunkOutcome(
                sequence_number=sequence_number,
                page_range=page_range,
                status=ChunkStatus.FAILED,
                reason=f"Could not build chunk: {e}",
            )

        if chunk.size_bytes > self.config.max_payload_bytes:
            logger.warning(
                "Chunk %d still too large (%.2f KB); skipping pages %s",
                sequence_number, chunk.size_kb, page_range.label,
            )
            return ChunkOutcome(
                sequence_number=sequence_number,
                page_range=page_range,
                status=ChunkStatus.SKIPPED_TOO_LARGE,
                reason="Too large to process",
                size_bytes=chunk.size_bytes,
            )

        return chunk

    def _process_chunk(self, chunk: ExtractionChunk, file_name: str) -> ChunkOutcome:
        """OCR one chunk; only provider-level errors escape."""
        chunk_name = f"{PurePath(file_name).stem}_chunk{chunk.sequence_number}.pdf"
        logger.info("Processing chunk %d: pages %s", chunk.sequence_number, chunk.page_range.label)

        try:
            remote = self.client.perform_ocr(chunk.content, chunk_name, PDF_MIME_TYPE)
        except OCRProviderError:
            raise
        except Exception as e:
            logger.error("Chunk %d failed: %s", chunk.sequence_number, e)
            return ChunkOutcome(
                sequence_number=chunk.sequence_number,
                page_range=chunk.page_range,
                status=ChunkStatus.FAILED,
                reason=str(e),
                size_bytes=chunk.size_bytes,
            )

        logger.info("Chunk %d extracted: %d chars", chunk.sequence_number, len(remote.text))
        return ChunkOutcome(
            sequence_number=chunk.sequence_number,
            page_range=chunk.page_range,
            status=ChunkStatus.OK,
            text=remote.text,
            size_bytes=chunk.size_bytes,
            pages_covered=page_runs(remote.parsed_pages, offset=chunk.page_range.start - 1),
        )

    def _merge(
        self,
        file_name: str,
        total_pages: int,
        outcomes: list[ChunkOutcome],
    ) -> ExtractionResult:
        outcomes = sorted(outcomes, key=lambda o: o.sequence_number)
        text = "\n\n".join(o.render() for o in outcomes)
        succeeded = [o for o in outcomes if o.ok]
        covered = [page_range for o in succeeded for page_range in o.pages_covered]

        logger.info(
            "All chunks processed: %s, ok=%d/%d, %d chars",
            file_name, len(succeeded), len(outcomes), len(text),
        )

        return ExtractionResult(
            text=text,
            file_name=file_name,
            method=ExtractionMethod.REMOTE_OCR,
            is_diagnostic=not succeeded,
            page_count=total_pages,
            pages_covered=covered,
            chunk_outcomes=outcomes,
        )
