"""Document-level models."""

from typing import Optional

from pydantic import Field

from .base import BaseIRModel, DocumentType


class SourceDocument(BaseIRModel):
    """
    An uploaded file handed to the extraction service.

    Never mutated. PDFs may be re-encoded into derived chunk documents,
    but the source bytes are only read.
    """

    content: bytes = Field(..., repr=False, description="Raw file bytes")
    file_name: str = Field(..., description="Original filename")
    mime_type: str = Field(default="", description="MIME type reported by the uploader")
    document_type: DocumentType = Field(default=DocumentType.TYPED)

    @property
    def size_bytes(self) -> int:
        """Payload size in bytes."""
        return len(self.content)

    @property
    def size_kb(self) -> float:
        """Payload size in KiB."""
        return len(self.content) / 1024

    @property
    def base_mime_type(self) -> str:
        """MIME type lowercased, without parameters such as charset."""
        return self.mime_type.split(";", 1)[0].strip().lower()

    @property
    def is_image(self) -> bool:
        """Check if the MIME type denotes an image."""
        return self.base_mime_type.startswith("image/")

    @property
    def is_pdf(self) -> bool:
        """Check if the MIME type denotes a PDF."""
        return self.base_mime_type == "application/pdf"


class PDFInfo(BaseIRModel):
    """Metadata read from a PDF before extraction."""

    page_count: int = Field(..., ge=0)
    title: Optional[str] = None
    author: Optional[str] = None
    encrypted: bool = Field(default=False)
