"""Rasterized page model used by the low-text fallback."""

from pathlib import Path

from pydantic import Field

from .base import BaseIRModel


class RenderedPage(BaseIRModel):
    """A PDF page written to disk as an image, ready for local OCR."""

    page_number: int = Field(..., ge=1)
    image_path: str
    width_pixels: int = Field(..., gt=0)
    height_pixels: int = Field(..., gt=0)
    dpi: int = Field(..., gt=0)
    file_size_bytes: int = Field(default=0, ge=0)

    @property
    def path(self) -> Path:
        return Path(self.image_path)
