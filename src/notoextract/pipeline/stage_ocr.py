"""OCR Stage - Local printed-text recognition for rasterized pages.

Only the low-text PDF fallback runs local OCR; handwriting goes to the
remote provider instead. Pages are converted to grayscale before being
handed to Tesseract.
"""

from pathlib import Path
from typing import Optional, Union

import pytesseract
from PIL import Image

from notoextract.config import settings


class TesseractOCR:
    """Tesseract wrapper used by the low-text fallback."""

    def __init__(
        self,
        language: Optional[str] = None,
        page_mode: int = 3,
        timeout_seconds: Optional[float] = None,
        extra_args: str = "",
    ):
        """Initialize the engine.

        Args:
            language: Tesseract language code(s), e.g. 'eng' or 'eng+deu'.
            page_mode: Page segmentation mode (3 = automatic, whole page).
            timeout_seconds: Per-page limit; a page that runs over raises.
            extra_args: Additional Tesseract command-line options.
        """
        self.language = language or settings.tesseract_language
        self.page_mode = page_mode
        self.timeout_seconds = (
            settings.tesseract_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.extra_args = extra_args

    @property
    def tesseract_args(self) -> str:
        """Command-line options passed to Tesseract."""
        return f"--psm {self.page_mode} {self.extra_args}".strip()

    def is_available(self) -> bool:
        """Check if the Tesseract binary can be found."""
        try:
            pytesseract.get_tesseract_version()
        except EnvironmentError:
            return False
        return True

    def extract_text(self, image_path: Union[str, Path]) -> str:
        """Recognize the text on one page image.

        Raises:
            RuntimeError: Tesseract exceeded the page timeout.
            pytesseract.TesseractError: Tesseract failed on this image.
        """
        with Image.open(image_path) as page_image:
            grayscale = page_image.convert("L")
            text = pytesseract.image_to_string(
                grayscale,
                lang=self.language,
                config=self.tesseract_args,
                timeout=self.timeout_seconds,
            )
        return text.strip()
