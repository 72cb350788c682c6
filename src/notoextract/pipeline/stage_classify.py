"""Classification Stage - Pick a structured extraction route for a file.

Routing is driven by MIME type. When the uploader sent no MIME type or a
generic one, the filename extension decides instead.
"""

from pathlib import PurePath
from typing import Optional

from notoextract.models import ExtractionStrategy

GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

MIME_STRATEGIES: dict[str, ExtractionStrategy] = {
    "application/pdf": ExtractionStrategy.PDF,
    "application/msword": ExtractionStrategy.WORD,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ExtractionStrategy.WORD,
    "application/vnd.ms-powerpoint": ExtractionStrategy.POWERPOINT,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ExtractionStrategy.POWERPOINT,
    "text/plain": ExtractionStrategy.PLAIN_TEXT,
}

EXTENSION_STRATEGIES: dict[str, ExtractionStrategy] = {
    ".pdf": ExtractionStrategy.PDF,
    ".doc": ExtractionStrategy.WORD,
    ".docx": ExtractionStrategy.WORD,
    ".ppt": ExtractionStrategy.POWERPOINT,
    ".pptx": ExtractionStrategy.POWERPOINT,
    ".txt": ExtractionStrategy.PLAIN_TEXT,
}


def classify(mime_type: Optional[str], file_name: Optional[str] = None) -> ExtractionStrategy:
    """Map a MIME type (or extension) to an extraction strategy.

    Pure function: unknown inputs map to UNSUPPORTED, never raise.

    Args:
        mime_type: MIME type reported by the uploader.
        file_name: Original filename, consulted only for generic MIME types.

    Returns:
        ExtractionStrategy enum value.
    """
    mime = (mime_type or "").split(";", 1)[0].strip().lower()

    strategy = MIME_STRATEGIES.get(mime)
    if strategy is not None:
        return strategy

    if mime in GENERIC_MIME_TYPES and file_name:
        extension = PurePath(file_name).suffix.lower()
        return EXTENSION_STRATEGIES.get(extension, ExtractionStrategy.UNSUPPORTED)

    return ExtractionStrategy.UNSUPPORTED

