"""Compression Stage - Shrink oversize handwritten images before remote OCR.

Downscales to a maximum width (aspect ratio kept, never upscaled) and
re-encodes as progressive JPEG with full chroma resolution, which keeps
pen strokes legible for the recognizer.
"""

import logging
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps

from notoextract.config import settings

logger = logging.getLogger(__name__)

COMPRESSED_MIME_TYPE = "image/jpeg"


def compress_image(
    content: bytes,
    max_width: Optional[int] = None,
    quality: Optional[int] = None,
) -> bytes:
    """Re-encode an image as JPEG, downscaling wide images.

    Args:
        content: Source image bytes (any format Pillow can read).
        max_width: Maximum output width in pixels.
        quality: JPEG quality (1-95).

    Returns:
        JPEG bytes.
    """
    max_width = max_width or settings.image_max_width
    quality = quality or settings.image_jpeg_quality

    with Image.open(BytesIO(content)) as source:
        # Apply EXIF rotation so the provider sees the upright page
        image = ImageOps.exif_transpose(source)
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")

        if image.width > max_width:
            height = max(1, round(image.height * max_width / image.width))
            image = image.resize((max_width, height), Image.Resampling.LANCZOS)

        output = BytesIO()
        image.save(
            output,
            format="JPEG",
            quality=quality,
            progressive=True,
            optimize=True,
            subsampling=0,  # 4:4:4
        )

    compressed = output.getvalue()
    logger.info(
        "Image optimized: %.2f KB -> %.2f KB (%.1f%% reduction)",
        len(content) / 1024,
        len(compressed) / 1024,
        (1 - len(compressed) / len(content)) * 100 if content else 0.0,
    )
    return compressed
