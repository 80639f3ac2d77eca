# medilens/utils/ocr.py
# install: pip install pytesseract pillow (needs the tesseract binary on PATH)
import io
import logging
from typing import Callable, Optional

import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def _report(progress: Optional[ProgressCallback], percent: int):
    if progress is None:
        return
    progress(max(0, min(100, int(percent))))


def recognize_image(
    image_bytes: bytes,
    language: str = "eng",
    progress: Optional[ProgressCallback] = None,
) -> str:
    """
    Run Tesseract over raw image bytes and return the recognized text.

    Progress is reported as integer percentages on the optional callback;
    it is informational only. Errors from Pillow or Tesseract propagate.
    """
    _report(progress, 0)

    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    _report(progress, 20)

    # GIF/BMP/WebP come in palette or alpha modes tesseract handles poorly
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    _report(progress, 40)

    text = pytesseract.image_to_string(image, lang=language)
    logger.debug("OCR recognized %d characters (lang=%s)", len(text), language)
    _report(progress, 100)
    return text
