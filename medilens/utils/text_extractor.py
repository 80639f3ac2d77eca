# medilens/utils/text_extractor.py
"""
Per-file-type text extraction.

Each strategy implements ``extract(data, file_name, progress=None) -> str``
and is picked by a ``FileKind`` tag derived from the MIME type. Strategies
always return real content or an explicit placeholder; failures raise
``ExtractionError`` with a message that can be shown to the user.
"""
import asyncio
import enum
import functools
import logging
from typing import Callable, Dict, Optional

import pytesseract
from PIL import Image

from medilens.core.errors import ExtractionError
from medilens.schemas.file import ExtractedText
from medilens.utils.ocr import ProgressCallback, recognize_image
from medilens.utils.pdf_parser import decode_pdf_bytes_best_effort, extract_text_from_pdf_bytes

logger = logging.getLogger(__name__)

PDF_MIN_TEXT_LENGTH = 50


class FileKind(str, enum.Enum):
    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"


def kind_for_mime(mime_type: Optional[str]) -> Optional[FileKind]:
    mime = (mime_type or "").lower()
    if mime == "text/plain":
        return FileKind.TEXT
    if mime == "application/pdf":
        return FileKind.PDF
    if mime.startswith("image/"):
        return FileKind.IMAGE
    return None


class PlainTextStrategy:
    def extract(self, data: bytes, file_name: str, progress: Optional[ProgressCallback] = None) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError("Failed to read text file") from exc


class PdfStrategy:
    def __init__(self, min_text_length: int = PDF_MIN_TEXT_LENGTH):
        self.min_text_length = min_text_length

    def extract(self, data: bytes, file_name: str, progress: Optional[ProgressCallback] = None) -> str:
        try:
            text = extract_text_from_pdf_bytes(data)
        except RuntimeError as exc:
            # not parseable as a PDF; scan the raw bytes instead
            logger.info("PyMuPDF could not open %s (%s); decoding raw bytes", file_name, exc)
            text = decode_pdf_bytes_best_effort(data)
        except ValueError as exc:
            # opened, but pages are unreadable (password protected or damaged)
            logger.warning("PDF extraction failed for %s: %s", file_name, exc)
            raise ExtractionError(f"Failed to extract text from PDF: {exc}") from exc

        if len(text) < self.min_text_length:
            return (
                f"[PDF file: {file_name}]\n\n"
                "Note: This PDF may contain images or complex formatting. For better text "
                "extraction, please convert to image format or use a specialized PDF tool."
            )
        return f"[PDF Content Extracted from: {file_name}]\n\n{text}"


class ImageStrategy:
    def __init__(self, language: str = "eng", recognizer: Callable[..., str] = recognize_image):
        self.language = language
        self.recognizer = recognizer

    def extract(self, data: bytes, file_name: str, progress: Optional[ProgressCallback] = None) -> str:
        try:
            text = self.recognizer(data, language=self.language, progress=progress)
        except (pytesseract.TesseractError, Image.DecompressionBombError, OSError, ValueError) as exc:
            logger.warning("OCR failed for %s: %s", file_name, exc)
            raise ExtractionError(f"Failed to extract text from image: {exc}") from exc

        text = (text or "").strip()
        if not text:
            return (
                f"[Image processed: {file_name}]\n\n"
                "No readable text was found in this image. The image may be too blurry, "
                "have poor contrast, or contain no text content."
            )
        return f"[OCR Text Extracted from: {file_name}]\n\n{text}"


class TextExtractor:
    def __init__(self, strategies: Optional[Dict[FileKind, object]] = None, settings=None):
        if strategies is None:
            min_length = getattr(settings, "PDF_MIN_TEXT_LENGTH", PDF_MIN_TEXT_LENGTH)
            language = getattr(settings, "OCR_LANGUAGE", "eng")
            strategies = {
                FileKind.TEXT: PlainTextStrategy(),
                FileKind.PDF: PdfStrategy(min_text_length=min_length),
                FileKind.IMAGE: ImageStrategy(language=language),
            }
        self.strategies = strategies

    def extract(
        self,
        data: bytes,
        mime_type: str,
        file_name: str,
        progress: Optional[ProgressCallback] = None,
    ) -> ExtractedText:
        kind = kind_for_mime(mime_type)
        strategy = self.strategies.get(kind) if kind else None
        if strategy is None:
            raise ExtractionError("Unsupported file type for text extraction")

        content = strategy.extract(data, file_name, progress=progress)
        logger.info("Extracted %d characters from %s (%s)", len(content), file_name, kind.value)
        return ExtractedText(source_file_name=file_name, content=content, mime_type=mime_type)

    async def extract_async(
        self,
        data: bytes,
        mime_type: str,
        file_name: str,
        progress: Optional[ProgressCallback] = None,
    ) -> ExtractedText:
        # OCR and PDF parsing are CPU bound; keep them off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(self.extract, data, mime_type, file_name, progress),
        )
