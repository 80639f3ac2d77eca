# medilens/utils/validators.py
from typing import Iterable, Optional
from urllib.parse import urlparse

from medilens.core.config import SUPPORTED_UPLOAD_TYPES

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

UNSUPPORTED_TYPE_MESSAGE = "Supported file types: PDF, TXT, JPG, PNG, GIF, BMP, WebP"
FILE_TOO_LARGE_MESSAGE = "File size must be less than 10MB"
EMPTY_FILE_MESSAGE = "Empty file"
INVALID_URL_MESSAGE = "Please enter a valid URL"


def validate_upload(
    mime_type: Optional[str],
    size_bytes: int,
    allowed_types: Iterable[str] = SUPPORTED_UPLOAD_TYPES,
    max_size_bytes: int = MAX_FILE_SIZE,
) -> Optional[str]:
    """
    Check a file's declared MIME type and size before any extraction runs.

    Returns None when the file is acceptable, otherwise a message naming the
    constraint that failed. Never raises.
    """
    if (mime_type or "").lower() not in set(allowed_types):
        return UNSUPPORTED_TYPE_MESSAGE
    if size_bytes > max_size_bytes:
        if max_size_bytes == MAX_FILE_SIZE:
            return FILE_TOO_LARGE_MESSAGE
        return f"File size must be less than {max_size_bytes // (1024 * 1024)}MB"
    if size_bytes <= 0:
        return EMPTY_FILE_MESSAGE
    return None


def validate_url(url: Optional[str]) -> Optional[str]:
    candidate = (url or "").strip()
    if not candidate:
        return INVALID_URL_MESSAGE
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return INVALID_URL_MESSAGE
    return None
