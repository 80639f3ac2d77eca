# install: pip install pymupdf
import fitz  # PyMuPDF
import re

_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E\n]")


class EncryptedPdfError(ValueError):
    pass


def _clean_text(text: str) -> str:
    """
    Common text cleanup for extracted PDF text.
    """
    if not text:
        return ""

    # remove null characters
    text = text.replace("\x00", "")

    # drop control/unprintable characters, keep line structure
    text = "".join(ch if ch == "\n" or ch.isprintable() else " " for ch in text)

    # normalize spaces/tabs
    text = re.sub(r"[ \t]+", " ", text)

    # collapse runs of blank lines (keep paragraphs)
    text = re.sub(r"\n\s*\n+", "\n\n", text)

    return text.strip()


def _page_text(page: fitz.Page) -> str:
    text = page.get_text("text")

    # scanned or oddly laid out pages: fall back to text blocks
    if not text.strip():
        text = "\n".join(block[4] for block in page.get_text("blocks") if block[4].strip())

    return _clean_text(text)


def _extract_text_from_doc(doc: fitz.Document) -> str:
    """
    Text of every page that has any, pages separated by a blank line.
    """
    pages = (_page_text(page) for page in doc)
    return "\n\n".join(text for text in pages if text)


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> str:
    """
    Extract the text layer from PDF bytes using PyMuPDF.

    Raises RuntimeError (fitz.FileDataError) when the bytes are not a PDF and
    EncryptedPdfError when the document needs a password.
    """
    if not pdf_bytes:
        return ""

    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        if doc.needs_pass:
            raise EncryptedPdfError("the document is password protected")
        return _extract_text_from_doc(doc)
    finally:
        doc.close()


def decode_pdf_bytes_best_effort(pdf_bytes: bytes) -> str:
    """
    Raw decode for bytes PyMuPDF cannot open: anything outside printable
    ASCII (newlines kept) becomes a space.
    """
    if not pdf_bytes:
        return ""
    text = pdf_bytes.decode("utf-8", errors="replace")
    return _NON_PRINTABLE_ASCII.sub(" ", text).strip()
