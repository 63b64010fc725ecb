from io import BytesIO

from loguru import logger
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .errors import ExtractionFailedError, NoExtractableTextError


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """
    Extract the text layer of every page, joined by newlines.

    Raises:
        NoExtractableTextError: The PDF has no text (image-only or scanned)
        ExtractionFailedError: The bytes are not a readable PDF
    """
    try:
        reader = PdfReader(BytesIO(pdf_bytes))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PyPdfError as e:
        raise ExtractionFailedError(f"Could not read PDF: {e}")

    text = "\n".join(pages)
    logger.info("PDF text extracted", pages=len(pages), length=len(text))

    if not text.strip():
        raise NoExtractableTextError(
            "Could not extract text from PDF. The file might be image-based or corrupted."
        )
    return text
