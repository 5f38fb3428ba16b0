"""Binary document to plain text conversion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import fitz  # PyMuPDF

from nseresults.errors import ResultsError, ResultsErrorCode


@dataclass(frozen=True)
class DocumentText:
    page_count: int
    text: str


TextConverter = Callable[[bytes], DocumentText]


def pdf_to_text(data: bytes) -> DocumentText:
    """Extract the text layer of a PDF, pages joined by newlines.

    Scanned documents yield empty text rather than an error; the parsers
    report that case.

    Raises:
        ResultsError: If the bytes are not a readable PDF.
    """
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        raise ResultsError(
            f"Unreadable PDF document: {e}",
            code=ResultsErrorCode.EXTRACTION_FAILED,
        ) from e
    try:
        pages = [page.get_text() for page in doc]
    finally:
        doc.close()
    return DocumentText(page_count=len(pages), text="\n".join(pages))
