"""Tests for PDF text conversion."""

from __future__ import annotations

import fitz
import pytest

from nseresults.documents import pdf_to_text
from nseresults.errors import ResultsError, ResultsErrorCode


def _pdf(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


class TestPdfToText:
    def test_pages_joined(self):
        document = pdf_to_text(_pdf("Revenue from operations 65,799", "PROFIT FOR THE PERIOD 12,131"))

        assert document.page_count == 2
        assert "Revenue from operations 65,799" in document.text
        assert "PROFIT FOR THE PERIOD 12,131" in document.text

    def test_blank_pages_give_empty_text(self):
        document = pdf_to_text(_pdf(""))
        assert document.text.strip() == ""

    def test_unreadable_bytes(self):
        with pytest.raises(ResultsError) as exc_info:
            pdf_to_text(b"this is not a pdf")
        assert exc_info.value.code is ResultsErrorCode.EXTRACTION_FAILED
