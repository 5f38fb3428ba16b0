"""Tests for the ingestion pipeline."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from conftest import FakeExchangeSession, text_converter
from nseresults.errors import ResultsError
from nseresults.models.calendar_entry import CalendarStatus, DownloadStatus
from nseresults.pipeline import PipelineState, ResultsPipeline, announcement_items

NOW = datetime(2025, 10, 9, 20, 0, tzinfo=timezone.utc)
ANNOUNCED = date(2025, 10, 9)

PDF_URL = "https://nsearchives.nseindia.com/corporate/TCS_09102025.pdf"
XBRL_URL = "https://nsearchives.nseindia.com/corporate/xbrl/TCS_09102025.xml"
MEDIA_PDF_URL = "https://nsearchives.nseindia.com/corporate/TCS_media.pdf"

MEDIA_CALL = {
    "symbol": "TCS",
    "sm_name": "Tata Consultancy Services Limited",
    "desc": "General Updates",
    "attchmntText": "Tata Consultancy Services Limited has informed the Exchange about Call with Media",
    "an_dt": "09-Oct-2025 17:30:00",
    "attchmntFile": MEDIA_PDF_URL,
}

RESULTS = {
    "symbol": "TCS",
    "sm_name": "Tata Consultancy Services Limited",
    "desc": "Outcome of Board Meeting",
    "attchmntText": "Tata Consultancy Services Limited has submitted to the Exchange the financial "
                    "results for the quarter ended 30th September 2025",
    "an_dt": "09-Oct-2025 19:45:12",
    "attchmntFile": PDF_URL,
}

RESULTS_WITH_XBRL = {**RESULTS, "hasXbrl": True, "xbrl": XBRL_URL}


def _pipeline(storage, session) -> ResultsPipeline:
    return ResultsPipeline(session, storage, text_converter=text_converter, clock=lambda: NOW)


def _entry(storage, symbol="TCS"):
    stock = storage.get_stock_by_symbol(symbol)
    return storage.get_results_calendar_by_stock_and_date(stock.id, ANNOUNCED)


class TestNotifications:
    def test_media_call_recorded_without_download(self, storage):
        session = FakeExchangeSession()
        outcome = _pipeline(storage, session).process_announcement(MEDIA_CALL)

        entry = _entry(storage)
        assert entry.status is CalendarStatus.WAITING
        assert entry.download_status is DownloadStatus.PENDING
        assert entry.announcement_type == "notification"
        assert "Call with Media" in entry.notification_text
        assert outcome.extraction_attempts == 0
        assert outcome.created
        assert outcome.state is PipelineState.CALENDAR_RECORDED
        assert session.downloads == []

    def test_declaration_date_kept(self, storage):
        item = {**MEDIA_CALL, "attchmntText": "Earnings call to discuss results on 9th October, 2025"}
        _pipeline(storage, FakeExchangeSession()).process_announcement(item)

        assert _entry(storage).result_declaration_date == date(2025, 10, 9)

    def test_repeat_notification_is_skipped(self, storage):
        pipeline = _pipeline(storage, FakeExchangeSession())
        pipeline.process_announcement(MEDIA_CALL)
        outcome = pipeline.process_announcement({**MEDIA_CALL, "an_dt": "09-Oct-2025 18:00:00"})

        assert outcome.skipped
        assert len(storage.list_results_calendar()) == 1


class TestExtraction:
    def test_xbrl_takes_precedence(self, storage, sample_xbrl, tcs_text):
        session = FakeExchangeSession(documents={
            XBRL_URL: sample_xbrl,
            PDF_URL: tcs_text.replace("65,799", "99,999").encode("utf-8"),
        })
        outcome = _pipeline(storage, session).process_announcement(RESULTS_WITH_XBRL)

        assert outcome.state is PipelineState.STORED
        assert outcome.result.revenue == 65799.0
        assert outcome.result.source == "xbrl"
        assert outcome.extraction_attempts == 1
        assert session.downloads == [XBRL_URL]
        assert PipelineState.DOCUMENT_EXTRACTION_ATTEMPTED not in outcome.states

        entry = _entry(storage)
        assert entry.status is CalendarStatus.READY
        assert entry.download_status is DownloadStatus.DOWNLOADED
        assert entry.extraction_source == "xbrl"
        assert entry.parsing_completed_at == NOW

    def test_document_fallback_when_xbrl_unusable(self, storage, tcs_text):
        session = FakeExchangeSession(documents={
            XBRL_URL: b"<xbrl><broken></xbrl>",
            PDF_URL: tcs_text.encode("utf-8"),
        })
        outcome = _pipeline(storage, session).process_announcement(RESULTS_WITH_XBRL)

        assert outcome.state is PipelineState.STORED
        assert outcome.result.source == "document"
        assert outcome.result.revenue == 65799.0
        assert outcome.result.eps == 33.37
        assert outcome.extraction_attempts == 2
        assert session.downloads == [XBRL_URL, PDF_URL]

    def test_document_only(self, storage, tcs_text):
        session = FakeExchangeSession(documents={PDF_URL: tcs_text.encode("utf-8")})
        outcome = _pipeline(storage, session).process_announcement(RESULTS)

        assert outcome.state is PipelineState.STORED
        assert (outcome.result.quarter, outcome.result.fiscal_year) == ("Q2", "FY2526")
        assert outcome.result.published_at == ANNOUNCED
        assert outcome.extraction_attempts == 1

    def test_period_taken_from_announcement(self, storage):
        item = {**RESULTS, "symbol": "NEWLISTCO", "sm_name": "New Listing Co"}
        text = "Revenue from operations of Rs 500.00 crore\nNet profit of Rs 50.00 crore\n"
        session = FakeExchangeSession(documents={PDF_URL: text.encode("utf-8")})
        outcome = _pipeline(storage, session).process_announcement(item)

        assert outcome.state is PipelineState.STORED
        assert (outcome.result.quarter, outcome.result.fiscal_year) == ("Q2", "FY2526")

    def test_failed_extraction_leaves_entry_waiting(self, storage):
        text = "Board meeting agenda. Revenue and net profit to be discussed."
        session = FakeExchangeSession(documents={PDF_URL: text.encode("utf-8")})
        outcome = _pipeline(storage, session).process_announcement(RESULTS)

        assert outcome.state is PipelineState.FAILED
        assert outcome.errors
        entry = _entry(storage)
        assert entry.status is CalendarStatus.WAITING
        assert entry.download_status is DownloadStatus.FAILED
        assert storage.list_quarterly_results(entry.stock_id) == []

    def test_download_failure(self, storage):
        session = FakeExchangeSession(documents={PDF_URL: ResultsError("HTTP 500")})
        outcome = _pipeline(storage, session).process_announcement(RESULTS)

        assert outcome.state is PipelineState.FAILED
        assert _entry(storage).download_status is DownloadStatus.FAILED

    def test_converter_failure_marks_download_failed(self, storage):
        def broken_converter(data: bytes):
            raise RuntimeError("cannot open broken document: format error")

        session = FakeExchangeSession(documents={PDF_URL: b"%PDF-1.7 truncated"})
        pipeline = ResultsPipeline(session, storage, text_converter=broken_converter, clock=lambda: NOW)
        outcome = pipeline.process_announcement(RESULTS)

        assert outcome.state is PipelineState.FAILED
        assert "Document conversion failed" in outcome.errors[0]
        entry = _entry(storage)
        assert entry.status is CalendarStatus.WAITING
        assert entry.download_status is DownloadStatus.FAILED

    def test_ambiguous_announcement_with_call_document(self, storage):
        item = {
            "symbol": "INFY",
            "desc": "Board Meeting",
            "attchmntText": "Financial results",
            "an_dt": "09-Oct-2025 10:00:00",
            "attchmntFile": PDF_URL,
        }
        text = "Join our earnings call. Dial-in details below. Conference call at 5 pm."
        session = FakeExchangeSession(documents={PDF_URL: text.encode("utf-8")})
        outcome = _pipeline(storage, session).process_announcement(item)

        assert outcome.classification.type.value == "unknown"
        assert outcome.state is PipelineState.FAILED
        assert "notification" in outcome.errors[0]

    def test_results_after_notification_upgrade_entry(self, storage, tcs_text):
        session = FakeExchangeSession(documents={PDF_URL: tcs_text.encode("utf-8")})
        pipeline = _pipeline(storage, session)
        pipeline.process_announcement(MEDIA_CALL)
        outcome = pipeline.process_announcement(RESULTS)

        assert outcome.state is PipelineState.STORED
        assert not outcome.created
        assert len(storage.list_results_calendar()) == 1
        assert _entry(storage).status is CalendarStatus.READY


class TestProcessingErrors:
    def test_missing_symbol_fails_without_raising(self, storage):
        outcome = _pipeline(storage, FakeExchangeSession()).process_announcement({"desc": "x"})

        assert outcome.state is PipelineState.FAILED
        assert "no symbol" in outcome.errors[0]

    def test_missing_date_fails(self, storage):
        outcome = _pipeline(storage, FakeExchangeSession()).process_announcement(
            {"symbol": "TCS", "desc": "General Updates"}
        )
        assert outcome.state is PipelineState.FAILED


class TestIngestionPass:
    def test_window_parameters(self, storage):
        session = FakeExchangeSession(payload=[])
        _pipeline(storage, session).run_ingestion_pass(today=ANNOUNCED)

        endpoint, params = session.get_calls[0]
        assert endpoint == "/api/corporate-announcements"
        assert params == {"index": "equities", "from_date": "02-10-2025", "to_date": "08-11-2025"}

    def test_envelope_payload(self, storage, tcs_text):
        session = FakeExchangeSession(
            payload={"data": [MEDIA_CALL, {**RESULTS, "an_dt": "10-Oct-2025 09:00:00"}]},
            documents={PDF_URL: tcs_text.encode("utf-8")},
        )
        pipeline = _pipeline(storage, session)

        assert pipeline.run_ingestion_pass(today=ANNOUNCED) == 2
        summary = pipeline.last_summary
        assert summary.seen == 2
        assert summary.notifications == 1
        assert summary.stored == 1

    def test_duplicates_within_a_pass(self, storage):
        session = FakeExchangeSession(payload=[MEDIA_CALL, MEDIA_CALL])
        pipeline = _pipeline(storage, session)

        assert pipeline.run_ingestion_pass(today=ANNOUNCED) == 1
        assert pipeline.last_summary.skipped == 1

    def test_bad_item_does_not_abort_pass(self, storage):
        session = FakeExchangeSession(payload=[{"desc": "no symbol"}, MEDIA_CALL])
        pipeline = _pipeline(storage, session)

        assert pipeline.run_ingestion_pass(today=ANNOUNCED) == 1
        assert pipeline.last_summary.failed == 1

    def test_listing_failure_returns_zero(self, storage):
        session = FakeExchangeSession(payload=ResultsError("HTTP 503", retryable=True))
        assert _pipeline(storage, session).run_ingestion_pass(today=ANNOUNCED) == 0

    def test_failed_entry_retried_next_pass(self, storage, tcs_text):
        session = FakeExchangeSession(
            payload=[RESULTS],
            documents={PDF_URL: ResultsError("HTTP 500")},
        )
        pipeline = _pipeline(storage, session)
        assert pipeline.run_ingestion_pass(today=ANNOUNCED) == 1
        assert _entry(storage).download_status is DownloadStatus.FAILED

        session.documents[PDF_URL] = tcs_text.encode("utf-8")
        assert pipeline.run_ingestion_pass(today=ANNOUNCED) == 0
        assert _entry(storage).status is CalendarStatus.READY
        assert pipeline.last_summary.stored == 1

    def test_ready_entry_skipped_next_pass(self, storage, tcs_text):
        session = FakeExchangeSession(payload=[RESULTS], documents={PDF_URL: tcs_text.encode("utf-8")})
        pipeline = _pipeline(storage, session)
        pipeline.run_ingestion_pass(today=ANNOUNCED)
        pipeline.run_ingestion_pass(today=ANNOUNCED)

        assert pipeline.last_summary.skipped == 1
        assert session.downloads == [PDF_URL]


@pytest.mark.parametrize("payload, expected", [
    ([{"symbol": "TCS"}], 1),
    ({"data": [{"symbol": "TCS"}, {"symbol": "INFY"}]}, 2),
    ({"error": "unavailable"}, 0),
    (None, 0),
])
def test_announcement_items(payload, expected):
    assert len(announcement_items(payload)) == expected
