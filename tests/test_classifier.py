"""Tests for the announcement classifier."""

from __future__ import annotations

from datetime import date

from nseresults.classifier import (
    classify,
    detect_document_type,
    extract_quarter_info,
    extract_result_declaration_date,
    is_definitive_results,
    is_notification,
    score_relevance,
    validate_document_content,
)
from nseresults.models.announcement import Announcement
from nseresults.models.classification import AnnouncementType, Confidence


def _announcement(subject: str, description: str = "") -> Announcement:
    return Announcement(symbol="TCS", subject=subject, description=description)


class TestClassify:
    def test_media_call_is_notification(self):
        result = classify(_announcement(
            "General Updates",
            "Tata Consultancy Services Limited has informed the Exchange about Call with Media",
        ))
        assert result.type is AnnouncementType.NOTIFICATION
        assert result.confidence is Confidence.HIGH
        assert result.is_notification

    def test_board_outcome_with_submission_is_results(self):
        result = classify(_announcement(
            "Outcome of Board Meeting",
            "Tata Consultancy Services Limited has submitted to the Exchange the financial "
            "results for the period ended September 30, 2025",
        ))
        assert result.type is AnnouncementType.RESULTS
        assert result.score == 100
        assert result.confidence is Confidence.HIGH

    def test_board_outcome_alone_is_not_definitive(self):
        assert not is_definitive_results("Outcome of Board Meeting", "Dividend declared")
        assert not is_definitive_results("Financial Results", "has submitted to the Exchange")

    def test_high_score_is_results(self):
        result = classify(_announcement("Financial Results", "Unaudited financial results for Q2"))
        assert result.type is AnnouncementType.RESULTS
        assert result.confidence is Confidence.MEDIUM

    def test_middle_score_is_unknown(self):
        result = classify(_announcement("Board Meeting", "Financial results"))
        assert result.type is AnnouncementType.UNKNOWN
        assert result.confidence is Confidence.LOW
        assert result.score == 50

    def test_low_score_is_notification(self):
        result = classify(_announcement("Change in Directorate", "Appointment of director"))
        assert result.type is AnnouncementType.NOTIFICATION
        assert result.confidence is Confidence.MEDIUM

    def test_notification_carries_declaration_date(self):
        result = classify(_announcement(
            "Intimation",
            "The Board will consider the results on 18th October, 2025. Earnings call details follow.",
        ))
        assert result.type is AnnouncementType.NOTIFICATION
        assert result.result_declaration_date == date(2025, 10, 18)

    def test_intimation_with_submission_is_not_forced_to_notification(self):
        assert not is_notification(
            "Intimation", "Financial results have been submitted to the Exchange",
        )


class TestScore:
    def test_clamped_to_hundred(self):
        assert score_relevance("Financial Results", "Unaudited financial results for Q2 FY26") == 100

    def test_clamped_to_zero(self):
        assert score_relevance("General Updates", "Earnings call dial-in details") == 0

    def test_definitive_scores_hundred(self):
        assert score_relevance("Outcome of Board Meeting", "submitted to the exchange") == 100

    def test_quarter_token_needs_word_boundary(self):
        assert score_relevance("Board Meeting", "Financial results for Q3") == 90
        assert score_relevance("Board Meeting", "Financial results, ref faq3") == 50


class TestDeclarationDate:
    def test_ordinal_form(self):
        assert extract_result_declaration_date("on 18th October, 2025") == date(2025, 10, 18)

    def test_abbreviated_form(self):
        assert extract_result_declaration_date("scheduled 18-Oct-2025") == date(2025, 10, 18)

    def test_month_first_form(self):
        assert extract_result_declaration_date("results due October 18, 2025") == date(2025, 10, 18)

    def test_invalid_date_is_skipped(self):
        assert extract_result_declaration_date("on 31st February, 2025") is None

    def test_no_date(self):
        assert extract_result_declaration_date("No date mentioned") is None
        assert extract_result_declaration_date(None) is None


class TestQuarterInfo:
    def test_quarter_ended_phrase(self):
        text = "Financial results for the quarter ended 30th September 2025"
        assert extract_quarter_info(text) == ("Q2", "FY2526")

    def test_month_first_quarter_ended(self):
        assert extract_quarter_info("quarter ended December 31, 2025") == ("Q3", "FY2526")

    def test_tokens(self):
        assert extract_quarter_info("Q3 FY25-26 results") == ("Q3", "FY2526")
        assert extract_quarter_info("Q4 FY2025 results") == ("Q4", "FY2425")

    def test_nothing_found(self):
        assert extract_quarter_info("Change in registered office") == (None, None)
        assert extract_quarter_info("") == (None, None)


class TestDocumentChecks:
    def test_call_document_detected(self):
        text = "Please join the earnings call. Dial-in details and universal dial-ins below."
        assert detect_document_type(text) is AnnouncementType.NOTIFICATION

    def test_results_document_detected(self):
        text = "Revenue 100. Net profit 10. Earnings per share 1.2. Total income 110."
        assert detect_document_type(text) is AnnouncementType.RESULTS

    def test_results_without_figures_warns(self):
        warning = validate_document_content("Board meeting agenda", AnnouncementType.RESULTS)
        assert warning is not None
        assert "no financial data" in warning

    def test_consistent_document_has_no_warning(self):
        assert validate_document_content("Revenue grew", AnnouncementType.RESULTS) is None
