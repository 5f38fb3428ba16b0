"""Announcement classifier: results vs notification, from metadata alone.

Pure functions, no I/O. Runs before any document download so the large
volume of notification announcements never costs a fetch.
"""

from __future__ import annotations

import re
from datetime import date

from nseresults.errors import DataIntegrityError
from nseresults.fiscal import (
    date_from_parts,
    normalize_fiscal_year,
    period_labels,
)
from nseresults.models.announcement import Announcement
from nseresults.models.classification import (
    AnnouncementClassification,
    AnnouncementType,
    Confidence,
)

RESULTS_THRESHOLD = 70
NOTIFICATION_THRESHOLD = 30

BOARD_OUTCOME = "outcome of board meeting"
SUBMITTED = "submitted to the exchange"

NOTIFICATION_SUBJECTS = (
    "general updates",
    "intimation",
    "announcement",
    "intimation of",
    "press release",
)

NOTIFICATION_PHRASES = (
    "call with media",
    "has informed the exchange about",
    "will host",
    "will discuss",
    "will be held",
    "earnings call",
    "conference call",
    "dial-in details",
    "pre-registration",
    "universal dial-ins",
    "toll-free dial numbers",
    "investor call",
    "analysts call",
    "press conference",
    "media interaction",
)

# (phrase, where, weight); where is "subject", "description" or "combined"
SCORE_WEIGHTS: tuple[tuple[str, str, int], ...] = (
    (BOARD_OUTCOME, "subject", 70),
    (SUBMITTED, "description", 80),
    ("unaudited financial results", "description", 75),
    ("audited financial results", "description", 75),
    ("standalone and consolidated", "description", 60),
    ("financial results", "combined", 50),
    ("quarterly results", "combined", 50),
    ("general updates", "subject", -60),
    ("call with media", "description", -70),
    ("has informed the exchange about", "description", -50),
    ("earnings call", "combined", -60),
    ("conference call", "combined", -60),
    ("dial-in", "combined", -70),
)
QUARTER_TOKEN_WEIGHT = 40

_QUARTER_TOKEN = re.compile(r"\bq[1-4]\b")

# Each pattern yields (day, month, year) via the group order below
_DECLARATION_PATTERNS: tuple[tuple[re.Pattern[str], tuple[int, int, int]], ...] = (
    # "on 18th October, 2025"
    (re.compile(r"on\s+(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]+)[,\s]+(\d{4})", re.I), (1, 2, 3)),
    # "18-Oct-2025"
    (re.compile(r"(\d{1,2})-([A-Za-z]{3})-(\d{4})", re.I), (1, 2, 3)),
    # "October 18, 2025"
    (re.compile(r"([A-Za-z]+)\s+(\d{1,2})[,\s]+(\d{4})", re.I), (2, 1, 3)),
)

_QUARTER_ENDED = re.compile(
    r"(?:quarter|period)\s+ended\s+(?:on\s+)?"
    r"(\d{1,2})(?:st|nd|rd|th)?[\s-]+([A-Za-z]+)[,\s-]+(\d{4})"
    r"|(?:quarter|period)\s+ended\s+(?:on\s+)?([A-Za-z]+)\s+(\d{1,2})[,\s]+(\d{4})",
    re.I,
)
_FY_LABEL = re.compile(r"\bFY\s*'?(\d{2,4})(?:\s*[-/]\s*(\d{2,4}))?", re.I)


def _lower(value: str | None) -> str:
    return (value or "").lower()


def is_definitive_results(subject: str, description: str) -> bool:
    """Board-meeting outcome subject AND a "submitted to the exchange" description."""
    return BOARD_OUTCOME in _lower(subject) and SUBMITTED in _lower(description)


def is_notification(subject: str, description: str) -> bool:
    subject_l, description_l = _lower(subject), _lower(description)
    if any(p in subject_l for p in NOTIFICATION_SUBJECTS) and SUBMITTED not in description_l:
        return True
    return any(p in description_l for p in NOTIFICATION_PHRASES)


def score_relevance(subject: str, description: str) -> int:
    """Weighted keyword score clamped to [0, 100]."""
    subject_l, description_l = _lower(subject), _lower(description)
    if is_definitive_results(subject_l, description_l):
        return 100

    targets = {
        "subject": subject_l,
        "description": description_l,
        "combined": f"{subject_l} {description_l}",
    }
    score = 0
    for phrase, where, weight in SCORE_WEIGHTS:
        if phrase in targets[where]:
            score += weight
    if _QUARTER_TOKEN.search(targets["combined"]):
        score += QUARTER_TOKEN_WEIGHT
    return max(0, min(100, score))


def extract_result_declaration_date(text: str | None) -> date | None:
    """First date found by the ordinal, day-mon-year and month-day-year patterns."""
    if not text:
        return None
    for pattern, (day_g, month_g, year_g) in _DECLARATION_PATTERNS:
        for m in pattern.finditer(text):
            parsed = date_from_parts(m.group(day_g), m.group(month_g), m.group(year_g))
            if parsed is not None:
                return parsed
    return None


def classify(announcement: Announcement) -> AnnouncementClassification:
    """Label an announcement as results, notification or unknown."""
    subject, description = announcement.subject, announcement.description

    if is_definitive_results(subject, description):
        return AnnouncementClassification(
            type=AnnouncementType.RESULTS,
            score=100,
            confidence=Confidence.HIGH,
            reason='Subject is "Outcome of Board Meeting" and results were submitted to the exchange',
        )

    if is_notification(subject, description):
        return AnnouncementClassification(
            type=AnnouncementType.NOTIFICATION,
            score=10,
            confidence=Confidence.HIGH,
            reason="Notification subject or call/dial-in phrasing",
            result_declaration_date=extract_result_declaration_date(description),
        )

    score = score_relevance(subject, description)
    if score >= RESULTS_THRESHOLD:
        return AnnouncementClassification(
            type=AnnouncementType.RESULTS,
            score=score,
            confidence=Confidence.MEDIUM,
            reason="High relevance score from financial-results keywords",
        )
    if score <= NOTIFICATION_THRESHOLD:
        return AnnouncementClassification(
            type=AnnouncementType.NOTIFICATION,
            score=score,
            confidence=Confidence.MEDIUM,
            reason="Low relevance score, likely a notification or non-financial announcement",
        )
    return AnnouncementClassification(
        type=AnnouncementType.UNKNOWN,
        score=score,
        confidence=Confidence.LOW,
        reason="Ambiguous announcement, document extraction required",
    )


def extract_quarter_info(text: str | None) -> tuple[str | None, str | None]:
    """Quarter and fiscal year named in announcement text, if any.

    A "quarter ended <date>" phrase wins over loose Q/FY tokens because it
    pins both labels at once.
    """
    if not text:
        return None, None

    m = _QUARTER_ENDED.search(text)
    if m:
        if m.group(1):
            ended = date_from_parts(m.group(1), m.group(2), m.group(3))
        else:
            ended = date_from_parts(m.group(5), m.group(4), m.group(6))
        labels = period_labels(ended) if ended is not None else None
        if labels is not None:
            return labels

    quarter = None
    q = _QUARTER_TOKEN.search(text.lower())
    if q:
        quarter = q.group(0).upper()

    fiscal_year = None
    fy = _FY_LABEL.search(text)
    if fy:
        label = fy.group(0) if fy.group(2) else f"FY{fy.group(1)}"
        try:
            fiscal_year = normalize_fiscal_year(label)
        except DataIntegrityError:
            fiscal_year = None
    return quarter, fiscal_year


# ---- Content checks on downloaded text ----

_DOC_NOTIFICATION_PHRASES = (
    "call with media",
    "dial-in details",
    "conference call",
    "earnings call",
    "toll-free",
    "universal dial-ins",
    "pre-registration",
)

_DOC_RESULTS_PHRASES = (
    "revenue",
    "net profit",
    "earnings per share",
    "total income",
    "profit after tax",
    "ebitda",
    "operating profit",
)


def detect_document_type(text: str) -> AnnouncementType:
    """Classify downloaded document text when metadata was ambiguous."""
    lower = _lower(text)
    if sum(p in lower for p in _DOC_NOTIFICATION_PHRASES) >= 2:
        return AnnouncementType.NOTIFICATION
    if sum(p in lower for p in _DOC_RESULTS_PHRASES) >= 3:
        return AnnouncementType.RESULTS
    return AnnouncementType.UNKNOWN


def validate_document_content(text: str, expected: AnnouncementType) -> str | None:
    """Cross-check a document against its metadata label; returns a warning or None."""
    lower = _lower(text)
    if expected is AnnouncementType.RESULTS:
        financial = ("revenue", "net profit", "eps", "total income", "profit after tax")
        if not any(p in lower for p in financial):
            return "Classified as results but no financial data found; may be a notification document"
    elif expected is AnnouncementType.NOTIFICATION:
        call_info = ("dial-in", "conference call", "earnings call", "toll free")
        if not any(p in lower for p in call_info):
            return "Classified as notification but no call information found"
    return None
