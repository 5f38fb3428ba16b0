"""Results pipeline models."""

from nseresults.models.announcement import Announcement, normalize_announcement
from nseresults.models.calendar_entry import CalendarEntry, CalendarStatus, DownloadStatus
from nseresults.models.classification import (
    AnnouncementClassification,
    AnnouncementType,
    Confidence,
)
from nseresults.models.metrics import FinancialMetrics, ParseResult, ResultType
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.models.stock import Stock

__all__ = [
    "Announcement",
    "normalize_announcement",
    "AnnouncementClassification",
    "AnnouncementType",
    "Confidence",
    "FinancialMetrics",
    "ParseResult",
    "ResultType",
    "QuarterlyResult",
    "CalendarEntry",
    "CalendarStatus",
    "DownloadStatus",
    "Stock",
]
