"""Results calendar entry model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class CalendarStatus(Enum):
    WAITING = "waiting"
    RECEIVED = "received"
    READY = "ready"


class DownloadStatus(Enum):
    PENDING = "pending"
    AVAILABLE = "available"
    DOWNLOADED = "downloaded"
    FAILED = "failed"


@dataclass
class CalendarEntry:
    """Lifecycle record of one announcement, keyed on (stock_id, announcement_date).

    Attributes:
        stock_id: Owning stock.
        announcement_date: Date the announcement was published.
        status: waiting -> received -> ready.
        download_status: Document retrieval state; ``failed`` keeps the entry
            eligible for a later pass.
        quarter: Fiscal quarter, once known.
        fiscal_year: Fiscal year label, once known.
        announcement_type: Classifier outcome (results/notification/unknown).
        classification_score: Classifier relevance score.
        classification_reason: Classifier explanation.
        result_declaration_date: Expected results date from notification text.
        notification_text: Description text kept for notifications.
        document_url: Text-bearing document link.
        xbrl_url: Machine-readable filing link.
        extraction_source: ``xbrl`` or ``document`` once stored.
        detected_at: When the pipeline first saw the announcement.
        parsing_completed_at: When metrics were stored.
    """

    stock_id: int
    announcement_date: date
    status: CalendarStatus = CalendarStatus.WAITING
    download_status: DownloadStatus = DownloadStatus.PENDING
    quarter: str | None = None
    fiscal_year: str | None = None
    announcement_type: str | None = None
    classification_score: int | None = None
    classification_reason: str | None = None
    result_declaration_date: date | None = None
    notification_text: str | None = None
    document_url: str | None = None
    xbrl_url: str | None = None
    extraction_source: str | None = None
    detected_at: datetime | None = None
    parsing_completed_at: datetime | None = None
    id: int | None = None
