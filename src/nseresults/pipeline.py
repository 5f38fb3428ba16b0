"""Ingestion pipeline: announcements in, calendar entries and quarterly results out.

Per announcement::

    seen -> classified -> calendar-recorded
         -> (notification: stop, status waiting)
         -> machine-extraction-attempted -> document-extraction-attempted
         -> stored (status ready) | failed (status waiting, download failed)

Announcements are processed sequentially through one rate-limited session.
A failing announcement never aborts the pass.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable

from nseresults.classifier import (
    classify,
    detect_document_type,
    extract_quarter_info,
    validate_document_content,
)
from nseresults.comparisons import ComparisonEngine
from nseresults.config import ResultsConfig
from nseresults.documents import TextConverter, pdf_to_text
from nseresults.errors import DataIntegrityError, ResultsError
from nseresults.logging import get_logger
from nseresults.models.announcement import Announcement, normalize_announcement
from nseresults.models.calendar_entry import CalendarEntry, CalendarStatus, DownloadStatus
from nseresults.models.classification import AnnouncementClassification, AnnouncementType
from nseresults.models.metrics import ParseResult
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.parsers import get_parser
from nseresults.session import ExchangeSession
from nseresults.storage.base import ResultsStorage
from nseresults.validation import ensure_persistable
from nseresults.xbrl import XbrlExtractor

logger = get_logger(__name__)

ANNOUNCEMENT_DATE_FORMAT = "%d-%m-%Y"


class PipelineState(Enum):
    SEEN = "seen"
    CLASSIFIED = "classified"
    CALENDAR_RECORDED = "calendar_recorded"
    MACHINE_EXTRACTION_ATTEMPTED = "machine_extraction_attempted"
    DOCUMENT_EXTRACTION_ATTEMPTED = "document_extraction_attempted"
    STORED = "stored"
    FAILED = "failed"


@dataclass
class ProcessOutcome:
    """Trace of one announcement through the pipeline."""

    symbol: str | None
    states: list[PipelineState] = field(default_factory=list)
    classification: AnnouncementClassification | None = None
    calendar_entry: CalendarEntry | None = None
    result: QuarterlyResult | None = None
    created: bool = False
    skipped: bool = False
    extraction_attempts: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def state(self) -> PipelineState | None:
        return self.states[-1] if self.states else None

    def advance(self, state: PipelineState) -> None:
        self.states.append(state)


@dataclass
class RunSummary:
    """Counters for one ingestion pass."""

    seen: int = 0
    created: int = 0
    skipped: int = 0
    notifications: int = 0
    stored: int = 0
    failed: int = 0
    extraction_attempts: int = 0

    def record(self, outcome: ProcessOutcome) -> None:
        self.seen += 1
        self.created += int(outcome.created)
        self.skipped += int(outcome.skipped)
        self.extraction_attempts += outcome.extraction_attempts
        if outcome.classification is not None and outcome.classification.is_notification \
                and not outcome.skipped:
            self.notifications += 1
        if outcome.state is PipelineState.STORED:
            self.stored += 1
        elif outcome.state is PipelineState.FAILED:
            self.failed += 1


def announcement_items(payload: Any) -> list[Any]:
    """Announcement list from either a bare list or a ``{"data": [...]}`` envelope."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
    logger.warning("Unexpected announcements payload", payload_type=type(payload).__name__)
    return []


class ResultsPipeline:
    """Drives classification, extraction, comparison and calendar bookkeeping.

    Args:
        session: Rate-limited exchange session used for every network call.
        storage: Stock, calendar and quarterly-result storage.
        config: Lookback/lookahead window and endpoint paths.
        text_converter: ``bytes -> DocumentText``; PyMuPDF by default.
        clock: Returns the current time for calendar timestamps.
    """

    def __init__(
        self,
        session: ExchangeSession,
        storage: ResultsStorage,
        config: ResultsConfig | None = None,
        text_converter: TextConverter = pdf_to_text,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.session = session
        self.storage = storage
        self.config = config or ResultsConfig()
        self.text_converter = text_converter
        self.clock = clock
        self.xbrl = XbrlExtractor(session)
        self.engine = ComparisonEngine(storage)
        self.last_summary = RunSummary()
        self._run_keys: set[tuple[Any, ...]] = set()

    # ------------------------------------------------------------ entry point

    def run_ingestion_pass(self, today: date | None = None) -> int:
        """Fetch and process the current announcement window.

        Returns:
            Number of calendar entries created during the pass.
        """
        today = today or self.clock().date()
        params = {
            "index": "equities",
            "from_date": (today - timedelta(days=self.config.lookback_days)).strftime(ANNOUNCEMENT_DATE_FORMAT),
            "to_date": (today + timedelta(days=self.config.lookahead_days)).strftime(ANNOUNCEMENT_DATE_FORMAT),
        }

        summary = RunSummary()
        self.last_summary = summary
        self._run_keys = set()
        try:
            payload = self.session.get(self.config.announcements_path, params)
        except ResultsError as e:
            logger.error("Announcement listing failed", error=str(e), code=e.code.value)
            return 0

        items = announcement_items(payload)
        logger.info("Announcements fetched", count=len(items), **params)
        for item in items:
            summary.record(self.process_announcement(item))

        logger.info("Ingestion pass complete", **asdict(summary))
        return summary.created

    def process_announcement(self, item: dict[str, Any] | Announcement) -> ProcessOutcome:
        """Process one announcement; errors are recorded, never raised."""
        symbol = item.symbol if isinstance(item, Announcement) else (
            item.get("symbol") if isinstance(item, dict) else None
        )
        outcome = ProcessOutcome(symbol=symbol, states=[PipelineState.SEEN])
        try:
            self._process(item, outcome)
        except Exception as e:
            logger.exception("Announcement processing failed", symbol=symbol, error=str(e))
            outcome.errors.append(str(e))
            outcome.advance(PipelineState.FAILED)
        return outcome

    # ------------------------------------------------------------ stages

    def _process(self, item: dict[str, Any] | Announcement, outcome: ProcessOutcome) -> None:
        if isinstance(item, Announcement):
            announcement = item
        elif isinstance(item, dict):
            announcement = normalize_announcement(item, self.config.base_url)
        else:
            raise ValueError(f"Unsupported announcement item: {type(item).__name__}")
        outcome.symbol = announcement.symbol

        announcement_date = announcement.announcement_date
        if announcement_date is None:
            raise ValueError(f"Announcement for {announcement.symbol} has no parseable date")

        classification = classify(announcement)
        outcome.classification = classification
        outcome.advance(PipelineState.CLASSIFIED)

        quarter, fiscal_year = extract_quarter_info(
            f"{announcement.subject} {announcement.description}"
        )
        run_key = (announcement.symbol, announcement_date, quarter, fiscal_year)
        if run_key in self._run_keys:
            outcome.skipped = True
            logger.debug("Duplicate announcement in run", symbol=announcement.symbol,
                         date=str(announcement_date))
            return
        self._run_keys.add(run_key)

        stock = self.storage.get_stock_by_symbol(announcement.symbol) or self.storage.create_stock(
            announcement.symbol, announcement.company_name or announcement.symbol,
        )
        existing = self.storage.get_results_calendar_by_stock_and_date(stock.id, announcement_date)
        if existing is not None and (
            existing.status is CalendarStatus.READY or classification.is_notification
        ):
            outcome.skipped = True
            outcome.calendar_entry = existing
            logger.debug("Calendar entry already recorded", symbol=announcement.symbol,
                         date=str(announcement_date), status=existing.status.value)
            return

        if classification.is_notification:
            outcome.calendar_entry = self.storage.create_results_calendar(CalendarEntry(
                stock_id=stock.id,
                announcement_date=announcement_date,
                status=CalendarStatus.WAITING,
                download_status=DownloadStatus.PENDING,
                quarter=quarter,
                fiscal_year=fiscal_year,
                announcement_type=classification.type.value,
                classification_score=classification.score,
                classification_reason=classification.reason,
                result_declaration_date=classification.result_declaration_date,
                notification_text=announcement.description or announcement.subject,
                document_url=announcement.document_url,
                detected_at=self.clock(),
            ))
            outcome.created = True
            outcome.advance(PipelineState.CALENDAR_RECORDED)
            logger.info(
                "Notification recorded",
                symbol=announcement.symbol,
                date=str(announcement_date),
                declaration_date=str(classification.result_declaration_date or ""),
            )
            return

        entry = self._record_received(stock.id, announcement, classification, quarter,
                                      fiscal_year, existing)
        outcome.created = existing is None
        outcome.calendar_entry = entry
        outcome.advance(PipelineState.CALENDAR_RECORDED)

        result = self._extract(announcement, classification, quarter, fiscal_year, outcome)
        if not result.success or result.metrics is None:
            outcome.errors.extend(result.errors)
            outcome.calendar_entry = self.storage.update_results_calendar(
                entry.id,
                status=CalendarStatus.WAITING,
                download_status=DownloadStatus.FAILED,
            )
            outcome.advance(PipelineState.FAILED)
            logger.warning("Extraction failed", symbol=announcement.symbol,
                           date=str(announcement_date), errors=result.errors)
            return

        metrics = result.metrics
        outcome.result = self.engine.calculate_quarterly_comparisons(
            stock.id,
            metrics.quarter,  # type: ignore[arg-type]
            metrics.fiscal_year,  # type: ignore[arg-type]
            metrics,
            published_at=announcement_date,
        )
        outcome.calendar_entry = self.storage.update_results_calendar(
            entry.id,
            status=CalendarStatus.READY,
            download_status=DownloadStatus.DOWNLOADED,
            quarter=outcome.result.quarter,
            fiscal_year=outcome.result.fiscal_year,
            extraction_source=metrics.source,
            parsing_completed_at=self.clock(),
        )
        outcome.advance(PipelineState.STORED)
        logger.info(
            "Results stored",
            symbol=announcement.symbol,
            quarter=outcome.result.quarter,
            fiscal_year=outcome.result.fiscal_year,
            source=metrics.source,
        )

    def _record_received(
        self,
        stock_id: int,
        announcement: Announcement,
        classification: AnnouncementClassification,
        quarter: str | None,
        fiscal_year: str | None,
        existing: CalendarEntry | None,
    ) -> CalendarEntry:
        has_attachment = bool(announcement.document_url or announcement.xbrl_url)
        fields: dict[str, Any] = dict(
            status=CalendarStatus.RECEIVED,
            download_status=DownloadStatus.AVAILABLE if has_attachment else DownloadStatus.PENDING,
            quarter=quarter,
            fiscal_year=fiscal_year,
            announcement_type=classification.type.value,
            classification_score=classification.score,
            classification_reason=classification.reason,
            document_url=announcement.document_url,
            xbrl_url=announcement.xbrl_url,
        )
        if existing is not None:
            return self.storage.update_results_calendar(existing.id, **fields)
        return self.storage.create_results_calendar(CalendarEntry(
            stock_id=stock_id,
            announcement_date=announcement.announcement_date,  # type: ignore[arg-type]
            detected_at=self.clock(),
            **fields,
        ))

    # ------------------------------------------------------------ extraction

    def _extract(
        self,
        announcement: Announcement,
        classification: AnnouncementClassification,
        quarter: str | None,
        fiscal_year: str | None,
        outcome: ProcessOutcome,
    ) -> ParseResult:
        """Machine-readable filing first, then the document via the parser registry."""
        errors: list[str] = []

        if announcement.has_xbrl and announcement.xbrl_url:
            outcome.advance(PipelineState.MACHINE_EXTRACTION_ATTEMPTED)
            outcome.extraction_attempts += 1
            result = self._accept(self.xbrl.extract(announcement.xbrl_url, announcement.symbol),
                                  quarter, fiscal_year)
            if result.success:
                return result
            errors.extend(result.errors)
            logger.info("XBRL extraction failed, falling back to document",
                        symbol=announcement.symbol, errors=result.errors)

        if announcement.document_url:
            outcome.advance(PipelineState.DOCUMENT_EXTRACTION_ATTEMPTED)
            outcome.extraction_attempts += 1
            result = self._accept(self._extract_document(announcement, classification),
                                  quarter, fiscal_year)
            if result.success:
                return result
            errors.extend(result.errors)

        if not errors:
            errors.append("No machine-readable filing or document attached")
        return ParseResult(success=False, errors=errors)

    def _extract_document(
        self, announcement: Announcement, classification: AnnouncementClassification,
    ) -> ParseResult:
        try:
            data = self.session.download_binary(announcement.document_url)  # type: ignore[arg-type]
        except ResultsError as e:
            return ParseResult.failure(f"Document download failed: {e}")
        # Converters are injected; any failure of theirs fails this source only
        try:
            document = self.text_converter(data)
        except Exception as e:
            logger.warning("Document conversion failed", symbol=announcement.symbol, error=str(e))
            return ParseResult.failure(f"Document conversion failed: {e}")

        warning = validate_document_content(document.text, classification.type)
        if warning:
            logger.warning(warning, symbol=announcement.symbol)
        if classification.type is AnnouncementType.UNKNOWN \
                and detect_document_type(document.text) is AnnouncementType.NOTIFICATION:
            return ParseResult.failure("Document content is a notification, not results")

        logger.debug("Document converted", symbol=announcement.symbol,
                     pages=document.page_count, chars=len(document.text))
        return get_parser(announcement.symbol).parse_text(document.text)

    @staticmethod
    def _accept(result: ParseResult, quarter: str | None, fiscal_year: str | None) -> ParseResult:
        """Fill period labels from the announcement, then gate on data integrity."""
        if not result.success or result.metrics is None:
            return result
        metrics = result.metrics
        if not metrics.quarter and quarter:
            metrics.quarter = quarter
            metrics.parsing_notes.append("Quarter taken from announcement text")
        if not metrics.fiscal_year and fiscal_year:
            metrics.fiscal_year = fiscal_year
            metrics.parsing_notes.append("Fiscal year taken from announcement text")
        try:
            ensure_persistable(metrics)
        except DataIntegrityError as e:
            return ParseResult(success=False, metrics=metrics, errors=[str(e)],
                               warnings=result.warnings)
        return result
