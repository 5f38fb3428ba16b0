"""nseresults: quarterly-results ingestion for NSE corporate announcements.

Rate-limited exchange session, metadata classifier, XBRL and per-issuer
document extraction, QoQ/YoY comparisons with idempotent upsert.

Quick start::

    from nseresults import create_pipeline_from_env
    pipeline = create_pipeline_from_env()
    created = pipeline.run_ingestion_pass()
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from nseresults.classifier import classify, extract_result_declaration_date, score_relevance
from nseresults.comparisons import ComparisonEngine, margin_delta, percentage_change
from nseresults.config import ResultsConfig, StorageBackendType
from nseresults.errors import DataIntegrityError, ResultsError, ResultsErrorCode
from nseresults.logging import get_logger, setup_logging
from nseresults.models import (
    Announcement,
    AnnouncementClassification,
    AnnouncementType,
    CalendarEntry,
    CalendarStatus,
    Confidence,
    DownloadStatus,
    FinancialMetrics,
    ParseResult,
    QuarterlyResult,
    ResultType,
    Stock,
    normalize_announcement,
)
from nseresults.parsers import get_parser
from nseresults.pipeline import PipelineState, ProcessOutcome, ResultsPipeline, RunSummary
from nseresults.session import ExchangeSession
from nseresults.storage import MemoryStorage, ResultsStorage, create_storage
from nseresults.xbrl import XbrlExtractor, parse_xbrl

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "ResultsPipeline",
    "create_pipeline_from_env",
    "PipelineState",
    "ProcessOutcome",
    "RunSummary",
    # Session
    "ExchangeSession",
    # Classification
    "classify",
    "score_relevance",
    "extract_result_declaration_date",
    # Extraction
    "get_parser",
    "parse_xbrl",
    "XbrlExtractor",
    # Comparisons
    "ComparisonEngine",
    "percentage_change",
    "margin_delta",
    # Storage
    "ResultsStorage",
    "MemoryStorage",
    "create_storage",
    # Config / logging
    "ResultsConfig",
    "StorageBackendType",
    "setup_logging",
    "get_logger",
    # Errors
    "ResultsError",
    "ResultsErrorCode",
    "DataIntegrityError",
    # Models
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


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def create_pipeline_from_env() -> ResultsPipeline:
    """Zero-config factory; reads settings from env vars (and ``.env``).

    Environment variables:
        NSE_BASE_URL: Exchange website root (default: "https://www.nseindia.com").
        NSE_MIN_REQUEST_INTERVAL: Seconds between requests (default: 0.5).
        NSE_SESSION_LIFETIME: Session lifetime in seconds (default: 1800).
        NSE_MAX_RETRIES: Attempts per request (default: 5).
        NSE_LOOKBACK_DAYS: Days before today to fetch (default: 7).
        NSE_LOOKAHEAD_DAYS: Days after today to fetch (default: 30).
        NSE_STORAGE: Storage backend, "memory" or "parquet" (default: "memory").
        NSE_STORAGE_DIR: Parquet storage directory (default: "data/results").
        NSE_LOG_LEVEL: Logging level (default: "INFO").
        NSE_JSON_LOGS: Emit JSON logs (default: false).
    """
    load_dotenv()
    defaults = ResultsConfig()

    config = ResultsConfig(
        base_url=os.getenv("NSE_BASE_URL", defaults.base_url),
        min_request_interval=float(os.getenv("NSE_MIN_REQUEST_INTERVAL", defaults.min_request_interval)),
        session_lifetime=float(os.getenv("NSE_SESSION_LIFETIME", defaults.session_lifetime)),
        max_retries=int(os.getenv("NSE_MAX_RETRIES", defaults.max_retries)),
        lookback_days=int(os.getenv("NSE_LOOKBACK_DAYS", defaults.lookback_days)),
        lookahead_days=int(os.getenv("NSE_LOOKAHEAD_DAYS", defaults.lookahead_days)),
        storage_backend=StorageBackendType(os.getenv("NSE_STORAGE", defaults.storage_backend.value)),
        storage_dir=os.getenv("NSE_STORAGE_DIR", defaults.storage_dir),
        log_level=os.getenv("NSE_LOG_LEVEL", defaults.log_level),
        json_logs=_env_bool("NSE_JSON_LOGS", defaults.json_logs),
    )

    setup_logging(config.log_level, config.json_logs)
    return ResultsPipeline(ExchangeSession(config), create_storage(config), config)
