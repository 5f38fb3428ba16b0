"""Results pipeline configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

NSE_BASE_URL = "https://www.nseindia.com"


class StorageBackendType(Enum):
    """Supported storage backends."""

    MEMORY = "memory"
    PARQUET = "parquet"


@dataclass
class ResultsConfig:
    """Configuration for the exchange session and the ingestion pipeline.

    Attributes:
        base_url: Exchange website root; also used to resolve relative links.
        warmup_path: Listing page visited after the homepage to mature cookies.
        announcements_path: JSON endpoint listing corporate announcements.
        min_request_interval: Minimum seconds between any two upstream requests.
        session_lifetime: Seconds before a session is proactively re-initialized.
        max_consecutive_errors: Failures in a row that force re-authentication.
        max_retries: Default attempts per request.
        request_timeout: Timeout in seconds for JSON requests.
        download_timeout: Timeout in seconds for binary downloads.
        reauth_wait: Fixed wait before retrying after a connection/auth failure.
        lookback_days: Days before today included in an ingestion pass.
        lookahead_days: Days after today included in an ingestion pass.
        storage_backend: Storage type used by ``create_pipeline_from_env``.
        storage_dir: Directory for parquet storage files.
        log_level: Logging level name.
        json_logs: Render logs as JSON instead of console output.
    """

    base_url: str = NSE_BASE_URL
    warmup_path: str = "/companies-listing/corporate-filings-announcements"
    announcements_path: str = "/api/corporate-announcements"

    min_request_interval: float = 0.5
    session_lifetime: float = 30 * 60
    max_consecutive_errors: int = 5
    max_retries: int = 5
    request_timeout: float = 30.0
    download_timeout: float = 300.0
    reauth_wait: float = 3.0

    lookback_days: int = 7
    lookahead_days: int = 30

    storage_backend: StorageBackendType = StorageBackendType.MEMORY
    storage_dir: str = "data/results"
    log_level: str = "INFO"
    json_logs: bool = False
