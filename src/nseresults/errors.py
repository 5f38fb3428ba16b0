"""Results pipeline error types."""

from __future__ import annotations

from enum import Enum


class ResultsErrorCode(Enum):
    """Error classification codes."""

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    SESSION_FAILED = "session_failed"
    NETWORK = "network"
    SERVER_ERROR = "server_error"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    BAD_RESPONSE = "bad_response"
    EXTRACTION_FAILED = "extraction_failed"
    VALIDATION_FAILED = "validation_failed"


class ResultsError(Exception):
    """Pipeline exception with error code and retryable flag.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        retryable: Whether a later pass may succeed where this one failed.
    """

    def __init__(
        self,
        message: str,
        code: ResultsErrorCode = ResultsErrorCode.SESSION_FAILED,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable


class DataIntegrityError(ResultsError):
    """A record failed integrity checks and must not be persisted."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=ResultsErrorCode.VALIDATION_FAILED, retryable=False)
