"""Rate-limited, self-healing HTTP session against the exchange website.

The exchange rejects cookie-less API calls, so every session starts with a
homepage navigation followed by a visit to the announcements listing page.
All requests, from any thread, pass through one minimum-interval gate.
"""

from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import requests

from nseresults.config import ResultsConfig
from nseresults.errors import ResultsError, ResultsErrorCode
from nseresults.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
}

NAVIGATION_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "sec-fetch-dest": "document",
    "sec-fetch-mode": "navigate",
    "sec-fetch-site": "none",
    "sec-fetch-user": "?1",
    "Upgrade-Insecure-Requests": "1",
}

API_HEADERS = {
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
    "X-Requested-With": "XMLHttpRequest",
}


class FailureKind(Enum):
    """How a failed attempt is handled before the next one."""

    CONNECTION = "connection"
    AUTH = "auth"
    SERVER = "server"
    OTHER = "other"


class AttemptOutcome(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass
class AttemptResult:
    """Result of a single request attempt; drives the retry loop."""

    outcome: AttemptOutcome
    value: Any = None
    kind: FailureKind | None = None
    reason: str = ""
    code: ResultsErrorCode | None = None

    @classmethod
    def ok(cls, value: Any) -> AttemptResult:
        return cls(AttemptOutcome.SUCCESS, value=value)

    @classmethod
    def retry(cls, kind: FailureKind, reason: str, code: ResultsErrorCode) -> AttemptResult:
        return cls(AttemptOutcome.RETRYABLE, kind=kind, reason=reason, code=code)

    @classmethod
    def terminal(cls, reason: str, code: ResultsErrorCode) -> AttemptResult:
        return cls(AttemptOutcome.TERMINAL, reason=reason, code=code)


def classify_status(status_code: int) -> AttemptResult | None:
    """Map an HTTP status onto an attempt result; None means success."""
    if status_code < 400:
        return None
    reason = f"HTTP {status_code}"
    if status_code in (401, 403):
        return AttemptResult.retry(FailureKind.AUTH, reason, ResultsErrorCode.AUTH_FAILED)
    if status_code == 404:
        return AttemptResult.terminal(reason, ResultsErrorCode.NOT_FOUND)
    if status_code == 429:
        return AttemptResult.retry(FailureKind.OTHER, reason, ResultsErrorCode.RATE_LIMITED)
    if status_code >= 500:
        return AttemptResult.retry(FailureKind.SERVER, reason, ResultsErrorCode.SERVER_ERROR)
    return AttemptResult.retry(FailureKind.OTHER, reason, ResultsErrorCode.BAD_RESPONSE)


def classify_exception(exc: requests.RequestException) -> AttemptResult:
    """Map a transport exception onto a retryable attempt result."""
    if isinstance(exc, requests.Timeout):
        return AttemptResult.retry(FailureKind.CONNECTION, f"timeout: {exc}", ResultsErrorCode.TIMEOUT)
    if isinstance(exc, requests.ConnectionError):
        return AttemptResult.retry(FailureKind.CONNECTION, f"connection error: {exc}", ResultsErrorCode.NETWORK)
    return AttemptResult.retry(FailureKind.OTHER, str(exc) or type(exc).__name__, ResultsErrorCode.NETWORK)


class ExchangeSession:
    """Single owned session with lifetime, error-threshold and rate-limit discipline.

    Cookies stay inside the underlying ``requests.Session``; callers only see
    ``get`` and ``download_binary``.

    Args:
        config: Base URL, interval, lifetime and retry settings.
        http: Underlying ``requests.Session`` (injectable for tests).
        sleep: Blocking sleep used for rate limiting and backoff.
        clock: Monotonic clock in seconds.
        jitter: Returns a random float in [0, 1) added to generic backoff.
    """

    def __init__(
        self,
        config: ResultsConfig | None = None,
        http: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        jitter: Callable[[], float] = random.random,
    ) -> None:
        self.config = config or ResultsConfig()
        self._http = http if http is not None else requests.Session()
        self._http.headers.update(DEFAULT_HEADERS)
        self._sleep = sleep
        self._clock = clock
        self._jitter = jitter

        self._state_lock = threading.RLock()
        self._rate_lock = threading.Lock()
        self._last_request_at: float | None = None

        self._initialized = False
        self._session_expiry = 0.0
        self._consecutive_errors = 0

    # ------------------------------------------------------------ state

    @property
    def is_session_active(self) -> bool:
        with self._state_lock:
            return self._initialized and self._clock() < self._session_expiry

    @property
    def consecutive_errors(self) -> int:
        with self._state_lock:
            return self._consecutive_errors

    def close(self) -> None:
        with self._state_lock:
            self._initialized = False
            self._http.close()

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return self.config.base_url.rstrip("/") + "/" + endpoint.lstrip("/")

    # ------------------------------------------------------------ session

    def initialize_session(self) -> None:
        """Navigate to the homepage for cookies, then warm up the listing page.

        Raises:
            ResultsError: If the homepage navigation fails.
        """
        with self._state_lock:
            self._initialized = False
            self._http.cookies.clear()
            base = self.config.base_url.rstrip("/")

            self._rate_limit()
            try:
                resp = self._http.get(
                    base,
                    headers=NAVIGATION_HEADERS,
                    timeout=self.config.request_timeout,
                )
            except requests.RequestException as e:
                raise ResultsError(
                    f"Exchange session initialization failed: {e}",
                    code=ResultsErrorCode.SESSION_FAILED,
                    retryable=True,
                ) from e
            if resp.status_code >= 400:
                code = (
                    ResultsErrorCode.AUTH_FAILED
                    if resp.status_code in (401, 403)
                    else ResultsErrorCode.SESSION_FAILED
                )
                raise ResultsError(
                    f"Exchange homepage returned HTTP {resp.status_code}",
                    code=code,
                    retryable=True,
                )

            self._rate_limit()
            try:
                self._http.get(
                    self._url(self.config.warmup_path),
                    headers={**NAVIGATION_HEADERS, "Referer": base + "/", "sec-fetch-site": "same-origin"},
                    timeout=self.config.request_timeout,
                )
            except requests.RequestException as e:
                logger.warning("Warm-up page request failed", error=str(e))

            self._initialized = True
            self._session_expiry = self._clock() + self.config.session_lifetime
            logger.info("Exchange session initialized", cookies=len(self._http.cookies))

    def _ensure_session(self) -> None:
        with self._state_lock:
            if not self._initialized or self._clock() >= self._session_expiry:
                if self._initialized:
                    logger.info("Exchange session expired, reinitializing")
                self.initialize_session()
            if self._consecutive_errors >= self.config.max_consecutive_errors:
                logger.warning(
                    "Too many consecutive errors, forcing re-authentication",
                    errors=self._consecutive_errors,
                )
                self._consecutive_errors = 0
                self.initialize_session()

    def _invalidate(self) -> None:
        with self._state_lock:
            self._initialized = False

    # ------------------------------------------------------------ rate limit

    def _rate_limit(self) -> None:
        """Block until ``min_request_interval`` has passed since the last request."""
        with self._rate_lock:
            now = self._clock()
            if self._last_request_at is not None:
                wait = self.config.min_request_interval - (now - self._last_request_at)
                if wait > 0:
                    self._sleep(wait)
                    now = self._clock()
            self._last_request_at = now

    # ------------------------------------------------------------ requests

    def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        retries: int | None = None,
    ) -> Any:
        """GET a JSON endpoint and return the decoded body.

        Raises:
            ResultsError: On a terminal failure (malformed body, 404) or when
                all attempts are exhausted.
        """
        url = self._url(endpoint)
        headers = {**API_HEADERS, "Referer": self._url(self.config.warmup_path)}

        def parse(resp: requests.Response) -> AttemptResult:
            try:
                return AttemptResult.ok(resp.json())
            except ValueError as e:
                return AttemptResult.terminal(
                    f"malformed JSON body: {e}", ResultsErrorCode.BAD_RESPONSE,
                )

        return self._request(url, params, headers, self.config.request_timeout, parse, retries)

    def download_binary(self, url: str, retries: int | None = None) -> bytes:
        """Download a document and return its raw bytes."""
        url = self._url(url)
        headers = {"Referer": self.config.base_url.rstrip("/") + "/", "Accept": "*/*"}

        def parse(resp: requests.Response) -> AttemptResult:
            return AttemptResult.ok(resp.content)

        return self._request(url, None, headers, self.config.download_timeout, parse, retries)

    def _attempt(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: float,
        parse: Callable[[requests.Response], AttemptResult],
    ) -> AttemptResult:
        try:
            self._ensure_session()
        except ResultsError as e:
            return AttemptResult.retry(FailureKind.CONNECTION, e.message, e.code)

        self._rate_limit()
        try:
            resp = self._http.get(url, params=params, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            return classify_exception(e)

        failure = classify_status(resp.status_code)
        if failure is not None:
            return failure
        return parse(resp)

    def _request(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: float,
        parse: Callable[[requests.Response], AttemptResult],
        retries: int | None,
    ) -> Any:
        attempts = max(1, retries if retries is not None else self.config.max_retries)
        last: AttemptResult | None = None

        for attempt in range(1, attempts + 1):
            logger.debug("GET", url=url, attempt=attempt, attempts=attempts)
            result = self._attempt(url, params, headers, timeout, parse)

            if result.outcome is AttemptOutcome.SUCCESS:
                with self._state_lock:
                    self._consecutive_errors = 0
                return result.value

            if result.outcome is AttemptOutcome.TERMINAL:
                logger.error("Request failed permanently", url=url, reason=result.reason)
                raise ResultsError(
                    f"Request to {url} failed: {result.reason}",
                    code=result.code or ResultsErrorCode.BAD_RESPONSE,
                )

            last = result
            with self._state_lock:
                self._consecutive_errors += 1
            logger.warning(
                "Request failed",
                url=url,
                attempt=attempt,
                attempts=attempts,
                kind=result.kind.value if result.kind else None,
                reason=result.reason,
            )
            if attempt < attempts:
                self._sleep(self._backoff(result.kind, attempt))

        assert last is not None
        raise ResultsError(
            f"Request to {url} failed after {attempts} attempts: {last.reason}",
            code=last.code or ResultsErrorCode.NETWORK,
            retryable=True,
        )

    def _backoff(self, kind: FailureKind | None, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based)."""
        if kind in (FailureKind.CONNECTION, FailureKind.AUTH):
            self._invalidate()
            return self.config.reauth_wait
        if kind is FailureKind.SERVER:
            return (2 ** attempt) * 2.0
        return (2 ** attempt) * 1.0 + self._jitter()
