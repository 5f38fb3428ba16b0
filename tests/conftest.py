"""Shared fixtures for nseresults tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
import requests
from requests.cookies import RequestsCookieJar

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from nseresults.config import ResultsConfig
from nseresults.documents import DocumentText
from nseresults.storage.memory import MemoryStorage


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instead of blocking."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        content: bytes = b"",
        malformed: bool = False,
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self._malformed = malformed

    def json(self) -> Any:
        if self._malformed:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json


class FakeHttp:
    """Stand-in for ``requests.Session`` routing GETs by URL suffix.

    Each route holds a queue of responses (or exceptions to raise). The last
    queued item repeats once the queue is down to one.
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.headers: dict[str, str] = {}
        self.cookies = RequestsCookieJar()
        self.routes: dict[str, list[Any]] = {}
        self.calls: list[tuple[str, float | None]] = []
        self.closed = False
        self._clock = clock

    def route(self, suffix: str, *items: Any) -> FakeHttp:
        self.routes[suffix] = list(items)
        return self

    def count(self, suffix: str) -> int:
        return sum(1 for url, _ in self.calls if url.endswith(suffix))

    def get(self, url: str, params: Any = None, headers: Any = None, timeout: Any = None) -> Any:
        self.calls.append((url, self._clock() if self._clock else None))
        for suffix, queue in self.routes.items():
            if url.endswith(suffix) and queue:
                item = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(item, Exception):
                    raise item
                return item
        self.cookies.set("nsit", "cookie-value")
        return FakeResponse(200, content=b"<html></html>")

    def close(self) -> None:
        self.closed = True


class FakeExchangeSession:
    """Session double for pipeline tests: canned listing payload and documents."""

    def __init__(self, payload: Any = None, documents: dict[str, Any] | None = None) -> None:
        self.payload = payload if payload is not None else []
        self.documents = documents or {}
        self.get_calls: list[tuple[str, Any]] = []
        self.downloads: list[str] = []

    def get(self, endpoint: str, params: Any = None, retries: int | None = None) -> Any:
        self.get_calls.append((endpoint, params))
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def download_binary(self, url: str, retries: int | None = None) -> bytes:
        self.downloads.append(url)
        item = self.documents[url]
        if isinstance(item, Exception):
            raise item
        return item


def text_converter(data: bytes) -> DocumentText:
    """Treats document bytes as UTF-8 text; keeps PDF rendering out of unit tests."""
    return DocumentText(page_count=1, text=data.decode("utf-8"))


TCS_RESULTS_TEXT = """\
TATA CONSULTANCY SERVICES LIMITED
Statement of Consolidated Financial Results for the quarter ended 30 September 2025
(₹ crore)
Revenue from operations 65,799 63,437 64,259 1,29,236 1,26,872
PROFIT BEFORE TAX 16,068 15,925 15,550 31,993 30,931
PROFIT FOR THE PERIOD 12,131 12,819 11,955 24,950 24,014
Earnings per equity share:- Basic and diluted (₹) 33.37 35.27 32.92 68.64 66.05
"""

SAMPLE_XBRL = b"""<?xml version="1.0" encoding="UTF-8"?>
<xbrli:xbrl xmlns:xbrli="http://www.xbrl.org/2003/instance"
            xmlns:in-bse-fin="http://www.bseindia.com/xbrl/fin/2020-03-31/in-bse-fin">
  <xbrli:context id="OneD">
    <xbrli:entity>
      <xbrli:identifier scheme="http://www.nseindia.com">TCS</xbrli:identifier>
    </xbrli:entity>
    <xbrli:period>
      <xbrli:startDate>2025-07-01</xbrli:startDate>
      <xbrli:endDate>2025-09-30</xbrli:endDate>
    </xbrli:period>
  </xbrli:context>
  <xbrli:context id="FourD">
    <xbrli:entity>
      <xbrli:identifier scheme="http://www.nseindia.com">TCS</xbrli:identifier>
    </xbrli:entity>
    <xbrli:period>
      <xbrli:startDate>2025-04-01</xbrli:startDate>
      <xbrli:endDate>2025-09-30</xbrli:endDate>
    </xbrli:period>
  </xbrli:context>
  <in-bse-fin:NatureOfReportStandaloneConsolidated contextRef="OneD">Consolidated</in-bse-fin:NatureOfReportStandaloneConsolidated>
  <in-bse-fin:RevenueFromOperations contextRef="FourD" unitRef="INR" decimals="-5">1292360000000</in-bse-fin:RevenueFromOperations>
  <in-bse-fin:RevenueFromOperations contextRef="OneD" unitRef="INR" decimals="-5">657990000000</in-bse-fin:RevenueFromOperations>
  <in-bse-fin:ProfitLossForPeriod contextRef="OneD" unitRef="INR" decimals="-5">121310000000</in-bse-fin:ProfitLossForPeriod>
  <in-bse-fin:BasicEarningsPerShare contextRef="OneD" unitRef="INRPerShare" decimals="2">33.37</in-bse-fin:BasicEarningsPerShare>
</xbrli:xbrl>
"""


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def http(clock: FakeClock) -> FakeHttp:
    return FakeHttp(clock)


@pytest.fixture
def config() -> ResultsConfig:
    return ResultsConfig()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def tcs_text() -> str:
    return TCS_RESULTS_TEXT


@pytest.fixture
def sample_xbrl() -> bytes:
    return SAMPLE_XBRL


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("Connection reset by peer")
