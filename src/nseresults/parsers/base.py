"""Base class for issuer-specific results-document parsers.

Parsers work on plain text already extracted from the filed document. Each
metric is an ordered list of regular-expression candidates; the first
candidate yielding a number wins.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable

from nseresults.errors import DataIntegrityError
from nseresults.fiscal import (
    date_from_parts,
    normalize_fiscal_year,
    period_labels,
)
from nseresults.logging import get_logger
from nseresults.models.metrics import FinancialMetrics, ParseResult, ResultType

logger = get_logger(__name__)

_MONTH_NAMES = (
    r"January|February|March|April|May|June|July|August|September|October|November|December"
    r"|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
)

_QUARTER_TOKEN = re.compile(r"\b(Q[1-4]|Quarter[- ]?([1-4]))\b", re.I)

_QUARTER_MONTH_RANGES = (
    (re.compile(r"April.*?June", re.I), "Q1"),
    (re.compile(r"July.*?September", re.I), "Q2"),
    (re.compile(r"October.*?December", re.I), "Q3"),
    (re.compile(r"January.*?March", re.I), "Q4"),
)

_FISCAL_YEAR_PATTERNS = (
    re.compile(r"FY[- ]?(\d{2})[- ]?(\d{2})\b", re.I),
    re.compile(r"FY[- ]?(\d{4})\b", re.I),
    re.compile(r"\b(\d{4})[- ](\d{2,4})\b"),
)

_PERIOD_ENDED_PATTERNS = (
    # "quarter ended 30 September 2025", "period ended 30th Sep, 2025"
    (re.compile(
        rf"(?:quarter|period|three\s+months)\s+ended?\s+(?:on\s+)?(\d{{1,2}})(?:st|nd|rd|th)?"
        rf"[\s-]+({_MONTH_NAMES})[,\s-]+(\d{{4}})", re.I), (1, 2, 3)),
    # "quarter ended September 30, 2025"
    (re.compile(
        rf"(?:quarter|period|three\s+months)\s+ended?\s+(?:on\s+)?({_MONTH_NAMES})\s+(\d{{1,2}})[,\s]+(\d{{4}})",
        re.I), (2, 1, 3)),
    # "quarter ended 30/09/2025"
    (re.compile(r"(?:quarter|period)\s+ended?\s+(?:on\s+)?(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})", re.I),
     (1, 2, 3)),
)


# Signed amount: "1,234.50", "-245.50" or accounting-style "(245.50)".
AMOUNT = r"(-?\d[\d,]*(?:\.\d+)?|\(\d[\d,]*(?:\.\d+)?\))"


def parse_amount(raw: str | None) -> str | None:
    """Plain numeric text for a captured amount, negative when bracketed."""
    if not raw:
        return None
    value = raw.strip().replace(",", "")
    if value.startswith("(") and value.endswith(")"):
        value = "-" + value[1:-1]
    try:
        float(value)
    except ValueError:
        return None
    return value


def margin(numerator: float | None, revenue: float | None) -> str | None:
    """``round(numerator / revenue * 100, 2)`` as text, or None."""
    if numerator is None or not revenue or revenue <= 0:
        return None
    return f"{round(numerator / revenue * 100, 2):.2f}"


def _apply_margin(metrics: FinancialMetrics, field_name: str, computed: str | None, label: str) -> None:
    if computed is None:
        return
    shown = getattr(metrics, field_name)
    if shown is not None and shown != computed:
        metrics.parsing_notes.append(f"{label} shown as {shown}, stored computed {computed}")
    elif shown is None:
        metrics.parsing_notes.append(f"{label} calculated")
    setattr(metrics, field_name, computed)


def complete_margins(metrics: FinancialMetrics) -> FinancialMetrics:
    """Fill operating, EBITDA and PAT margins from the raw figures.

    Whenever the inputs are present the computed two-decimal value is stored,
    replacing any (typically integer-rounded) margin read off the document.
    """
    revenue = metrics.as_float("revenue")
    if not revenue or revenue <= 0:
        return metrics

    operating = metrics.as_float("operating_profit")
    if operating is None:
        operating = metrics.as_float("ebitda")
    _apply_margin(metrics, "operating_profit_margin", margin(operating, revenue), "Operating margin")
    _apply_margin(metrics, "ebitda_margin", margin(metrics.as_float("ebitda"), revenue), "EBITDA margin")
    _apply_margin(metrics, "pat_margin", margin(metrics.as_float("net_profit"), revenue), "PAT margin")
    return metrics


def validate_metrics(metrics: FinancialMetrics) -> tuple[bool, list[str], list[str]]:
    """Usable iff any core metric is present; missing period labels only warn."""
    errors: list[str] = []
    warnings: list[str] = []
    if not metrics.has_core_metric:
        errors.append("No core financial metrics extracted")
        warnings.extend(f"Missing {name}" for name in metrics.missing_core_metrics)
    if not metrics.quarter:
        warnings.append("Quarter not identified")
    if not metrics.fiscal_year:
        warnings.append("Fiscal year not identified")
    return metrics.has_core_metric, errors, warnings


class BaseResultsParser(ABC):
    """Abstract parser for one issuer's results document.

    Subclasses set ``symbol``/``company_name`` and implement
    ``extract_metrics``. ``default_result_type`` is used when the text names
    neither statement type.
    """

    symbol: str = ""
    company_name: str = ""
    default_result_type: ResultType = ResultType.STANDALONE

    def __init__(self, symbol: str | None = None, company_name: str | None = None) -> None:
        if symbol:
            self.symbol = symbol.upper()
        if company_name:
            self.company_name = company_name
        elif not self.company_name:
            self.company_name = self.symbol

    @abstractmethod
    def extract_metrics(self, text: str) -> FinancialMetrics:
        """Extract raw figures and period labels from document text."""
        ...

    def parse_text(self, text: str) -> ParseResult:
        """Extract, complete margins and validate."""
        if not text or not text.strip():
            return ParseResult.failure(
                "Document contains no extractable text (may be scanned/image-based)"
            )
        logger.debug("Parsing document text", symbol=self.symbol, chars=len(text))

        metrics = complete_margins(self.extract_metrics(text))
        metrics.source = "document"
        valid, errors, warnings = validate_metrics(metrics)
        return ParseResult(success=valid, metrics=metrics, errors=errors, warnings=warnings)

    # ---- helpers for subclasses ----

    def new_metrics(self, text: str) -> FinancialMetrics:
        """Metrics pre-filled with result type and period labels."""
        metrics = FinancialMetrics(result_type=self.detect_result_type(text))
        metrics.parsing_notes.append(f"Using {metrics.result_type.value} results")
        self.fill_period(metrics, text)
        return metrics

    def fill_period(self, metrics: FinancialMetrics, text: str) -> None:
        period_ended = self.detect_period_ended(text)
        labels = period_labels(period_ended) if period_ended is not None else None
        if labels is not None:
            metrics.period_ended = period_ended
            metrics.quarter, metrics.fiscal_year = labels
            return
        metrics.quarter = self.detect_quarter(text)
        metrics.fiscal_year = self.detect_fiscal_year(text)

    def extract_number(
        self,
        text: str,
        patterns: Iterable[re.Pattern[str]],
        context: str | None = None,
    ) -> str | None:
        """First numeric capture across ``patterns``, thousands separators stripped.

        Bracketed amounts come back negative. A non-numeric capture moves on
        to the pattern's next match rather than the next pattern.
        """
        for pattern in patterns:
            for m in pattern.finditer(text):
                value = parse_amount(m.group(1))
                if value is None:
                    continue
                if context:
                    logger.debug("Matched metric", symbol=self.symbol, metric=context, value=value)
                return value
        return None

    def extract_percentage(
        self,
        text: str,
        patterns: Iterable[re.Pattern[str]],
        context: str | None = None,
    ) -> str | None:
        return self.extract_number(text, patterns, context)

    def detect_result_type(self, text: str) -> ResultType:
        lower = text.lower()
        if "consolidated" in lower:
            return ResultType.CONSOLIDATED
        if "standalone" in lower:
            return ResultType.STANDALONE
        return self.default_result_type

    @staticmethod
    def detect_period_ended(text: str) -> date | None:
        for pattern, (day_g, month_g, year_g) in _PERIOD_ENDED_PATTERNS:
            for m in pattern.finditer(text):
                parsed = date_from_parts(m.group(day_g), m.group(month_g), m.group(year_g))
                if parsed is not None:
                    return parsed
        return None

    @staticmethod
    def detect_quarter(text: str) -> str | None:
        m = _QUARTER_TOKEN.search(text)
        if m:
            token = m.group(1).upper()
            return token if token.startswith("Q") and len(token) == 2 else f"Q{m.group(2)}"
        for pattern, quarter in _QUARTER_MONTH_RANGES:
            if pattern.search(text):
                return quarter
        return None

    @staticmethod
    def detect_fiscal_year(text: str) -> str | None:
        """``FY2526`` label from FY25-26, FY2026, 2025-26 style mentions."""
        for pattern in _FISCAL_YEAR_PATTERNS:
            for m in pattern.finditer(text):
                label = "-".join(g for g in m.groups() if g)
                try:
                    return normalize_fiscal_year(f"FY{label}")
                except DataIntegrityError:
                    continue
        return None


def rx(*patterns: str) -> tuple[re.Pattern[str], ...]:
    """Compile case-insensitive candidate patterns in priority order."""
    return tuple(re.compile(p, re.I) for p in patterns)
