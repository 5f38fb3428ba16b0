"""Extracted financial metrics model."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum


class ResultType(Enum):
    STANDALONE = "standalone"
    CONSOLIDATED = "consolidated"


CORE_METRICS = ("revenue", "net_profit", "eps", "operating_profit")

NUMERIC_METRICS = (
    "revenue",
    "net_profit",
    "eps",
    "operating_profit",
    "operating_profit_margin",
    "ebitda",
    "ebitda_margin",
    "total_income",
    "pat_margin",
    "roe",
    "debt",
    "reserves",
)


@dataclass
class FinancialMetrics:
    """Flat record of optional numeric-as-text figures for one quarter.

    Amounts are in crores, margins and ROE in percent. ``quarter`` is
    ``Q1``..``Q4`` and ``fiscal_year`` uses the ``FY2526`` form.
    """

    revenue: str | None = None
    net_profit: str | None = None
    eps: str | None = None
    operating_profit: str | None = None
    operating_profit_margin: str | None = None
    ebitda: str | None = None
    ebitda_margin: str | None = None
    total_income: str | None = None
    pat_margin: str | None = None
    roe: str | None = None
    debt: str | None = None
    reserves: str | None = None

    quarter: str | None = None
    fiscal_year: str | None = None
    period_ended: date | None = None
    result_type: ResultType = ResultType.STANDALONE
    source: str | None = None
    parsing_notes: list[str] = field(default_factory=list)

    @property
    def has_core_metric(self) -> bool:
        """At least one of revenue, net profit, EPS, operating profit is set."""
        return any(getattr(self, name) for name in CORE_METRICS)

    @property
    def missing_core_metrics(self) -> list[str]:
        return [name for name in CORE_METRICS if not getattr(self, name)]

    def as_float(self, name: str) -> float | None:
        value = getattr(self, name)
        if value in (None, ""):
            return None
        try:
            return float(str(value).replace(",", ""))
        except ValueError:
            return None

    def numeric_fields(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)
                if f.name in NUMERIC_METRICS and getattr(self, f.name) is not None}


@dataclass
class ParseResult:
    """Outcome of one extraction attempt."""

    success: bool
    metrics: FinancialMetrics | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, *errors: str) -> ParseResult:
        return cls(success=False, errors=list(errors))
