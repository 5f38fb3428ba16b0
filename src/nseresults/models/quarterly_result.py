"""Persisted per-quarter result with comparisons."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class QuarterlyResult:
    """One row per (stock_id, quarter, fiscal_year).

    Amounts are in crores. ``*_qoq``/``*_yoy`` are percentage changes except
    ``operating_profit_margin_qoq``/``_yoy``, which are margin-point deltas.
    """

    stock_id: int
    quarter: str
    fiscal_year: str

    revenue: float | None = None
    profit: float | None = None
    eps: float | None = None
    operating_profit: float | None = None
    operating_profit_margin: float | None = None
    ebitda: float | None = None
    ebitda_margin: float | None = None
    total_income: float | None = None
    pat_margin: float | None = None
    roe: float | None = None

    prev_revenue: float | None = None
    prev_profit: float | None = None
    prev_eps: float | None = None
    prev_operating_profit: float | None = None
    prev_operating_profit_margin: float | None = None

    year_ago_revenue: float | None = None
    year_ago_profit: float | None = None
    year_ago_eps: float | None = None
    year_ago_operating_profit: float | None = None
    year_ago_operating_profit_margin: float | None = None

    revenue_qoq: float | None = None
    profit_qoq: float | None = None
    eps_qoq: float | None = None
    operating_profit_qoq: float | None = None
    operating_profit_margin_qoq: float | None = None

    revenue_yoy: float | None = None
    profit_yoy: float | None = None
    eps_yoy: float | None = None
    operating_profit_yoy: float | None = None
    operating_profit_margin_yoy: float | None = None

    result_type: str | None = None
    source: str | None = None
    published_at: date | None = None
    id: int | None = None

    @property
    def key(self) -> tuple[int, str, str]:
        return (self.stock_id, self.quarter, self.fiscal_year)
