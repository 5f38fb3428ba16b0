"""Quarter-over-quarter and year-over-year comparisons with idempotent upsert.

Each stored ``QuarterlyResult`` carries denormalized previous-quarter and
year-ago figures. Ingesting a quarter also refreshes the rows of the next
quarter and the same quarter a year ahead, so an older quarter arriving late
back-fills comparisons that were missing when the newer one was stored.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import date
from typing import Any

from nseresults.fiscal import (
    next_quarter,
    normalize_fiscal_year,
    normalize_quarter,
    previous_quarter,
    year_ago,
    year_ahead,
)
from nseresults.logging import get_logger
from nseresults.models.metrics import FinancialMetrics
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.storage.base import ResultsStorage

logger = get_logger(__name__)

# QuarterlyResult field -> FinancialMetrics field
CURRENT_FIELDS = {
    "revenue": "revenue",
    "profit": "net_profit",
    "eps": "eps",
    "operating_profit": "operating_profit",
    "operating_profit_margin": "operating_profit_margin",
    "ebitda": "ebitda",
    "ebitda_margin": "ebitda_margin",
    "total_income": "total_income",
    "pat_margin": "pat_margin",
    "roe": "roe",
}

GROWTH_FIELDS = ("revenue", "profit", "eps", "operating_profit")
MARGIN_FIELD = "operating_profit_margin"


def percentage_change(current: float | None, comparison: float | None) -> float | None:
    """``(current - comparison) / comparison * 100`` to 2 dp; None if undefined."""
    if current is None or comparison is None or comparison == 0:
        return None
    value = round((current - comparison) / comparison * 100, 2)
    return value if math.isfinite(value) else None


def margin_delta(current: float | None, comparison: float | None) -> float | None:
    """Margin-point difference, not a ratio of percentages."""
    if current is None or comparison is None:
        return None
    return round(current - comparison, 2)


def apply_comparisons(
    row: QuarterlyResult,
    previous: QuarterlyResult | None,
    year_ago_row: QuarterlyResult | None,
) -> QuarterlyResult:
    """Return ``row`` with prev/year-ago figures and all deltas recomputed."""
    changes: dict[str, Any] = {}
    for prefix, suffix, other in (("prev", "qoq", previous), ("year_ago", "yoy", year_ago_row)):
        for name in (*GROWTH_FIELDS, MARGIN_FIELD):
            changes[f"{prefix}_{name}"] = getattr(other, name) if other is not None else None
        for name in GROWTH_FIELDS:
            changes[f"{name}_{suffix}"] = percentage_change(
                getattr(row, name), changes[f"{prefix}_{name}"],
            )
        changes[f"{MARGIN_FIELD}_{suffix}"] = margin_delta(
            getattr(row, MARGIN_FIELD), changes[f"{prefix}_{MARGIN_FIELD}"],
        )
    return replace(row, **changes)


def build_quarterly_result(
    stock_id: int,
    quarter: str,
    fiscal_year: str,
    metrics: FinancialMetrics,
    published_at: date | None = None,
) -> QuarterlyResult:
    """Current-quarter row from extracted metrics, comparisons not yet applied."""
    current = {name: metrics.as_float(src) for name, src in CURRENT_FIELDS.items()}
    return QuarterlyResult(
        stock_id=stock_id,
        quarter=quarter,
        fiscal_year=fiscal_year,
        result_type=metrics.result_type.value if metrics.result_type else None,
        source=metrics.source,
        published_at=published_at,
        **current,
    )


class ComparisonEngine:
    """Sole writer of ``QuarterlyResult`` rows."""

    def __init__(self, storage: ResultsStorage) -> None:
        self.storage = storage

    def _get(self, stock_id: int, key: tuple[str, str]) -> QuarterlyResult | None:
        return self.storage.get_quarterly_results_by_quarter(stock_id, key[0], key[1])

    def calculate_quarterly_comparisons(
        self,
        stock_id: int,
        quarter: str,
        fiscal_year: str,
        metrics: FinancialMetrics,
        published_at: date | None = None,
    ) -> QuarterlyResult:
        """Compute comparisons for one quarter, upsert it, back-fill siblings.

        Raises:
            DataIntegrityError: If the quarter or fiscal-year label is malformed.
        """
        quarter = normalize_quarter(quarter)
        fiscal_year = normalize_fiscal_year(fiscal_year)

        previous = self._get(stock_id, previous_quarter(quarter, fiscal_year))
        year_ago_row = self._get(stock_id, year_ago(quarter, fiscal_year))
        existing = self.storage.get_quarterly_results_by_quarter(stock_id, quarter, fiscal_year)

        if published_at is None and existing is not None:
            published_at = existing.published_at
        row = apply_comparisons(
            build_quarterly_result(stock_id, quarter, fiscal_year, metrics, published_at),
            previous,
            year_ago_row,
        )

        if existing is not None and replace(row, id=existing.id) == existing:
            logger.debug("Quarterly result unchanged", stock_id=stock_id, quarter=quarter,
                         fiscal_year=fiscal_year)
            stored = existing
        else:
            stored = self.storage.upsert_quarterly_results(row)
            logger.info(
                "Quarterly result stored",
                stock_id=stock_id,
                quarter=quarter,
                fiscal_year=fiscal_year,
                revenue_qoq=stored.revenue_qoq,
                revenue_yoy=stored.revenue_yoy,
                updated=existing is not None,
            )

        self._backfill(stock_id, quarter, fiscal_year)
        return stored

    def _backfill(self, stock_id: int, quarter: str, fiscal_year: str) -> list[QuarterlyResult]:
        """Refresh rows that compare against the quarter just written."""
        updated = []
        for key in (next_quarter(quarter, fiscal_year), year_ahead(quarter, fiscal_year)):
            sibling = self._get(stock_id, key)
            if sibling is None:
                continue
            refreshed = apply_comparisons(
                sibling,
                self._get(stock_id, previous_quarter(*key)),
                self._get(stock_id, year_ago(*key)),
            )
            if refreshed != sibling:
                updated.append(self.storage.upsert_quarterly_results(refreshed))
                logger.info("Back-filled comparisons", stock_id=stock_id, quarter=key[0],
                            fiscal_year=key[1])
        return updated
