"""Storage interface consumed by the pipeline and the comparison engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import date
from typing import Any

import pandas as pd

from nseresults.fiscal import QUARTERS, parse_fiscal_year
from nseresults.models.calendar_entry import CalendarEntry
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.models.stock import Stock


class ResultsStorage(ABC):
    """Narrow keyed read/write interface over stocks, calendar and results."""

    # ----- stocks

    @abstractmethod
    def get_stock_by_symbol(self, symbol: str) -> Stock | None:
        ...

    @abstractmethod
    def create_stock(self, symbol: str, company_name: str, sector: str = "Unknown") -> Stock:
        ...

    # ----- results calendar

    @abstractmethod
    def get_results_calendar_by_stock_and_date(
        self, stock_id: int, announcement_date: date,
    ) -> CalendarEntry | None:
        ...

    @abstractmethod
    def create_results_calendar(self, entry: CalendarEntry) -> CalendarEntry:
        """Insert a calendar entry and return it with its id assigned."""
        ...

    @abstractmethod
    def update_results_calendar(self, entry_id: int, **changes: Any) -> CalendarEntry:
        ...

    @abstractmethod
    def list_results_calendar(self, stock_id: int | None = None) -> list[CalendarEntry]:
        ...

    # ----- quarterly results

    @abstractmethod
    def get_quarterly_results_by_quarter(
        self, stock_id: int, quarter: str, fiscal_year: str,
    ) -> QuarterlyResult | None:
        ...

    @abstractmethod
    def upsert_quarterly_results(self, result: QuarterlyResult) -> QuarterlyResult:
        """Insert or replace the row keyed on (stock_id, quarter, fiscal_year)."""
        ...

    @abstractmethod
    def list_quarterly_results(self, stock_id: int) -> list[QuarterlyResult]:
        """All rows for a stock, oldest quarter first."""
        ...


def quarter_sort_key(result: QuarterlyResult) -> tuple[int, int]:
    return (parse_fiscal_year(result.fiscal_year), QUARTERS.index(result.quarter))


def quarterly_results_frame(storage: ResultsStorage, stock_id: int) -> pd.DataFrame:
    """Tabular export of a stock's quarterly results, oldest first."""
    rows = [asdict(r) for r in storage.list_quarterly_results(stock_id)]
    if not rows:
        return pd.DataFrame(columns=list(QuarterlyResult.__dataclass_fields__))
    return pd.DataFrame(rows)
