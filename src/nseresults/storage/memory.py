"""In-process storage backend."""

from __future__ import annotations

import threading
from dataclasses import fields, replace
from datetime import date
from typing import Any

from nseresults.errors import ResultsError, ResultsErrorCode
from nseresults.models.calendar_entry import CalendarEntry
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.models.stock import Stock
from nseresults.storage.base import ResultsStorage, quarter_sort_key

_CALENDAR_FIELDS = {f.name for f in fields(CalendarEntry)}


class MemoryStorage(ResultsStorage):
    """Dict-backed storage. Returned calendar entries are copies."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._stocks: dict[int, Stock] = {}
        self._calendar: dict[int, CalendarEntry] = {}
        self._results: dict[tuple[int, str, str], QuarterlyResult] = {}
        self._next_id = {"stock": 1, "calendar": 1, "result": 1}

    def _allocate(self, kind: str) -> int:
        value = self._next_id[kind]
        self._next_id[kind] = value + 1
        return value

    # ----- stocks

    def get_stock_by_symbol(self, symbol: str) -> Stock | None:
        with self._lock:
            return next((s for s in self._stocks.values() if s.symbol == symbol.upper()), None)

    def create_stock(self, symbol: str, company_name: str, sector: str = "Unknown") -> Stock:
        with self._lock:
            existing = self.get_stock_by_symbol(symbol)
            if existing is not None:
                return existing
            stock = Stock(symbol=symbol.upper(), company_name=company_name, sector=sector,
                          id=self._allocate("stock"))
            self._stocks[stock.id] = stock  # type: ignore[index]
            return stock

    # ----- results calendar

    def get_results_calendar_by_stock_and_date(
        self, stock_id: int, announcement_date: date,
    ) -> CalendarEntry | None:
        with self._lock:
            for entry in self._calendar.values():
                if entry.stock_id == stock_id and entry.announcement_date == announcement_date:
                    return replace(entry)
            return None

    def create_results_calendar(self, entry: CalendarEntry) -> CalendarEntry:
        with self._lock:
            if self.get_results_calendar_by_stock_and_date(entry.stock_id, entry.announcement_date):
                raise ResultsError(
                    f"Calendar entry already exists for stock {entry.stock_id} "
                    f"on {entry.announcement_date}",
                    code=ResultsErrorCode.VALIDATION_FAILED,
                )
            stored = replace(entry, id=self._allocate("calendar"))
            self._calendar[stored.id] = stored  # type: ignore[index]
            return replace(stored)

    def update_results_calendar(self, entry_id: int, **changes: Any) -> CalendarEntry:
        unknown = set(changes) - _CALENDAR_FIELDS
        if unknown:
            raise ValueError(f"Unknown calendar fields: {sorted(unknown)}")
        with self._lock:
            if entry_id not in self._calendar:
                raise ResultsError(
                    f"Calendar entry {entry_id} not found",
                    code=ResultsErrorCode.NOT_FOUND,
                )
            updated = replace(self._calendar[entry_id], **changes)
            self._calendar[entry_id] = updated
            return replace(updated)

    def list_results_calendar(self, stock_id: int | None = None) -> list[CalendarEntry]:
        with self._lock:
            entries = [replace(e) for e in self._calendar.values()
                       if stock_id is None or e.stock_id == stock_id]
        return sorted(entries, key=lambda e: (e.stock_id, e.announcement_date))

    # ----- quarterly results

    def get_quarterly_results_by_quarter(
        self, stock_id: int, quarter: str, fiscal_year: str,
    ) -> QuarterlyResult | None:
        with self._lock:
            return self._results.get((stock_id, quarter, fiscal_year))

    def upsert_quarterly_results(self, result: QuarterlyResult) -> QuarterlyResult:
        with self._lock:
            existing = self._results.get(result.key)
            row_id = existing.id if existing is not None else self._allocate("result")
            stored = replace(result, id=row_id)
            self._results[result.key] = stored
            return stored

    def list_quarterly_results(self, stock_id: int) -> list[QuarterlyResult]:
        with self._lock:
            rows = [r for r in self._results.values() if r.stock_id == stock_id]
        return sorted(rows, key=quarter_sort_key)
