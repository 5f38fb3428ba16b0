"""Parquet-file storage backend.

Storage layout: ``{base_path}/{stocks,results_calendar,quarterly_results}.parquet``.
Tables are held in memory and rewritten whole after every mutation.
"""

from __future__ import annotations

import math
from dataclasses import asdict, fields
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from nseresults.models.calendar_entry import CalendarEntry, CalendarStatus, DownloadStatus
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.models.stock import Stock
from nseresults.storage.memory import MemoryStorage

_DATE_FIELDS = {"announcement_date", "result_declaration_date", "published_at"}
_DATETIME_FIELDS = {"detected_at", "parsing_completed_at"}
_INT_FIELDS = {"id", "stock_id", "classification_score"}
_ENUM_FIELDS: dict[str, type[Enum]] = {
    "status": CalendarStatus,
    "download_status": DownloadStatus,
}


def _to_row(obj: Any) -> dict[str, Any]:
    row = asdict(obj)
    for key, value in row.items():
        if isinstance(value, Enum):
            row[key] = value.value
    return row


def _clean(name: str, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if name in _ENUM_FIELDS:
        return _ENUM_FIELDS[name](value)
    if name in _DATETIME_FIELDS:
        return pd.Timestamp(value).to_pydatetime()
    if name in _DATE_FIELDS:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return pd.Timestamp(value).date()
    if hasattr(value, "item"):
        # numpy scalar
        value = value.item()
    if name in _INT_FIELDS and isinstance(value, float):
        return int(value)
    return value


def _from_rows(cls: type, df: pd.DataFrame) -> list[Any]:
    names = {f.name for f in fields(cls)}
    records = []
    for raw in df.to_dict(orient="records"):
        kwargs = {k: _clean(k, v) for k, v in raw.items() if k in names}
        records.append(cls(**kwargs))
    return records


class ParquetStorage(MemoryStorage):
    """Disk-backed storage using Parquet files with Snappy compression."""

    def __init__(self, base_path: Path | str) -> None:
        super().__init__()
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._load()

    def _file(self, table: str) -> Path:
        return self.base_path / f"{table}.parquet"

    def _read(self, table: str, cls: type) -> list[Any]:
        fp = self._file(table)
        if not fp.exists():
            return []
        return _from_rows(cls, pd.read_parquet(fp))

    def _load(self) -> None:
        for stock in self._read("stocks", Stock):
            self._stocks[stock.id] = stock
        for entry in self._read("results_calendar", CalendarEntry):
            self._calendar[entry.id] = entry
        for result in self._read("quarterly_results", QuarterlyResult):
            self._results[result.key] = result

        for kind, ids in (
            ("stock", self._stocks),
            ("calendar", self._calendar),
            ("result", [r.id for r in self._results.values()]),
        ):
            self._next_id[kind] = max((int(i) for i in ids if i is not None), default=0) + 1

    def _write(self, table: str, items: list[Any], cls: type) -> None:
        if items:
            df = pd.DataFrame([_to_row(i) for i in items])
        else:
            df = pd.DataFrame(columns=[f.name for f in fields(cls)])
        df.to_parquet(self._file(table), compression="snappy", index=False)

    # ----- mutations persist the affected table

    def create_stock(self, symbol: str, company_name: str, sector: str = "Unknown") -> Stock:
        with self._lock:
            stock = super().create_stock(symbol, company_name, sector)
            self._write("stocks", list(self._stocks.values()), Stock)
            return stock

    def create_results_calendar(self, entry: CalendarEntry) -> CalendarEntry:
        with self._lock:
            created = super().create_results_calendar(entry)
            self._write("results_calendar", list(self._calendar.values()), CalendarEntry)
            return created

    def update_results_calendar(self, entry_id: int, **changes: Any) -> CalendarEntry:
        with self._lock:
            updated = super().update_results_calendar(entry_id, **changes)
            self._write("results_calendar", list(self._calendar.values()), CalendarEntry)
            return updated

    def upsert_quarterly_results(self, result: QuarterlyResult) -> QuarterlyResult:
        with self._lock:
            stored = super().upsert_quarterly_results(result)
            self._write("quarterly_results", list(self._results.values()), QuarterlyResult)
            return stored
