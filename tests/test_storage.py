"""Tests for storage backends (Memory and Parquet)."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from nseresults.config import ResultsConfig, StorageBackendType
from nseresults.errors import ResultsError, ResultsErrorCode
from nseresults.models.calendar_entry import CalendarEntry, CalendarStatus, DownloadStatus
from nseresults.models.quarterly_result import QuarterlyResult
from nseresults.storage import MemoryStorage, create_storage, quarterly_results_frame
from nseresults.storage.parquet import ParquetStorage

ANNOUNCED = date(2025, 10, 9)


class TestMemoryStorage:
    def test_create_stock_is_idempotent(self, storage):
        first = storage.create_stock("tcs", "Tata Consultancy Services Limited")
        second = storage.create_stock("TCS", "TCS Ltd")

        assert first.id == second.id
        assert first.symbol == "TCS"
        assert storage.get_stock_by_symbol("tcs") == first

    def test_unknown_stock(self, storage):
        assert storage.get_stock_by_symbol("NOPE") is None

    def test_calendar_lifecycle(self, storage):
        stock = storage.create_stock("TCS", "TCS")
        entry = storage.create_results_calendar(CalendarEntry(stock.id, ANNOUNCED))

        assert entry.id is not None
        updated = storage.update_results_calendar(
            entry.id, status=CalendarStatus.READY, download_status=DownloadStatus.DOWNLOADED,
        )
        assert updated.status is CalendarStatus.READY

        fetched = storage.get_results_calendar_by_stock_and_date(stock.id, ANNOUNCED)
        assert fetched.status is CalendarStatus.READY
        assert fetched.download_status is DownloadStatus.DOWNLOADED

    def test_calendar_key_is_unique(self, storage):
        storage.create_results_calendar(CalendarEntry(1, ANNOUNCED))
        with pytest.raises(ResultsError):
            storage.create_results_calendar(CalendarEntry(1, ANNOUNCED))

    def test_returned_entries_are_copies(self, storage):
        entry = storage.create_results_calendar(CalendarEntry(1, ANNOUNCED))
        entry.status = CalendarStatus.READY

        assert storage.get_results_calendar_by_stock_and_date(1, ANNOUNCED).status is CalendarStatus.WAITING

    def test_update_unknown_field(self, storage):
        entry = storage.create_results_calendar(CalendarEntry(1, ANNOUNCED))
        with pytest.raises(ValueError):
            storage.update_results_calendar(entry.id, colour="blue")

    def test_update_missing_entry(self, storage):
        with pytest.raises(ResultsError) as exc_info:
            storage.update_results_calendar(99, status=CalendarStatus.READY)
        assert exc_info.value.code is ResultsErrorCode.NOT_FOUND

    def test_upsert_replaces_by_key(self, storage):
        first = storage.upsert_quarterly_results(QuarterlyResult(1, "Q2", "FY2526", revenue=1.0))
        second = storage.upsert_quarterly_results(QuarterlyResult(1, "Q2", "FY2526", revenue=2.0))

        assert second.id == first.id
        assert storage.get_quarterly_results_by_quarter(1, "Q2", "FY2526").revenue == 2.0

    def test_results_listed_oldest_first(self, storage):
        for quarter, fy in (("Q1", "FY2526"), ("Q4", "FY2425"), ("Q2", "FY2526")):
            storage.upsert_quarterly_results(QuarterlyResult(1, quarter, fy))

        keys = [(r.quarter, r.fiscal_year) for r in storage.list_quarterly_results(1)]
        assert keys == [("Q4", "FY2425"), ("Q1", "FY2526"), ("Q2", "FY2526")]

    def test_results_frame(self, storage):
        storage.upsert_quarterly_results(QuarterlyResult(1, "Q2", "FY2526", revenue=65799.0))

        df = quarterly_results_frame(storage, 1)
        assert len(df) == 1
        assert df.iloc[0]["revenue"] == 65799.0

    def test_empty_results_frame_has_columns(self, storage):
        df = quarterly_results_frame(storage, 1)
        assert df.empty
        assert "revenue_qoq" in df.columns


class TestParquetStorage:
    @pytest.fixture
    def store(self, tmp_path):
        return ParquetStorage(tmp_path / "results")

    def test_round_trip(self, store, tmp_path):
        stock = store.create_stock("TCS", "Tata Consultancy Services Limited")
        entry = store.create_results_calendar(CalendarEntry(
            stock.id,
            ANNOUNCED,
            status=CalendarStatus.WAITING,
            classification_score=10,
            result_declaration_date=date(2025, 10, 18),
            detected_at=datetime(2025, 10, 9, 14, 0, tzinfo=timezone.utc),
        ))
        store.upsert_quarterly_results(QuarterlyResult(
            stock.id, "Q2", "FY2526", revenue=65799.0, revenue_qoq=3.72, published_at=ANNOUNCED,
        ))

        reopened = ParquetStorage(tmp_path / "results")

        assert reopened.get_stock_by_symbol("TCS").id == stock.id
        loaded = reopened.get_results_calendar_by_stock_and_date(stock.id, ANNOUNCED)
        assert loaded.id == entry.id
        assert loaded.status is CalendarStatus.WAITING
        assert loaded.download_status is DownloadStatus.PENDING
        assert loaded.classification_score == 10
        assert loaded.result_declaration_date == date(2025, 10, 18)
        assert loaded.quarter is None

        row = reopened.get_quarterly_results_by_quarter(stock.id, "Q2", "FY2526")
        assert row.revenue == 65799.0
        assert row.revenue_qoq == 3.72
        assert row.revenue_yoy is None
        assert row.published_at == ANNOUNCED

    def test_ids_continue_after_reload(self, store, tmp_path):
        store.create_stock("TCS", "TCS")
        reopened = ParquetStorage(tmp_path / "results")

        assert reopened.create_stock("INFY", "Infosys").id == 2

    def test_update_persists(self, store, tmp_path):
        entry = store.create_results_calendar(CalendarEntry(1, ANNOUNCED))
        store.update_results_calendar(entry.id, status=CalendarStatus.READY, extraction_source="xbrl")

        loaded = ParquetStorage(tmp_path / "results").get_results_calendar_by_stock_and_date(1, ANNOUNCED)
        assert loaded.status is CalendarStatus.READY
        assert loaded.extraction_source == "xbrl"


class TestCreateStorage:
    def test_memory_default(self):
        assert isinstance(create_storage(), MemoryStorage)

    def test_parquet(self, tmp_path):
        config = ResultsConfig(storage_backend=StorageBackendType.PARQUET, storage_dir=str(tmp_path))
        assert isinstance(create_storage(config), ParquetStorage)
