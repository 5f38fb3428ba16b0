"""Tests for configuration, logging setup and the env factory."""

from __future__ import annotations

import pytest
import structlog

from nseresults import create_pipeline_from_env, setup_logging
from nseresults.config import ResultsConfig, StorageBackendType
from nseresults.storage import MemoryStorage
from nseresults.storage.parquet import ParquetStorage


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class TestResultsConfig:
    def test_defaults(self):
        config = ResultsConfig()
        assert config.base_url == "https://www.nseindia.com"
        assert config.min_request_interval == 0.5
        assert config.session_lifetime == 1800
        assert config.max_consecutive_errors == 5
        assert config.lookback_days == 7
        assert config.lookahead_days == 30
        assert config.storage_backend is StorageBackendType.MEMORY


class TestCreatePipelineFromEnv:
    def test_defaults(self, monkeypatch):
        for name in ("NSE_STORAGE", "NSE_LOOKBACK_DAYS", "NSE_MIN_REQUEST_INTERVAL"):
            monkeypatch.delenv(name, raising=False)

        pipeline = create_pipeline_from_env()

        assert isinstance(pipeline.storage, MemoryStorage)
        assert pipeline.config.lookback_days == 7

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NSE_STORAGE", "parquet")
        monkeypatch.setenv("NSE_STORAGE_DIR", str(tmp_path))
        monkeypatch.setenv("NSE_LOOKBACK_DAYS", "3")
        monkeypatch.setenv("NSE_MIN_REQUEST_INTERVAL", "1.5")
        monkeypatch.setenv("NSE_JSON_LOGS", "true")

        pipeline = create_pipeline_from_env()

        assert isinstance(pipeline.storage, ParquetStorage)
        assert pipeline.config.lookback_days == 3
        assert pipeline.session.config.min_request_interval == 1.5
        assert pipeline.config.json_logs is True

    def test_unknown_storage_backend(self, monkeypatch):
        monkeypatch.setenv("NSE_STORAGE", "postgres")
        with pytest.raises(ValueError):
            create_pipeline_from_env()


class TestLogging:
    def test_json_logs(self, capsys):
        setup_logging("INFO", json_logs=True)
        structlog.get_logger("nseresults.test").info("Results stored", symbol="TCS")

        out = capsys.readouterr().out
        assert '"symbol": "TCS"' in out
        assert '"event": "Results stored"' in out

    def test_level_filters(self, capsys):
        setup_logging("WARNING", json_logs=True)
        structlog.get_logger("nseresults.test").info("hidden")

        assert "hidden" not in capsys.readouterr().out
