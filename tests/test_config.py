"""Tests for ScannerConfig."""
from gatepass.config import ScannerConfig
from gatepass.core.constants import CACHE_TTL_HOURS, SYNC_RETENTION_MINUTES


class TestScannerConfig:
    """Tests for environment loading and validation."""

    def test_defaults(self):
        config = ScannerConfig()
        assert config.cache_ttl_hours == CACHE_TTL_HOURS == 24
        assert config.sync_retention_minutes == SYNC_RETENTION_MINUTES == 60
        assert config.validate() == []

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GATEPASS_DB_PATH", str(tmp_path / "scan.sqlite3"))
        monkeypatch.setenv("GATEPASS_CACHE_TTL_HOURS", "6")
        monkeypatch.setenv("GATEPASS_SYNC_RETENTION_MINUTES", "15")
        monkeypatch.setenv("GATEPASS_REMOTE_PORT", "9000")
        monkeypatch.setenv("GATEPASS_LOG_LEVEL", "debug")

        config = ScannerConfig.from_env()

        assert config.db_path == str(tmp_path / "scan.sqlite3")
        assert config.cache_ttl_hours == 6.0
        assert config.sync_retention_minutes == 15.0
        assert config.remote_port == 9000
        assert config.log_level == "DEBUG"

    def test_validate_errors(self):
        config = ScannerConfig(cache_ttl_hours=0, remote_port=70000, log_level="LOUD")

        errors = config.validate()

        assert len(errors) == 3
        assert any("cache_ttl_hours" in e for e in errors)
        assert any("remote_port" in e for e in errors)
        assert any("log_level" in e for e in errors)
