"""
Tests for pgledger configuration
"""

from unittest.mock import patch

from pgledger.config.settings import Settings, settings


def test_defaults_are_valid():
    assert Settings.validate_config() == []
    assert settings.get_pipeline_config() == {"atomic_block_commit": Settings.ATOMIC_BLOCK_COMMIT}


def test_database_config():
    config = Settings.get_database_config()
    assert set(config) == {"url", "maintenance_url", "name"}
    assert config["url"].startswith("postgres")


def test_logging_config():
    config = Settings.get_logging_config()
    assert config["statement_limit"] == Settings.LOG_STATEMENT_LIMIT
    assert "%(levelname)s" in config["format"]


def test_invalid_values_are_reported():
    with patch.object(Settings, "DATABASE_URL", "mysql://localhost/ledger"), \
            patch.object(Settings, "DATABASE_NAME", "bad-name"), \
            patch.object(Settings, "LOG_LEVEL", "LOUD"), \
            patch.object(Settings, "LOG_STATEMENT_LIMIT", 0):
        errors = Settings.validate_config()

    assert len(errors) == 4
    assert any("DATABASE_URL" in e for e in errors)
    assert any("DATABASE_NAME" in e for e in errors)
