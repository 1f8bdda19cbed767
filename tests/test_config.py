"""
Tests for application settings.
"""

import pytest

from iap_transactions.config import ConfigurationError, Settings, get_settings, settings


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.transactions_url.startswith("https://")
        assert config.dedupe_fallback_ids is False
        assert config.proceeds_rate == 0.85

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("IAP_TRANSACTIONS_URL", "http://localhost:8080/api/getAllTransactions")
        monkeypatch.setenv("IAP_DEDUPE_FALLBACK_IDS", "true")

        config = Settings(_env_file=None)

        assert config.transactions_url == "http://localhost:8080/api/getAllTransactions"
        assert config.dedupe_fallback_ids is True

    def test_non_http_url_fails_fast(self):
        with pytest.raises(ConfigurationError, match="http\\(s\\) URL"):
            Settings(_env_file=None, transactions_url="ftp://example.com/transactions")

    def test_empty_url_fails_fast(self):
        with pytest.raises(ConfigurationError, match="required"):
            Settings(_env_file=None, transactions_url="")

    @pytest.mark.parametrize("rate", [0, -0.1, 1.5])
    def test_proceeds_rate_bounds(self, rate):
        with pytest.raises(ConfigurationError, match="PROCEEDS_RATE"):
            Settings(_env_file=None, proceeds_rate=rate)

    def test_log_format_validated(self):
        with pytest.raises(ConfigurationError, match="LOG_FORMAT"):
            Settings(_env_file=None, log_format="xml")

    def test_get_settings_returns_global(self):
        assert get_settings() is settings
