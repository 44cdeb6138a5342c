"""Unit tests for application settings."""

import os
from decimal import Decimal

import pytest
from pydantic import SecretStr, ValidationError

from lptrack.config.settings import Settings, get_settings


class TestSettingsValidation:
    """Tests for Settings validation."""

    def test_default_settings_are_valid(self) -> None:
        """Default settings should pass all validation."""
        for key in ("DEBUG", "LOG_LEVEL", "PORT", "CHAIN", "PARTIAL_WITHDRAWAL_POLICY"):
            os.environ.pop(key, None)

        # _env_file=None ignores any local .env
        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.port == 8000
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.chain == "bsc"
        assert settings.partial_withdrawal_policy == "closed"
        assert settings.fallback_price == Decimal("600")

    def test_port_must_be_valid_range(self) -> None:
        """Port must be between 1 and 65535."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(port=0)
        assert "greater than or equal to 1" in str(exc_info.value)

        with pytest.raises(ValidationError) as exc_info:
            Settings(port=70000)
        assert "less than or equal to 65535" in str(exc_info.value)

    def test_log_level_must_be_valid(self) -> None:
        """Log level must be one of the allowed values."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            settings = Settings(log_level=level)  # type: ignore[arg-type]
            assert settings.log_level == level

        with pytest.raises(ValidationError):
            Settings(log_level="INVALID")  # type: ignore[arg-type]

    def test_upstream_urls_must_be_http(self) -> None:
        """Upstream URLs must use HTTP(S)."""
        Settings(explorer_api_url="https://api.bscscan.com/api")
        Settings(rpc_url="http://localhost:8545")

        with pytest.raises(ValidationError) as exc_info:
            Settings(subgraph_url="ftp://example.org")
        assert "http://" in str(exc_info.value)

        with pytest.raises(ValidationError):
            Settings(rpc_url="ws://localhost:8546")

    def test_partial_withdrawal_policy_values(self) -> None:
        assert Settings(partial_withdrawal_policy="active").partial_withdrawal_policy == "active"

        with pytest.raises(ValidationError):
            Settings(partial_withdrawal_policy="sometimes")  # type: ignore[arg-type]

    def test_fallback_price_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(fallback_price=Decimal(0))

    def test_page_sizes_capped(self) -> None:
        """Subgraph and kline page sizes cannot exceed the upstream maximum."""
        with pytest.raises(ValidationError):
            Settings(subgraph_page_size=1001)
        with pytest.raises(ValidationError):
            Settings(price_batch_size=5000)


class TestSettingsEnvironment:
    """Loading from environment variables."""

    def test_env_overrides(self) -> None:
        os.environ["CHAIN"] = "ethereum"
        os.environ["MIN_POSITION_ID"] = "42"
        os.environ["RECEIPT_DELAY_MS"] = "250"

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.chain == "ethereum"
        assert settings.min_position_id == 42
        assert settings.receipt_delay_ms == 250

    def test_api_keys_are_secret(self) -> None:
        """API keys should be SecretStr and hidden in repr."""
        settings = Settings(explorer_api_key=SecretStr("super-secret"))

        assert isinstance(settings.explorer_api_key, SecretStr)
        assert "super-secret" not in repr(settings)
        assert settings.explorer_api_key.get_secret_value() == "super-secret"

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()
