"""Unit tests for hookrelay configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from hookrelay.config import Settings


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings(self):
        """Default settings should be reasonable."""
        # Use _env_file=None to prevent reading from .env file
        settings = Settings(_env_file=None)
        assert settings.qdrant_url == "http://localhost:6333"
        assert settings.collection_prefix == "hookrelay"
        assert settings.dispatch_batch_size == 10
        assert settings.dispatch_max_retries == 5
        assert settings.delivery_timeout_seconds == 10.0
        assert settings.retry_delay_seconds == 0.0
        assert settings.accepted_status_codes == [200]
        assert settings.seed_targets == []
        assert settings.log_level == "INFO"

    def test_log_formats(self):
        """Only valid log formats should be accepted."""
        assert Settings(log_format="json").log_format == "json"
        assert Settings(log_format="text").log_format == "text"
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(dispatch_batch_size=0)

    def test_max_retries_may_be_zero(self):
        assert Settings(dispatch_max_retries=0).dispatch_max_retries == 0
        with pytest.raises(ValidationError):
            Settings(dispatch_max_retries=-1)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(delivery_timeout_seconds=0)

    def test_retry_delay_bounds(self):
        """The delay cap cannot be below the base delay."""
        with pytest.raises(ValidationError, match="retry_max_delay_seconds"):
            Settings(retry_delay_seconds=2.0, retry_max_delay_seconds=1.0)

    def test_accepted_status_codes_required(self):
        with pytest.raises(ValidationError, match="accepted_status_codes"):
            Settings(accepted_status_codes=[])

    def test_default_page_size_clamped(self):
        """A default page size above the maximum is clamped."""
        settings = Settings(list_default_page_size=50, list_max_page_size=20)
        assert settings.list_default_page_size == 20

    def test_env_prefix(self):
        """Settings should use HOOKRELAY_ prefix for environment variables."""
        with patch.dict(os.environ, {"HOOKRELAY_LOG_LEVEL": "DEBUG"}):
            settings = Settings()
            assert settings.log_level == "DEBUG"

    def test_env_dispatch_settings(self):
        """Dispatch limits can be set from the environment."""
        env = {
            "HOOKRELAY_DISPATCH_BATCH_SIZE": "25",
            "HOOKRELAY_DISPATCH_MAX_RETRIES": "2",
            "HOOKRELAY_ACCEPTED_STATUS_CODES": "[200, 202]",
        }
        with patch.dict(os.environ, env):
            settings = Settings()
            assert settings.dispatch_batch_size == 25
            assert settings.dispatch_max_retries == 2
            assert settings.accepted_status_codes == [200, 202]

    def test_env_seed_targets(self):
        with patch.dict(
            os.environ, {"HOOKRELAY_SEED_TARGETS": '["https://a.example.com"]'}
        ):
            settings = Settings()
            assert settings.seed_targets == ["https://a.example.com"]

    def test_optional_api_key(self):
        settings = Settings(_env_file=None)
        assert settings.qdrant_api_key is None or isinstance(settings.qdrant_api_key, str)


class TestCorsSettings:
    """Tests for CORS settings."""

    def test_cors_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.cors_enabled is True
        assert settings.cors_allow_origins == ["*"]
        assert "PUT" in settings.cors_allow_methods

    def test_cors_max_age_bounds(self):
        with pytest.raises(ValidationError):
            Settings(cors_max_age=-1)
        with pytest.raises(ValidationError):
            Settings(cors_max_age=86401)
