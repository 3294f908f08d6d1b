"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from authcore.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
        settings = Settings(jwt_secret="x" * 64)

        assert settings.access_token_ttl_seconds == 15 * 60
        assert settings.refresh_token_ttl_seconds == 7 * 24 * 3600
        assert settings.bcrypt_rounds == 12
        assert settings.operation_timeout_seconds == 5.0

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "5")
        monkeypatch.setenv("OPERATION_TIMEOUT_SECONDS", "1.5")

        settings = Settings()

        assert settings.access_token_ttl_seconds == 300
        assert settings.operation_timeout_seconds == 1.5

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            Settings(jwt_secret="too-short")
