import pytest
from pydantic import ValidationError

from ride_dispatch.settings import DatabaseSettings, Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DISPATCH_STORE_BACKEND", "DISPATCH_METRICS_BACKEND", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = get_settings()

        assert settings.dispatch.store_backend == "memory"
        assert settings.dispatch.metrics_backend == "memory"
        assert settings.dispatch.default_tier == "economy"
        assert settings.logging.level == "INFO"
        assert settings.redis.port == 6379

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_STORE_BACKEND", "sql")
        monkeypatch.setenv("REDIS_HOST", "cache.internal")
        monkeypatch.setenv("LOG_FORMAT", "json")

        settings = Settings()

        assert settings.dispatch.store_backend == "sql"
        assert settings.redis.host == "cache.internal"
        assert settings.logging.format == "json"

    def test_invalid_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_METRICS_BACKEND", "memcached")

        with pytest.raises(ValidationError):
            Settings()

    def test_database_url_validated(self):
        assert DatabaseSettings(url="postgresql://u:p@db/rides").url.startswith("postgresql")

        with pytest.raises(ValidationError):
            DatabaseSettings(url="mysql://db/rides")
