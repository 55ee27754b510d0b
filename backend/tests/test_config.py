"""Settings defaults and environment parsing."""

from skills_platform.config import Settings


class TestSettings:

    def test_defaults_to_production(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.is_development is False

    def test_development_is_opt_in(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "Development")
        assert Settings(_env_file=None).is_development is True

    def test_postgres_url_uses_async_driver(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db.example.co:5432/postgres")

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+asyncpg://u:p@db.example.co:5432/postgres"
