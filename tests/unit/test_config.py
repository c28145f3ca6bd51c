"""Configuration system unit tests."""

import pytest

from impact_scanner.domain.config import DEFAULT_QUERIES, AppConfig, get_config
from impact_scanner.domain.enums import Region
from impact_scanner.domain.errors import FatalConfigError


class TestAppConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.env == "production"
        assert config.record_scans is True
        assert config.scan.batch_size == 5
        assert config.scan.max_attempts == 2
        assert config.scan.max_articles == 100

    def test_db_url(self):
        config = AppConfig()
        assert "pymysql" in config.db.url
        assert config.db.host in config.db.url

    def test_db_dsn_override(self, monkeypatch):
        monkeypatch.setenv("DB_DSN", "sqlite:///./scans.db")
        assert AppConfig().db.url == "sqlite:///./scans.db"

    def test_redis_url_no_password(self):
        url = AppConfig().redis.url
        assert url.startswith("redis://")
        assert "localhost" in url

    def test_default_queries(self):
        config = AppConfig()
        assert [q.category for q in config.newsapi.queries] == ["Economy", "Markets", "Policy", "Politics"]
        assert [q.page_size for q in config.newsapi.queries] == [40, 35, 35, 40]
        assert config.newsapi.queries == DEFAULT_QUERIES

    def test_fallback_region_table(self):
        scan = AppConfig().scan
        assert scan.category_regions["Politics"] == Region.EUROPE
        assert scan.category_regions["Economy"] == Region.AMERICAS
        assert scan.default_region == Region.AMERICAS

    def test_sub_configs(self):
        config = AppConfig()
        for name in ("db", "redis", "llm", "newsapi", "scan", "secrets"):
            assert hasattr(config, name)


class TestRequireCredentials:
    def test_missing_both(self, monkeypatch):
        monkeypatch.delenv("NEWS_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(FatalConfigError, match="NEWS_API_KEY, GEMINI_API_KEY"):
            AppConfig().require_credentials()

    def test_missing_one(self, monkeypatch):
        monkeypatch.setenv("NEWS_API_KEY", "news-key")
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(FatalConfigError, match="GEMINI_API_KEY"):
            AppConfig().require_credentials()

    def test_present(self, monkeypatch):
        monkeypatch.setenv("NEWS_API_KEY", "news-key")
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
        AppConfig().require_credentials()


class TestGetConfig:
    def test_singleton(self):
        get_config.cache_clear()
        c1 = get_config()
        c2 = get_config()
        assert c1 is c2
        get_config.cache_clear()

    def test_env_override(self, monkeypatch):
        get_config.cache_clear()
        monkeypatch.setenv("SCAN_BATCH_SIZE", "8")
        monkeypatch.setenv("SCAN_BATCH_DELAY", "0")
        monkeypatch.setenv("SCAN_CATEGORY_WEIGHTS", '{"Economy": 2, "Politics": 1}')
        config = get_config()
        assert config.scan.batch_size == 8
        assert config.scan.batch_delay == 0
        assert config.scan.category_weights == {"Economy": 2.0, "Politics": 1.0}
        get_config.cache_clear()
