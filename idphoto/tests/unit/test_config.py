"""Тесты для настроек приложения."""

import pytest
from pydantic import ValidationError

from idphoto.config import DatabaseSettings, ServerSettings, Settings, StorageSettings


class TestSettings:
    """Тесты главных настроек."""

    def test_defaults(self) -> None:
        """Тест значений по умолчанию."""
        config = Settings(_env_file=None)

        assert config.server.port == 5000
        assert config.photo.layout_mode == "local"
        assert config.payment.mock is True
        assert config.download.default_ttl_seconds == 600
        assert config.database.enabled is False

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Тест переопределения вложенных настроек через окружение."""
        monkeypatch.setenv("IDPHOTO__SERVER__PORT", "8088")
        monkeypatch.setenv("IDPHOTO__PHOTO__BASE_URL", "http://photo:9000")
        monkeypatch.setenv("IDPHOTO__PAYMENT__MOCK", "false")

        config = Settings(_env_file=None)

        assert config.server.port == 8088
        assert config.photo.base_url == "http://photo:9000"
        assert config.payment.mock is False


class TestServerSettings:
    """Тесты настроек сервера."""

    @pytest.mark.parametrize("port", [0, 70000])
    def test_invalid_port(self, port: int) -> None:
        """Тест отклонения порта вне диапазона."""
        with pytest.raises(ValidationError):
            ServerSettings(port=port)


class TestStorageSettings:
    """Тесты настроек хранилища."""

    def test_public_base_url_stripped(self) -> None:
        """Тест удаления завершающего слэша."""
        assert StorageSettings(public_base_url=" https://cdn.example.com/ ").public_base_url == (
            "https://cdn.example.com"
        )


class TestDatabaseSettings:
    """Тесты настроек базы данных."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgresql://u:p@db/idphoto", "postgresql+asyncpg://u:p@db/idphoto"),
            ("postgres://u:p@db/idphoto", "postgresql+asyncpg://u:p@db/idphoto"),
            ("sqlite+aiosqlite:///data.db", "sqlite+aiosqlite:///data.db"),
        ],
    )
    def test_async_url(self, url: str, expected: str) -> None:
        """Тест подстановки асинхронного драйвера."""
        config = DatabaseSettings(url=url)

        assert config.enabled is True
        assert config.async_url == expected
