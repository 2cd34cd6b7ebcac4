"""ID Photo Service - Configuration.

Конфигурация приложения через Pydantic Settings.
Строгая типизация, валидация форматов и централизованное управление.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    """Настройки сервера (Uvicorn)."""

    host: str = Field(default="0.0.0.0", description="Хост")
    port: int = Field(default=5000, description="Порт")
    reload: bool = Field(default=False, description="Режим автоперезагрузки")

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        """Валидация порта.

        Args:
            value: Номер порта для проверки.

        Returns:
            Проверенное значение порта.

        Raises:
            ValueError: Если порт вне допустимого диапазона.

        """
        if not 1 <= value <= 65535:
            msg = f"Порт ({value}) должен быть в диапазоне 1-65535"
            raise ValueError(msg)
        return value


class StorageSettings(BaseModel):
    """Настройки файловых хранилищ (загрузки и готовые ассеты)."""

    assets_dir: str = Field(default="./assets", description="Директория готовых изображений")
    uploads_dir: str = Field(default="./uploads", description="Директория исходных фото")
    public_base_url: str = Field(
        default="",
        description="Публичный base URL для ссылок на ассеты (пусто = относительные ссылки)",
    )
    max_upload_mb: int = Field(default=15, ge=1, le=100, description="Лимит размера загрузки в MB")

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Убрать завершающий слэш из base URL."""
        return value.strip().rstrip("/")


class PhotoServiceSettings(BaseModel):
    """Настройки внешнего сервиса обработки фото."""

    base_url: str = Field(default="http://127.0.0.1:8080", description="Base URL сервиса")
    timeout_seconds: float = Field(default=30.0, gt=0, le=600, description="Таймаут запроса")
    layout_mode: Literal["local", "remote"] = Field(
        default="local",
        description="Где собирать лист печати: локально (Pillow) или во внешнем сервисе",
    )


class PaymentSettings(BaseModel):
    """Настройки платежей."""

    mock: bool = Field(default=True, description="Mock-режим выдачи платёжных параметров")
    wechat_app_id: str = Field(default="", description="AppID мини-программы WeChat")


class DatabaseSettings(BaseModel):
    """Настройки реляционного хранилища."""

    url: str = Field(
        default="",
        description="SQLAlchemy URL (пусто = in-memory хранилище)",
    )
    echo: bool = Field(default=False, description="Логировать SQL запросы")

    @property
    def enabled(self) -> bool:
        """Используется ли реляционное хранилище."""
        return bool(self.url.strip())

    @property
    def async_url(self) -> str:
        """URL с асинхронным драйвером.

        Returns:
            URL для create_async_engine.

        """
        url = self.url.strip()
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url


class DownloadSettings(BaseModel):
    """Настройки выдачи файлов."""

    default_ttl_seconds: int = Field(default=600, gt=0, description="TTL токена скачивания")


class LogSettings(BaseModel):
    """Настройки логирования."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Уровень логирования",
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description="Формат логов",
    )
    file_path: str = Field(
        default="logs/idphoto.log",
        description="Путь к файлу логов",
    )
    rotation: str = Field(default="10 MB", description="Ротация логов")
    retention: str = Field(default="10 days", description="Время хранения логов")


class Settings(BaseSettings):
    """Главные настройки приложения.

    Все настройки загружаются из переменных окружения с префиксом IDPHOTO__.
    Пример: IDPHOTO__STORAGE__ASSETS_DIR=/data/assets
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        env_prefix="IDPHOTO__",
        extra="ignore",
    )

    app_name: str = Field(default="ID Photo Service", description="Название приложения")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Окружение",
    )
    debug: bool = Field(default=False, description="Режим отладки")

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    photo: PhotoServiceSettings = Field(default_factory=PhotoServiceSettings)
    payment: PaymentSettings = Field(default_factory=PaymentSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    download: DownloadSettings = Field(default_factory=DownloadSettings)
    log: LogSettings = Field(default_factory=LogSettings)


@lru_cache
def get_settings() -> Settings:
    """Получить singleton настроек.

    Returns:
        Экземпляр Settings.

    """
    return Settings()


settings = get_settings()
