"""ID Photo Service - Dependencies.

Контейнер сервисов и Dependency Injection для FastAPI.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header

from idphoto.config import Settings
from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.infrastructure.photo_client import PhotoProcessingClient
from idphoto.infrastructure.upload_store import UploadStore
from idphoto.repositories import Repositories, create_repositories
from idphoto.services.download_service import DownloadService
from idphoto.services.order_service import OrderService
from idphoto.services.spec_catalog import SpecCatalog
from idphoto.services.task_pipeline import TaskPipeline
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Все сервисы приложения, созданные при старте."""

    repositories: Repositories
    assets: FSAssetStore
    uploads: UploadStore
    photo_client: PhotoProcessingClient
    catalog: SpecCatalog
    pipeline: TaskPipeline
    orders: OrderService
    downloads: DownloadService

    async def close(self) -> None:
        """Закрыть внешние соединения."""
        await self.photo_client.close()
        await self.repositories.close()


def build_container(
    config: Settings,
    repositories: Repositories,
    photo_client: PhotoProcessingClient | None = None,
) -> ServiceContainer:
    """Собрать контейнер из готовых хранилищ.

    Args:
        config: Настройки приложения
        repositories: Хранилища сущностей
        photo_client: Клиент сервиса обработки фото (по умолчанию из настроек)

    Returns:
        ServiceContainer.

    """
    assets = FSAssetStore(config.storage.assets_dir, config.storage.public_base_url)
    uploads = UploadStore(config.storage.uploads_dir, config.storage.max_upload_mb * 1024 * 1024)
    client = photo_client or PhotoProcessingClient(config.photo.base_url, config.photo.timeout_seconds)

    return ServiceContainer(
        repositories=repositories,
        assets=assets,
        uploads=uploads,
        photo_client=client,
        catalog=SpecCatalog.load(),
        pipeline=TaskPipeline(
            repositories.tasks,
            assets,
            uploads,
            client,
            layout_mode=config.photo.layout_mode,
        ),
        orders=OrderService(
            repositories.orders,
            repositories.tasks,
            pay_mock=config.payment.mock,
            wechat_app_id=config.payment.wechat_app_id,
        ),
        downloads=DownloadService(
            repositories.tokens,
            repositories.tasks,
            assets,
            default_ttl=config.download.default_ttl_seconds,
        ),
    )


# Singleton instance
_container: ServiceContainer | None = None


async def create_container(config: Settings) -> ServiceContainer:
    """Создать контейнер сервисов по настройкам.

    Args:
        config: Настройки приложения

    Returns:
        ServiceContainer.

    """
    global _container

    repositories = await create_repositories(config.database)
    _container = build_container(config, repositories)
    logger.info("Контейнер сервисов создан", storage=repositories.backend)
    return _container


def get_container() -> ServiceContainer:
    """Получить singleton контейнера.

    Raises:
        RuntimeError: Если контейнер не инициализирован

    """
    if _container is None:
        msg = "ServiceContainer не инициализирован. Вызовите create_container() сначала."
        raise RuntimeError(msg)
    return _container


def set_container(container: ServiceContainer | None) -> None:
    """Установить custom instance (для тестов)."""
    global _container
    _container = container


# ==================== FastAPI Dependencies ====================


def get_pipeline() -> TaskPipeline:
    return get_container().pipeline


def get_order_service() -> OrderService:
    return get_container().orders


def get_download_service() -> DownloadService:
    return get_container().downloads


def get_upload_store() -> UploadStore:
    return get_container().uploads


def get_spec_catalog() -> SpecCatalog:
    return get_container().catalog


def get_current_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str | None:
    """ID пользователя из заголовка X-User-Id.

    Аутентификация выполняется шлюзом перед сервисом. Без заголовка
    запрос анонимный.
    """
    user_id = (x_user_id or "").strip()
    return user_id or None


PipelineDep = Annotated[TaskPipeline, Depends(get_pipeline)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
DownloadServiceDep = Annotated[DownloadService, Depends(get_download_service)]
UploadStoreDep = Annotated[UploadStore, Depends(get_upload_store)]
SpecCatalogDep = Annotated[SpecCatalog, Depends(get_spec_catalog)]
CurrentUserDep = Annotated[str | None, Depends(get_current_user_id)]
