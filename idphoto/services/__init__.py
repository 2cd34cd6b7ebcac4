"""Бизнес-сервисы: обработка фото, заказы, скачивание, каталог форматов."""

from idphoto.services.download_service import DownloadService
from idphoto.services.order_service import OrderService
from idphoto.services.spec_catalog import SpecCatalog
from idphoto.services.task_pipeline import TaskPipeline

__all__ = [
    "DownloadService",
    "OrderService",
    "SpecCatalog",
    "TaskPipeline",
]
