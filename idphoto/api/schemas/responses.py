"""Response Schemas для ID Photo API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from idphoto.core.constants import LAYOUT_NAME
from idphoto.core.enums import OrderStatus
from idphoto.domain.models import Order


class ApiResponse(BaseModel):
    """Базовая модель ответа."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(ApiResponse):
    """Ключ сохранённой загрузки."""

    object_key: str


class BackgroundResponse(ApiResponse):
    """Готовый вариант фона."""

    task_id: str
    color: str
    url: str
    status: str = "done"


class LayoutResponse(ApiResponse):
    """Готовый лист печати."""

    task_id: str
    layout: str = LAYOUT_NAME
    url: str
    status: str = "done"


class CreateOrderResponse(ApiResponse):
    """Созданный заказ."""

    order_id: str
    status: OrderStatus


class OrderListResponse(ApiResponse):
    """Страница заказов."""

    items: list[Order]
    page: int
    page_size: int
    total: int


class CallbackResponse(ApiResponse):
    """Результат обработки callback."""

    order_id: str
    status: OrderStatus


class DownloadInfoResponse(ApiResponse):
    """Ссылки на варианты готовой задачи."""

    task_id: str
    urls: dict[str, str]
    expires_in: int


class DownloadTokenResponse(ApiResponse):
    """Выданный токен скачивания."""

    token: str
    expires_at: datetime
