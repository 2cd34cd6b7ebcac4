"""Request Schemas для ID Photo API.

Pydantic модели входящих запросов. Поля на проводе в camelCase.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from idphoto.core.constants import DEFAULT_PAYMENT_CHANNEL


class ApiRequest(BaseModel):
    """Базовая модель запроса."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskRequest(ApiRequest):
    """Запрос на создание задачи обработки фото.

    POST /api/tasks
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "specCode": "cn_1inch",
                    "sourceObjectKey": "uploads/3f2a..._me.jpg",
                    "defaultBackground": "white",
                }
            ]
        },
    )

    spec_code: str = Field(default="", description="Код формата (пусто = формат по умолчанию)")
    source_object_key: str = Field(min_length=1, description="Ключ загруженного фото")
    default_background: str = Field(default="", description="Цвет фона по умолчанию")
    width_px: int = Field(default=0, ge=0, description="Ширина (0 = из формата)")
    height_px: int = Field(default=0, ge=0, description="Высота (0 = из формата)")
    dpi: int = Field(default=0, ge=0, description="DPI (0 = из формата)")
    available_colors: list[str] = Field(default_factory=list, description="Цвета для дозаказа")
    colors: list[str] = Field(default_factory=list, description="Устаревший синоним availableColors")


class GenerateBackgroundRequest(ApiRequest):
    """Запрос варианта с другим цветом фона."""

    color: str = Field(min_length=1, description="Имя цвета или hex")
    dpi: int = Field(default=0, ge=0)


class GenerateLayoutRequest(ApiRequest):
    """Запрос листа печати 6x4."""

    color: str = Field(min_length=1, description="Цвет фона фото на листе")
    width_px: int = Field(default=0, ge=0)
    height_px: int = Field(default=0, ge=0)
    dpi: int = Field(default=0, ge=0)
    kb: int = Field(default=0, ge=0, description="Целевой размер файла в KB")


class OrderItemRequest(ApiRequest):
    """Позиция заказа."""

    type: str = ""
    qty: int = 0


class CreateOrderRequest(ApiRequest):
    """Запрос на создание заказа.

    POST /api/orders
    """

    task_id: str = Field(min_length=1)
    items: list[OrderItemRequest] = Field(default_factory=list)
    city: str = ""
    remark: str = ""
    amount_cents: int = 0
    channel: str = DEFAULT_PAYMENT_CHANNEL


class PayRequest(ApiRequest):
    """Запрос платёжных параметров."""

    order_id: str = Field(min_length=1)


class PaymentCallbackRequest(ApiRequest):
    """Callback платёжной системы."""

    order_id: str = Field(min_length=1)
    status: str = Field(min_length=1)


class DownloadTokenRequest(ApiRequest):
    """Запрос токена скачивания."""

    task_id: str = Field(min_length=1)
    ttl_seconds: int = 0
