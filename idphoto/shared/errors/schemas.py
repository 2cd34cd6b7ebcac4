"""Error schemas.

Pydantic схемы для ошибок.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Детальная информация об ошибке.

    Кроме стандартных полей допускает произвольные ключи (task_id, order_id, ...).
    """

    model_config = ConfigDict(extra="allow")

    field: str | None = Field(default=None, description="Поле с ошибкой")
    message: str | None = Field(default=None, description="Сообщение об ошибке")
    code: str | None = Field(default=None, description="Код ошибки")
    context: dict[str, Any] | None = Field(default=None, description="Дополнительный контекст")


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "ORDER_ALREADY_PAID",
                "message": "Заказ уже оплачен",
                "details": {"order_id": "5f1c0a9e4b7d4c2a8e3f6b1d9c0a7e42"},
                "trace_id": "a1b2c3d4e5f647899012345678901234",
            }
        }
    )

    error: str = Field(..., description="Код ошибки")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: dict[str, Any] = Field(default_factory=dict, description="Дополнительные детали")
    trace_id: str = Field(default="", description="ID трассировки для отладки")
