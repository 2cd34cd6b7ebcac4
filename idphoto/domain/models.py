"""Domain models.

Pydantic модели сущностей: задача обработки фото, заказ, токен скачивания,
пользователь и формат фото. На проводе поля в camelCase.
"""

import secrets
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from idphoto.core.enums import DownloadTokenStatus, OrderStatus, TaskStatus


def new_id() -> str:
    """Сгенерировать непрозрачный идентификатор (128 бит, hex).

    Returns:
        Строка из 32 hex символов.

    """
    return secrets.token_hex(16)


def utc_now() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(UTC)


class DomainModel(BaseModel):
    """Базовая модель: camelCase алиасы, заполнение по имени поля."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class TaskSpec(DomainModel):
    """Целевые параметры фото задачи."""

    code: str = ""
    width_px: int = 0
    height_px: int = 0
    dpi: int = 0


class Task(DomainModel):
    """Задача конвертации фото в фото на документы.

    processed_urls и layout_urls только пополняются, baseline_url
    устанавливается один раз.
    """

    id: str = Field(default_factory=new_id)
    user_id: str | None = None
    spec_code: str = ""
    spec: TaskSpec = Field(default_factory=TaskSpec)
    source_object_key: str = ""
    status: TaskStatus = TaskStatus.QUEUED
    baseline_url: str = ""
    processed_urls: dict[str, str] = Field(default_factory=dict)
    layout_urls: dict[str, str] = Field(default_factory=dict)
    available_colors: list[str] = Field(default_factory=list)
    error_msg: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def owner(self) -> str:
        """Владелец задачи (пустая строка для анонимной)."""
        return self.user_id or ""

    def touch(self) -> None:
        """Обновить updated_at."""
        self.updated_at = utc_now()


class OrderItem(DomainModel):
    """Позиция заказа."""

    type: str = ""
    qty: int = 0


class Order(DomainModel):
    """Заказ на печать/выдачу фото одной задачи.

    pay_idempotency_key и pay_params не отдаются наружу.
    """

    order_id: str = Field(default_factory=new_id)
    task_id: str = ""
    user_id: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    city: str = ""
    remark: str = ""
    amount_cents: int = 0
    channel: str = ""
    status: OrderStatus = OrderStatus.CREATED
    pay_idempotency_key: str = Field(default="", exclude=True)
    pay_params: str = Field(default="", exclude=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def touch(self) -> None:
        """Обновить updated_at."""
        self.updated_at = utc_now()


class DownloadToken(DomainModel):
    """Одноразовый токен скачивания результатов задачи."""

    token: str = Field(default_factory=new_id)
    task_id: str
    user_id: str
    status: DownloadTokenStatus = DownloadTokenStatus.ACTIVE
    expires_at: datetime
    created_at: datetime = Field(default_factory=utc_now)
    used_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Проверить, истёк ли срок действия.

        Args:
            now: Момент проверки (по умолчанию текущее время).

        Returns:
            True если now позже expires_at.

        """
        return (now or utc_now()) > self.expires_at


class User(DomainModel):
    """Пользователь мини-программы."""

    user_id: str = Field(default_factory=new_id)
    openid: str = ""
    nickname: str = ""
    avatar: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class SpecDef(DomainModel):
    """Формат фото на документы из каталога."""

    code: str
    name: str
    width_px: int = Field(gt=0)
    height_px: int = Field(gt=0)
    dpi: int = Field(default=300, gt=0)
    bg_colors: list[str] = Field(default_factory=lambda: ["white", "blue", "red"])
