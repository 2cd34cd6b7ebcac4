"""Enums для ID Photo Service.

Централизованное хранилище всех enum'ов проекта.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Статус задачи обработки фото."""

    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class OrderStatus(str, Enum):
    """Статус заказа."""

    CREATED = "created"
    PENDING = "pending"  # платёжные параметры выданы, ждём callback
    PAID = "paid"
    CANCELED = "canceled"
    REFUNDED = "refunded"


class DownloadTokenStatus(str, Enum):
    """Статус токена скачивания."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


class PaymentChannel(str, Enum):
    """Платёжный канал."""

    WECHAT = "wechat"
    DOUYIN = "douyin"
