"""Доменные модели."""

from idphoto.domain.models import (
    DownloadToken,
    Order,
    OrderItem,
    SpecDef,
    Task,
    TaskSpec,
    User,
    new_id,
    utc_now,
)

__all__ = [
    "DownloadToken",
    "Order",
    "OrderItem",
    "SpecDef",
    "Task",
    "TaskSpec",
    "User",
    "new_id",
    "utc_now",
]
