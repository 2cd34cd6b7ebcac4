"""Core модуль: константы и enum'ы."""

from idphoto.core.enums import DownloadTokenStatus, OrderStatus, PaymentChannel, TaskStatus

__all__ = [
    "DownloadTokenStatus",
    "OrderStatus",
    "PaymentChannel",
    "TaskStatus",
]
