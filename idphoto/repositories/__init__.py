"""Хранилища сущностей."""

from idphoto.repositories.base import (
    DownloadTokenRepository,
    OrderRepository,
    TaskRepository,
    UserRepository,
)
from idphoto.repositories.factory import Repositories, create_memory_repositories, create_repositories

__all__ = [
    "DownloadTokenRepository",
    "OrderRepository",
    "Repositories",
    "TaskRepository",
    "UserRepository",
    "create_memory_repositories",
    "create_repositories",
]
