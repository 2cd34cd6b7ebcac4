"""Repository factory.

Выбор реализации хранилищ при старте процесса.
"""

from dataclasses import dataclass

from idphoto.config import DatabaseSettings
from idphoto.repositories.base import (
    DownloadTokenRepository,
    OrderRepository,
    TaskRepository,
    UserRepository,
)
from idphoto.repositories.memory import (
    MemoryDownloadTokenRepository,
    MemoryOrderRepository,
    MemoryTaskRepository,
    MemoryUserRepository,
)
from idphoto.repositories.sql import (
    Database,
    SqlDownloadTokenRepository,
    SqlOrderRepository,
    SqlTaskRepository,
    SqlUserRepository,
)
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Repositories:
    """Набор хранилищ приложения."""

    tasks: TaskRepository
    orders: OrderRepository
    tokens: DownloadTokenRepository
    users: UserRepository
    database: Database | None = None

    @property
    def backend(self) -> str:
        """Тип хранилища: memory или sql."""
        return "sql" if self.database else "memory"

    async def close(self) -> None:
        """Освободить ресурсы хранилища."""
        if self.database is not None:
            await self.database.dispose()


def create_memory_repositories() -> Repositories:
    """Создать in-memory хранилища.

    Returns:
        Repositories без БД.

    """
    return Repositories(
        tasks=MemoryTaskRepository(),
        orders=MemoryOrderRepository(),
        tokens=MemoryDownloadTokenRepository(),
        users=MemoryUserRepository(),
    )


async def create_repositories(config: DatabaseSettings) -> Repositories:
    """Создать хранилища по настройкам.

    Пустой database.url означает in-memory хранилища, иначе SQLAlchemy
    с созданием таблиц.

    Args:
        config: Настройки БД.

    Returns:
        Набор хранилищ.

    """
    if not config.enabled:
        logger.info("Используется in-memory хранилище")
        return create_memory_repositories()

    db = Database(config)
    await db.create_tables()
    logger.info("Используется реляционное хранилище")
    return Repositories(
        tasks=SqlTaskRepository(db),
        orders=SqlOrderRepository(db),
        tokens=SqlDownloadTokenRepository(db),
        users=SqlUserRepository(db),
        database=db,
    )
