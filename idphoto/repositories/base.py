"""Repository contracts.

Протоколы хранилищ сущностей. get_* возвращает None при отсутствии записи,
а не выбрасывает исключение.
"""

from typing import Protocol

from idphoto.domain.models import DownloadToken, Order, Task, User


class TaskRepository(Protocol):
    """Хранилище задач."""

    async def put(self, task: Task) -> None: ...

    async def get(self, task_id: str) -> Task | None: ...


class OrderRepository(Protocol):
    """Хранилище заказов."""

    async def put(self, order: Order) -> None: ...

    async def get(self, order_id: str) -> Order | None: ...

    async def list(self, page: int, page_size: int) -> tuple[list[Order], int]:
        """Страница заказов, новые первыми.

        Args:
            page: Номер страницы (с 1).
            page_size: Размер страницы.

        Returns:
            Кортеж (заказы страницы, общее количество).

        """
        ...


class DownloadTokenRepository(Protocol):
    """Хранилище токенов скачивания."""

    async def put_token(self, token: DownloadToken) -> None: ...

    async def get_token(self, token: str) -> DownloadToken | None: ...

    async def update_token(self, token: DownloadToken) -> None: ...


class UserRepository(Protocol):
    """Хранилище пользователей."""

    async def put(self, user: User) -> None: ...

    async def get(self, user_id: str) -> User | None: ...

    async def get_by_openid(self, openid: str) -> User | None: ...
