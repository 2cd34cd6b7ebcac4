"""In-memory repositories.

Хранилища в памяти процесса. Каждое хранилище сериализует доступ через
asyncio.Lock и отдаёт копии записей, чтобы вызывающий код не мутировал
состояние в обход put.
"""

import asyncio

from idphoto.domain.models import DownloadToken, Order, Task, User


class MemoryTaskRepository:
    """Задачи в словаре."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._tasks: dict[str, Task] = {}

    async def put(self, task: Task) -> None:
        async with self._lock:
            self._tasks[task.id] = task.model_copy(deep=True)

    async def get(self, task_id: str) -> Task | None:
        async with self._lock:
            task = self._tasks.get(task_id)
            return task.model_copy(deep=True) if task else None


class MemoryOrderRepository:
    """Заказы в словаре."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._orders: dict[str, Order] = {}

    async def put(self, order: Order) -> None:
        async with self._lock:
            self._orders[order.order_id] = order.model_copy(deep=True)

    async def get(self, order_id: str) -> Order | None:
        async with self._lock:
            order = self._orders.get(order_id)
            return order.model_copy(deep=True) if order else None

    async def list(self, page: int, page_size: int) -> tuple[list[Order], int]:
        async with self._lock:
            ordered = sorted(self._orders.values(), key=lambda o: o.created_at, reverse=True)
            total = len(ordered)
            start = (page - 1) * page_size
            items = [o.model_copy(deep=True) for o in ordered[start : start + page_size]]
            return items, total


class MemoryDownloadTokenRepository:
    """Токены скачивания в словаре."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._tokens: dict[str, DownloadToken] = {}

    async def put_token(self, token: DownloadToken) -> None:
        async with self._lock:
            self._tokens[token.token] = token.model_copy(deep=True)

    async def get_token(self, token: str) -> DownloadToken | None:
        async with self._lock:
            record = self._tokens.get(token)
            return record.model_copy(deep=True) if record else None

    async def update_token(self, token: DownloadToken) -> None:
        await self.put_token(token)


class MemoryUserRepository:
    """Пользователи в словаре с индексом по openid."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: dict[str, User] = {}
        self._by_openid: dict[str, str] = {}

    async def put(self, user: User) -> None:
        async with self._lock:
            self._users[user.user_id] = user.model_copy(deep=True)
            if user.openid:
                self._by_openid[user.openid] = user.user_id

    async def get(self, user_id: str) -> User | None:
        async with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    async def get_by_openid(self, openid: str) -> User | None:
        async with self._lock:
            user_id = self._by_openid.get(openid)
            if user_id is None:
                return None
            return self._users[user_id].model_copy(deep=True)
