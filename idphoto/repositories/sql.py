"""SQLAlchemy repositories.

Реляционное хранилище (PostgreSQL через asyncpg, SQLite через aiosqlite в
тестах) с тем же контрактом, что и in-memory. Каждый вызов выполняется в
отдельной транзакции, запись идёт upsert'ом по первичному ключу.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import orjson
from sqlalchemy import JSON, DateTime, Integer, String, Text, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from idphoto.config import DatabaseSettings
from idphoto.domain.models import DownloadToken, Order, OrderItem, Task, TaskSpec, User
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Базовый класс таблиц."""


class TaskRow(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    spec_code: Mapped[str] = mapped_column(String(64), default="")
    spec: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    source_object_key: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(16))
    baseline_url: Mapped[str] = mapped_column(Text, default="")
    processed_urls: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    layout_urls: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    available_colors: Mapped[list[str]] = mapped_column(JSON, default=list)
    error_msg: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class OrderRow(Base):
    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    task_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    city: Mapped[str] = mapped_column(String(128), default="")
    remark: Mapped[str] = mapped_column(Text, default="")
    amount_cents: Mapped[int] = mapped_column(Integer)
    channel: Mapped[str] = mapped_column(String(32), default="")
    status: Mapped[str] = mapped_column(String(16))
    pay_idempotency_key: Mapped[str] = mapped_column(String(128), default="")
    pay_params: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class DownloadTokenRow(Base):
    __tablename__ = "download_tokens"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    task_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[str] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(16))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class UserRow(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    openid: Mapped[str] = mapped_column(String(128), index=True, default="")
    nickname: Mapped[str] = mapped_column(String(128), default="")
    avatar: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


def _aware(value: datetime | None) -> datetime | None:
    # SQLite возвращает naive datetime
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Database:
    """Async engine и фабрика сессий.

    Example:
        >>> db = Database(settings.database)
        >>> await db.create_tables()
        >>> async with db.session() as session:
        ...     await session.merge(row)

    """

    def __init__(self, config: DatabaseSettings) -> None:
        """Создать engine.

        Args:
            config: Настройки БД.

        """
        self.engine: AsyncEngine = create_async_engine(
            config.async_url,
            echo=config.echo,
            pool_pre_ping=True,
            json_serializer=lambda obj: orjson.dumps(obj).decode("utf-8"),
            json_deserializer=orjson.loads,
        )
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)
        # Скрываем credentials
        logger.info("Database engine создан", url=config.async_url.split("@")[-1])

    async def create_tables(self) -> None:
        """Создать таблицы, если их нет."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Таблицы БД готовы")

    async def dispose(self) -> None:
        """Закрыть пул соединений."""
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Сессия с транзакцией: commit при успехе, rollback при ошибке."""
        async with self.session_factory() as session, session.begin():
            yield session


class SqlTaskRepository:
    """Задачи в таблице tasks."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def put(self, task: Task) -> None:
        row = TaskRow(
            id=task.id,
            user_id=task.user_id,
            spec_code=task.spec_code,
            spec=task.spec.model_dump(),
            source_object_key=task.source_object_key,
            status=task.status.value,
            baseline_url=task.baseline_url,
            processed_urls=dict(task.processed_urls),
            layout_urls=dict(task.layout_urls),
            available_colors=list(task.available_colors),
            error_msg=task.error_msg,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
        async with self.db.session() as session:
            await session.merge(row)

    async def get(self, task_id: str) -> Task | None:
        async with self.db.session() as session:
            row = await session.get(TaskRow, task_id)
            if row is None:
                return None
            return Task(
                id=row.id,
                user_id=row.user_id,
                spec_code=row.spec_code,
                spec=TaskSpec.model_validate(row.spec or {}),
                source_object_key=row.source_object_key,
                status=row.status,
                baseline_url=row.baseline_url,
                processed_urls=row.processed_urls or {},
                layout_urls=row.layout_urls or {},
                available_colors=row.available_colors or [],
                error_msg=row.error_msg,
                created_at=_aware(row.created_at),
                updated_at=_aware(row.updated_at),
            )


def _order_from_row(row: OrderRow) -> Order:
    return Order(
        order_id=row.order_id,
        task_id=row.task_id,
        user_id=row.user_id,
        items=[OrderItem.model_validate(item) for item in row.items or []],
        city=row.city,
        remark=row.remark,
        amount_cents=row.amount_cents,
        channel=row.channel,
        status=row.status,
        pay_idempotency_key=row.pay_idempotency_key,
        pay_params=row.pay_params,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlOrderRepository:
    """Заказы в таблице orders."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def put(self, order: Order) -> None:
        row = OrderRow(
            order_id=order.order_id,
            task_id=order.task_id,
            user_id=order.user_id,
            items=[item.model_dump() for item in order.items],
            city=order.city,
            remark=order.remark,
            amount_cents=order.amount_cents,
            channel=order.channel,
            status=order.status.value,
            pay_idempotency_key=order.pay_idempotency_key,
            pay_params=order.pay_params,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        async with self.db.session() as session:
            await session.merge(row)

    async def get(self, order_id: str) -> Order | None:
        async with self.db.session() as session:
            row = await session.get(OrderRow, order_id)
            return _order_from_row(row) if row else None

    async def list(self, page: int, page_size: int) -> tuple[list[Order], int]:
        async with self.db.session() as session:
            total = await session.scalar(select(func.count()).select_from(OrderRow))
            result = await session.scalars(
                select(OrderRow)
                .order_by(OrderRow.created_at.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            return [_order_from_row(row) for row in result], int(total or 0)


def _token_from_row(row: DownloadTokenRow) -> DownloadToken:
    return DownloadToken(
        token=row.token,
        task_id=row.task_id,
        user_id=row.user_id,
        status=row.status,
        expires_at=_aware(row.expires_at),
        created_at=_aware(row.created_at),
        used_at=_aware(row.used_at),
    )


class SqlDownloadTokenRepository:
    """Токены в таблице download_tokens."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def put_token(self, token: DownloadToken) -> None:
        row = DownloadTokenRow(
            token=token.token,
            task_id=token.task_id,
            user_id=token.user_id,
            status=token.status.value,
            expires_at=token.expires_at,
            created_at=token.created_at,
            used_at=token.used_at,
        )
        async with self.db.session() as session:
            await session.merge(row)

    async def get_token(self, token: str) -> DownloadToken | None:
        async with self.db.session() as session:
            row = await session.get(DownloadTokenRow, token)
            return _token_from_row(row) if row else None

    async def update_token(self, token: DownloadToken) -> None:
        await self.put_token(token)


def _user_from_row(row: UserRow) -> User:
    return User(
        user_id=row.user_id,
        openid=row.openid,
        nickname=row.nickname,
        avatar=row.avatar,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlUserRepository:
    """Пользователи в таблице users."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def put(self, user: User) -> None:
        row = UserRow(
            user_id=user.user_id,
            openid=user.openid,
            nickname=user.nickname,
            avatar=user.avatar,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        async with self.db.session() as session:
            await session.merge(row)

    async def get(self, user_id: str) -> User | None:
        async with self.db.session() as session:
            row = await session.get(UserRow, user_id)
            return _user_from_row(row) if row else None

    async def get_by_openid(self, openid: str) -> User | None:
        async with self.db.session() as session:
            row = await session.scalar(select(UserRow).where(UserRow.openid == openid).limit(1))
            return _user_from_row(row) if row else None
