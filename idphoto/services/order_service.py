"""Order Service - заказы и платежи.

Создание заказа, идемпотентная выдача платёжных параметров и смена статуса
по callback платёжной системы.
"""

import asyncio
import secrets
import time
import weakref
from typing import Any

import orjson

from idphoto.core.constants import DEFAULT_PAGE_SIZE, MOCK_PAY_SIGN
from idphoto.core.enums import OrderStatus
from idphoto.domain.models import Order, new_id, utc_now
from idphoto.repositories.base import OrderRepository, TaskRepository
from idphoto.shared.errors import (
    BadRequestError,
    IdempotencyKeyMismatchError,
    InvalidCallbackStatusError,
    InvalidOrderError,
    OrderAlreadyPaidError,
    OrderNotFoundError,
    PaymentNotConfiguredError,
    TaskNotFoundError,
)
from idphoto.shared.logging import get_logger, mask_token

logger = get_logger(__name__)

CALLBACK_STATUSES: dict[str, OrderStatus] = {
    "paid": OrderStatus.PAID,
    "pending": OrderStatus.PENDING,
    "canceled": OrderStatus.CANCELED,
    "refunded": OrderStatus.REFUNDED,
}


class OrderService:
    """State machine заказа.

    created -> pending при первой выдаче платёжных параметров,
    далее paid/canceled/refunded/pending по callback.

    Attributes:
        orders: Репозиторий заказов
        tasks: Репозиторий задач
        pay_mock: Выдавать mock платёжные параметры
        wechat_app_id: AppID для платёжных параметров

    """

    def __init__(
        self,
        orders: OrderRepository,
        tasks: TaskRepository,
        pay_mock: bool = True,
        wechat_app_id: str = "",
    ) -> None:
        self.orders = orders
        self.tasks = tasks
        self.pay_mock = pay_mock
        self.wechat_app_id = wechat_app_id
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

        logger.info("OrderService инициализирован", pay_mock=pay_mock)

    async def create(self, order: Order) -> str:
        """Создать заказ.

        Args:
            order: Данные заказа (task_id, позиции, сумма, ...)

        Returns:
            ID заказа.

        Raises:
            TaskNotFoundError: Задачи нет.
            InvalidOrderError: Сумма не положительна или позиция некорректна.

        """
        if not order.task_id:
            raise InvalidOrderError(message="Не указан taskId")
        if await self.tasks.get(order.task_id) is None:
            raise TaskNotFoundError(order.task_id)
        if order.amount_cents <= 0:
            raise InvalidOrderError(
                message="Сумма заказа должна быть положительной",
                details={"amount_cents": order.amount_cents},
            )
        for index, item in enumerate(order.items):
            if not item.type.strip() or item.qty <= 0:
                raise InvalidOrderError(
                    message=f"Некорректная позиция заказа #{index}",
                    details={"index": index, "type": item.type, "qty": item.qty},
                )

        now = utc_now()
        order.order_id = new_id()
        order.status = OrderStatus.CREATED
        order.pay_idempotency_key = ""
        order.pay_params = ""
        order.created_at = now
        order.updated_at = now
        await self.orders.put(order)

        logger.info(
            "Заказ создан",
            order_id=order.order_id,
            task_id=order.task_id,
            amount_cents=order.amount_cents,
        )
        return order.order_id

    async def get(self, order_id: str) -> Order:
        """Получить заказ.

        Raises:
            OrderNotFoundError: Заказа нет.

        """
        order = await self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def list(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> tuple[list[Order], int]:
        """Страница заказов, новые первыми.

        Args:
            page: Номер страницы (меньше 1 -> 1)
            page_size: Размер страницы (меньше 1 -> 20)

        Returns:
            Кортеж (заказы, всего).

        """
        page = max(page, 1)
        if page_size < 1:
            page_size = DEFAULT_PAGE_SIZE
        return await self.orders.list(page, page_size)

    async def pay(self, order_id: str, channel: str, idempotency_key: str) -> dict[str, Any]:
        """Выдать платёжные параметры.

        Повтор с тем же ключом возвращает сохранённые параметры без
        генерации новых.

        Args:
            order_id: ID заказа
            channel: Платёжный канал
            idempotency_key: Ключ идемпотентности от клиента

        Returns:
            Платёжные параметры для клиента.

        Raises:
            BadRequestError: Пустой ключ идемпотентности.
            PaymentNotConfiguredError: Реальные платежи не настроены.
            OrderNotFoundError: Заказа нет.
            OrderAlreadyPaidError: Заказ уже оплачен.
            IdempotencyKeyMismatchError: Заказ уже оплачивается с другим ключом.

        """
        idempotency_key = (idempotency_key or "").strip()
        if not idempotency_key:
            raise BadRequestError(message="Не указан Idempotency-Key")
        if not self.pay_mock:
            raise PaymentNotConfiguredError()

        async with self._lock_for(order_id):
            order = await self.get(order_id)
            if order.status == OrderStatus.PAID:
                raise OrderAlreadyPaidError(order_id)
            if order.pay_idempotency_key and order.pay_idempotency_key != idempotency_key:
                logger.warning(
                    "Ключ идемпотентности не совпадает",
                    order_id=order_id,
                    key=mask_token(idempotency_key),
                )
                raise IdempotencyKeyMismatchError(order_id)
            if order.pay_params:
                logger.info("Повтор оплаты, возвращаем сохранённые параметры", order_id=order_id)
                return orjson.loads(order.pay_params)

            order.channel = channel
            order.status = OrderStatus.PENDING
            order.pay_idempotency_key = idempotency_key
            order.pay_params = orjson.dumps(self._mock_intent()).decode("utf-8")
            order.touch()
            await self.orders.put(order)

        logger.info("Платёжные параметры выданы", order_id=order_id, channel=channel)
        return orjson.loads(order.pay_params)

    async def callback(self, order_id: str, status: str) -> Order:
        """Сменить статус заказа по callback платёжной системы.

        Переход разрешён из любого статуса, включая paid.

        Args:
            order_id: ID заказа
            status: Статус от платёжной системы

        Returns:
            Обновлённый заказ.

        Raises:
            OrderNotFoundError: Заказа нет.
            InvalidCallbackStatusError: Неизвестный статус (заказ не меняется).

        """
        async with self._lock_for(order_id):
            order = await self.get(order_id)
            target = CALLBACK_STATUSES.get((status or "").strip().lower())
            if target is None:
                raise InvalidCallbackStatusError(status)

            if order.status == OrderStatus.PAID and target != OrderStatus.PAID:
                logger.warning(
                    "Callback меняет статус оплаченного заказа",
                    order_id=order_id,
                    target=target.value,
                )

            previous = order.status
            order.status = target
            order.touch()
            await self.orders.put(order)

        logger.info("Статус заказа изменён", order_id=order_id, previous=previous.value, status=target.value)
        return order

    def _mock_intent(self) -> dict[str, Any]:
        return {
            "appId": self.wechat_app_id,
            "timeStamp": str(int(time.time())),
            "nonceStr": secrets.token_hex(16),
            "package": f"prepay_id=mock-{secrets.token_hex(16)}",
            "signType": "RSA",
            "paySign": MOCK_PAY_SIGN,
        }

    def _lock_for(self, order_id: str) -> asyncio.Lock:
        lock = self._locks.get(order_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[order_id] = lock
        return lock
