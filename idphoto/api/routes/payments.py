"""Payments API Routes.

Выдача платёжных параметров и callback платёжной системы.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Header

from idphoto.api.schemas.requests import PaymentCallbackRequest, PayRequest
from idphoto.api.schemas.responses import CallbackResponse
from idphoto.core.dependencies import OrderServiceDep
from idphoto.core.enums import PaymentChannel
from idphoto.shared.errors import (
    BadRequestError,
    InvalidCallbackStatusError,
    OrderAlreadyPaidError,
    OrderNotFoundError,
    PaymentNotConfiguredError,
)

router = APIRouter(prefix="/pay", tags=["payments"])

IdempotencyKeyHeader = Annotated[str | None, Header(alias="Idempotency-Key")]


# Регистрируется до /{channel}, иначе "callback" матчится как канал
@router.post(
    "/callback",
    summary="Callback платёжной системы",
    responses={
        400: InvalidCallbackStatusError.openapi_response(),
        404: OrderNotFoundError.openapi_response(),
    },
)
async def payment_callback(
    request: PaymentCallbackRequest,
    orders: OrderServiceDep,
    idempotency_key: IdempotencyKeyHeader = None,
) -> CallbackResponse:
    """Сменить статус заказа.

    Подпись callback не проверяется (mock режим).
    """
    if not (idempotency_key or "").strip():
        raise BadRequestError(message="Не указан Idempotency-Key")
    order = await orders.callback(request.order_id, request.status)
    return CallbackResponse(order_id=order.order_id, status=order.status)


@router.post(
    "/{channel}",
    summary="Платёжные параметры",
    responses={
        404: OrderNotFoundError.openapi_response(),
        409: OrderAlreadyPaidError.openapi_response(),
        501: PaymentNotConfiguredError.openapi_response(),
    },
)
async def pay(
    channel: PaymentChannel,
    request: PayRequest,
    orders: OrderServiceDep,
    idempotency_key: IdempotencyKeyHeader = None,
) -> dict[str, Any]:
    """Выдать платёжные параметры.

    Повтор с тем же Idempotency-Key возвращает те же параметры, другой ключ
    даёт 409 IDEMPOTENCY_KEY_MISMATCH.
    """
    return await orders.pay(request.order_id, channel.value, idempotency_key or "")
