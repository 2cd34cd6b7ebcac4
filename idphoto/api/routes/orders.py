"""Orders API Routes.

Создание и просмотр заказов.
"""

from fastapi import APIRouter, Query, status

from idphoto.api.schemas.requests import CreateOrderRequest
from idphoto.api.schemas.responses import CreateOrderResponse, OrderListResponse
from idphoto.core.constants import DEFAULT_PAGE_SIZE
from idphoto.core.dependencies import CurrentUserDep, OrderServiceDep
from idphoto.core.enums import OrderStatus
from idphoto.domain.models import Order, OrderItem
from idphoto.shared.errors import InvalidOrderError, OrderNotFoundError, TaskNotFoundError

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Создать заказ",
    responses={
        400: InvalidOrderError.openapi_response(),
        404: TaskNotFoundError.openapi_response(),
    },
)
async def create_order(
    request: CreateOrderRequest,
    orders: OrderServiceDep,
    user_id: CurrentUserDep,
) -> CreateOrderResponse:
    """Создать заказ по готовой или обрабатываемой задаче."""
    order = Order(
        task_id=request.task_id,
        user_id=user_id,
        items=[OrderItem(type=item.type, qty=item.qty) for item in request.items],
        city=request.city,
        remark=request.remark,
        amount_cents=request.amount_cents,
        channel=request.channel,
    )
    order_id = await orders.create(order)
    return CreateOrderResponse(order_id=order_id, status=OrderStatus.CREATED)


@router.get("", summary="Список заказов")
async def list_orders(
    orders: OrderServiceDep,
    page: int = Query(default=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, alias="pageSize"),
) -> OrderListResponse:
    """Страница заказов, новые первыми."""
    page = max(page, 1)
    if page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    items, total = await orders.list(page, page_size)
    return OrderListResponse(items=items, page=page, page_size=page_size, total=total)


@router.get(
    "/{order_id}",
    summary="Получить заказ",
    responses={404: OrderNotFoundError.openapi_response()},
)
async def get_order(order_id: str, orders: OrderServiceDep) -> Order:
    """Заказ без платёжных параметров."""
    return await orders.get(order_id)
