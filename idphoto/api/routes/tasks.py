"""Tasks API Routes.

Создание задачи обработки фото и дозаказ вариантов.
"""

from fastapi import APIRouter

from idphoto.api.schemas.requests import CreateTaskRequest, GenerateBackgroundRequest, GenerateLayoutRequest
from idphoto.api.schemas.responses import BackgroundResponse, LayoutResponse
from idphoto.core.dependencies import CurrentUserDep, PipelineDep, SpecCatalogDep
from idphoto.domain.models import Task
from idphoto.shared.errors import (
    LayoutDoesNotFitError,
    PhotoServiceError,
    TaskNotFoundError,
    TaskNotReadyError,
)
from idphoto.shared.logging import get_logger

logger = get_logger()

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post(
    "",
    summary="Создать задачу",
    description="Обрабатывает фото синхронно. Провал шага возвращается задачей в статусе failed.",
)
async def create_task(
    request: CreateTaskRequest,
    pipeline: PipelineDep,
    catalog: SpecCatalogDep,
    user_id: CurrentUserDep,
) -> Task:
    """Создать задачу.

    Недостающие размеры, DPI и цвета берутся из формата.

    Args:
        request: Параметры задачи
        pipeline: TaskPipeline
        catalog: Каталог форматов
        user_id: Пользователь из X-User-Id

    Returns:
        Задача в статусе done или failed

    """
    spec = catalog.find(request.spec_code)
    colors = request.available_colors or request.colors or spec.bg_colors

    return await pipeline.create_task(
        user_id=user_id,
        spec_code=request.spec_code or spec.code,
        source_object_key=request.source_object_key,
        default_color=request.default_background,
        width=request.width_px or spec.width_px,
        height=request.height_px or spec.height_px,
        dpi=request.dpi or spec.dpi,
        available_colors=colors,
    )


@router.get(
    "/{task_id}",
    summary="Получить задачу",
    responses={404: TaskNotFoundError.openapi_response()},
)
async def get_task(task_id: str, pipeline: PipelineDep) -> Task:
    """Задача со ссылками на готовые изображения."""
    return await pipeline.get_task(task_id)


@router.post(
    "/{task_id}/background",
    summary="Вариант с другим цветом фона",
    responses={
        400: TaskNotReadyError.openapi_response(),
        404: TaskNotFoundError.openapi_response(),
        503: PhotoServiceError.openapi_response(),
    },
)
async def generate_background(
    task_id: str,
    request: GenerateBackgroundRequest,
    pipeline: PipelineDep,
) -> BackgroundResponse:
    """Сгенерировать вариант фона (повторный запрос возвращает готовый)."""
    url = await pipeline.extend_background(task_id, request.color, request.dpi)
    return BackgroundResponse(task_id=task_id, color=request.color, url=url)


@router.post(
    "/{task_id}/layout",
    summary="Лист печати 6x4",
    responses={
        400: LayoutDoesNotFitError.openapi_response(),
        404: TaskNotFoundError.openapi_response(),
        503: PhotoServiceError.openapi_response(),
    },
)
async def generate_layout(
    task_id: str,
    request: GenerateLayoutRequest,
    pipeline: PipelineDep,
) -> LayoutResponse:
    """Собрать лист печати (один на задачу)."""
    url = await pipeline.extend_layout(
        task_id,
        request.color,
        width=request.width_px,
        height=request.height_px,
        dpi=request.dpi,
        target_kb=request.kb,
    )
    return LayoutResponse(task_id=task_id, url=url)
