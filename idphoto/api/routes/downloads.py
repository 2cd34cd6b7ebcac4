"""Downloads API Routes.

Ссылки на готовые изображения, токены скачивания и выдача архива.
"""

from fastapi import APIRouter, Query
from fastapi.responses import Response

from idphoto.api.schemas.requests import DownloadTokenRequest
from idphoto.api.schemas.responses import DownloadInfoResponse, DownloadTokenResponse
from idphoto.core.dependencies import CurrentUserDep, DownloadServiceDep
from idphoto.shared.errors import (
    TaskNotFoundError,
    TaskNotReadyError,
    TokenExpiredError,
    TokenNotActiveError,
    TokenNotFoundError,
)

router = APIRouter(prefix="/download", tags=["downloads"])


@router.post(
    "/token",
    summary="Выдать токен скачивания",
    responses={
        400: TaskNotReadyError.openapi_response(),
        404: TaskNotFoundError.openapi_response(),
    },
)
async def create_download_token(
    request: DownloadTokenRequest,
    downloads: DownloadServiceDep,
    user_id: CurrentUserDep,
) -> DownloadTokenResponse:
    """Одноразовый токен для скачивания архива готовой задачи."""
    token = await downloads.create_token(request.task_id, user_id or "", request.ttl_seconds)
    return DownloadTokenResponse(token=token.token, expires_at=token.expires_at)


# Регистрируется до /{task_id}
@router.get(
    "/file",
    summary="Скачать архив по токену",
    response_class=Response,
    responses={
        200: {"content": {"application/zip": {}}},
        400: TokenExpiredError.openapi_response(),
        404: TokenNotFoundError.openapi_response(),
        409: TokenNotActiveError.openapi_response(),
    },
)
async def download_file(downloads: DownloadServiceDep, token: str = Query(default="")) -> Response:
    """Использовать токен и отдать zip с изображениями задачи."""
    filename, archive = await downloads.download_file(token)
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{task_id}",
    summary="Ссылки на готовые варианты",
    responses={
        400: TaskNotReadyError.openapi_response(),
        404: TaskNotFoundError.openapi_response(),
    },
)
async def download_info(task_id: str, downloads: DownloadServiceDep) -> DownloadInfoResponse:
    """Ссылки на варианты фона готовой задачи."""
    info = await downloads.download_info(task_id)
    return DownloadInfoResponse(task_id=info["taskId"], urls=info["urls"], expires_in=info["expiresIn"])
