"""Uploads API Routes.

Загрузка исходных фото.
"""

from fastapi import APIRouter, File, UploadFile, status

from idphoto.api.schemas.responses import UploadResponse
from idphoto.core.dependencies import UploadStoreDep
from idphoto.shared.errors import InvalidUploadError

router = APIRouter(tags=["uploads"])


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    summary="Загрузить фото",
    responses={400: InvalidUploadError.openapi_response()},
)
async def upload(uploads: UploadStoreDep, file: UploadFile = File(...)) -> UploadResponse:
    """Сохранить jpg/png и вернуть ключ объекта для создания задачи."""
    data = await file.read()
    object_key = await uploads.save(file.filename or "", data)
    return UploadResponse(object_key=object_key)
