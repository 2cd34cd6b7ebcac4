"""Pytest configuration для unit тестов."""

import base64
import io
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from idphoto.domain.models import Task
from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.infrastructure.photo_client import CutoutResult, ImageResult
from idphoto.infrastructure.upload_store import UploadStore
from idphoto.repositories import Repositories, create_memory_repositories
from idphoto.services.task_pipeline import TaskPipeline


def make_image(size: tuple[int, int] = (295, 413), color: tuple[int, ...] = (200, 30, 30), fmt: str = "JPEG") -> bytes:
    """Сгенерировать изображение заданного размера и цвета."""
    mode = "RGBA" if len(color) == 4 else "RGB"
    out = io.BytesIO()
    Image.new(mode, size, color).save(out, format=fmt)
    return out.getvalue()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def assets(tmp_path: Path) -> FSAssetStore:
    """Хранилище ассетов во временной директории."""
    return FSAssetStore(tmp_path / "assets", "")


@pytest.fixture
def uploads(tmp_path: Path) -> UploadStore:
    """Хранилище загрузок во временной директории."""
    return UploadStore(tmp_path / "uploads", 1024 * 1024)


@pytest.fixture
def repositories() -> Repositories:
    """In-memory хранилища."""
    return create_memory_repositories()


@pytest.fixture
def mock_photo_client() -> MagicMock:
    """Mock клиента сервиса обработки фото с успешными ответами."""
    client = MagicMock()
    client.cutout = AsyncMock(
        return_value=CutoutResult(
            ok=True,
            standard_b64=b64(make_image(color=(10, 10, 10, 255), fmt="PNG")),
            hd_b64=b64(make_image(color=(20, 20, 20, 255), fmt="PNG")),
        )
    )
    client.recolor = AsyncMock(return_value=ImageResult(ok=True, image_b64=b64(make_image())))
    client.compose_layout = AsyncMock(
        return_value=ImageResult(ok=True, image_b64=b64(make_image(size=(1800, 1200), color=(255, 255, 255))))
    )
    client.close = AsyncMock()
    return client


@pytest.fixture
def pipeline(
    repositories: Repositories,
    assets: FSAssetStore,
    uploads: UploadStore,
    mock_photo_client: MagicMock,
) -> TaskPipeline:
    """TaskPipeline на in-memory хранилищах и mock клиенте."""
    return TaskPipeline(repositories.tasks, assets, uploads, mock_photo_client, layout_mode="local")


@pytest.fixture
async def source_key(uploads: UploadStore) -> str:
    """Ключ загруженного исходного фото."""
    return await uploads.save("me.jpg", make_image(size=(600, 800), color=(120, 110, 100)))


@pytest.fixture
async def done_task(pipeline: TaskPipeline, source_key: str) -> Task:
    """Успешно обработанная задача с владельцем user-1."""
    task = await pipeline.create_task(
        user_id="user-1",
        spec_code="cn_1inch",
        source_object_key=source_key,
        default_color="white",
        width=295,
        height=413,
        dpi=300,
        available_colors=["white", "blue", "red"],
    )
    assert task.status.value == "done"
    return task


@pytest.fixture
def image_factory():
    """Фабрика тестовых изображений."""
    return make_image
