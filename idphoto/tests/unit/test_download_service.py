"""Тесты для DownloadService."""

import asyncio
import io
import zipfile
from datetime import datetime, timedelta

import pytest

from idphoto.core.enums import DownloadTokenStatus, TaskStatus
from idphoto.domain.models import Task, utc_now
from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.repositories import Repositories
from idphoto.services.download_service import DownloadService
from idphoto.services.task_pipeline import TaskPipeline
from idphoto.shared.errors import (
    AssetNotFoundError,
    BadRequestError,
    TaskNotFoundError,
    TaskNotOwnedError,
    TaskNotReadyError,
    TokenExpiredError,
    TokenNotActiveError,
    TokenNotFoundError,
)


class FakeClock:
    """Управляемое время."""

    def __init__(self) -> None:
        self.now = utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Управляемые часы."""
    return FakeClock()


@pytest.fixture
def download_service(repositories: Repositories, assets: FSAssetStore, clock: FakeClock) -> DownloadService:
    """DownloadService с управляемыми часами."""
    return DownloadService(repositories.tokens, repositories.tasks, assets, default_ttl=600, clock=clock)


class TestCreateToken:
    """Тесты выдачи токена."""

    async def test_create(self, download_service: DownloadService, done_task: Task, clock: FakeClock) -> None:
        """Тест выдачи токена владельцу."""
        token = await download_service.create_token(done_task.id, "user-1", ttl_seconds=60)

        assert token.status == DownloadTokenStatus.ACTIVE
        assert token.expires_at == clock.now + timedelta(seconds=60)
        assert len(token.token) == 32

    @pytest.mark.parametrize("ttl", [0, -10])
    async def test_default_ttl(
        self,
        download_service: DownloadService,
        done_task: Task,
        clock: FakeClock,
        ttl: int,
    ) -> None:
        """Тест TTL по умолчанию."""
        token = await download_service.create_token(done_task.id, "user-1", ttl_seconds=ttl)

        assert token.expires_at == clock.now + timedelta(seconds=600)

    async def test_unique_tokens(self, download_service: DownloadService, done_task: Task) -> None:
        """Тест уникальности токенов."""
        first = await download_service.create_token(done_task.id, "user-1")
        second = await download_service.create_token(done_task.id, "user-1")

        assert first.token != second.token

    async def test_other_owner(self, download_service: DownloadService, done_task: Task) -> None:
        """Тест чужой задачи."""
        with pytest.raises(TaskNotOwnedError):
            await download_service.create_token(done_task.id, "user-2")

    async def test_anonymous_task(
        self,
        download_service: DownloadService,
        pipeline: TaskPipeline,
        source_key: str,
    ) -> None:
        """Тест задачи без владельца."""
        task = await pipeline.create_task(None, "cn_1inch", source_key, "white", 295, 413, 300, ["white"])

        token = await download_service.create_token(task.id, "anyone")

        assert token.user_id == "anyone"

    @pytest.mark.parametrize(("task_id", "user_id"), [("", "user-1"), ("t", ""), ("  ", "user-1")])
    async def test_blank_arguments(self, download_service: DownloadService, task_id: str, user_id: str) -> None:
        """Тест пустых аргументов."""
        with pytest.raises(BadRequestError):
            await download_service.create_token(task_id, user_id)

    async def test_unknown_task(self, download_service: DownloadService) -> None:
        """Тест несуществующей задачи."""
        with pytest.raises(TaskNotFoundError):
            await download_service.create_token("missing", "user-1")

    async def test_task_not_done(self, download_service: DownloadService, repositories: Repositories) -> None:
        """Тест незавершённой задачи."""
        task = Task(user_id="user-1", status=TaskStatus.FAILED)
        await repositories.tasks.put(task)

        with pytest.raises(TaskNotReadyError):
            await download_service.create_token(task.id, "user-1")


class TestUseToken:
    """Тесты использования токена."""

    async def test_single_use(self, download_service: DownloadService, done_task: Task, clock: FakeClock) -> None:
        """Тест одноразовости токена."""
        token = await download_service.create_token(done_task.id, "user-1")

        used = await download_service.use_token(token.token)

        assert used.status == DownloadTokenStatus.USED
        assert used.used_at == clock.now
        with pytest.raises(TokenNotActiveError):
            await download_service.use_token(token.token)

    async def test_concurrent_single_success(self, download_service: DownloadService, done_task: Task) -> None:
        """Тест что из параллельных попыток успешна ровно одна."""
        token = await download_service.create_token(done_task.id, "user-1")

        results = await asyncio.gather(
            *(download_service.use_token(token.token) for _ in range(5)),
            return_exceptions=True,
        )

        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert sum(isinstance(r, TokenNotActiveError) for r in results) == 4

    async def test_expired(
        self,
        download_service: DownloadService,
        repositories: Repositories,
        done_task: Task,
        clock: FakeClock,
    ) -> None:
        """Тест просроченного токена."""
        token = await download_service.create_token(done_task.id, "user-1", ttl_seconds=60)
        clock.advance(61)

        with pytest.raises(TokenExpiredError):
            await download_service.use_token(token.token)

        stored = await repositories.tokens.get_token(token.token)
        assert stored.status == DownloadTokenStatus.EXPIRED
        with pytest.raises(TokenNotActiveError):
            await download_service.use_token(token.token)

    async def test_valid_until_expiry(
        self,
        download_service: DownloadService,
        done_task: Task,
        clock: FakeClock,
    ) -> None:
        """Тест использования в последний момент."""
        token = await download_service.create_token(done_task.id, "user-1", ttl_seconds=60)
        clock.advance(60)

        used = await download_service.use_token(token.token)

        assert used.status == DownloadTokenStatus.USED

    async def test_unknown_token(self, download_service: DownloadService) -> None:
        """Тест неизвестного токена."""
        with pytest.raises(TokenNotFoundError):
            await download_service.use_token("nope")

    async def test_blank_token(self, download_service: DownloadService) -> None:
        """Тест пустого токена."""
        with pytest.raises(BadRequestError):
            await download_service.use_token(" ")


class TestDownloadFile:
    """Тесты выдачи архива."""

    async def test_archive_contents(
        self,
        download_service: DownloadService,
        pipeline: TaskPipeline,
        done_task: Task,
    ) -> None:
        """Тест состава архива."""
        await pipeline.extend_background(done_task.id, "blue")
        await pipeline.extend_layout(done_task.id, "white")
        token = await download_service.create_token(done_task.id, "user-1")

        filename, data = await download_service.download_file(token.token)

        assert filename == f"task_{done_task.id}.zip"
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ["baseline.png", "blue.jpg", "white.jpg", "layout_6inch.jpg"]

    async def test_token_consumed(self, download_service: DownloadService, done_task: Task) -> None:
        """Тест что архив выдаётся по токену один раз."""
        token = await download_service.create_token(done_task.id, "user-1")
        await download_service.download_file(token.token)

        with pytest.raises(TokenNotActiveError):
            await download_service.download_file(token.token)

    def test_empty_task(self, download_service: DownloadService) -> None:
        """Тест задачи без изображений."""
        with pytest.raises(AssetNotFoundError):
            download_service.build_archive(Task(status=TaskStatus.DONE))


class TestDownloadInfo:
    """Тесты ссылок на варианты."""

    async def test_info(self, download_service: DownloadService, done_task: Task) -> None:
        """Тест ссылок готовой задачи."""
        info = await download_service.download_info(done_task.id)

        assert info == {"taskId": done_task.id, "urls": done_task.processed_urls, "expiresIn": 600}

    async def test_info_uses_configured_ttl(
        self,
        repositories: Repositories,
        assets: FSAssetStore,
        clock: FakeClock,
        done_task: Task,
    ) -> None:
        """Тест срока жизни из настроек."""
        service = DownloadService(repositories.tokens, repositories.tasks, assets, default_ttl=90, clock=clock)

        info = await service.download_info(done_task.id)

        assert info["expiresIn"] == 90

    async def test_not_ready(self, download_service: DownloadService, repositories: Repositories) -> None:
        """Тест незавершённой задачи."""
        task = Task(status=TaskStatus.PROCESSING)
        await repositories.tasks.put(task)

        with pytest.raises(TaskNotReadyError):
            await download_service.download_info(task.id)
