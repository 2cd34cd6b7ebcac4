"""Download Service - одноразовые токены скачивания.

Токен выдаётся только для готовой задачи и её владельцу, используется ровно
один раз и истекает по TTL. По токену отдаётся zip со всеми изображениями
задачи.
"""

import asyncio
import io
import weakref
import zipfile
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from idphoto.core.constants import DEFAULT_DOWNLOAD_TTL
from idphoto.core.enums import DownloadTokenStatus, TaskStatus
from idphoto.domain.models import DownloadToken, Task, utc_now
from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.repositories.base import DownloadTokenRepository, TaskRepository
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
from idphoto.shared.logging import get_logger, mask_token

logger = get_logger(__name__)


class DownloadService:
    """Жизненный цикл токенов скачивания.

    active -> used при успешном использовании, active -> expired при
    попытке использовать просроченный токен. Обратных переходов нет.

    Attributes:
        tokens: Репозиторий токенов
        tasks: Репозиторий задач
        assets: Хранилище ассетов (для архива)
        default_ttl: TTL токена по умолчанию в секундах

    """

    def __init__(
        self,
        tokens: DownloadTokenRepository,
        tasks: TaskRepository,
        assets: FSAssetStore,
        default_ttl: int = DEFAULT_DOWNLOAD_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.tokens = tokens
        self.tasks = tasks
        self.assets = assets
        self.default_ttl = default_ttl
        self._clock = clock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def create_token(self, task_id: str, user_id: str, ttl_seconds: int = 0) -> DownloadToken:
        """Выдать токен скачивания.

        Args:
            task_id: ID задачи
            user_id: Пользователь, запрашивающий скачивание
            ttl_seconds: TTL (0 и меньше -> значение по умолчанию)

        Returns:
            Токен в статусе active.

        Raises:
            BadRequestError: Пустой task_id или user_id.
            TaskNotFoundError: Задачи нет.
            TaskNotReadyError: Задача не в статусе done.
            TaskNotOwnedError: У задачи другой владелец.

        """
        task_id = (task_id or "").strip()
        user_id = (user_id or "").strip()
        if not task_id:
            raise BadRequestError(message="Не указан taskId")
        if not user_id:
            raise BadRequestError(message="Не указан userId")

        task = await self.tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if task.status != TaskStatus.DONE:
            raise TaskNotReadyError(task_id, task.status.value)
        # Анонимную задачу может скачать любой, у кого есть её ID
        owner = task.owner.strip()
        if owner and owner != user_id:
            raise TaskNotOwnedError(task_id)

        ttl = ttl_seconds if ttl_seconds > 0 else self.default_ttl
        now = self._clock()
        token = DownloadToken(
            task_id=task_id,
            user_id=user_id,
            status=DownloadTokenStatus.ACTIVE,
            expires_at=now + timedelta(seconds=ttl),
            created_at=now,
        )
        await self.tokens.put_token(token)

        logger.info("Токен скачивания выдан", task_id=task_id, token=mask_token(token.token), ttl=ttl)
        return token

    async def use_token(self, token: str) -> DownloadToken:
        """Использовать токен.

        Просроченный токен переводится в expired даже при первой попытке.

        Args:
            token: Значение токена

        Returns:
            Токен в статусе used.

        Raises:
            BadRequestError: Пустой токен.
            TokenNotFoundError: Токен неизвестен.
            TokenNotActiveError: Токен уже использован, истёк или отозван.
            TokenExpiredError: Срок действия истёк.

        """
        token = (token or "").strip()
        if not token:
            raise BadRequestError(message="Не указан token")

        async with self._lock_for(token):
            record = await self.tokens.get_token(token)
            if record is None:
                raise TokenNotFoundError()
            if record.status != DownloadTokenStatus.ACTIVE:
                raise TokenNotActiveError(record.status.value)

            now = self._clock()
            record.used_at = now
            if record.is_expired(now):
                record.status = DownloadTokenStatus.EXPIRED
                await self.tokens.update_token(record)
                logger.warning("Токен скачивания истёк", token=mask_token(token), task_id=record.task_id)
                raise TokenExpiredError()

            record.status = DownloadTokenStatus.USED
            await self.tokens.update_token(record)

        logger.info("Токен скачивания использован", token=mask_token(token), task_id=record.task_id)
        return record

    async def download_info(self, task_id: str) -> dict[str, Any]:
        """Ссылки на варианты готовой задачи.

        Raises:
            TaskNotFoundError: Задачи нет.
            TaskNotReadyError: Задача не в статусе done.

        """
        task = await self._get_done_task(task_id)
        return {
            "taskId": task.id,
            "urls": dict(task.processed_urls),
            "expiresIn": self.default_ttl,
        }

    async def download_file(self, token: str) -> tuple[str, bytes]:
        """Использовать токен и собрать архив задачи.

        Args:
            token: Значение токена

        Returns:
            Кортеж (имя файла архива, zip).

        """
        record = await self.use_token(token)
        task = await self._get_done_task(record.task_id)
        archive = await asyncio.to_thread(self.build_archive, task)
        return f"task_{task.id}.zip", archive

    def build_archive(self, task: Task) -> bytes:
        """Собрать zip: baseline, варианты фона и листы печати.

        Raises:
            AssetNotFoundError: Нет ни одного ассета или файл ассета отсутствует.

        """
        refs = [task.baseline_url]
        refs += [task.processed_urls[key] for key in sorted(task.processed_urls)]
        refs += [task.layout_urls[key] for key in sorted(task.layout_urls)]

        entries: dict[str, Any] = {}
        for ref in refs:
            if not ref:
                continue
            name, path = self.assets.locate(ref)
            entries.setdefault(name, path)
        if not entries:
            raise AssetNotFoundError(message="У задачи нет изображений", details={"task_id": task.id})

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, path in entries.items():
                archive.write(path, arcname=name)

        logger.debug("Архив задачи собран", task_id=task.id, files=list(entries))
        return buffer.getvalue()

    async def _get_done_task(self, task_id: str) -> Task:
        task = await self.tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if task.status != TaskStatus.DONE:
            raise TaskNotReadyError(task_id, task.status.value)
        return task

    def _lock_for(self, token: str) -> asyncio.Lock:
        lock = self._locks.get(token)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[token] = lock
        return lock
