"""Task Pipeline - обработка фото задачи.

Создание задачи (вырезка, базовое изображение, вариант с фоном по умолчанию)
и дозаказ вариантов: другой цвет фона и лист печати 6x4.

Ошибки шагов create_task не выбрасываются: задача сохраняется в статусе
failed с тегированным error_msg. Операции extend_* выбрасывают типизированные
ошибки.

Example:
    >>> pipeline = TaskPipeline(repos.tasks, assets, uploads, client)
    >>> task = await pipeline.create_task(None, "cn_1inch", key, "white", 295, 413, 300, ["white"])
    >>> url = await pipeline.extend_background(task.id, "blue")

"""

import asyncio
import base64
import weakref
from collections.abc import Callable
from typing import Literal

from idphoto.core.constants import (
    BASELINE_FILENAME,
    DEFAULT_COLOR,
    LAYOUT_FILENAME,
    LAYOUT_NAME,
    VARIANT_EXTENSION,
)
from idphoto.core.enums import TaskStatus
from idphoto.domain.models import Task, TaskSpec
from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.infrastructure.photo_client import PhotoProcessingClient, color_hex, decode_image_payload
from idphoto.infrastructure.upload_store import UploadStore
from idphoto.repositories.base import TaskRepository
from idphoto.services.layout import compose_sheet, compute_grid, jpeg_quality
from idphoto.shared.errors import (
    AppException,
    AssetStorageError,
    PayloadDecodeError,
    PhotoServiceError,
    PhotoServiceRejectedError,
    TaskNotFoundError,
    TaskNotReadyError,
)
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)


class PipelineStepError(Exception):
    """Провал шага create_task с тегированной причиной."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def normalize_color(color: str | None) -> str:
    """Имя цвета в нижнем регистре, пустое -> white."""
    return (color or "").strip().lower() or DEFAULT_COLOR


def variant_filename(color: str) -> str:
    """Имя файла варианта с фоном.

    Hex цвет записывается без '#': имя файла входит в ссылку на ассет.
    """
    return f"{normalize_color(color).lstrip('#')}{VARIANT_EXTENSION}"


class TaskPipeline:
    """Pipeline обработки фото.

    Каждая операция перечитывает задачу из репозитория, изменяет и
    записывает обратно. Параллельные extend_* для одной пары
    (задача, ресурс) сериализуются локом и обращаются к внешнему сервису
    не более одного раза.

    Attributes:
        tasks: Репозиторий задач
        assets: Хранилище готовых изображений
        uploads: Хранилище исходников
        client: Клиент сервиса обработки фото
        layout_mode: Сборка листа локально (Pillow) или внешним сервисом

    """

    def __init__(
        self,
        tasks: TaskRepository,
        assets: FSAssetStore,
        uploads: UploadStore,
        client: PhotoProcessingClient,
        layout_mode: Literal["local", "remote"] = "local",
    ) -> None:
        self.tasks = tasks
        self.assets = assets
        self.uploads = uploads
        self.client = client
        self.layout_mode = layout_mode
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = weakref.WeakValueDictionary()

        logger.info("TaskPipeline инициализирован", layout_mode=layout_mode)

    # =================================================================
    # Создание задачи
    # =================================================================

    async def create_task(
        self,
        user_id: str | None,
        spec_code: str,
        source_object_key: str,
        default_color: str,
        width: int,
        height: int,
        dpi: int,
        available_colors: list[str] | None = None,
    ) -> Task:
        """Создать и обработать задачу.

        Шаги: запись задачи в processing, чтение исходника, вырезка,
        декодирование и запись baseline, замена фона на цвет по умолчанию,
        запись варианта, статус done. Задача сохраняется после каждого шага.

        Args:
            user_id: Владелец (None для анонимной задачи)
            spec_code: Код формата фото
            source_object_key: Ключ исходника (uploads/...)
            default_color: Цвет фона по умолчанию
            width: Ширина фото в пикселях
            height: Высота фото в пикселях
            dpi: DPI
            available_colors: Цвета для дозаказа

        Returns:
            Задача в статусе done или failed. Исключения шагов не выбрасываются.

        """
        colors = [normalize_color(c) for c in available_colors or []]
        task = Task(
            user_id=user_id or None,
            spec_code=spec_code,
            spec=TaskSpec(code=spec_code, width_px=width, height_px=height, dpi=dpi),
            source_object_key=source_object_key,
            status=TaskStatus.PROCESSING,
            available_colors=colors,
        )
        await self.tasks.put(task)

        color = normalize_color(default_color or (colors[0] if colors else ""))
        logger.info(
            "Задача создана",
            task_id=task.id,
            spec_code=spec_code,
            size=f"{width}x{height}",
            dpi=dpi,
            color=color,
        )

        try:
            source = await self._read_source(task)

            baseline = await self._cutout(task, source)
            task.baseline_url = await self._write_asset(task, BASELINE_FILENAME, baseline)
            await self._save(task)

            variant = await self._recolor(task, baseline, color)
            task.processed_urls[color] = await self._write_asset(task, variant_filename(color), variant)
            await self._save(task)

            task.status = TaskStatus.DONE
            task.error_msg = ""
            await self._save(task)

        except PipelineStepError as e:
            await self._handle_task_failure(task, e.reason)
            return task

        logger.info("Задача обработана", task_id=task.id, colors=list(task.processed_urls))
        return task

    async def _read_source(self, task: Task) -> bytes:
        try:
            return await self.uploads.read(task.source_object_key)
        except (AppException, OSError) as e:
            raise PipelineStepError(f"read source error: {e}") from e

    async def _cutout(self, task: Task, source: bytes) -> bytes:
        filename = self.uploads.resolve(task.source_object_key).name
        try:
            result = await self.client.cutout(
                source,
                height=task.spec.height_px,
                width=task.spec.width_px,
                dpi=task.spec.dpi,
                filename=filename,
            )
        except PhotoServiceError as e:
            raise PipelineStepError(f"cutout transport error: {e.reason}") from e
        if not result.ok:
            raise PipelineStepError("cutout rejected")

        try:
            return decode_image_payload(result.best_b64)
        except PayloadDecodeError as e:
            raise PipelineStepError(f"baseline decode error: {e.message}") from e

    async def _recolor(self, task: Task, baseline: bytes, color: str) -> bytes:
        image_b64 = base64.b64encode(baseline).decode("ascii")
        try:
            result = await self.client.recolor(image_b64, color_hex(color), task.spec.dpi)
        except PhotoServiceError as e:
            raise PipelineStepError(f"recolor transport error: {e.reason}") from e
        if not result.ok:
            raise PipelineStepError("recolor rejected")

        try:
            return decode_image_payload(result.image_b64)
        except PayloadDecodeError as e:
            raise PipelineStepError(f"variant decode error: {e.message}") from e

    async def _write_asset(self, task: Task, name: str, data: bytes) -> str:
        try:
            return await self.assets.write(task.id, name, data)
        except AssetStorageError as e:
            raise PipelineStepError(f"asset write error: {e.message}") from e

    async def _save(self, task: Task) -> None:
        task.touch()
        await self.tasks.put(task)

    async def _handle_task_failure(self, task: Task, reason: str) -> None:
        """Отметить задачу как failed.

        Args:
            task: Задача
            reason: Тегированная причина

        """
        task.status = TaskStatus.FAILED
        task.error_msg = reason
        await self._save(task)

        logger.error("Задача отмечена как failed", task_id=task.id, error=reason)

    # =================================================================
    # Дозаказ вариантов
    # =================================================================

    async def get_task(self, task_id: str) -> Task:
        """Получить задачу.

        Raises:
            TaskNotFoundError: Задачи нет.

        """
        task = await self.tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def extend_background(self, task_id: str, color: str, dpi: int = 0) -> str:
        """Получить вариант с заданным цветом фона.

        Уже готовый цвет возвращается без обращения к сервису и записи.

        Args:
            task_id: ID задачи
            color: Имя цвета или hex
            dpi: DPI (0 = DPI задачи)

        Returns:
            Ссылка на вариант.

        Raises:
            TaskNotFoundError: Задачи нет.
            TaskNotReadyError: У задачи нет baseline.
            PhotoServiceError: Сервис недоступен.
            PhotoServiceRejectedError: Сервис вернул неуспешный статус.
            PayloadDecodeError: Ответ не декодируется.

        """
        color = normalize_color(color)

        async with self._lock_for(task_id, f"color:{color}"):
            task = await self.get_task(task_id)
            if existing := task.processed_urls.get(color):
                logger.debug("Вариант уже готов", task_id=task_id, color=color)
                return existing
            if not task.baseline_url:
                raise TaskNotReadyError(task_id, task.status.value)

            baseline = await self.assets.read(task_id, BASELINE_FILENAME)
            result = await self.client.recolor(
                base64.b64encode(baseline).decode("ascii"),
                color_hex(color),
                dpi or task.spec.dpi,
            )
            if not result.ok:
                raise PhotoServiceRejectedError("recolor")

            url = await self.assets.write(task_id, variant_filename(color), decode_image_payload(result.image_b64))
            await self._record(task_id, lambda t: t.processed_urls.setdefault(color, url))

        logger.info("Вариант фона готов", task_id=task_id, color=color)
        return url

    async def extend_layout(
        self,
        task_id: str,
        color: str,
        width: int = 0,
        height: int = 0,
        dpi: int = 0,
        target_kb: int = 0,
    ) -> str:
        """Получить лист печати 6x4 дюйма.

        Лист один на задачу: если он уже собран, возвращается готовая ссылка.
        Недостающий вариант цвета сначала генерируется через extend_background.

        Args:
            task_id: ID задачи
            color: Цвет фона фото на листе
            width: Ширина фото (0 = из задачи)
            height: Высота фото (0 = из задачи)
            dpi: DPI листа (0 = из задачи)
            target_kb: Целевой размер файла в KB (0 = без ограничения)

        Returns:
            Ссылка на лист.

        Raises:
            TaskNotFoundError: Задачи нет.
            LayoutDoesNotFitError: Фото не помещается на лист.

        """
        color = normalize_color(color)

        async with self._lock_for(task_id, f"layout:{LAYOUT_NAME}"):
            task = await self.get_task(task_id)
            if existing := task.layout_urls.get(LAYOUT_NAME):
                logger.debug("Лист уже собран", task_id=task_id)
                return existing

            width = width or task.spec.width_px
            height = height or task.spec.height_px
            dpi = dpi or task.spec.dpi
            grid = compute_grid(dpi, width, height)

            if color not in task.processed_urls:
                await self.extend_background(task_id, color, dpi)

            variant = await self.assets.read(task_id, variant_filename(color))
            if self.layout_mode == "remote":
                result = await self.client.compose_layout(variant, height=height, width=width, dpi=dpi, kb=target_kb)
                if not result.ok:
                    raise PhotoServiceRejectedError("compose_layout")
                sheet = decode_image_payload(result.image_b64)
            else:
                sheet = await asyncio.to_thread(compose_sheet, variant, grid, jpeg_quality(target_kb))

            url = await self.assets.write(task_id, LAYOUT_FILENAME, sheet)
            await self._record(task_id, lambda t: t.layout_urls.setdefault(LAYOUT_NAME, url))

        logger.info(
            "Лист печати собран",
            task_id=task_id,
            color=color,
            grid=f"{grid.cols}x{grid.rows}",
            mode=self.layout_mode,
        )
        return url

    def _lock_for(self, task_id: str, resource: str) -> asyncio.Lock:
        key = (task_id, resource)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _record(self, task_id: str, apply: Callable[[Task], object]) -> Task:
        # Перечитать, изменить и записать под локом задачи
        async with self._lock_for(task_id, "record"):
            task = await self.get_task(task_id)
            apply(task)
            task.touch()
            await self.tasks.put(task)
            return task
