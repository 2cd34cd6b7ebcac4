"""Asset store.

Файловое хранилище готовых изображений задачи: <assets_dir>/<task_id>/<name>.
Ссылка на ассет: <public_base_url>/assets/<task_id>/<name>.
"""

import asyncio
from pathlib import Path
from urllib.parse import quote, unquote

from idphoto.core.constants import ASSETS_URL_PREFIX
from idphoto.shared.errors import AssetNotFoundError, AssetStorageError
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)

# Разделители пути и символы, которые ломают ссылку на ассет
_FORBIDDEN_CHARS = frozenset("/\\#?%")


def _check_segment(value: str, kind: str) -> str:
    if not value or value in {".", ".."} or any(ch in value for ch in _FORBIDDEN_CHARS):
        raise AssetStorageError(
            message=f"Недопустимое имя ({kind}): {value!r}",
            details={kind: value},
        )
    return value


class FSAssetStore:
    """Хранилище ассетов на локальном диске.

    Запись по (task_id, name) идемпотентна: повторная запись перезаписывает файл.

    Attributes:
        root: Корневая директория ассетов
        public_base_url: Base URL для ссылок (пусто = относительные ссылки)

    """

    def __init__(self, root: str | Path, public_base_url: str = "") -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def path_for(self, task_id: str, name: str) -> Path:
        """Путь к файлу ассета.

        Args:
            task_id: ID задачи
            name: Логическое имя (baseline.png, white.jpg, ...)

        Returns:
            Путь на диске.

        """
        return self.root / _check_segment(task_id, "task_id") / _check_segment(name, "name")

    def url_for(self, task_id: str, name: str) -> str:
        """Публичная ссылка на ассет."""
        return f"{self.public_base_url}{ASSETS_URL_PREFIX}/{quote(task_id)}/{quote(name)}"

    async def write(self, task_id: str, name: str, data: bytes) -> str:
        """Записать ассет.

        Args:
            task_id: ID задачи
            name: Логическое имя файла
            data: Содержимое

        Returns:
            Ссылка на ассет.

        Raises:
            AssetStorageError: Ошибка файловой системы.

        """
        path = self.path_for(task_id, name)
        try:
            await asyncio.to_thread(self._write_file, path, data)
        except OSError as e:
            raise AssetStorageError(
                message=f"Не удалось записать ассет {task_id}/{name}: {e}",
                details={"task_id": task_id, "name": name},
            ) from e

        logger.debug("Ассет записан", task_id=task_id, name=name, size=len(data))
        return self.url_for(task_id, name)

    async def read(self, task_id: str, name: str) -> bytes:
        """Прочитать ассет.

        Raises:
            AssetNotFoundError: Файла нет.
            AssetStorageError: Ошибка чтения.

        """
        path = self.path_for(task_id, name)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise AssetNotFoundError(
                message=f"Ассет {task_id}/{name} не найден",
                details={"task_id": task_id, "name": name},
            ) from e
        except OSError as e:
            raise AssetStorageError(
                message=f"Не удалось прочитать ассет {task_id}/{name}: {e}",
                details={"task_id": task_id, "name": name},
            ) from e

    def locate(self, ref: str) -> tuple[str, Path]:
        """Найти файл ассета по ссылке, выданной write.

        Args:
            ref: Ссылка вида [base]/assets/<task_id>/<name>

        Returns:
            Кортеж (имя файла, путь на диске).

        Raises:
            AssetNotFoundError: Ссылка не распознана или файла нет.

        """
        marker = f"{ASSETS_URL_PREFIX}/"
        index = ref.rfind(marker)
        parts = ref[index + len(marker) :].split("/") if index >= 0 else []
        if len(parts) != 2:
            raise AssetNotFoundError(message=f"Не распознана ссылка на ассет: {ref}", details={"ref": ref})

        task_id, name = (unquote(part) for part in parts)
        try:
            path = self.path_for(task_id, name)
        except AssetStorageError as e:
            raise AssetNotFoundError(message=f"Не распознана ссылка на ассет: {ref}", details={"ref": ref}) from e
        if not path.is_file():
            raise AssetNotFoundError(message=f"Ассет {task_id}/{name} не найден", details={"ref": ref})
        return name, path

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
