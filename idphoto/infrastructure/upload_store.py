"""Upload store.

Исходные фото пользователей: <uploads_dir>/<random>_<name>, ключ объекта
uploads/<file>.
"""

import asyncio
import secrets
from pathlib import Path, PurePosixPath

from idphoto.core.constants import ALLOWED_UPLOAD_SUFFIXES, UPLOADS_KEY_PREFIX
from idphoto.shared.errors import AssetNotFoundError, AssetStorageError, InvalidUploadError
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)


class UploadStore:
    """Хранилище загруженных исходников.

    Attributes:
        root: Директория загрузок
        max_bytes: Лимит размера файла

    """

    def __init__(self, root: str | Path, max_bytes: int) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes

    async def save(self, filename: str, data: bytes) -> str:
        """Сохранить загруженный файл.

        Args:
            filename: Имя файла от клиента
            data: Содержимое

        Returns:
            Ключ объекта uploads/<file>.

        Raises:
            InvalidUploadError: Пустой файл, неподдерживаемый формат или превышен лимит.
            AssetStorageError: Ошибка записи.

        """
        name = PurePosixPath(filename.replace("\\", "/")).name
        if not name or PurePosixPath(name).suffix.lower() not in ALLOWED_UPLOAD_SUFFIXES:
            raise InvalidUploadError(
                message="Поддерживаются только jpg/png",
                details={"filename": filename},
            )
        if not data:
            raise InvalidUploadError(message="Пустой файл", details={"filename": filename})
        if len(data) > self.max_bytes:
            raise InvalidUploadError(
                message=f"Файл больше {self.max_bytes} байт",
                details={"filename": filename, "size": len(data)},
            )

        stored = f"{secrets.token_hex(16)}_{name}"
        path = self.root / stored
        try:
            await asyncio.to_thread(self._write_file, path, data)
        except OSError as e:
            raise AssetStorageError(message=f"Не удалось сохранить загрузку: {e}") from e

        logger.info("Загрузка сохранена", file=stored, size=len(data))
        return f"{UPLOADS_KEY_PREFIX}{stored}"

    def resolve(self, key: str) -> Path:
        """Путь к файлу по ключу объекта.

        Raises:
            InvalidUploadError: Ключ указывает за пределы директории загрузок.

        """
        name = key.removeprefix(UPLOADS_KEY_PREFIX)
        if not name or name in {".", ".."} or "/" in name or "\\" in name:
            raise InvalidUploadError(message=f"Недопустимый ключ загрузки: {key!r}", details={"key": key})
        return self.root / name

    async def read(self, key: str) -> bytes:
        """Прочитать исходник по ключу объекта.

        Raises:
            InvalidUploadError: Недопустимый ключ.
            AssetNotFoundError: Файла нет.

        """
        path = self.resolve(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise AssetNotFoundError(message=f"Загрузка {key} не найдена", details={"key": key}) from e

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
