"""Photo processing errors.

Исключения внешнего сервиса обработки фото, декодирования ответов,
раскладки листа печати и хранилища ассетов.
"""

from idphoto.shared.errors.domain_errors import (
    BadRequestError,
    InternalServerError,
    NotFoundError,
    ServiceUnavailableError,
)


class PhotoServiceError(ServiceUnavailableError):
    """Сервис обработки фото недоступен."""

    def __init__(self, operation: str, reason: str) -> None:
        """Инициализация исключения.

        Args:
            operation: Операция сервиса (cutout, recolor, compose_layout).
            reason: Причина ошибки.

        """
        super().__init__(
            message=f"Ошибка сервиса обработки фото ({operation}): {reason}",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason


class PhotoServiceRejectedError(ServiceUnavailableError):
    """Сервис обработки фото вернул неуспешный статус."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Сервис обработки фото отклонил запрос ({operation})",
            details={"operation": operation},
        )
        self.operation = operation


class PayloadDecodeError(InternalServerError):
    """Не удалось декодировать изображение из ответа сервиса."""

    def __init__(self, prefix: str) -> None:
        """Инициализация исключения.

        Args:
            prefix: Обрезанный начальный фрагмент payload.

        """
        super().__init__(
            message=f"invalid base64 payload (prefix={prefix!r})",
            details={"prefix": prefix},
        )
        self.prefix = prefix


class LayoutDoesNotFitError(BadRequestError):
    """Фото не помещается на лист печати."""

    def __init__(self, sheet: tuple[int, int], tile: tuple[int, int], gap: int) -> None:
        """Инициализация исключения.

        Args:
            sheet: Размер листа (ширина, высота) в пикселях.
            tile: Размер фото (ширина, высота) в пикселях.
            gap: Зазор между фото в пикселях.

        """
        super().__init__(
            message=(
                f"Фото {tile[0]}x{tile[1]} не помещается на лист {sheet[0]}x{sheet[1]} "
                f"(gap={gap})"
            ),
            details={"sheet": list(sheet), "tile": list(tile), "gap": gap},
        )


class AssetStorageError(InternalServerError):
    """Ошибка записи или чтения ассета."""


class AssetNotFoundError(NotFoundError):
    """Ассет не найден в хранилище."""


class InvalidUploadError(BadRequestError):
    """Некорректный загружаемый файл."""
