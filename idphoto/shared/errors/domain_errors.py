"""Domain errors.

Доменные исключения приложения: базовые виды ошибок и ошибки
заказов, задач и токенов скачивания.
"""

from idphoto.shared.errors.base import AppException


class BadRequestError(AppException):
    """Некорректный запрос."""

    status_code = 400
    code = "BAD_REQUEST"


class NotFoundError(AppException):
    """Ресурс не найден."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppException):
    """Конфликт состояния."""

    status_code = 409
    code = "CONFLICT"


class InternalServerError(AppException):
    """Внутренняя ошибка сервера."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"


class NotImplementedFeatureError(AppException):
    """Функциональность не настроена."""

    status_code = 501
    code = "NOT_IMPLEMENTED"


class ServiceUnavailableError(AppException):
    """Сервис недоступен."""

    status_code = 503
    code = "SERVICE_UNAVAILABLE"


# =================================================================
# Задачи
# =================================================================


class TaskNotFoundError(NotFoundError):
    """Задача не найдена."""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        """Инициализация исключения.

        Args:
            task_id: Идентификатор задачи.

        """
        super().__init__(
            message=f"Задача с ID '{task_id}' не найдена",
            details={"task_id": task_id},
        )


class TaskNotReadyError(BadRequestError):
    """Задача ещё не готова."""

    def __init__(self, task_id: str, status: str) -> None:
        """Инициализация исключения.

        Args:
            task_id: Идентификатор задачи.
            status: Текущий статус задачи.

        """
        super().__init__(
            message=f"Задача '{task_id}' не готова (status={status})",
            details={"task_id": task_id, "status": status},
        )


class TaskNotOwnedError(BadRequestError):
    """Задача принадлежит другому пользователю."""

    def __init__(self, task_id: str) -> None:
        super().__init__(details={"task_id": task_id})


# =================================================================
# Заказы и платежи
# =================================================================


class OrderNotFoundError(NotFoundError):
    """Заказ не найден."""

    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str) -> None:
        """Инициализация исключения.

        Args:
            order_id: Идентификатор заказа.

        """
        super().__init__(
            message=f"Заказ с ID '{order_id}' не найден",
            details={"order_id": order_id},
        )


class InvalidOrderError(BadRequestError):
    """Некорректные данные заказа."""


class OrderAlreadyPaidError(ConflictError):
    """Заказ уже оплачен."""

    def __init__(self, order_id: str) -> None:
        super().__init__(details={"order_id": order_id})


class IdempotencyKeyMismatchError(ConflictError):
    """Ключ идемпотентности не совпадает с ранее использованным."""

    def __init__(self, order_id: str) -> None:
        super().__init__(details={"order_id": order_id})


class InvalidCallbackStatusError(BadRequestError):
    """Неизвестный статус платёжного callback."""

    def __init__(self, status: str) -> None:
        super().__init__(
            message=f"Неизвестный статус платежа: '{status}'",
            details={"status": status},
        )


class PaymentNotConfiguredError(NotImplementedFeatureError):
    """Реальные платежи не настроены."""


# =================================================================
# Токены скачивания
# =================================================================


class TokenNotFoundError(NotFoundError):
    """Токен скачивания не найден."""

    code = "TOKEN_NOT_FOUND"


class TokenNotActiveError(ConflictError):
    """Токен скачивания уже использован или отозван."""

    def __init__(self, status: str) -> None:
        super().__init__(details={"status": status})


class TokenExpiredError(BadRequestError):
    """Срок действия токена скачивания истёк."""
