"""Тесты для иерархии исключений и FastAPI handlers."""

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from idphoto.shared.errors import (
    AppException,
    BadRequestError,
    ConflictError,
    IdempotencyKeyMismatchError,
    LayoutDoesNotFitError,
    NotFoundError,
    OrderAlreadyPaidError,
    PayloadDecodeError,
    PaymentNotConfiguredError,
    PhotoServiceError,
    TaskNotFoundError,
    TokenExpiredError,
    TokenNotActiveError,
    setup_exception_handlers,
)


class TestAppException:
    """Тесты для базового класса AppException."""

    def test_code_generated_from_class_name(self) -> None:
        """Тест генерации code из имени класса."""

        class VeryCustomFailureError(AppException):
            """Кастомная ошибка."""

        assert VeryCustomFailureError().code == "VERY_CUSTOM_FAILURE"

    def test_default_message_from_docstring(self) -> None:
        """Тест извлечения первой строки docstring."""

        class CustomError(AppException):
            """Первая строка.

            Вторая строка игнорируется.
            """

        assert CustomError().message == "Первая строка."

    def test_custom_message_and_details(self) -> None:
        """Тест переопределения сообщения и произвольных details."""
        error = BadRequestError(message="Плохо", details={"field": "color", "value": 1})

        assert error.message == "Плохо"
        assert error.details == {"field": "color", "value": 1}
        assert str(error) == "Плохо"

    def test_to_response(self) -> None:
        """Тест сериализации в ErrorResponse."""
        response = TaskNotFoundError("abc").to_response()

        assert response.error == "TASK_NOT_FOUND"
        assert response.details == {"task_id": "abc"}
        assert response.trace_id


class TestErrorKinds:
    """Тесты HTTP статусов доменных ошибок."""

    @pytest.mark.parametrize(
        ("error", "status_code", "base"),
        [
            (TaskNotFoundError("t"), 404, NotFoundError),
            (OrderAlreadyPaidError("o"), 409, ConflictError),
            (IdempotencyKeyMismatchError("o"), 409, ConflictError),
            (TokenNotActiveError("used"), 409, ConflictError),
            (TokenExpiredError(), 400, BadRequestError),
            (LayoutDoesNotFitError((1800, 1200), (2000, 400), 20), 400, BadRequestError),
            (PaymentNotConfiguredError(), 501, AppException),
            (PhotoServiceError("cutout", "timeout"), 503, AppException),
        ],
    )
    def test_status_codes(self, error: AppException, status_code: int, base: type) -> None:
        """Тест соответствия ошибки HTTP статусу."""
        assert error.status_code == status_code
        assert isinstance(error, base)

    def test_specific_codes(self) -> None:
        """Тест автоматических кодов конкретных ошибок."""
        assert OrderAlreadyPaidError("o").code == "ORDER_ALREADY_PAID"
        assert IdempotencyKeyMismatchError("o").code == "IDEMPOTENCY_KEY_MISMATCH"
        assert TokenExpiredError().code == "TOKEN_EXPIRED"
        assert LayoutDoesNotFitError((1, 1), (2, 2), 0).code == "LAYOUT_DOES_NOT_FIT"

    def test_payload_decode_error_keeps_prefix(self) -> None:
        """Тест сообщения PayloadDecodeError."""
        error = PayloadDecodeError("abc")

        assert error.prefix == "abc"
        assert "abc" in error.message


class TestExceptionHandlers:
    """Тесты FastAPI обработчиков."""

    @pytest.fixture
    async def client(self) -> AsyncIterator[AsyncClient]:
        """Приложение с эндпоинтами, выбрасывающими ошибки."""
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/conflict")
        async def conflict() -> None:
            raise OrderAlreadyPaidError("o-1")

        @app.get("/crash")
        async def crash() -> None:
            msg = "boom"
            raise RuntimeError(msg)

        @app.get("/validate")
        async def validate(page: int) -> dict[str, int]:
            return {"page": page}

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    async def test_app_exception_response(self, client: AsyncClient) -> None:
        """Тест ответа на доменную ошибку."""
        response = await client.get("/conflict")

        assert response.status_code == 409
        assert response.headers["X-Error-Code"] == "ORDER_ALREADY_PAID"
        body = response.json()
        assert body["error"] == "ORDER_ALREADY_PAID"
        assert body["details"] == {"order_id": "o-1"}
        assert body["trace_id"]

    async def test_unexpected_exception_is_500(self, client: AsyncClient) -> None:
        """Тест ответа на неожиданную ошибку."""
        response = await client.get("/crash")

        assert response.status_code == 500

    async def test_validation_error_is_422(self, client: AsyncClient) -> None:
        """Тест ответа на ошибку валидации запроса."""
        response = await client.get("/validate", params={"page": "x"})

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"
