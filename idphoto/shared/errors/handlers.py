"""Exception handlers for FastAPI.

Обработчики исключений для FastAPI приложения.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from idphoto.shared.errors.base import AppException
from idphoto.shared.errors.context import get_trace_id
from idphoto.shared.errors.schemas import ErrorResponse


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Обработчик доменных исключений.

    Args:
        request: HTTP запрос.
        exc: Исключение AppException.

    Returns:
        JSON ответ с ошибкой.

    """
    logger.warning(
        f"Business error: {exc.code}",
        error_code=exc.code,
        message=exc.message,
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
        headers={"X-Error-Code": exc.code, "X-Trace-Id": get_trace_id()},
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Обработчик ошибок валидации Pydantic.

    Args:
        request: HTTP запрос.
        exc: Исключение валидации.

    Returns:
        JSON ответ с ошибкой валидации.

    """
    trace_id = get_trace_id()
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]

    logger.warning("Validation error", errors=errors, path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="VALIDATION_ERROR",
            message="Ошибка валидации входных данных",
            details={"errors": errors},
            trace_id=trace_id,
        ).model_dump(),
        headers={"X-Trace-Id": trace_id},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Последний обработчик для непредвиденных ошибок.

    Args:
        request: HTTP запрос.
        exc: Любое исключение.

    Returns:
        JSON ответ с общей ошибкой.

    """
    trace_id = get_trace_id()

    logger.exception(
        "Unhandled exception",
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="INTERNAL_SERVER_ERROR",
            message="Внутренняя ошибка сервера",
            details={},
            trace_id=trace_id,
        ).model_dump(),
        headers={"X-Trace-Id": trace_id},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Зарегистрировать обработчики исключений в FastAPI.

    Args:
        app: Экземпляр FastAPI приложения.

    """
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)

    logger.debug("Exception handlers registered")
