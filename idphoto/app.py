"""ID Photo Service - FastAPI Application.

Главное приложение с инициализацией всех компонентов.
"""

import secrets
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator

from idphoto import __version__
from idphoto.api import router as api_router
from idphoto.config import settings
from idphoto.core.constants import API_PREFIX, ASSETS_URL_PREFIX
from idphoto.core.dependencies import ServiceContainer, create_container, get_container, set_container
from idphoto.shared.errors import setup_exception_handlers
from idphoto.shared.errors.context import set_trace_id
from idphoto.shared.logging import get_logger, setup_logging

logger = get_logger()

REQUEST_ID_HEADER = "X-Request-Id"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager для startup/shutdown.

    Контейнер, переданный в create_app, используется как есть и не
    закрывается при остановке.

    Args:
        app: FastAPI application

    Yields:
        None

    """
    # =================================================================
    # Startup
    # =================================================================
    logger.info("ID Photo Service запускается", env=settings.app_env, debug=settings.debug)

    owned = app.state.container is None
    container = await create_container(settings) if owned else app.state.container
    app.state.container = container

    logger.info(
        "ID Photo Service готов",
        host=settings.server.host,
        port=settings.server.port,
        storage=container.repositories.backend,
        layout_mode=settings.photo.layout_mode,
    )

    yield

    # =================================================================
    # Shutdown
    # =================================================================
    if owned:
        await get_container().close()
        set_container(None)
    logger.info("ID Photo Service остановлен")


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Создать и настроить FastAPI приложение.

    Args:
        container: Готовый контейнер сервисов (для тестов). Без него
            контейнер создаётся при старте по настройкам.

    Returns:
        FastAPI application

    """
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Сервис фото на документы: обработка фото, заказы, оплата и скачивание",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.container = container
    if container is not None:
        set_container(container)

    # =================================================================
    # Middleware
    # =================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Установить trace_id из X-Request-Id и залогировать запрос.

        Args:
            request: Входящий HTTP запрос.
            call_next: Следующий обработчик в цепочке.

        Returns:
            HTTP ответ с X-Request-Id.

        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or secrets.token_hex(16)
        set_trace_id(request_id)
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code}",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response

    if settings.app_env != "development":
        Instrumentator().instrument(app).expose(app)
        logger.info("Prometheus metrics enabled на /metrics")

    # =================================================================
    # Exception handlers и routes
    # =================================================================

    setup_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)

    assets_dir = Path(container.assets.root if container else settings.storage.assets_dir)
    assets_dir.mkdir(parents=True, exist_ok=True)
    app.mount(ASSETS_URL_PREFIX, StaticFiles(directory=assets_dir), name="assets")

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        """Информация о сервисе."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "status": "running",
        }

    return app
