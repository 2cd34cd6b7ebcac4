"""ID Photo Service - Main Entry Point.

Запуск uvicorn с настройками из окружения.
"""

import uvicorn

from idphoto.config import settings


def main() -> None:
    """Запустить HTTP сервер."""
    uvicorn.run(
        "idphoto.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
