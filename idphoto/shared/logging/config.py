"""Logging configuration.

Настройка логирования через Loguru и перехват стандартного logging.
"""

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from idphoto.config import settings
from idphoto.shared.errors.context import trace_id_var
from idphoto.shared.logging.formatters import DEV_FORMAT, json_formatter


class InterceptHandler(logging.Handler):
    """Обработчик для перехвата логов стандартной библиотеки logging.

    uvicorn, httpx и SQLAlchemy пишут через logging, записи перенаправляются
    в Loguru с сохранением исходного файла и строки.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Перехват и отправка лога в Loguru.

        Args:
            record: Запись лога из стандартного logging.

        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def trace_id_patcher(record: Any) -> None:
    """Добавить trace_id текущего запроса в запись лога.

    Args:
        record: Запись лога.

    """
    record["extra"].setdefault("trace_id", trace_id_var.get() or "-")


def setup_logging() -> None:
    """Настроить логирование приложения.

    - development: цветной человекочитаемый вывод в stdout
    - staging/production или log.format=json: JSON в stdout
    - debug: дополнительно JSON файл с ротацией
    """
    logger.remove()
    logger.configure(patcher=trace_id_patcher)

    use_json = settings.app_env != "development" or settings.log.format == "json"

    if use_json:
        logger.add(
            sys.stdout,
            format=json_formatter,
            level=settings.log.level,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )
    else:
        logger.add(
            sys.stdout,
            format=DEV_FORMAT,
            level=settings.log.level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

    if settings.debug:
        log_path = Path(settings.log.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            format=json_formatter,
            level="DEBUG",
            rotation=settings.log.rotation,
            retention=settings.log.retention,
            compression="zip",
            backtrace=True,
            diagnose=True,
        )

    configure_third_party_loggers()

    logger.info(
        "Логгер настроен",
        level=settings.log.level,
        env=settings.app_env,
        json=use_json,
    )


def configure_third_party_loggers() -> None:
    """Перенаправить логи сторонних библиотек в Loguru."""
    loggers_to_intercept = [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "fastapi",
        "httpx",
        "httpcore",
        "sqlalchemy.engine",
    ]

    logging.getLogger("uvicorn.access").propagate = False

    for logger_name in loggers_to_intercept:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    engine_level = logging.INFO if settings.database.echo else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(engine_level)


def get_logger(name: str | None = None):
    """Получить логгер с привязанным именем компонента.

    Args:
        name: Имя компонента

    Returns:
        Loguru логгер
    """
    if name:
        return logger.bind(component=name)
    return logger
