"""Форматтеры логов для Loguru.

JSON формат для staging/production и человекочитаемый формат для development.
"""

import re
from typing import Any

import orjson

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "secret",
        "api_key",
        "access_token",
        "pay_sign",
        "idempotency_key",
    }
)

# Токены скачивания передаются в query string
SENSITIVE_PATTERNS = [
    (re.compile(r"(token|secret|api_key)=[^&\s]+", re.IGNORECASE), r"\1=***"),
]

DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<yellow>{extra[trace_id]}</yellow> - "
    "<level>{message}</level>"
)


def sanitize_sensitive_data(text: str) -> str:
    """Замаскировать чувствительные значения в строке.

    Args:
        text: Текст для sanitization

    Returns:
        Текст с замаскированными значениями
    """
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def build_log_entry(record: dict[str, Any]) -> dict[str, Any]:
    """Собрать словарь JSON записи лога.

    Поля из logger.bind() и logger.info(..., key=value) попадают в запись
    на верхний уровень, чувствительные ключи маскируются.

    Args:
        record: Loguru record dictionary

    Returns:
        Словарь для сериализации
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": sanitize_sensitive_data(record["message"]),
    }

    for key, value in record["extra"].items():
        if key == "serialized":
            continue
        log_entry[key] = REDACTED if key in SENSITIVE_KEYS else value

    exception = record.get("exception")
    if exception is not None:
        log_entry["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value) if exception.value else None,
        }

    return log_entry


def serialize_record(record: dict[str, Any]) -> str:
    """Сериализовать запись лога в JSON строку.

    Args:
        record: Loguru record dictionary

    Returns:
        JSON строка
    """
    return orjson.dumps(build_log_entry(record), default=str).decode("utf-8")


def json_formatter(record: dict[str, Any]) -> str:
    """JSON форматтер для Loguru.

    Loguru применяет format_map к результату, поэтому готовый JSON
    кладётся в extra и возвращается шаблон на это поле.

    Args:
        record: Loguru record dictionary

    Returns:
        Шаблон формата
    """
    record["extra"]["serialized"] = serialize_record(record)
    template = "{extra[serialized]}\n"
    if record["exception"] is not None:
        template += "{exception}\n"
    return template
