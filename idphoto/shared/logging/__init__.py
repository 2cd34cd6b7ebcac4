"""Логирование приложения."""

from idphoto.shared.logging.config import (
    InterceptHandler,
    configure_third_party_loggers,
    get_logger,
    setup_logging,
)
from idphoto.shared.logging.formatters import json_formatter, sanitize_sensitive_data, serialize_record
from idphoto.shared.logging.helpers import mask_token, truncate_payload

__all__ = [
    "InterceptHandler",
    "configure_third_party_loggers",
    "get_logger",
    "json_formatter",
    "mask_token",
    "sanitize_sensitive_data",
    "serialize_record",
    "setup_logging",
    "truncate_payload",
]
