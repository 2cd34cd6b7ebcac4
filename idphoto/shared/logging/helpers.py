"""Helper функции для структурированного логирования.

Обрезка payload'ов и маскирование идентификаторов перед записью в лог.
"""

from idphoto.core.constants import ERROR_PAYLOAD_PREFIX


def truncate_payload(payload: str | bytes | None, limit: int = ERROR_PAYLOAD_PREFIX) -> str:
    """Обрезать payload до безопасного для лога префикса.

    Base64 изображения занимают мегабайты, в лог пишется только начало.

    Args:
        payload: Строка или байты ответа
        limit: Максимальная длина префикса

    Returns:
        Префикс payload с отметкой об обрезке
    """
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        payload = payload[:limit].decode("utf-8", errors="replace")
        return payload
    if len(payload) <= limit:
        return payload
    return f"{payload[:limit]}...(+{len(payload) - limit})"


def mask_token(value: str | None, visible: int = 6) -> str:
    """Замаскировать секретный идентификатор (токен скачивания, idempotency key).

    Args:
        value: Исходное значение
        visible: Сколько символов оставить в начале

    Returns:
        Маскированное значение

    Example:
        >>> mask_token("0123456789abcdef")
        '012345***'
    """
    if not value:
        return ""
    if len(value) <= visible:
        return "***"
    return f"{value[:visible]}***"

