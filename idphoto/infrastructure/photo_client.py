"""Photo processing client.

HTTP клиент внешнего сервиса обработки фото: вырезка с выравниванием лица,
замена фона и сборка листа печати. Ответы содержат изображения в base64 и
поле status.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any

import httpx
import orjson

from idphoto.core.constants import COLOR_HEX, DEFAULT_COLOR
from idphoto.shared.errors import PayloadDecodeError, PhotoServiceError
from idphoto.shared.logging import get_logger, truncate_payload

logger = get_logger(__name__)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class CutoutResult:
    """Результат вырезки: стандартное и HD изображения в base64."""

    ok: bool
    standard_b64: str = ""
    hd_b64: str = ""

    @property
    def best_b64(self) -> str:
        """HD изображение, если есть, иначе стандартное."""
        return self.hd_b64 or self.standard_b64


@dataclass(frozen=True)
class ImageResult:
    """Результат операции с одним изображением в base64."""

    ok: bool
    image_b64: str = ""


def parse_status(value: Any) -> bool:
    """Интерпретировать поле status ответа.

    bool как есть, число истинно если не 0, остальное ложно.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    return False


def decode_image_payload(payload: str) -> bytes:
    """Декодировать base64 изображение из ответа сервиса.

    Срезает data URL префикс (до "base64,"), пробелы и переводы строк,
    дополняет padding до кратности 4.

    Args:
        payload: Строка base64

    Returns:
        Байты изображения.

    Raises:
        PayloadDecodeError: Payload пустой или не является base64.
            Сообщение содержит не более 64 символов payload.

    """
    raw = payload or ""
    index = raw.find("base64,")
    if index >= 0:
        raw = raw[index + len("base64,") :]
    raw = raw.strip().replace("\n", "").replace("\r", "")
    if remainder := len(raw) % 4:
        raw += "=" * (4 - remainder)

    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(truncate_payload(payload)) from e
    if not data:
        raise PayloadDecodeError(truncate_payload(payload))
    return data


def color_hex(color: str) -> str:
    """Hex цвета фона без '#'.

    Имена палитры переводятся в hex, 6-значный hex передаётся как есть,
    неизвестные имена дают белый.
    """
    value = (color or "").strip().lower()
    if value in COLOR_HEX:
        return COLOR_HEX[value]
    if match := _HEX_COLOR.match(value):
        return match.group(1)
    return COLOR_HEX[DEFAULT_COLOR]


class PhotoProcessingClient:
    """Async клиент сервиса обработки фото.

    Ошибки транспорта (сеть, таймаут, не-2xx, не-JSON) выбрасываются как
    PhotoServiceError. Неуспешный status возвращается значением ok=False.

    Attributes:
        base_url: Base URL сервиса
        timeout: Таймаут запроса в секундах

    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Инициализировать клиент.

        Args:
            base_url: Base URL сервиса
            timeout: Таймаут запроса в секундах
            transport: Кастомный транспорт httpx (для тестов)

        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Закрыть HTTP клиент."""
        await self._client.aclose()

    async def cutout(
        self,
        image: bytes,
        height: int,
        width: int,
        dpi: int,
        filename: str = "input.jpg",
    ) -> CutoutResult:
        """Вырезать человека с фото и привести к размеру.

        Args:
            image: Исходное фото
            height: Высота результата в пикселях
            width: Ширина результата в пикселях
            dpi: DPI результата
            filename: Имя файла в multipart

        Returns:
            CutoutResult.

        """
        body = await self._post(
            "cutout",
            "/idphoto",
            data={
                "height": str(height),
                "width": str(width),
                "hd": "true",
                "dpi": str(dpi),
                "face_alignment": "true",
            },
            files={"input_image": (filename, image)},
        )
        return CutoutResult(
            ok=parse_status(body.get("status")),
            standard_b64=_string(body.get("image_base64_standard")),
            hd_b64=_string(body.get("image_base64_hd")),
        )

    async def recolor(self, image_b64: str, color: str, dpi: int) -> ImageResult:
        """Заменить фон вырезанного изображения.

        Args:
            image_b64: Вырезка в base64
            color: Hex цвета без '#'
            dpi: DPI результата

        Returns:
            ImageResult.

        """
        body = await self._post(
            "recolor",
            "/add_background",
            data={"input_image_base64": image_b64, "color": color, "dpi": str(dpi)},
            files={},
        )
        return ImageResult(ok=parse_status(body.get("status")), image_b64=_string(body.get("image_base64")))

    async def compose_layout(
        self,
        image: bytes,
        height: int,
        width: int,
        dpi: int,
        kb: int = 0,
    ) -> ImageResult:
        """Собрать лист печати из одного фото.

        Args:
            image: Фото с фоном (RGB)
            height: Высота фото на листе
            width: Ширина фото на листе
            dpi: DPI листа
            kb: Целевой размер файла в KB (0 = без ограничения)

        Returns:
            ImageResult.

        """
        data = {"height": str(height), "width": str(width), "dpi": str(dpi)}
        if kb > 0:
            data["kb"] = str(kb)
        body = await self._post(
            "compose_layout",
            "/generate_layout_photos",
            data=data,
            files={"input_image": ("input.jpg", image)},
        )
        return ImageResult(ok=parse_status(body.get("status")), image_b64=_string(body.get("image_base64")))

    async def _post(
        self,
        operation: str,
        path: str,
        data: dict[str, str],
        files: dict[str, tuple[str, bytes]],
    ) -> dict[str, Any]:
        logger.debug("Запрос к сервису обработки фото", operation=operation, path=path)
        try:
            response = await self._client.post(path, data=data, files=files or None)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PhotoServiceError(
                operation,
                f"HTTP {e.response.status_code}: {truncate_payload(e.response.text)}",
            ) from e
        except httpx.HTTPError as e:
            raise PhotoServiceError(operation, f"{type(e).__name__}: {e}") from e

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise PhotoServiceError(
                operation,
                f"invalid JSON response: {truncate_payload(response.text)}",
            ) from e
        if not isinstance(body, dict):
            raise PhotoServiceError(operation, "unexpected JSON response")

        logger.debug(
            "Ответ сервиса обработки фото",
            operation=operation,
            status_code=response.status_code,
            status=body.get("status"),
        )
        return body


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""
