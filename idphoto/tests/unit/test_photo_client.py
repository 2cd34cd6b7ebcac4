"""Тесты для клиента сервиса обработки фото."""

import base64
from collections.abc import Callable
from urllib.parse import parse_qs

import httpx
import pytest

from idphoto.infrastructure.photo_client import (
    PhotoProcessingClient,
    color_hex,
    decode_image_payload,
    parse_status,
)
from idphoto.shared.errors import PayloadDecodeError, PhotoServiceError

Handler = Callable[[httpx.Request], httpx.Response]


def make_client(handler: Handler) -> PhotoProcessingClient:
    """Клиент с MockTransport."""
    return PhotoProcessingClient("http://photo.test/", 5.0, transport=httpx.MockTransport(handler))


def multipart_field(request: httpx.Request, name: str) -> bytes:
    """Значение текстового поля multipart запроса."""
    marker = f'name="{name}"\r\n\r\n'.encode()
    content = request.content
    start = content.index(marker) + len(marker)
    return content[start : content.index(b"\r\n", start)]


class TestParseStatus:
    """Тесты разбора поля status."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, True),
            (False, False),
            (1, True),
            (0, False),
            (2.5, True),
            (0.0, False),
            ("true", False),
            (None, False),
        ],
    )
    def test_values(self, value: object, expected: bool) -> None:
        """Тест интерпретации значений."""
        assert parse_status(value) is expected


class TestDecodeImagePayload:
    """Тесты декодирования base64 изображений."""

    def test_plain(self) -> None:
        """Тест обычного base64."""
        assert decode_image_payload(base64.b64encode(b"hello").decode()) == b"hello"

    def test_data_url_prefix(self) -> None:
        """Тест data URL префикса."""
        payload = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()

        assert decode_image_payload(payload) == b"png-bytes"

    def test_whitespace_and_newlines(self) -> None:
        """Тест переводов строк внутри payload."""
        encoded = base64.b64encode(b"0123456789" * 10).decode()
        payload = f"  {encoded[:40]}\r\n{encoded[40:]}\n "

        assert decode_image_payload(payload) == b"0123456789" * 10

    def test_missing_padding(self) -> None:
        """Тест отсутствующего padding."""
        assert decode_image_payload("aGVsbG8") == b"hello"

    @pytest.mark.parametrize("payload", ["", "   ", "data:image/png;base64,"])
    def test_empty(self, payload: str) -> None:
        """Тест пустого payload."""
        with pytest.raises(PayloadDecodeError):
            decode_image_payload(payload)

    def test_invalid_payload_prefix_is_bounded(self) -> None:
        """Тест что в ошибку попадает только начало payload."""
        payload = "!" * 5000

        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_image_payload(payload)

        assert exc_info.value.prefix.startswith("!" * 64)
        assert len(exc_info.value.prefix) < 100
        assert len(exc_info.value.message) < 200


class TestColorHex:
    """Тесты перевода цвета в hex."""

    @pytest.mark.parametrize(
        ("color", "expected"),
        [
            ("white", "ffffff"),
            ("Blue", "638cce"),
            ("red", "ff0000"),
            ("#00ff00", "00ff00"),
            ("abcdef", "abcdef"),
            ("purple", "ffffff"),
            ("", "ffffff"),
        ],
    )
    def test_colors(self, color: str, expected: str) -> None:
        """Тест палитры, hex и неизвестных цветов."""
        assert color_hex(color) == expected


class TestCutout:
    """Тесты вызова вырезки."""

    async def test_request_fields_and_result(self) -> None:
        """Тест полей multipart запроса и разбора ответа."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                200,
                json={"status": True, "image_base64_standard": "c3Rk", "image_base64_hd": "aGQ="},
            )

        client = make_client(handler)
        result = await client.cutout(b"jpeg", height=413, width=295, dpi=300, filename="me.jpg")
        await client.close()

        request = captured[0]
        assert request.url.path == "/idphoto"
        assert multipart_field(request, "height") == b"413"
        assert multipart_field(request, "width") == b"295"
        assert multipart_field(request, "dpi") == b"300"
        assert multipart_field(request, "hd") == b"true"
        assert multipart_field(request, "face_alignment") == b"true"
        assert b'name="input_image"; filename="me.jpg"' in request.content
        assert result.ok is True
        assert result.best_b64 == "aGQ="

    async def test_numeric_status_and_missing_hd(self) -> None:
        """Тест числового status и ответа без HD изображения."""
        client = make_client(lambda _: httpx.Response(200, json={"status": 1, "image_base64_standard": "c3Rk"}))

        result = await client.cutout(b"jpeg", 413, 295, 300)
        await client.close()

        assert result.ok is True
        assert result.best_b64 == "c3Rk"

    async def test_rejected(self) -> None:
        """Тест неуспешного status."""
        client = make_client(lambda _: httpx.Response(200, json={"status": False}))

        result = await client.cutout(b"jpeg", 413, 295, 300)
        await client.close()

        assert result.ok is False

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="internal"),
            httpx.Response(200, text="<html>not json</html>"),
            httpx.Response(200, json=["not", "a", "dict"]),
        ],
    )
    async def test_transport_errors(self, response: httpx.Response) -> None:
        """Тест не-2xx и не-JSON ответов."""
        client = make_client(lambda _: response)

        with pytest.raises(PhotoServiceError) as exc_info:
            await client.cutout(b"jpeg", 413, 295, 300)
        await client.close()

        assert exc_info.value.operation == "cutout"

    async def test_connect_error(self) -> None:
        """Тест сетевой ошибки."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "connection refused"
            raise httpx.ConnectError(msg, request=request)

        client = make_client(handler)

        with pytest.raises(PhotoServiceError) as exc_info:
            await client.cutout(b"jpeg", 413, 295, 300)
        await client.close()

        assert "ConnectError" in exc_info.value.reason


class TestRecolor:
    """Тесты вызова замены фона."""

    async def test_form_fields(self) -> None:
        """Тест полей формы."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"status": True, "image_base64": "aW1n"})

        client = make_client(handler)
        result = await client.recolor("YmFzZQ==", "638cce", 300)
        await client.close()

        request = captured[0]
        form = parse_qs(request.content.decode())
        assert request.url.path == "/add_background"
        assert form == {"input_image_base64": ["YmFzZQ=="], "color": ["638cce"], "dpi": ["300"]}
        assert result.ok is True
        assert result.image_b64 == "aW1n"


class TestComposeLayout:
    """Тесты вызова сборки листа."""

    async def test_kb_omitted_when_zero(self) -> None:
        """Тест что kb не передаётся без ограничения."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"status": True, "image_base64": "aW1n"})

        client = make_client(handler)
        await client.compose_layout(b"jpeg", 413, 295, 300)
        await client.compose_layout(b"jpeg", 413, 295, 300, kb=150)
        await client.close()

        assert captured[0].url.path == "/generate_layout_photos"
        assert b'name="kb"' not in captured[0].content
        assert multipart_field(captured[1], "kb") == b"150"
