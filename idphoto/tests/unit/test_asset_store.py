"""Тесты для файловых хранилищ ассетов и загрузок."""

from pathlib import Path

import pytest

from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.infrastructure.upload_store import UploadStore
from idphoto.shared.errors import AssetNotFoundError, AssetStorageError, InvalidUploadError


class TestFSAssetStore:
    """Тесты хранилища ассетов."""

    async def test_write_and_read(self, assets: FSAssetStore, tmp_path: Path) -> None:
        """Тест записи и чтения ассета."""
        url = await assets.write("task-1", "white.jpg", b"data")

        assert url == "/assets/task-1/white.jpg"
        assert await assets.read("task-1", "white.jpg") == b"data"
        assert (tmp_path / "assets" / "task-1" / "white.jpg").is_file()

    async def test_overwrite(self, assets: FSAssetStore) -> None:
        """Тест повторной записи того же ассета."""
        await assets.write("task-1", "white.jpg", b"old")
        await assets.write("task-1", "white.jpg", b"new")

        assert await assets.read("task-1", "white.jpg") == b"new"

    def test_public_base_url(self, tmp_path: Path) -> None:
        """Тест абсолютных ссылок."""
        store = FSAssetStore(tmp_path, "https://cdn.example.com/")

        assert store.url_for("t", "baseline.png") == "https://cdn.example.com/assets/t/baseline.png"

    async def test_read_missing(self, assets: FSAssetStore) -> None:
        """Тест чтения отсутствующего ассета."""
        with pytest.raises(AssetNotFoundError):
            await assets.read("task-1", "blue.jpg")

    @pytest.mark.parametrize(
        ("task_id", "name"),
        [
            ("..", "x.jpg"),
            ("t", "../x.jpg"),
            ("t", ""),
            ("a/b", "x"),
            ("t", "#638cce.jpg"),
            ("t", "x.jpg?v=1"),
            ("t", "x%2F.jpg"),
        ],
    )
    def test_rejects_traversal(self, assets: FSAssetStore, task_id: str, name: str) -> None:
        """Тест недопустимых имён."""
        with pytest.raises(AssetStorageError):
            assets.path_for(task_id, name)

    async def test_locate(self, assets: FSAssetStore) -> None:
        """Тест поиска файла по выданной ссылке."""
        url = await assets.write("task-1", "layout_6inch.jpg", b"sheet")

        name, path = assets.locate(url)

        assert name == "layout_6inch.jpg"
        assert path.read_bytes() == b"sheet"

    async def test_url_is_quoted(self, assets: FSAssetStore) -> None:
        """Тест кодирования имени в ссылке и обратного поиска."""
        url = await assets.write("task-1", "light blue.jpg", b"variant")

        name, path = assets.locate(url)

        assert url == "/assets/task-1/light%20blue.jpg"
        assert name == "light blue.jpg"
        assert path.read_bytes() == b"variant"

    @pytest.mark.parametrize("ref", ["/assets/task-1/missing.jpg", "https://other/x.jpg", "/assets/../x"])
    def test_locate_unknown(self, assets: FSAssetStore, ref: str) -> None:
        """Тест нераспознанных и отсутствующих ссылок."""
        with pytest.raises(AssetNotFoundError):
            assets.locate(ref)


class TestUploadStore:
    """Тесты хранилища загрузок."""

    async def test_save_and_read(self, uploads: UploadStore) -> None:
        """Тест сохранения исходника."""
        key = await uploads.save("Photo.JPG", b"jpeg-bytes")

        assert key.startswith("uploads/")
        assert key.endswith("_Photo.JPG")
        assert await uploads.read(key) == b"jpeg-bytes"

    async def test_unique_keys(self, uploads: UploadStore) -> None:
        """Тест уникальности ключей для одинаковых имён."""
        first = await uploads.save("me.png", b"1")
        second = await uploads.save("me.png", b"2")

        assert first != second

    async def test_strips_client_path(self, uploads: UploadStore) -> None:
        """Тест что путь от клиента отбрасывается."""
        key = await uploads.save("C:\\photos\\..\\me.jpg", b"x")

        assert "/" not in key.removeprefix("uploads/")
        assert key.endswith("_me.jpg")

    @pytest.mark.parametrize(
        ("filename", "data"),
        [("me.gif", b"x"), ("noext", b"x"), ("me.jpg", b""), ("big.png", b"x" * (1024 * 1024 + 1))],
    )
    async def test_invalid_upload(self, uploads: UploadStore, filename: str, data: bytes) -> None:
        """Тест отклонения неподдерживаемых файлов."""
        with pytest.raises(InvalidUploadError):
            await uploads.save(filename, data)

    async def test_read_missing(self, uploads: UploadStore) -> None:
        """Тест чтения отсутствующей загрузки."""
        with pytest.raises(AssetNotFoundError):
            await uploads.read("uploads/nothing.jpg")

    @pytest.mark.parametrize("key", ["uploads/../secret", "uploads/", "uploads/a/b.jpg", ".."])
    def test_resolve_rejects_traversal(self, uploads: UploadStore, key: str) -> None:
        """Тест недопустимых ключей."""
        with pytest.raises(InvalidUploadError):
            uploads.resolve(key)
