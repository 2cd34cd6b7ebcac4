"""Инфраструктура: файловые хранилища и клиент сервиса обработки фото."""

from idphoto.infrastructure.asset_store import FSAssetStore
from idphoto.infrastructure.photo_client import (
    CutoutResult,
    ImageResult,
    PhotoProcessingClient,
    color_hex,
    decode_image_payload,
    parse_status,
)
from idphoto.infrastructure.upload_store import UploadStore

__all__ = [
    "CutoutResult",
    "FSAssetStore",
    "ImageResult",
    "PhotoProcessingClient",
    "UploadStore",
    "color_hex",
    "decode_image_payload",
    "parse_status",
]
