"""
Storage backends for gallery images.

The backend is chosen with IMAGE_STORAGE. Each gallery row records the backend
that stored its image, so cleanup always goes to the right place even after the
setting changes.
"""
import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from saavi_site.config import settings
from saavi_site.services import cloudinary_service

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads/"
PLACEHOLDER_URL = "https://placehold.co/600x400?text={text}"


@dataclass
class StoredImage:
    """Where an image ended up, in the shape of the GalleryItem columns."""
    storage: str
    image_url: Optional[str] = None
    storage_key: Optional[str] = None
    data: Optional[bytes] = None
    content_type: Optional[str] = None


def get_uploads_dir() -> Path:
    return Path(settings.PUBLIC_DIR).resolve() / "uploads"


class ImageStore:
    name = ""

    async def save(self, content: bytes, image_info: dict, title: str) -> StoredImage:
        raise NotImplementedError

    async def delete(self, storage_key: Optional[str]) -> None:
        """Remove a stored image. Backends without external state do nothing."""


class DiskImageStore(ImageStore):
    """Files under PUBLIC_DIR/uploads, served as /uploads/<name>."""
    name = "disk"

    def __init__(self, uploads_dir: Optional[Path] = None):
        self.uploads_dir = uploads_dir or get_uploads_dir()

    def _path_for(self, storage_key: str) -> Path:
        # Keys are bare file names; never follow directories
        return self.uploads_dir / Path(storage_key).name

    async def save(self, content: bytes, image_info: dict, title: str) -> StoredImage:
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 6)}{image_info['extension']}"
        await asyncio.to_thread(self._path_for(filename).write_bytes, content)
        logger.info(f"Stored upload on disk: {filename} ({len(content):,} bytes)")
        return StoredImage(
            storage=self.name,
            image_url=UPLOADS_URL_PREFIX + filename,
            storage_key=filename,
            content_type=image_info["content_type"],
        )

    async def delete(self, storage_key: Optional[str]) -> None:
        if not storage_key:
            return
        path = self._path_for(storage_key)
        if path.exists():
            await asyncio.to_thread(path.unlink)
            logger.info(f"Deleted upload from disk: {path.name}")


class DatabaseImageStore(ImageStore):
    """Bytes kept on the gallery row itself; the URL is filled in once the row has an id."""
    name = "database"

    async def save(self, content: bytes, image_info: dict, title: str) -> StoredImage:
        return StoredImage(
            storage=self.name,
            data=content,
            content_type=image_info["content_type"],
        )


class PlaceholderImageStore(ImageStore):
    """Discards the bytes and points at an external placeholder image."""
    name = "placeholder"

    async def save(self, content: bytes, image_info: dict, title: str) -> StoredImage:
        return StoredImage(
            storage=self.name,
            image_url=PLACEHOLDER_URL.format(text=quote(title, safe="")),
            content_type=image_info["content_type"],
        )


class CloudinaryImageStore(ImageStore):
    name = "cloudinary"

    async def save(self, content: bytes, image_info: dict, title: str) -> StoredImage:
        if not cloudinary_service.validate_cloudinary_config():
            raise RuntimeError("Cloudinary storage selected but credentials are not configured")
        result = await cloudinary_service.upload_image(content, folder="gallery")
        return StoredImage(
            storage=self.name,
            image_url=result["url"],
            storage_key=result["public_id"],
            content_type=image_info["content_type"],
        )

    async def delete(self, storage_key: Optional[str]) -> None:
        if storage_key:
            await cloudinary_service.delete_image(storage_key)


IMAGE_STORES = {
    store.name: store
    for store in (DiskImageStore, DatabaseImageStore, PlaceholderImageStore, CloudinaryImageStore)
}


def get_image_store(name: Optional[str] = None) -> ImageStore:
    """
    Return the store for `name`, defaulting to the configured IMAGE_STORAGE.

    Raises:
        ValueError: If the name is not a known backend
    """
    name = (name or settings.IMAGE_STORAGE).lower()
    try:
        return IMAGE_STORES[name]()
    except KeyError:
        raise ValueError(f"Unknown image storage backend: {name}")


async def discard_image(storage: Optional[str], storage_key: Optional[str]) -> bool:
    """
    Best-effort removal of a stored image. Failures are logged, never raised.

    Returns:
        bool: True if the backend reported no error
    """
    if not storage:
        return True
    try:
        await get_image_store(storage).delete(storage_key)
        return True
    except Exception as e:
        logger.error(
            f"Failed to delete image (storage={storage}, key={storage_key}): {str(e)}",
            exc_info=True
        )
        return False
