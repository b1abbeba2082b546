"""Unit tests for upload checks and the image storage backends."""
from __future__ import annotations

import asyncio
import io

import pytest
from PIL import Image

from conftest import make_image
from saavi_site.services import image_storage
from saavi_site.services.image_storage import (
    DiskImageStore,
    PlaceholderImageStore,
    discard_image,
    get_image_store,
)
from saavi_site.utils.images import InvalidImageError, check_content_type, convert_to_webp, inspect_image


PNG_INFO = {"content_type": "image/png", "extension": ".png"}


def test_inspect_image_reports_canonical_type():
    info = inspect_image(make_image("JPEG"))

    assert info["content_type"] == "image/jpeg"
    assert info["extension"] == ".jpg"
    assert info["size"] == (8, 8)


def test_inspect_image_rejects_unsupported_format():
    with pytest.raises(InvalidImageError):
        inspect_image(make_image("BMP"))


def test_inspect_image_rejects_garbage():
    with pytest.raises(InvalidImageError):
        inspect_image(b"\x89PNG\r\n\x1a\nnot really")


@pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif", "IMAGE/PNG"])
def test_allowed_content_types(content_type):
    check_content_type(content_type)


@pytest.mark.parametrize("content_type", [None, "", "image/svg+xml", "application/pdf"])
def test_disallowed_content_types(content_type):
    with pytest.raises(InvalidImageError):
        check_content_type(content_type)


def test_convert_to_webp():
    converted, is_webp = convert_to_webp(make_image("PNG", size=(64, 64)))

    assert is_webp
    assert Image.open(io.BytesIO(converted)).format == "WEBP"


def test_disk_store_save_and_delete(tmp_path):
    store = DiskImageStore(tmp_path)

    stored = asyncio.run(store.save(b"bytes", PNG_INFO, "Title"))

    assert stored.storage == "disk"
    assert stored.image_url == f"/uploads/{stored.storage_key}"
    assert (tmp_path / stored.storage_key).read_bytes() == b"bytes"

    asyncio.run(store.delete(stored.storage_key))
    assert not (tmp_path / stored.storage_key).exists()


def test_disk_store_delete_stays_inside_uploads(tmp_path):
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")

    asyncio.run(DiskImageStore(uploads).delete("../keep.txt"))

    assert outside.exists()


def test_placeholder_store_encodes_title():
    stored = asyncio.run(PlaceholderImageStore().save(b"", PNG_INFO, "CCTV / Pune"))

    assert stored.image_url == "https://placehold.co/600x400?text=CCTV%20%2F%20Pune"
    assert stored.data is None


def test_unknown_store_name():
    with pytest.raises(ValueError):
        get_image_store("s3")


def test_discard_image_swallows_backend_errors(monkeypatch):
    async def boom(self, storage_key):
        raise OSError("disk on fire")

    monkeypatch.setattr(image_storage.DiskImageStore, "delete", boom)

    assert asyncio.run(discard_image("disk", "x.png")) is False
    assert asyncio.run(discard_image(None, None)) is True


def test_cloudinary_store_uses_public_id(monkeypatch):
    calls = []

    async def fake_upload(content, folder="gallery", max_retries=3):
        return {"url": "https://res.cloudinary.com/demo/image/upload/v1/gallery/abc.png", "public_id": "gallery/abc"}

    async def fake_delete(public_id, max_retries=3):
        calls.append(public_id)
        return {"result": "ok"}

    monkeypatch.setattr(image_storage.cloudinary_service, "validate_cloudinary_config", lambda: True)
    monkeypatch.setattr(image_storage.cloudinary_service, "upload_image", fake_upload)
    monkeypatch.setattr(image_storage.cloudinary_service, "delete_image", fake_delete)

    stored = asyncio.run(get_image_store("cloudinary").save(b"bytes", PNG_INFO, "Title"))
    assert stored.storage_key == "gallery/abc"
    assert stored.image_url.startswith("https://res.cloudinary.com/")

    assert asyncio.run(discard_image("cloudinary", stored.storage_key)) is True
    assert calls == ["gallery/abc"]
