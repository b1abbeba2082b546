"""Shared fixtures. The environment is configured before saavi_site is imported."""
from __future__ import annotations

import asyncio
import io
import os
import shutil
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="saavi-tests-"))
PUBLIC_DIR = _TMP / "public"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'test.db'}"
os.environ["PUBLIC_DIR"] = str(PUBLIC_DIR)
os.environ["RATE_LIMIT_LOGIN"] = "1000/minute"
os.environ["RATE_LIMIT_UPLOAD"] = "1000/minute"
os.environ["RATE_LIMIT_CONTACT"] = "1000/minute"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["IMAGE_STORAGE"] = "disk"
os.environ["EMAIL_USER"] = "site@example.com"
os.environ["EMAIL_PASS"] = "app-password"
os.environ["CONTACT_RECIPIENT"] = "owner@example.com"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from saavi_site import models  # noqa: E402,F401
from saavi_site.database import Base, engine  # noqa: E402
from saavi_site.main import app  # noqa: E402
from saavi_site.utils.rate_limit import limiter  # noqa: E402

ADMIN_CREDENTIALS = {"username": "admin", "password": "s3cret-pass"}
UPLOADS_DIR = PUBLIC_DIR / "uploads"


def run(coro):
    return asyncio.run(coro)


async def _reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


def make_image(fmt: str = "PNG", size=(8, 8), color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def upload_files(content: bytes | None = None, filename: str = "photo.png", content_type: str = "image/png"):
    return {"image": (filename, content if content is not None else make_image(), content_type)}


def gallery_form(**overrides):
    form = {"title": "Mall entrance cameras", "category": "CCTV Installation"}
    form.update(overrides)
    return form


@pytest.fixture(autouse=True)
def clean_state():
    run(_reset_database())
    limiter.reset()
    shutil.rmtree(PUBLIC_DIR, ignore_errors=True)
    UPLOADS_DIR.mkdir(parents=True)
    (PUBLIC_DIR / "index.html").write_text("<h1>Saavi Lite home</h1>")
    (PUBLIC_DIR / "admin.html").write_text("<h1>Saavi Lite admin</h1>")
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    response = client.post("/api/admin/login", json=ADMIN_CREDENTIALS)
    assert response.status_code == 200
    return client


@pytest.fixture
def create_item(admin_client):
    def _create(**overrides):
        files = overrides.pop("files", None) or upload_files()
        response = admin_client.post("/api/gallery", data=gallery_form(**overrides), files=files)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


def uploaded_files() -> list[str]:
    return sorted(p.name for p in UPLOADS_DIR.iterdir())
