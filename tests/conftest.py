from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from accounts.app.api import deps
from accounts.app.core.config import get_settings
from accounts.app.db import session as db_session
from accounts.app.db.base import create_tables
from accounts.app.main import create_app
from accounts.app.services.media import UploadedMedia

API = "/api/v1/users"


class FakeUploader:
    """Stands in for Cloudinary: remembers uploads and removes the temp file."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploaded: list[str] = []

    async def upload(self, local_path: Optional[Path]) -> Optional[UploadedMedia]:
        if local_path is None:
            return None
        local_path.unlink(missing_ok=True)
        if self.fail:
            return None
        self.uploaded.append(local_path.name)
        return UploadedMedia(url=f"https://res.cloudinary.com/demo/{local_path.name}")


def _reset_caches() -> None:
    get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session.get_sessionmaker.cache_clear()


@pytest.fixture(autouse=True)
def _test_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("UPLOAD_TEMP_DIR", str(tmp_path / "temp"))
    monkeypatch.setenv("COOKIE_SECURE", "0")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("ACCESS_TOKEN_SECRET", "test-access-secret")
    monkeypatch.setenv("REFRESH_TOKEN_SECRET", "test-refresh-secret")
    _reset_caches()
    yield
    _reset_caches()


@pytest.fixture()
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path / "temp"


@pytest.fixture()
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture()
def client(uploader: FakeUploader):
    app = create_app()
    app.dependency_overrides[deps.get_media_uploader] = lambda: uploader
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db():
    """Run a coroutine ``fn(session)`` against the test database."""

    def run(fn):
        async def _go():
            await create_tables()
            async with db_session.get_sessionmaker()() as session:
                return await fn(session)

        return asyncio.run(_go())

    return run


def register(client: TestClient, **overrides):
    data = {
        "fullName": "Ada Lovelace",
        "email": "Ada@Example.com",
        "password": "analytical-engine",
        "username": "AdaL",
    }
    with_avatar = overrides.pop("with_avatar", True)
    with_cover = overrides.pop("with_cover", False)
    data.update(overrides)

    files = {}
    if with_avatar:
        files["avatar"] = ("avatar.png", b"\x89PNG avatar", "image/png")
    if with_cover:
        files["coverImage"] = ("cover.jpg", b"\xff\xd8 cover", "image/jpeg")
    return client.post(f"{API}/register", data=data, files=files or None)


def login(client: TestClient, password: str = "analytical-engine", **identity):
    if not identity:
        identity = {"username": "adal"}
    return client.post(f"{API}/login", json={**identity, "password": password})
