from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from accounts.app.core.config import get_settings
from accounts.app.core.exceptions import InternalError
from accounts.app.security.jwt import TokenIssuer
from accounts.app.services.auth_service import AuthService, RegistrationForm
from accounts.app.services.credential_store import CredentialStore
from conftest import API, FakeUploader, login, register

FIELDS = dict(
    full_name="Alan Turing",
    email="alan@bletchley.uk",
    password="enigma-1941",
    username="aturing",
)


def _service(session) -> AuthService:
    return AuthService(CredentialStore(session), TokenIssuer(get_settings()), FakeUploader())


def _avatar(temp_dir: Path) -> Path:
    temp_dir.mkdir(parents=True, exist_ok=True)
    path = temp_dir / "avatar.png"
    path.write_bytes(b"\x89PNG")
    return path


async def _db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


def test_register_fails_when_new_user_cannot_be_read_back(db, temp_dir):
    avatar = _avatar(temp_dir)

    async def fn(session):
        service = _service(session)

        async def vanished(user_id):
            return None

        service.store.find_by_id = vanished
        with pytest.raises(InternalError) as excinfo:
            await service.register(RegistrationForm(**FIELDS, avatar_path=avatar))
        return excinfo.value

    error = db(fn)
    assert error.status_code == 500
    assert error.message == "Something went wrong while registering the user"
    assert not avatar.exists()


def test_register_database_failure_is_internal_error(db, temp_dir):
    avatar = _avatar(temp_dir)

    async def fn(session):
        service = _service(session)
        service.store.identity_taken = _db_down
        with pytest.raises(InternalError) as excinfo:
            await service.register(RegistrationForm(**FIELDS, avatar_path=avatar))
        return excinfo.value

    error = db(fn)
    assert error.status_code == 500
    assert isinstance(error.__cause__, SQLAlchemyError)
    assert not avatar.exists()


def test_login_fails_when_refresh_token_cannot_be_stored(db):
    async def fn(session):
        service = _service(session)
        await service.store.create(**FIELDS, avatar="https://res.cloudinary.com/demo/alan.png")
        service.store.set_refresh_token = _db_down
        with pytest.raises(InternalError) as excinfo:
            await service.login(password="enigma-1941", username="aturing")
        return excinfo.value

    error = db(fn)
    assert error.status_code == 500
    assert error.message == "Something went wrong while generating tokens"


def test_login_lookup_failure_is_internal_error(db):
    async def fn(session):
        service = _service(session)
        service.store.find_by_identity = _db_down
        with pytest.raises(InternalError) as excinfo:
            await service.login(password="enigma-1941", email="alan@bletchley.uk")
        return excinfo.value

    error = db(fn)
    assert error.status_code == 500
    assert error.message == "Something went wrong while logging in"


def test_refresh_fails_when_rotation_cannot_be_stored(db):
    async def fn(session):
        service = _service(session)
        await service.store.create(**FIELDS, avatar="https://res.cloudinary.com/demo/alan.png")
        result = await service.login(password="enigma-1941", username="aturing")
        service.store.set_refresh_token = _db_down
        with pytest.raises(InternalError):
            await service.refresh_access_token(result.tokens.refresh_token)

    db(fn)


def test_token_persist_failure_is_a_500_response(client, monkeypatch):
    register(client)

    async def broken(self, user_id, token):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(CredentialStore, "set_refresh_token", broken)

    r = login(client)
    assert r.status_code == 500
    assert r.json() == {
        "status": 500,
        "message": "Something went wrong while generating tokens",
        "success": False,
        "errors": [],
    }
    assert client.cookies.get("accessToken") is None
    assert client.post(f"{API}/logout").status_code == 401
