from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from accounts.app.core.config import Settings, get_settings
from accounts.app.core.exceptions import InvalidTokenError
from accounts.app.security.jwt import TokenIssuer, create_token, decode_token

USER = SimpleNamespace(id="abc123", email="ada@example.com", username="adal")


def test_create_then_decode_returns_claims():
    token = create_token({"_id": "abc123", "scope": "x"}, "s3cret", timedelta(minutes=5))
    claims = decode_token(token, "s3cret")
    assert claims["_id"] == "abc123"
    assert claims["scope"] == "x"
    assert "exp" in claims


def test_expired_token_is_rejected():
    token = create_token({"_id": "abc123"}, "s3cret", timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        decode_token(token, "s3cret")


def test_wrong_secret_is_rejected():
    token = create_token({"_id": "abc123"}, "s3cret", timedelta(minutes=5))
    with pytest.raises(InvalidTokenError):
        decode_token(token, "other")


def test_issuer_claims_per_token_kind():
    issuer = TokenIssuer(get_settings())

    access = issuer.verify_access_token(issuer.issue_access_token(USER))
    assert (access["_id"], access["email"], access["username"]) == ("abc123", "ada@example.com", "adal")

    refresh = issuer.verify_refresh_token(issuer.issue_refresh_token(USER))
    assert refresh["_id"] == "abc123"
    assert "email" not in refresh
    assert "username" not in refresh


def test_access_and_refresh_secrets_do_not_cross():
    issuer = TokenIssuer(get_settings())
    with pytest.raises(InvalidTokenError):
        issuer.verify_refresh_token(issuer.issue_access_token(USER))
    with pytest.raises(InvalidTokenError):
        issuer.verify_access_token(issuer.issue_refresh_token(USER))


def test_refresh_tokens_are_unique_within_the_same_second():
    issuer = TokenIssuer(get_settings())
    assert issuer.issue_refresh_token(USER) != issuer.issue_refresh_token(USER)


def test_settings_reject_shared_secret():
    with pytest.raises(ValidationError):
        Settings(ACCESS_TOKEN_SECRET="same", REFRESH_TOKEN_SECRET="same")


def test_production_rejects_default_secrets(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ACCESS_TOKEN_SECRET")
    monkeypatch.delenv("REFRESH_TOKEN_SECRET")
    monkeypatch.setenv("ENVIRONMENT", "production")
    get_settings.cache_clear()
    with pytest.raises(ValidationError):
        get_settings()


def test_database_url_is_normalized_for_async_drivers():
    assert Settings(DATABASE_URL="postgres://u:p@db/app").DATABASE_URL == "postgresql+asyncpg://u:p@db/app"
    assert Settings(DATABASE_URL="sqlite:///./x.db").DATABASE_URL == "sqlite+aiosqlite:///./x.db"
