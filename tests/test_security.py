from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from blog_api.config import ConfigError, load_settings, parse_duration
from blog_api.security import (
    TokenExpired,
    TokenInvalid,
    TokenSigner,
    TokenValid,
    hash_password,
    issue_token,
    verify_password,
    verify_token,
)

SECRET = "unit-secret"


def _issue(**overrides):
    kwargs = dict(account_id=7, email="a@b.co", name="Ann", lifetime_seconds=3600)
    kwargs.update(overrides)
    return issue_token(SECRET, **kwargs)


def test_password_hash_roundtrip():
    h = hash_password("s3cret")
    assert h != "s3cret"
    assert verify_password("s3cret", h)
    assert not verify_password("wrong", h)


def test_verify_password_without_hash_is_false():
    assert verify_password("anything", None) is False
    assert verify_password("anything", "not-a-hash") is False


def test_valid_token_yields_principal():
    now = datetime.now(timezone.utc).replace(microsecond=0)
    token = _issue(now=now)

    result = verify_token(token, SECRET)

    assert isinstance(result, TokenValid)
    p = result.principal
    assert (p.id, p.email, p.name) == (7, "a@b.co", "Ann")
    assert p.issued_at == now
    assert p.expires_at == now + timedelta(seconds=3600)
    assert p.to_claims() == jwt.decode(token, SECRET, algorithms=["HS256"])


def test_expired_token():
    token = _issue(now=datetime.now(timezone.utc) - timedelta(hours=2))
    assert isinstance(verify_token(token, SECRET), TokenExpired)


def test_wrong_secret_is_invalid():
    token = issue_token("other-secret", account_id=1, email="x@y.z", name="X", lifetime_seconds=60)
    assert isinstance(verify_token(token, SECRET), TokenInvalid)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_invalid(token):
    assert isinstance(verify_token(token, SECRET), TokenInvalid)


def test_token_missing_identity_claims_is_invalid():
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"iat": now, "exp": now + 60, "email": "x@y.z"}, SECRET, algorithm="HS256")
    assert isinstance(verify_token(token, SECRET), TokenInvalid)


def test_token_without_expiry_is_invalid():
    token = jwt.encode({"id": 1, "email": "x@y.z", "name": "X"}, SECRET, algorithm="HS256")
    assert isinstance(verify_token(token, SECRET), TokenInvalid)


def test_signer_uses_configured_lifetime():
    signer = TokenSigner(secret=SECRET, lifetime_seconds=120)
    result = signer.verify(signer.issue(account_id=3, email="c@d.ef", name="C"))
    assert isinstance(result, TokenValid)
    assert (result.principal.expires_at - result.principal.issued_at) == timedelta(seconds=120)


@pytest.mark.parametrize(
    "value,seconds",
    [("24h", 86400), ("30m", 1800), ("45s", 45), ("3600", 3600), ("7d", 604800)],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == seconds


@pytest.mark.parametrize("value", ["", "abc", "0", "12w", "-5m"])
def test_parse_duration_rejects_bad_values(value):
    with pytest.raises(ConfigError):
        parse_duration(value)


def test_load_settings_development_defaults():
    s = load_settings({})
    assert s.production is False
    assert s.cookie_secure is False
    assert s.cookie_samesite == "lax"
    assert s.jwt_expires_seconds == 86400
    assert s.cors_origins == ("http://localhost:5173",)


def test_load_settings_production():
    s = load_settings({"NODE_ENV": "production", "JWT_SECRET": "x", "JWT_EXPIRES_IN": "1h"})
    assert s.production is True
    assert s.cookie_secure is True
    assert s.cookie_samesite == "none"
    assert s.jwt_expires_seconds == 3600


def test_production_requires_secret():
    with pytest.raises(ConfigError):
        load_settings({"APP_ENV": "production"})
