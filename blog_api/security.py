# blog_api/security.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Union

import jwt
from passlib.context import CryptContext

# New hashes use pbkdf2_sha256; bcrypt ($2a$/$2b$) hashes from accounts provisioned
# outside this API still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Constant-time comparison against a stored hash.

    With no hash (unknown account) a dummy verification still runs so both
    failure paths cost about the same.
    """
    if not password_hash:
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Stored value is not a hash this context understands
        return False


# --- Session tokens ---------------------------------------------------------


@dataclass(frozen=True)
class Principal:
    id: int
    email: str
    name: str
    issued_at: datetime
    expires_at: datetime

    def to_claims(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }


@dataclass(frozen=True)
class TokenValid:
    principal: Principal


@dataclass(frozen=True)
class TokenExpired:
    pass


@dataclass(frozen=True)
class TokenInvalid:
    reason: str = "invalid"


VerifyResult = Union[TokenValid, TokenExpired, TokenInvalid]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def issue_token(
    secret: str,
    *,
    account_id: int,
    email: str,
    name: str,
    lifetime_seconds: int,
    now: datetime | None = None,
) -> str:
    issued_at = now or _utc_now()
    payload = {
        "id": int(account_id),
        "email": email,
        "name": name,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=lifetime_seconds)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str, secret: str) -> VerifyResult:
    """
    Check signature and expiry. Never raises for a bad token; callers branch
    on the result type.
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        return TokenExpired()
    except jwt.InvalidTokenError as exc:
        return TokenInvalid(reason=type(exc).__name__)

    account_id = claims.get("id")
    email = claims.get("email")
    name = claims.get("name")
    if not isinstance(account_id, int) or isinstance(account_id, bool):
        return TokenInvalid(reason="missing id claim")
    if not isinstance(email, str) or not isinstance(name, str):
        return TokenInvalid(reason="missing identity claims")

    return TokenValid(
        Principal(
            id=account_id,
            email=email,
            name=name,
            issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
        )
    )


@dataclass(frozen=True)
class TokenSigner:
    """Signing secret plus lifetime, built once per app and injected."""

    secret: str
    lifetime_seconds: int = 24 * 60 * 60

    def issue(self, *, account_id: int, email: str, name: str, now: datetime | None = None) -> str:
        return issue_token(
            self.secret,
            account_id=account_id,
            email=email,
            name=name,
            lifetime_seconds=self.lifetime_seconds,
            now=now,
        )

    def verify(self, token: str) -> VerifyResult:
        return verify_token(token, self.secret)
