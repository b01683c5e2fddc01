# blog_api/config.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_DATABASE_URL = f"sqlite:///{(DATA_DIR / 'blog.db').as_posix()}"
DEV_JWT_SECRET = "dev-secret-change-me"

COOKIE_NAME = "jwt"
COOKIE_MAX_AGE_SECONDS = 24 * 60 * 60

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class ConfigError(ValueError):
    pass


def parse_duration(value: str) -> int:
    """
    "24h" -> 86400, "30m" -> 1800, "3600" -> 3600.
    """
    m = _DURATION_RE.match(value or "")
    if not m:
        raise ConfigError(f"Invalid duration: {value!r}")
    seconds = int(m.group(1)) * _UNIT_SECONDS[m.group(2)]
    if seconds <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return seconds


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: str = DEV_JWT_SECRET
    jwt_expires_seconds: int = 24 * 60 * 60
    production: bool = False
    cors_origins: tuple[str, ...] = field(default=("http://localhost:5173",))
    log_level: str = "INFO"

    @property
    def cookie_secure(self) -> bool:
        return self.production

    @property
    def cookie_samesite(self) -> str:
        # Cross-origin frontend in production needs None (which browsers only accept with Secure)
        return "none" if self.production else "lax"


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    mode = (env.get("APP_ENV") or env.get("NODE_ENV") or "development").strip().lower()
    production = mode == "production"

    secret = env.get("JWT_SECRET", "")
    if not secret:
        if production:
            raise ConfigError("JWT_SECRET must be set in production")
        secret = DEV_JWT_SECRET

    origins = tuple(
        o.strip() for o in env.get("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
    )

    return Settings(
        database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
        jwt_secret=secret,
        jwt_expires_seconds=parse_duration(env.get("JWT_EXPIRES_IN", "24h")),
        production=production,
        cors_origins=origins,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
