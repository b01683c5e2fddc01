# blog_api/utils.py
from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9 -]")
_WHITESPACE_RE = re.compile(r"\s+")
_DASHES_RE = re.compile(r"-+")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def generate_slug(title: str) -> str:
    """
    "Hello, World! 2024" -> "hello-world-2024"
    """
    slug = _SLUG_STRIP_RE.sub("", (title or "").lower())
    slug = _WHITESPACE_RE.sub("-", slug.strip())
    slug = _DASHES_RE.sub("-", slug)
    return slug.strip("-")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_RE.match(value) is not None


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination_meta(*, page: int, limit: int, total: int, with_nav: bool = True) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    meta: dict[str, Any] = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
    }
    if with_nav:
        meta["hasNext"] = page < total_pages
        meta["hasPrev"] = page > 1
    return meta


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def clean(value: str | None) -> str | None:
    """Strip a text field; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
