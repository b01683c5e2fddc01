# blog_api/routes/admin.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blog_api.config import COOKIE_MAX_AGE_SECONDS, COOKIE_NAME, Settings
from blog_api.database import get_db
from blog_api.errors import APIError, BadRequest, Forbidden, Unauthorized
from blog_api.models.admin import Admin
from blog_api.security import (
    Principal,
    TokenExpired,
    TokenSigner,
    TokenValid,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

INVALID_CREDENTIALS = "Invalid email or password"


class LoginRequest(BaseModel):
    # Presence is checked by the handler so a missing field is a 400, not a 422
    email: Optional[str] = None
    password: Optional[str] = None


class AdminOut(BaseModel):
    id: int
    email: str
    name: str


class LoginResponse(BaseModel):
    message: str
    user: AdminOut


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_signer(request: Request) -> TokenSigner:
    return request.app.state.signer


def get_current_admin(
    token: str | None = Cookie(default=None, alias=COOKIE_NAME),
    signer: TokenSigner = Depends(get_signer),
) -> Principal:
    """
    Session guard for protected routes.

    No cookie -> 401. Cookie present but bad signature or expired -> 403.
    """
    if not token:
        raise Unauthorized("unauthorized token")

    result = signer.verify(token)
    if isinstance(result, TokenValid):
        return result.principal

    if isinstance(result, TokenExpired):
        logger.info("Rejected expired session token")
    else:
        logger.info("Rejected invalid session token (%s)", result.reason)
    raise Forbidden("Forbidden: Invalid token")


def _cookie_kwargs(settings: Settings) -> dict:
    return {
        "path": "/",
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": settings.cookie_samesite,
    }


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    signer: TokenSigner = Depends(get_signer),
) -> LoginResponse:
    if not payload.email or not payload.password:
        raise BadRequest("Email and password are required")

    try:
        admin = db.query(Admin).filter(Admin.email == payload.email).first()
    except SQLAlchemyError:
        logger.exception("Login lookup failed")
        raise APIError()

    # Unknown email and wrong password must look the same to the caller
    if not verify_password(payload.password, admin.password_hash if admin else None):
        logger.info("Failed admin login for %s", payload.email)
        raise Unauthorized(INVALID_CREDENTIALS)

    token = signer.issue(account_id=admin.id, email=admin.email, name=admin.username)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=COOKIE_MAX_AGE_SECONDS,
        **_cookie_kwargs(settings),
    )

    logger.info("Admin %s logged in", admin.id)
    return LoginResponse(
        message="Login successful",
        user=AdminOut(id=admin.id, email=admin.email, name=admin.username),
    )


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(response: Response, settings: Settings = Depends(get_settings)) -> dict:
    # Client-side only: a copied token stays valid until it expires
    response.delete_cookie(COOKIE_NAME, **_cookie_kwargs(settings))
    return {"message": "Logout successful"}


@router.get("/check")
def check(current_admin: Principal = Depends(get_current_admin)) -> dict:
    return current_admin.to_claims()
