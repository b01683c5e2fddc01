# blog_api/routes/users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.database import get_db
from blog_api.errors import BadRequest, Conflict, NotFound
from blog_api.models.post import Post
from blog_api.models.user import User
from blog_api.routes.admin import get_current_admin
from blog_api.security import hash_password
from blog_api.utils import clean, is_valid_email, iso

# Every user-management route requires an admin session
router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"],
    dependencies=[Depends(get_current_admin)],
)

USER_TAKEN = "Username or email already exists"


class UserCreate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None


def _to_dict(u: User) -> dict:
    # password_hash never leaves the server
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "created_at": iso(u.created_at),
    }


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise NotFound("User not found")
    return user


def _taken(db: Session, *, username: str | None, email: str | None, exclude_id: int | None = None) -> bool:
    conds = []
    if username:
        conds.append(User.username == username)
    if email:
        conds.append(User.email == email)
    if not conds:
        return False
    q = db.query(User.id).filter(or_(*conds))
    if exclude_id is not None:
        q = q.filter(User.id != int(exclude_id))
    return q.first() is not None


@router.get("")
@router.get("/", include_in_schema=False)
def list_users(db: Session = Depends(get_db)) -> dict:
    users = db.query(User).order_by(User.username.asc()).all()
    return {"success": True, "data": [_to_dict(u) for u in users]}


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)) -> dict:
    return {"success": True, "data": _to_dict(_get_user_or_404(db, user_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_user(payload: UserCreate, db: Session = Depends(get_db)) -> dict:
    username = clean(payload.username)
    email = clean(payload.email)
    if not username or not email or not payload.password:
        raise BadRequest("Username, email, and password are required")
    if not is_valid_email(email):
        raise BadRequest("Invalid email format")

    if _taken(db, username=username, email=email):
        raise Conflict(USER_TAKEN)

    user = User(username=username, email=email, password_hash=hash_password(payload.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(USER_TAKEN)
    db.refresh(user)

    return {"success": True, "message": "User created successfully", "data": _to_dict(user)}


@router.put("/{user_id}")
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)) -> dict:
    user = _get_user_or_404(db, user_id)

    username = clean(payload.username)
    email = clean(payload.email)
    if email and not is_valid_email(email):
        raise BadRequest("Invalid email format")

    if _taken(db, username=username, email=email, exclude_id=user.id):
        raise Conflict(USER_TAKEN)

    if username:
        user.username = username
    if email:
        user.email = email

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(USER_TAKEN)
    db.refresh(user)

    return {"success": True, "message": "User updated successfully", "data": _to_dict(user)}


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)) -> dict:
    user = _get_user_or_404(db, user_id)

    post_count = int(db.query(func.count(Post.id)).filter(Post.author_id == user.id).scalar() or 0)
    if post_count > 0:
        raise BadRequest(f"Cannot delete user as they have {post_count} post(s)")

    db.delete(user)
    db.commit()
    return {"success": True, "message": "User deleted successfully"}
