# blog_api/routes/comments.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from blog_api.database import get_db
from blog_api.errors import BadRequest, NotFound
from blog_api.models.comment import Comment
from blog_api.models.post import Post
from blog_api.models.user import User
from blog_api.routes.admin import get_current_admin
from blog_api.utils import clean, iso

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


class CommentCreate(BaseModel):
    content: Optional[str] = None
    user_id: Optional[int] = None
    post_id: Optional[int] = None
    parent_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: Optional[str] = None


def _to_dict(c: Comment, author_name: str | None) -> dict:
    return {
        "id": c.id,
        "content": c.content,
        "user_id": c.user_id,
        "post_id": c.post_id,
        "parent_id": c.parent_id,
        "created_at": iso(c.created_at),
        "author_name": author_name,
    }


def _author_name(db: Session, user_id: int | None) -> str | None:
    if user_id is None:
        return None
    row = db.query(User.username).filter(User.id == user_id).first()
    return row[0] if row else None


def _get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(Comment.id == int(comment_id)).first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


@router.get("/post/{post_id}")
def list_post_comments(post_id: int, db: Session = Depends(get_db)) -> dict:
    rows = (
        db.query(Comment, User.username)
        .outerjoin(User, User.id == Comment.user_id)
        .filter(Comment.post_id == int(post_id))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
    return {"success": True, "data": [_to_dict(c, name) for c, name in rows]}


@router.get("/{comment_id}")
def get_comment(comment_id: int, db: Session = Depends(get_db)) -> dict:
    comment = _get_comment_or_404(db, comment_id)
    return {"success": True, "data": _to_dict(comment, _author_name(db, comment.user_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_comment(payload: CommentCreate, db: Session = Depends(get_db)) -> dict:
    if not clean(payload.content) or not payload.user_id or not payload.post_id:
        raise BadRequest("Content, user ID, and post ID are required")

    post = db.query(Post.id).filter(Post.id == int(payload.post_id)).first()
    if not post:
        raise NotFound("Post not found")

    user = db.query(User.id).filter(User.id == int(payload.user_id)).first()
    if not user:
        raise NotFound("User not found")

    if payload.parent_id is not None:
        parent = db.query(Comment).filter(Comment.id == int(payload.parent_id)).first()
        if not parent or parent.post_id != int(payload.post_id):
            raise BadRequest("Parent comment must belong to the same post")

    comment = Comment(
        content=payload.content,
        user_id=int(payload.user_id),
        post_id=int(payload.post_id),
        parent_id=payload.parent_id,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return {
        "success": True,
        "message": "Comment created successfully",
        "data": _to_dict(comment, _author_name(db, comment.user_id)),
    }


@router.put("/{comment_id}")
def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    comment = _get_comment_or_404(db, comment_id)
    if not clean(payload.content):
        raise BadRequest("Content is required")

    comment.content = payload.content
    db.commit()
    db.refresh(comment)
    return {
        "success": True,
        "message": "Comment updated successfully",
        "data": _to_dict(comment, _author_name(db, comment.user_id)),
    }


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    comment = _get_comment_or_404(db, comment_id)
    db.delete(comment)
    db.commit()
    return {"success": True, "message": "Comment deleted successfully"}
