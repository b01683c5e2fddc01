# blog_api/routes/posts.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.database import get_db
from blog_api.errors import BadRequest, NotFound
from blog_api.models.category import Category
from blog_api.models.post import Post
from blog_api.routes.admin import get_current_admin
from blog_api.utils import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    clean,
    generate_slug,
    iso,
    page_offset,
    pagination_meta,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["posts"])

SLUG_TAKEN = "A post with this slug already exists"


class PostCreate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    cover_image: Optional[str] = None
    read_time: Optional[str] = None


class PostUpdate(PostCreate):
    pass


def _to_dict(p: Post, category_name: str | None) -> dict:
    return {
        "id": p.id,
        "title": p.title,
        "slug": p.slug,
        "excerpt": p.excerpt,
        "content": p.content,
        "cover_image": p.cover_image,
        "read_time": p.read_time,
        "category_id": p.category_id,
        "category_name": category_name,
        "author_id": p.author_id,
        "created_at": iso(p.created_at),
        "updated_at": iso(p.updated_at),
    }


def _with_category(db: Session):
    return db.query(Post, Category.name).outerjoin(Category, Category.id == Post.category_id)


def _get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == int(post_id)).first()
    if not post:
        raise NotFound("Post not found")
    return post


def _resolve_category_id(db: Session, name: str) -> int:
    category = db.query(Category).filter(Category.name == name).first()
    if not category:
        raise BadRequest("Category not found")
    return category.id


def _slug_taken(db: Session, slug: str, exclude_id: int | None = None) -> bool:
    q = db.query(Post.id).filter(Post.slug == slug)
    if exclude_id is not None:
        q = q.filter(Post.id != int(exclude_id))
    return q.first() is not None


@router.get("/allposts")
def list_posts(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    rows = (
        _with_category(db)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    total = int(db.query(func.count(Post.id)).scalar() or 0)

    return {
        "success": True,
        "data": [_to_dict(p, cat_name) for p, cat_name in rows],
        "pagination": pagination_meta(page=page, limit=limit, total=total),
    }


@router.get("/post/slug/{slug}")
def get_post_by_slug(slug: str, db: Session = Depends(get_db)) -> dict:
    row = _with_category(db).filter(Post.slug == slug).first()
    if not row:
        raise NotFound("Post not found")
    post, cat_name = row
    return {"success": True, "data": _to_dict(post, cat_name)}


@router.get("/post/{post_id}")
def get_post(post_id: int, db: Session = Depends(get_db)) -> dict:
    row = _with_category(db).filter(Post.id == int(post_id)).first()
    if not row:
        raise NotFound("Post not found")
    post, cat_name = row
    return {"success": True, "data": _to_dict(post, cat_name)}


@router.post("/post", status_code=status.HTTP_201_CREATED)
def create_post(
    payload: PostCreate,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    title = clean(payload.title)
    if not title or not clean(payload.content):
        raise BadRequest("Title and content are required")

    slug = clean(payload.slug) or generate_slug(title)
    if not slug:
        raise BadRequest("Slug could not be generated from title")

    if _slug_taken(db, slug):
        raise BadRequest(SLUG_TAKEN)

    category_id = None
    category_name = clean(payload.category)
    if category_name:
        category_id = _resolve_category_id(db, category_name)

    now = datetime.utcnow()
    post = Post(
        title=title,
        slug=slug,
        content=payload.content,
        excerpt=payload.excerpt,
        category_id=category_id,
        cover_image=payload.cover_image,
        read_time=clean(payload.read_time) or "5 min",
        created_at=now,
        updated_at=now,
    )
    db.add(post)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same slug
        db.rollback()
        raise BadRequest(SLUG_TAKEN)
    db.refresh(post)

    logger.info("Post %s created by admin %s", post.id, current_admin.id)
    return {
        "success": True,
        "message": "Post created successfully",
        "data": _to_dict(post, category_name if category_id else None),
    }


@router.put("/post/{post_id}")
def update_post(
    post_id: int,
    payload: PostUpdate,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    post = _get_post_or_404(db, post_id)

    # Only supplied fields change
    slug = clean(payload.slug)
    if slug and slug != post.slug and _slug_taken(db, slug, exclude_id=post.id):
        raise BadRequest(SLUG_TAKEN)

    if payload.category is not None:
        category_name = clean(payload.category)
        if category_name:
            post.category_id = _resolve_category_id(db, category_name)

    if clean(payload.title):
        post.title = clean(payload.title)
    if slug:
        post.slug = slug
    if payload.content is not None:
        post.content = payload.content
    if payload.excerpt is not None:
        post.excerpt = payload.excerpt
    if payload.cover_image is not None:
        post.cover_image = payload.cover_image
    if clean(payload.read_time):
        post.read_time = clean(payload.read_time)
    post.updated_at = datetime.utcnow()

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequest(SLUG_TAKEN)

    row = _with_category(db).filter(Post.id == post.id).first()
    updated, cat_name = row
    return {"success": True, "message": "Post updated successfully", "data": _to_dict(updated, cat_name)}


@router.delete("/post/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    post = _get_post_or_404(db, post_id)
    db.delete(post)
    db.commit()

    logger.info("Post %s deleted by admin %s", post_id, current_admin.id)
    return {"success": True, "message": "Post deleted successfully"}
