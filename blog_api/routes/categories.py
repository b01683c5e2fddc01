# blog_api/routes/categories.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.database import get_db
from blog_api.errors import BadRequest, Conflict, NotFound
from blog_api.models.category import Category
from blog_api.models.post import Post
from blog_api.routes.admin import get_current_admin
from blog_api.utils import clean, generate_slug, iso

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])

CATEGORY_TAKEN = "A category with this name or slug already exists"


class CategoryCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None


class CategoryUpdate(CategoryCreate):
    pass


def _to_dict(c: Category, post_count: int | None = None) -> dict:
    d = {
        "id": c.id,
        "name": c.name,
        "slug": c.slug,
        "description": c.description,
        "created_at": iso(c.created_at),
    }
    if post_count is not None:
        d["post_count"] = int(post_count)
    return d


def _with_post_count(db: Session):
    return (
        db.query(Category, func.count(Post.id))
        .outerjoin(Post, Post.category_id == Category.id)
        .group_by(Category.id)
    )


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == int(category_id)).first()
    if not category:
        raise NotFound("Category not found")
    return category


def _taken(db: Session, *, name: str | None, slug: str | None, exclude_id: int | None = None) -> bool:
    conds = []
    if name:
        conds.append(Category.name == name)
    if slug:
        conds.append(Category.slug == slug)
    if not conds:
        return False
    q = db.query(Category.id).filter(or_(*conds))
    if exclude_id is not None:
        q = q.filter(Category.id != int(exclude_id))
    return q.first() is not None


@router.get("")
@router.get("/", include_in_schema=False)
def list_categories(db: Session = Depends(get_db)) -> dict:
    rows = _with_post_count(db).order_by(Category.name.asc()).all()
    return {"success": True, "data": [_to_dict(c, n) for c, n in rows]}


@router.get("/{category_id}")
def get_category(category_id: int, db: Session = Depends(get_db)) -> dict:
    row = _with_post_count(db).filter(Category.id == int(category_id)).first()
    if not row:
        raise NotFound("Category not found")
    category, n = row
    return {"success": True, "data": _to_dict(category, n)}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    name = clean(payload.name)
    if not name:
        raise BadRequest("Category name is required")

    slug = clean(payload.slug) or generate_slug(name)
    if not slug:
        raise BadRequest("Slug could not be generated from name")

    if _taken(db, name=name, slug=slug):
        raise Conflict(CATEGORY_TAKEN)

    category = Category(name=name, slug=slug, description=payload.description)
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(CATEGORY_TAKEN)
    db.refresh(category)

    return {"success": True, "message": "Category created successfully", "data": _to_dict(category, 0)}


@router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    category = _get_category_or_404(db, category_id)

    name = clean(payload.name)
    slug = clean(payload.slug)
    if _taken(db, name=name, slug=slug, exclude_id=category.id):
        raise Conflict(CATEGORY_TAKEN)

    if name:
        category.name = name
    if slug:
        category.slug = slug
    if payload.description is not None:
        category.description = payload.description

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(CATEGORY_TAKEN)
    db.refresh(category)

    return {"success": True, "message": "Category updated successfully", "data": _to_dict(category)}


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    category = _get_category_or_404(db, category_id)

    post_count = int(db.query(func.count(Post.id)).filter(Post.category_id == category.id).scalar() or 0)
    if post_count > 0:
        raise BadRequest(f"Cannot delete category as it is used by {post_count} post(s)")

    db.delete(category)
    db.commit()
    return {"success": True, "message": "Category deleted successfully"}
