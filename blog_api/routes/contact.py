# blog_api/routes/contact.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from blog_api.database import get_db
from blog_api.errors import BadRequest, NotFound
from blog_api.models.contact_submission import CONTACT_STATUSES, ContactSubmission
from blog_api.routes.admin import get_current_admin
from blog_api.utils import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    clean,
    is_valid_email,
    iso,
    page_offset,
    pagination_meta,
)

router = APIRouter(prefix="/api/contact", tags=["contact"])


class ContactCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None


def _to_dict(c: ContactSubmission) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "subject": c.subject,
        "message": c.message,
        "status": c.status,
        "created_at": iso(c.created_at),
        "updated_at": iso(c.updated_at),
    }


def _get_submission_or_404(db: Session, submission_id: int) -> ContactSubmission:
    sub = db.query(ContactSubmission).filter(ContactSubmission.id == int(submission_id)).first()
    if not sub:
        raise NotFound("Contact submission not found")
    return sub


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def submit_contact(payload: ContactCreate, db: Session = Depends(get_db)) -> dict:
    name = clean(payload.name)
    email = clean(payload.email)
    subject = clean(payload.subject)
    message = clean(payload.message)
    if not (name and email and subject and message):
        raise BadRequest("All fields are required")
    if not is_valid_email(email):
        raise BadRequest("Invalid email format")

    now = datetime.utcnow()
    sub = ContactSubmission(
        name=name,
        email=email,
        subject=subject,
        message=message,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)

    return {"success": True, "message": "Message sent successfully", "data": _to_dict(sub)}


@router.get("")
@router.get("/", include_in_schema=False)
def list_contacts(
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status_filter: Optional[str] = Query(None, alias="status"),
) -> dict:
    """
    Newest first. ?status=all (or no status) disables the filter.
    """
    q = db.query(ContactSubmission)
    if status_filter and status_filter != "all":
        q = q.filter(ContactSubmission.status == status_filter)

    total = int(q.with_entities(func.count(ContactSubmission.id)).scalar() or 0)
    rows = (
        q.order_by(ContactSubmission.created_at.desc(), ContactSubmission.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )

    return {
        "success": True,
        "data": [_to_dict(c) for c in rows],
        "pagination": pagination_meta(page=page, limit=limit, total=total, with_nav=False),
    }


# Registered before /{submission_id} so "stats" is not parsed as an id
@router.get("/stats/summary")
def contact_stats(db: Session = Depends(get_db), current_admin=Depends(get_current_admin)) -> dict:
    rows = (
        db.query(ContactSubmission.status, func.count(ContactSubmission.id))
        .group_by(ContactSubmission.status)
        .all()
    )
    by_status = {s: int(n) for s, n in rows}

    return {
        "success": True,
        "data": {
            "total": sum(by_status.values()),
            "unread": by_status.get("pending", 0),
            "byStatus": by_status,
        },
    }


@router.get("/{submission_id}")
def get_contact(
    submission_id: int,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    return {"success": True, "data": _to_dict(_get_submission_or_404(db, submission_id))}


@router.put("/{submission_id}")
def update_contact_status(
    submission_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    if payload.status not in CONTACT_STATUSES:
        raise BadRequest("Invalid status. Must be one of: " + ", ".join(CONTACT_STATUSES))

    sub = _get_submission_or_404(db, submission_id)
    sub.status = payload.status
    sub.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(sub)

    return {"success": True, "message": "Status updated successfully", "data": _to_dict(sub)}


@router.delete("/{submission_id}")
def delete_contact(
    submission_id: int,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    sub = _get_submission_or_404(db, submission_id)
    data = _to_dict(sub)
    db.delete(sub)
    db.commit()

    return {"success": True, "message": "Contact submission deleted successfully", "data": data}
