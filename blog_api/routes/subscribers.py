# blog_api/routes/subscribers.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.database import get_db
from blog_api.errors import BadRequest, Conflict, NotFound
from blog_api.models.subscriber import Subscriber
from blog_api.routes.admin import get_current_admin
from blog_api.utils import clean, is_valid_email, iso

router = APIRouter(prefix="/api/v1/subscribers", tags=["subscribers"])

ALREADY_SUBSCRIBED = "Email already subscribed"


class SubscribeRequest(BaseModel):
    email: Optional[str] = None


def _to_dict(s: Subscriber) -> dict:
    return {"id": s.id, "email": s.email, "created_at": iso(s.created_at)}


def _email_taken(db: Session, email: str) -> bool:
    return db.query(Subscriber.id).filter(Subscriber.email == email).first() is not None


@router.get("")
@router.get("/", include_in_schema=False)
def list_subscribers(db: Session = Depends(get_db), current_admin=Depends(get_current_admin)) -> dict:
    subs = db.query(Subscriber).order_by(Subscriber.created_at.desc(), Subscriber.id.desc()).all()
    return {"success": True, "data": [_to_dict(s) for s in subs]}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def subscribe(payload: SubscribeRequest, db: Session = Depends(get_db)) -> dict:
    email = clean(payload.email)
    if not email:
        raise BadRequest("Email is required")
    if not is_valid_email(email):
        raise BadRequest("Invalid email format")

    if _email_taken(db, email):
        raise Conflict(ALREADY_SUBSCRIBED)

    sub = Subscriber(email=email)
    db.add(sub)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(ALREADY_SUBSCRIBED)
    db.refresh(sub)

    return {"success": True, "message": "Subscribed successfully", "data": _to_dict(sub)}


@router.delete("/{subscriber_id}")
def unsubscribe(
    subscriber_id: int,
    db: Session = Depends(get_db),
    current_admin=Depends(get_current_admin),
) -> dict:
    sub = db.query(Subscriber).filter(Subscriber.id == int(subscriber_id)).first()
    if not sub:
        raise NotFound("Subscriber not found")

    db.delete(sub)
    db.commit()
    return {"success": True, "message": "Subscriber deleted successfully"}
