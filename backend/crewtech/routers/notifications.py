# backend/crewtech/routers/notifications.py
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from crewtech.auth import get_actor
from crewtech.config import ADMIN_RECIPIENT
from crewtech.db import get_db
from crewtech.models.notification import Notification
from crewtech.schemas.notification import NotificationOut
from crewtech.services.workflow import Actor


router = APIRouter(prefix="/notifications", tags=["notifications"])


def _recipients(actor: Actor) -> list:
    # admins also read the shared admin desk inbox
    return [actor.id, ADMIN_RECIPIENT] if actor.is_admin else [actor.id]


def _serialize(n: Notification) -> NotificationOut:
    return NotificationOut.model_validate(n)


@router.get("")
def list_notifications(
    unread_only: bool = Query(False),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    q = (
        select(Notification)
        .where(Notification.recipient.in_(_recipients(actor)))
        .order_by(Notification.created_at.desc(), Notification.id)
    )
    if unread_only:
        q = q.where(Notification.read.is_(False))
    rows = db.execute(q).scalars().all()
    return {"notifications": [_serialize(n) for n in rows]}


@router.put("/{notification_id}/read")
def mark_read(notification_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    res = db.execute(
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.recipient.in_(_recipients(actor)),
        )
        .values(read=True, read_at=datetime.now(timezone.utc))
    )
    if res.rowcount == 0:
        raise HTTPException(status_code=404, detail="Notification not found")
    db.commit()
    n = db.get(Notification, notification_id)
    return _serialize(n)
