"""Notifications API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, require_roles
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.common import CountResponse
from skillmatrix.schemas.enums import USER_MANAGER_ROLES
from skillmatrix.schemas.notification import Notification
from skillmatrix.services.notification_service import NotificationService

router = APIRouter()


@router.get("/notifications", response_model=list[Notification])
def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """The caller's notifications, newest first."""
    return NotificationService(db).list_for_user(profile.user_id, unread_only, limit)


@router.get("/notifications/unread-count", response_model=CountResponse)
def unread_count(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    return CountResponse(count=NotificationService(db).unread_count(profile.user_id))


@router.post("/notifications/read-all", response_model=CountResponse)
def mark_all_read(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    count = NotificationService(db).mark_all_read(profile.user_id)
    db.commit()
    return CountResponse(count=count)


@router.post("/notifications/cleanup", response_model=CountResponse)
def cleanup_notifications(
    db: Session = Depends(get_db),
    _: Profile = Depends(require_roles(*USER_MANAGER_ROLES)),
):
    """Delete read notifications older than the retention window."""
    count = NotificationService(db).cleanup()
    db.commit()
    return CountResponse(count=count)


@router.post("/notifications/{notification_id}/read", response_model=Notification)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    notification = NotificationService(db).mark_read(profile.user_id, notification_id)
    db.commit()
    db.refresh(notification)
    return notification
