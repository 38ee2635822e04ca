"""In-app notification service."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from skillmatrix.config import settings
from skillmatrix.exceptions import NotFoundError
from skillmatrix.models.notification import Notification
from skillmatrix.schemas.enums import NotificationType
from skillmatrix.utils.dates import utcnow

logger = logging.getLogger(__name__)


class NotificationService:
    """Create, list and expire notifications addressed to profiles."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> Notification:
        """
        Queue a notification for a profile.

        Args:
            user_id: Recipient
            title: Short headline
            message: Body text
            type: Severity shown by clients

        Returns:
            The new Notification (flushed, not committed)
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=NotificationType(type).value,
            read=False,
        )
        self.db.add(notification)
        self.db.flush()
        logger.debug(f"Notification '{title}' queued for {user_id}")
        return notification

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        """Return a profile's notifications, newest first."""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def unread_count(self, user_id: str) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .count()
        )

    def mark_read(self, user_id: str, notification_id: int) -> Notification:
        """
        Mark one of the caller's notifications as read.

        Raises:
            NotFoundError: If the notification does not exist or belongs to someone else
        """
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            raise NotFoundError(
                "Notification not found", context={"entity": "notification", "id": notification_id}
            )
        notification.read = True
        self.db.flush()
        return notification

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of a profile as read and return how many changed."""
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
        return updated

    def cleanup(self, retention_days: int | None = None) -> int:
        """
        Delete read notifications older than the retention window.

        Args:
            retention_days: Age in days (defaults to settings.notification_retention_days)

        Returns:
            Number of deleted notifications
        """
        days = settings.notification_retention_days if retention_days is None else retention_days
        cutoff = utcnow() - timedelta(days=days)
        deleted = (
            self.db.query(Notification)
            .filter(Notification.read.is_(True), Notification.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        logger.info(f"Removed {deleted} read notifications older than {days} days")
        return deleted
