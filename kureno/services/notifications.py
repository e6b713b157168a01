"""Admin notification records (dashboard bell)."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.enums import NotificationCategory, NotificationPriority, NotificationType
from db.models import AdminNotifications, Users
from kureno.services._helpers import now_iso


class NotificationService:
    def __init__(self, session: Session) -> None:
        self.session: Session = session

    def notify(
        self,
        title: str,
        message: str,
        category: NotificationCategory,
        type: NotificationType = NotificationType.INFO,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        recipient_email: str | None = None,
        action_url: str | None = None,
    ) -> AdminNotifications:
        """Record a notification; unknown or missing recipients make it global."""
        user_id: str | None = None
        if recipient_email:
            user_id = self.session.scalar(
                select(Users.id).where(Users.email == recipient_email.lower())
            )
        ts: str = now_iso()
        notification = AdminNotifications(
            title=title[:100],
            message=message[:500],
            type=type.value,
            category=category.value,
            priority=priority.value,
            is_read=False,
            user_id=user_id,
            action_url=action_url,
            created_at=ts,
            updated_at=ts,
        )
        self.session.add(notification)
        self.session.flush()
        return notification
