import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.attendee import Attendee
from app.models.event import Event
from app.models.notification import NotificationType
from app.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Best-effort in-app notifications for registration changes.

    Every send runs after the registration work is committed. Failures are
    logged and swallowed so they can never change a registration outcome.
    """

    def __init__(self, db: Session):
        self.db = db
        self.notification_repo = NotificationRepository(db)

    def _send(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        action_url: str,
        action_data: Optional[dict] = None,
        related_user_id: Optional[str] = None
    ) -> bool:
        try:
            self.notification_repo.create(
                user_id=user_id,
                type=type,
                title=title,
                body=body,
                action_url=action_url,
                action_data=action_data,
                related_user_id=related_user_id
            )
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Failed to send {type.value} notification to user {user_id}: {str(e)}")
            return False

    def notify_organizer_new_registration(self, event: Event, attendee: Attendee) -> bool:
        return self._send(
            user_id=event.organizer_id,
            type=NotificationType.EVENT_REGISTRATION,
            title="New registration",
            body=f"{attendee.full_name} registered for {event.title}",
            action_url=f"/dashboard/events/{event.id}/attendees",
            action_data={"event_id": event.id, "attendee_id": attendee.id},
            related_user_id=attendee.user_id
        )

    def notify_attendee_approved(self, event: Event, attendee: Attendee, promoted: bool = False) -> bool:
        # Guests have no account inbox
        if not attendee.user_id:
            return False

        if promoted:
            notification_type = NotificationType.EVENT_WAITLIST_PROMOTED
            body = f"A spot opened up: your registration for \"{event.title}\" is approved"
        else:
            notification_type = NotificationType.EVENT_APPROVED
            body = f"Your registration for \"{event.title}\" was approved"

        return self._send(
            user_id=attendee.user_id,
            type=notification_type,
            title="Registration approved",
            body=body,
            action_url=f"/e/{event.slug}",
            action_data={"event_id": event.id, "attendee_id": attendee.id}
        )

    def notify_attendee_rejected(self, event: Event, attendee: Attendee) -> bool:
        if not attendee.user_id:
            return False

        return self._send(
            user_id=attendee.user_id,
            type=NotificationType.EVENT_REJECTED,
            title="Registration rejected",
            body=f"Unfortunately your registration for \"{event.title}\" was rejected",
            action_url=f"/e/{event.slug}",
            action_data={"event_id": event.id, "attendee_id": attendee.id}
        )
