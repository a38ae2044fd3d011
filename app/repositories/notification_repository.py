from typing import Optional
from sqlalchemy.orm import Session
from app.models.notification import Notification, NotificationType
import uuid


class NotificationRepository:

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: Optional[str] = None,
        action_url: Optional[str] = None,
        action_data: Optional[dict] = None,
        related_user_id: Optional[str] = None
    ) -> Notification:
        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            action_url=action_url,
            action_data=action_data or {},
            related_user_id=related_user_id
        )
        self.db.add(notification)
        self.db.flush()
        return notification

