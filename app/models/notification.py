from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, ForeignKey, Enum as SQLEnum
import enum
from app.core.database import Base
from app.models.event import enum_values
from app.utils.timeutils import utcnow


class NotificationType(str, enum.Enum):
    EVENT_REGISTRATION = "event_registration"
    EVENT_APPROVED = "event_approved"
    EVENT_REJECTED = "event_rejected"
    EVENT_WAITLIST_PROMOTED = "event_waitlist_promoted"


class Notification(Base):
    """In-app notification row; delivery to other channels happens elsewhere."""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(
        SQLEnum(NotificationType, values_callable=enum_values, native_enum=False, length=50),
        nullable=False
    )
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    action_url = Column(String(500), nullable=True)
    action_data = Column(JSON, nullable=False, default=dict)
    related_user_id = Column(String(36), nullable=True)

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type})>"
