from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.utils.timeutils import utcnow


class GuestSession(Base):
    """
    Cookie-backed identity for a registrant without an account.
    Scoped to a single event; owns the link to its attendee record.
    """
    __tablename__ = "guest_sessions"

    id = Column(String(36), primary_key=True, index=True)

    session_token = Column(String(255), nullable=False, unique=True, index=True)

    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)

    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    attendee_id = Column(String(36), ForeignKey("event_attendees.id", ondelete="SET NULL"), nullable=True, index=True)

    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_active_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    attendee = relationship("Attendee")
    event = relationship("Event")

    def __repr__(self) -> str:
        return f"<GuestSession(id={self.id}, event_id={self.event_id}, attendee_id={self.attendee_id})>"

