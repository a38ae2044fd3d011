from sqlalchemy import (
    Column, String, Boolean, DateTime, Text, JSON, ForeignKey, Index,
    UniqueConstraint, Enum as SQLEnum, text
)
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.models.event import enum_values
from app.utils.timeutils import utcnow, isoformat


class AttendeeStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    WAITLIST = "waitlist"


class AttendeeRole(str, enum.Enum):
    ORGANIZER = "organizer"
    PRESENTER = "presenter"
    ATTENDEE = "attendee"
    OBSERVER = "observer"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"
    FAILED = "failed"
    NOT_REQUIRED = "not_required"


# Identity uniqueness applies to every registration that is not cancelled
_ACTIVE = "status != 'cancelled'"

TICKET_CODE_CONSTRAINT = "uq_event_attendees_ticket_code"


class Attendee(Base):
    __tablename__ = "event_attendees"

    id = Column(String(36), primary_key=True, index=True)

    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    job_title = Column(String(255), nullable=True)
    registration_data = Column(JSON, nullable=False, default=dict)

    status = Column(
        SQLEnum(AttendeeStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        index=True
    )
    role = Column(
        SQLEnum(AttendeeRole, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=AttendeeRole.ATTENDEE
    )
    payment_status = Column(
        SQLEnum(PaymentStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.NOT_REQUIRED
    )
    networking_status = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    ticket_code = Column(String(150), nullable=False)

    is_guest = Column(Boolean, nullable=False, default=False)
    # Lookup cache only; GuestSession.attendee_id is the owning edge
    guest_session_id = Column(String(36), nullable=True, index=True)

    checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_in_by = Column(String(36), nullable=True)

    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    event = relationship("Event", back_populates="attendees")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("event_id", "ticket_code", name=TICKET_CODE_CONSTRAINT),
        Index(
            "uq_event_attendees_active_user", "event_id", "user_id", unique=True,
            sqlite_where=text(f"user_id IS NOT NULL AND {_ACTIVE}"),
            postgresql_where=text(f"user_id IS NOT NULL AND {_ACTIVE}"),
        ),
        Index(
            "uq_event_attendees_active_email", "event_id", "email", unique=True,
            sqlite_where=text(f"email IS NOT NULL AND {_ACTIVE}"),
            postgresql_where=text(f"email IS NOT NULL AND {_ACTIVE}"),
        ),
        Index(
            "uq_event_attendees_active_phone", "event_id", "phone", unique=True,
            sqlite_where=text(f"phone IS NOT NULL AND {_ACTIVE}"),
            postgresql_where=text(f"phone IS NOT NULL AND {_ACTIVE}"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status != AttendeeStatus.CANCELLED

    def __repr__(self) -> str:
        return f"<Attendee(id={self.id}, event_id={self.event_id}, status={self.status}, ticket_code={self.ticket_code})>"

    def to_dict(self, include_private: bool = True) -> dict:
        """
        Convert attendee to dictionary.

        Args:
            include_private: Include contact, status and ticket fields.
                Only the event organizer and the registrant see these.
        """
        attendee_dict = {
            "id": self.id,
            "event_id": self.event_id,
            "full_name": self.full_name,
            "company": self.company,
            "job_title": self.job_title,
            "role": self.role.value,
            "networking_status": self.networking_status,
            "is_guest": self.is_guest,
            "registered_at": isoformat(self.registered_at),
            "user": {
                "id": self.user.id,
                "first_name": self.user.first_name,
                "last_name": self.user.last_name,
            } if self.user_id and self.user else None,
        }

        if include_private:
            attendee_dict.update({
                "user_id": self.user_id,
                "email": self.email,
                "phone": self.phone,
                "status": self.status.value,
                "ticket_code": self.ticket_code,
                "payment_status": self.payment_status.value,
                "notes": self.notes,
                "registration_data": self.registration_data or {},
                "guest_session_id": self.guest_session_id,
                "checked_in": self.checked_in,
                "checked_in_at": isoformat(self.checked_in_at),
                "updated_at": isoformat(self.updated_at),
            })

        return attendee_dict
