from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.utils.timeutils import utcnow


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


def enum_values(enum_cls) -> list:
    return [member.value for member in enum_cls]


class Event(Base):
    """
    Event configuration as seen by registration.
    Events are created and edited elsewhere; registration only reads the
    configuration and maintains the advisory counters.
    """
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, index=True)
    organizer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    slug = Column(String(100), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)

    status = Column(
        SQLEnum(EventStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=EventStatus.DRAFT,
        index=True
    )

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)

    max_attendees = Column(Integer, nullable=True, comment="NULL means unlimited")
    auto_approve = Column(Boolean, nullable=False, default=True)
    allow_waitlist = Column(Boolean, nullable=False, default=True)
    is_free = Column(Boolean, nullable=False, default=True)

    # Advisory display counters; capacity is decided from approved attendees
    registration_count = Column(Integer, nullable=False, default=0)
    attendance_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organizer = relationship("User")
    attendees = relationship("Attendee", back_populates="event", lazy="dynamic")

    @property
    def has_unlimited_capacity(self) -> bool:
        return self.max_attendees is None

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug={self.slug}, status={self.status})>"
