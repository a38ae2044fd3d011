from app.models.user import User
from app.models.event import Event, EventStatus
from app.models.attendee import Attendee, AttendeeStatus, AttendeeRole, PaymentStatus
from app.models.guest_session import GuestSession
from app.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "Event",
    "EventStatus",
    "Attendee",
    "AttendeeStatus",
    "AttendeeRole",
    "PaymentStatus",
    "GuestSession",
    "Notification",
    "NotificationType",
]
