from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import (
    RegistrationClosedError,
    DeadlinePassedError,
    DuplicateRegistrationError,
    ValidationError,
)
from app.models.event import Event, EventStatus
from app.models.user import User
from app.repositories.attendee_repository import AttendeeRepository
from app.schemas.attendee import RegistrationCreate
from app.utils.timeutils import ensure_utc

GUEST_DEFAULT_NAME = "Guest"


@dataclass
class Registrant:
    """Who is registering, with the contact fields that will be stored."""
    user_id: Optional[str]
    full_name: str
    email: Optional[str]
    phone: Optional[str]
    company: Optional[str]
    job_title: Optional[str]

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


class RegistrationValidator:
    """
    Eligibility and duplicate-identity rules for a registration attempt.
    Never writes; every failure leaves the database untouched.
    """

    def __init__(self, db: Session):
        self.db = db
        self.attendee_repo = AttendeeRepository(db)

    @staticmethod
    def resolve_registrant(user: Optional[User], data: RegistrationCreate) -> Registrant:
        """
        Merge the request with the caller's account.

        Account holders fall back to their account name and email. Guests need at
        least one way to reach them; a nameless guest is stored as "Guest".
        """
        if user is not None:
            return Registrant(
                user_id=user.id,
                full_name=data.full_name or user.full_name or user.email,
                email=data.email or (user.email.lower() if user.email else None),
                phone=data.phone,
                company=data.company,
                job_title=data.job_title,
            )

        if not data.email and not data.phone:
            raise ValidationError("Guest registration requires an email or a phone number")

        return Registrant(
            user_id=None,
            full_name=data.full_name or GUEST_DEFAULT_NAME,
            email=data.email,
            phone=data.phone,
            company=data.company,
            job_title=data.job_title,
        )

    @staticmethod
    def check_open(event: Event, now: datetime) -> None:
        if event.status != EventStatus.PUBLISHED:
            raise RegistrationClosedError(
                f"Event is not open for registration. Current status: {event.status.value}"
            )

        deadline = ensure_utc(event.registration_deadline)
        if deadline is not None and now > deadline:
            raise DeadlinePassedError()

    def check_duplicates(self, event: Event, registrant: Registrant) -> None:
        if not registrant.is_guest:
            if self.attendee_repo.get_active_by_user(event.id, registrant.user_id):
                raise DuplicateRegistrationError("Already registered for this event")
            return

        # Guests may supply only one of the two, so each is its own lookup
        if registrant.email and self.attendee_repo.exists_active_by_email(event.id, registrant.email):
            raise DuplicateRegistrationError("Email already registered for this event")

        if registrant.phone and self.attendee_repo.exists_active_by_phone(event.id, registrant.phone):
            raise DuplicateRegistrationError("Phone number already registered for this event")

    def validate(self, event: Event, registrant: Registrant, now: datetime) -> None:
        self.check_open(event, now)
        self.check_duplicates(event, registrant)
