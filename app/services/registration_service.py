import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    RegistrationError,
    NotFoundError,
    DuplicateRegistrationError,
    InfrastructureError,
    InvalidTransitionError,
    UnauthorizedError,
)
from app.models.attendee import Attendee, PaymentStatus, AttendeeRole, TICKET_CODE_CONSTRAINT
from app.models.event import Event
from app.models.guest_session import GuestSession
from app.models.user import User
from app.repositories.attendee_repository import AttendeeRepository
from app.repositories.event_repository import EventRepository
from app.schemas.attendee import RegistrationCreate
from app.services.attendee_state_machine import AttendeeStateMachine
from app.services.capacity_arbiter import CapacityArbiter
from app.services.guest_identity_service import GuestIdentityService
from app.services.notification_service import NotificationDispatcher
from app.services.registration_validator import RegistrationValidator, Registrant
from app.utils.ticket_code import generate_ticket_code
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

# One regeneration after a ticket code collision
TICKET_CODE_ATTEMPTS = 2


@dataclass
class RegistrationResult:
    attendee: Attendee
    guest_session: Optional[GuestSession] = None

    @property
    def session_token(self) -> Optional[str]:
        return self.guest_session.session_token if self.guest_session else None


def _is_ticket_code_collision(error: IntegrityError) -> bool:
    diag = getattr(error.orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name is not None:
        return constraint_name == TICKET_CODE_CONSTRAINT

    # SQLite reports the violated columns instead of the constraint name
    return str(error.orig).rstrip().endswith("event_attendees.ticket_code")


class RegistrationService:

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventRepository(db)
        self.attendee_repo = AttendeeRepository(db)
        self.validator = RegistrationValidator(db)
        self.arbiter = CapacityArbiter(db)
        self.guest_identity = GuestIdentityService(db)
        self.state_machine = AttendeeStateMachine(db)
        self.dispatcher = NotificationDispatcher(db)

    def register(
        self,
        event_id: str,
        user: Optional[User],
        registration_data: RegistrationCreate
    ) -> RegistrationResult:
        """
        Register the caller (account holder or guest) for an event.

        Lock event, check eligibility, decide status, insert attendee, issue
        the guest session: all in one transaction. Nothing is left behind
        when any step fails.
        """
        registrant = self.validator.resolve_registrant(user, registration_data)

        for attempt in range(1, TICKET_CODE_ATTEMPTS + 1):
            try:
                result = self._register_once(event_id, registrant, registration_data)
                self.db.commit()
                break
            except RegistrationError:
                self.db.rollback()
                raise
            except IntegrityError as e:
                self.db.rollback()
                if not _is_ticket_code_collision(e):
                    raise DuplicateRegistrationError()
                if attempt == TICKET_CODE_ATTEMPTS:
                    logger.error(f"Ticket code collided twice for event {event_id}")
                    raise InfrastructureError("Could not assign a ticket code")
                logger.warning(f"Ticket code collision for event {event_id}, regenerating")
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Registration for event {event_id} failed: {str(e)}")
                raise InfrastructureError()

        attendee = result.attendee
        logger.info(
            f"Registered attendee {attendee.id} for event {event_id} "
            f"with status {attendee.status.value} (guest={attendee.is_guest})"
        )

        self.dispatcher.notify_organizer_new_registration(attendee.event, attendee)

        return result

    def _register_once(
        self,
        event_id: str,
        registrant: Registrant,
        registration_data: RegistrationCreate
    ) -> RegistrationResult:
        event = self.event_repo.get_for_update(event_id)
        if not event:
            raise NotFoundError()

        self.validator.validate(event, registrant, utcnow())

        status = self.arbiter.assign_initial_status(event)

        attendee = self.attendee_repo.create(
            event_id=event.id,
            user_id=registrant.user_id,
            full_name=registrant.full_name,
            email=registrant.email,
            phone=registrant.phone,
            company=registrant.company,
            job_title=registrant.job_title,
            registration_data=registration_data.registration_data or {},
            networking_status=registration_data.networking_status,
            status=status,
            role=AttendeeRole.ATTENDEE,
            payment_status=PaymentStatus.NOT_REQUIRED if event.is_free else PaymentStatus.PENDING,
            ticket_code=generate_ticket_code(event.slug),
            is_guest=registrant.is_guest,
            registered_at=utcnow(),
        )

        guest_session = None
        if registrant.is_guest:
            guest_session = self.guest_identity.issue(event, attendee, registrant)

        self.event_repo.increment_registration_count(event.id)

        return RegistrationResult(attendee=attendee, guest_session=guest_session)

    def _get_event(self, event_id: str) -> Event:
        event = self.event_repo.get_by_id(event_id)
        if not event:
            raise NotFoundError()
        return event

    def _find_own_registration(
        self,
        event_id: str,
        user: Optional[User],
        session_token: Optional[str],
        active_only: bool = False
    ) -> Optional[Attendee]:
        if user is not None:
            if active_only:
                return self.attendee_repo.get_active_by_user(event_id, user.id)
            return self.attendee_repo.get_latest_by_user(event_id, user.id)

        guest_session = self.guest_identity.resolve(session_token, event_id)
        if guest_session is None or guest_session.attendee_id is None:
            return None
        return guest_session.attendee

    def get_registration_status(
        self,
        event_id: str,
        user: Optional[User],
        session_token: Optional[str]
    ) -> Optional[Attendee]:
        self._get_event(event_id)

        attendee = self._find_own_registration(event_id, user, session_token)
        # Persist the guest session activity stamp
        self.db.commit()
        return attendee

    def cancel_own_registration(
        self,
        event_id: str,
        user: Optional[User],
        session_token: Optional[str]
    ) -> Attendee:
        """
        Self-cancellation. Frees the slot but does not promote anyone;
        promotion is an explicit organizer operation.
        """
        if user is None and not session_token:
            raise UnauthorizedError()

        event = self._get_event(event_id)

        attendee = self._find_own_registration(event_id, user, session_token, active_only=True)
        if attendee is None or not attendee.is_active:
            self.db.rollback()
            raise NotFoundError("No active registration for this event")

        result = self.state_machine.cancel(attendee)
        if not result.success:
            self.db.rollback()
            raise InvalidTransitionError(result.reason)

        if attendee.is_guest:
            self.guest_identity.revoke_for_attendee(attendee.id)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Cancelling attendee {attendee.id} failed: {str(e)}")
            raise InfrastructureError()

        self.db.refresh(attendee)
        logger.info(f"Attendee {attendee.id} cancelled their registration for event {event.id}")
        return attendee
