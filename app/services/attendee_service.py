import logging
from typing import Optional, List, Tuple, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    NotFoundError,
    CapacityFullError,
    InvalidTransitionError,
    InfrastructureError,
    ForbiddenError,
    UnauthorizedError,
    ValidationError,
    NotApprovedError,
    AlreadyCheckedInError,
)
from app.models.attendee import Attendee, AttendeeStatus, AttendeeRole
from app.models.event import Event, EventStatus
from app.models.user import User
from app.repositories.attendee_repository import AttendeeRepository
from app.repositories.event_repository import EventRepository
from app.repositories.guest_session_repository import GuestSessionRepository
from app.schemas.attendee import AttendeeUpdate, CheckInRequest
from app.services.attendee_state_machine import AttendeeStateMachine, TransitionResult
from app.services.capacity_arbiter import CapacityArbiter
from app.utils.timeutils import utcnow, isoformat

logger = logging.getLogger(__name__)

PUBLIC_EVENT_STATUSES = (EventStatus.PUBLISHED, EventStatus.ONGOING)


class AttendeeService:
    """Organizer-side attendee management for a single event."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventRepository(db)
        self.attendee_repo = AttendeeRepository(db)
        self.guest_session_repo = GuestSessionRepository(db)
        self.arbiter = CapacityArbiter(db)
        self.state_machine = AttendeeStateMachine(db)

    def _get_event(self, event_id: str, for_update: bool = False) -> Event:
        if for_update:
            event = self.event_repo.get_for_update(event_id)
        else:
            event = self.event_repo.get_by_id(event_id)

        if not event:
            raise NotFoundError()
        return event

    def _verify_organizer(self, event: Event, user: Optional[User]) -> None:
        if user is None:
            raise UnauthorizedError()

        if event.organizer_id != user.id:
            raise ForbiddenError("You don't have permission to manage this event")

    def _get_attendee(self, event_id: str, attendee_id: str) -> Attendee:
        attendee = self.attendee_repo.get_by_id(event_id, attendee_id)
        if not attendee:
            raise NotFoundError("Attendee not found")
        return attendee

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise InfrastructureError()

    def list_attendees(
        self,
        event_id: str,
        user: Optional[User],
        status: Optional[AttendeeStatus] = None,
        role: Optional[AttendeeRole] = None
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """
        Organizers see every registration with contact details. Everyone else
        sees the approved attendees of a public event, without private fields.
        """
        event = self._get_event(event_id)
        is_owner = user is not None and user.id == event.organizer_id

        if not is_owner:
            if event.status not in PUBLIC_EVENT_STATUSES:
                raise ForbiddenError()
            if status is not None and status != AttendeeStatus.APPROVED:
                return [], False
            status = AttendeeStatus.APPROVED

        attendees = self.attendee_repo.get_event_attendees(event_id, status=status, role=role)
        return [a.to_dict(include_private=is_owner) for a in attendees], is_owner

    def get_attendee(self, event_id: str, attendee_id: str, user: Optional[User]) -> Attendee:
        event = self._get_event(event_id)
        self._verify_organizer(event, user)
        return self._get_attendee(event_id, attendee_id)

    def update_attendee(
        self,
        event_id: str,
        attendee_id: str,
        update_data: AttendeeUpdate,
        user: Optional[User]
    ) -> Attendee:
        event = self._get_event(event_id, for_update=True)
        self._verify_organizer(event, user)
        attendee = self._get_attendee(event_id, attendee_id)

        result: Optional[TransitionResult] = None
        if update_data.status is not None:
            if (
                update_data.status == AttendeeStatus.APPROVED
                and attendee.status != AttendeeStatus.APPROVED
                and not self.arbiter.has_free_slot(event)
            ):
                self.db.rollback()
                raise CapacityFullError("No capacity left to approve this attendee")

            result = self.state_machine.transition(attendee, update_data.status)
            if not result.success:
                self.db.rollback()
                raise InvalidTransitionError(result.reason)

        if update_data.role is not None:
            attendee.role = update_data.role

        if update_data.notes is not None:
            attendee.notes = update_data.notes

        attendee.updated_at = utcnow()
        self._commit(f"update attendee {attendee_id}")
        self.db.refresh(attendee)

        if result is not None:
            self.state_machine.notify(event, attendee, result)

        return attendee

    def remove_attendee(self, event_id: str, attendee_id: str, user: Optional[User]) -> None:
        """
        Hard delete. The registration counter always goes down; waitlisted
        attendees are left alone until promote_from_waitlist is called.
        """
        event = self._get_event(event_id, for_update=True)
        self._verify_organizer(event, user)
        attendee = self._get_attendee(event_id, attendee_id)

        self.guest_session_repo.detach_attendee(attendee.id)
        self.attendee_repo.delete(attendee)
        self.event_repo.decrement_registration_count(event.id)

        self._commit(f"remove attendee {attendee_id}")
        logger.info(f"Organizer {user.id} removed attendee {attendee_id} from event {event_id}")

    def promote_from_waitlist(self, event_id: str, user: Optional[User]) -> Optional[Attendee]:
        """Promote the longest-waiting attendee if a slot is free; None otherwise."""
        event = self._get_event(event_id, for_update=True)
        self._verify_organizer(event, user)

        promoted = self.state_machine.promote_next(event)
        if promoted is None:
            self.db.rollback()
            logger.info(f"No waitlist promotion for event {event_id}")
            return None

        attendee, result = promoted
        self._commit(f"promote attendee {attendee.id}")
        self.db.refresh(attendee)

        self.state_machine.notify(event, attendee, result, promoted=True)
        return attendee

    def check_in(self, event_id: str, request: CheckInRequest, user: Optional[User]) -> Attendee:
        event = self._get_event(event_id)
        self._verify_organizer(event, user)

        if request.ticket_code:
            attendee = self.attendee_repo.get_by_ticket_code(event_id, request.ticket_code.strip().upper())
        elif request.attendee_id:
            attendee = self.attendee_repo.get_by_id(event_id, request.attendee_id)
        else:
            raise ValidationError("Ticket code or attendee ID required")

        if not attendee:
            raise NotFoundError("Attendee not found")

        if attendee.status != AttendeeStatus.APPROVED:
            raise NotApprovedError(f"Attendee status is {attendee.status.value}, not approved")

        if attendee.checked_in:
            raise AlreadyCheckedInError()

        attendee.checked_in = True
        attendee.checked_in_at = utcnow()
        attendee.checked_in_by = user.id
        self.event_repo.increment_attendance_count(event.id)

        self._commit(f"check in attendee {attendee.id}")
        self.db.refresh(attendee)
        logger.info(f"Checked in attendee {attendee.id} for event {event_id}")
        return attendee

    def get_check_in_stats(self, event_id: str, user: Optional[User]) -> Dict[str, Any]:
        event = self._get_event(event_id)
        self._verify_organizer(event, user)

        recent = self.attendee_repo.get_recent_check_ins(event_id)
        return {
            "stats": self.attendee_repo.get_check_in_stats(event_id),
            "recentCheckins": [
                {
                    "id": a.id,
                    "full_name": a.full_name,
                    "checked_in_at": isoformat(a.checked_in_at),
                }
                for a in recent
            ],
        }
