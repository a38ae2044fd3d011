import logging
from dataclasses import dataclass
from typing import Optional, Dict, FrozenSet, Tuple

from sqlalchemy.orm import Session

from app.models.attendee import Attendee, AttendeeStatus
from app.models.event import Event
from app.repositories.attendee_repository import AttendeeRepository
from app.services.capacity_arbiter import CapacityArbiter
from app.services.notification_service import NotificationDispatcher
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[AttendeeStatus, FrozenSet[AttendeeStatus]] = {
    AttendeeStatus.PENDING: frozenset({
        AttendeeStatus.APPROVED,
        AttendeeStatus.REJECTED,
        AttendeeStatus.CANCELLED,
    }),
    AttendeeStatus.WAITLIST: frozenset({
        AttendeeStatus.APPROVED,
        AttendeeStatus.PENDING,  # promotion into an event that needs review
        AttendeeStatus.CANCELLED,
    }),
    AttendeeStatus.APPROVED: frozenset({
        AttendeeStatus.CANCELLED,
    }),
    AttendeeStatus.REJECTED: frozenset(),
    AttendeeStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    previous: AttendeeStatus
    current: AttendeeStatus
    reason: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.success and self.previous != self.current


class AttendeeStateMachine:
    """
    Sole writer of Attendee.status after creation.

    Transitions are checked against ALLOWED_TRANSITIONS and reported as a
    TransitionResult instead of raising, so callers decide how to surface a
    refused change. Persisting is left to the caller's transaction; the
    notification side effects run through notify() once that commits.
    """

    def __init__(self, db: Session):
        self.db = db
        self.attendee_repo = AttendeeRepository(db)
        self.arbiter = CapacityArbiter(db)
        self.dispatcher = NotificationDispatcher(db)

    @staticmethod
    def can_transition(current: AttendeeStatus, target: AttendeeStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[current]

    def transition(self, attendee: Attendee, target: AttendeeStatus) -> TransitionResult:
        previous = attendee.status

        if previous == target:
            return TransitionResult(success=True, previous=previous, current=previous)

        if not self.can_transition(previous, target):
            return TransitionResult(
                success=False,
                previous=previous,
                current=previous,
                reason=f"Cannot change status from '{previous.value}' to '{target.value}'"
            )

        attendee.status = target
        attendee.updated_at = utcnow()
        self.db.flush()

        logger.info(f"Attendee {attendee.id} moved from {previous.value} to {target.value}")
        return TransitionResult(success=True, previous=previous, current=target)

    def cancel(self, attendee: Attendee) -> TransitionResult:
        return self.transition(attendee, AttendeeStatus.CANCELLED)

    def promote_next(self, event: Event) -> Optional[Tuple[Attendee, TransitionResult]]:
        """
        Move the longest-waiting waitlisted attendee off the waitlist.

        Requires the event row lock. Returns None, without touching anything,
        when the event has no free slot or nobody is waiting.
        """
        if not self.arbiter.has_free_slot(event):
            return None

        candidate = self.attendee_repo.get_first_waitlisted(event.id)
        if candidate is None:
            return None

        result = self.transition(candidate, self.arbiter.approval_status(event))
        if result.success:
            logger.info(
                f"Promoted attendee {candidate.id} from waitlist to "
                f"{result.current.value} for event {event.id}"
            )
        return candidate, result

    def notify(self, event: Event, attendee: Attendee, result: TransitionResult, promoted: bool = False) -> None:
        if not result.changed:
            return

        if result.current == AttendeeStatus.APPROVED:
            self.dispatcher.notify_attendee_approved(event, attendee, promoted=promoted)
        elif result.current == AttendeeStatus.REJECTED:
            self.dispatcher.notify_attendee_rejected(event, attendee)
