from sqlalchemy.orm import Session

from app.core.exceptions import CapacityFullError
from app.models.attendee import AttendeeStatus
from app.models.event import Event
from app.repositories.attendee_repository import AttendeeRepository


class CapacityArbiter:
    """
    Maps a registration attempt to its initial status.

    Callers must hold the event row lock (EventRepository.get_for_update)
    for the whole count-decide-insert sequence; the approved count read
    here is only trustworthy inside that transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.attendee_repo = AttendeeRepository(db)

    @staticmethod
    def has_capacity(event: Event, approved_count: int) -> bool:
        if event.has_unlimited_capacity:
            return True
        return approved_count < event.max_attendees

    @staticmethod
    def approval_status(event: Event) -> AttendeeStatus:
        return AttendeeStatus.APPROVED if event.auto_approve else AttendeeStatus.PENDING

    @classmethod
    def decide(cls, event: Event, approved_count: int) -> AttendeeStatus:
        if cls.has_capacity(event, approved_count):
            return cls.approval_status(event)

        if event.allow_waitlist:
            return AttendeeStatus.WAITLIST

        raise CapacityFullError()

    def approved_count(self, event: Event) -> int:
        return self.attendee_repo.count_by_status(event.id, AttendeeStatus.APPROVED)

    def assign_initial_status(self, event: Event) -> AttendeeStatus:
        return self.decide(event, self.approved_count(event))

    def has_free_slot(self, event: Event) -> bool:
        return self.has_capacity(event, self.approved_count(event))
