from typing import Optional
from sqlalchemy.orm import Session
from app.models.event import Event


class EventRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: str) -> Optional[Event]:
        return self.db.query(Event).filter(Event.id == event_id).first()

    def get_for_update(self, event_id: str) -> Optional[Event]:
        """
        Load the event with a row lock held until the surrounding transaction
        ends. Every capacity decision for the event is serialized on this lock.
        """
        return self.db.query(Event).filter(
            Event.id == event_id
        ).with_for_update().first()

    def increment_registration_count(self, event_id: str) -> None:
        self.db.query(Event).filter(Event.id == event_id).update(
            {Event.registration_count: Event.registration_count + 1},
            synchronize_session=False
        )

    def decrement_registration_count(self, event_id: str) -> None:
        self.db.query(Event).filter(
            Event.id == event_id,
            Event.registration_count > 0
        ).update(
            {Event.registration_count: Event.registration_count - 1},
            synchronize_session=False
        )

    def increment_attendance_count(self, event_id: str) -> None:
        self.db.query(Event).filter(Event.id == event_id).update(
            {Event.attendance_count: Event.attendance_count + 1},
            synchronize_session=False
        )
