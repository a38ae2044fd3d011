from typing import Optional
from datetime import datetime
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.models.guest_session import GuestSession
import uuid


class GuestSessionRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_valid_for_event(
        self,
        session_token: str,
        event_id: str,
        now: datetime
    ) -> Optional[GuestSession]:
        return self.db.query(GuestSession).filter(
            GuestSession.session_token == session_token,
            GuestSession.event_id == event_id,
            GuestSession.is_active.is_(True),
            GuestSession.expires_at > now
        ).first()

    def create(
        self,
        session_token: str,
        name: str,
        event_id: str,
        attendee_id: str,
        expires_at: datetime,
        email: Optional[str] = None,
        phone: Optional[str] = None
    ) -> GuestSession:
        guest_session = GuestSession(
            id=str(uuid.uuid4()),
            session_token=session_token,
            name=name,
            email=email,
            phone=phone,
            event_id=event_id,
            attendee_id=attendee_id,
            expires_at=expires_at,
            is_active=True
        )
        self.db.add(guest_session)
        self.db.flush()
        return guest_session

    def touch(self, guest_session: GuestSession, now: datetime) -> None:
        guest_session.last_active_at = now
        self.db.flush()

    def deactivate_for_attendee(self, attendee_id: str) -> int:
        return self.db.query(GuestSession).filter(
            GuestSession.attendee_id == attendee_id,
            GuestSession.is_active.is_(True)
        ).update({GuestSession.is_active: False}, synchronize_session=False)

    def detach_attendee(self, attendee_id: str) -> int:
        return self.db.query(GuestSession).filter(
            GuestSession.attendee_id == attendee_id
        ).update(
            {GuestSession.attendee_id: None, GuestSession.is_active: False},
            synchronize_session=False
        )

    def delete_expired(self, now: datetime) -> int:
        return self.db.query(GuestSession).filter(
            or_(GuestSession.expires_at < now, GuestSession.is_active.is_(False))
        ).delete(synchronize_session=False)
