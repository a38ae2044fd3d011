import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal
from app.models.attendee import Attendee
from app.models.event import Event
from app.models.guest_session import GuestSession
from app.repositories.guest_session_repository import GuestSessionRepository
from app.services.registration_validator import Registrant
from app.utils.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES = 32

# Hard bounds; settings may tighten them but never loosen them
MAX_COOKIE_AGE = timedelta(days=7)
MIN_GRACE = timedelta(hours=24)


def cookie_max_age() -> int:
    max_age = min(timedelta(days=settings.GUEST_SESSION_COOKIE_MAX_AGE_DAYS), MAX_COOKIE_AGE)
    return int(max_age.total_seconds())


class GuestIdentityService:
    """
    Issues and resolves event-scoped identities for registrants without an
    account. A guest session grants nothing beyond its own event.
    """

    def __init__(self, db: Session):
        self.db = db
        self.guest_session_repo = GuestSessionRepository(db)

    @staticmethod
    def generate_token() -> str:
        return secrets.token_hex(SESSION_TOKEN_BYTES)

    @staticmethod
    def compute_expiry(event: Event) -> datetime:
        """Sessions outlive the event by the grace period, measured from its end when known."""
        grace = max(timedelta(hours=settings.GUEST_SESSION_GRACE_HOURS), MIN_GRACE)
        expires_at = ensure_utc(event.start_date) + grace

        end_date = ensure_utc(event.end_date)
        if end_date is not None:
            expires_at = max(expires_at, end_date + grace)

        return expires_at

    def issue(self, event: Event, attendee: Attendee, registrant: Registrant) -> GuestSession:
        """
        Create the session for a freshly inserted guest attendee.

        Runs inside the registration transaction: if this fails, the attendee
        insert is rolled back with it.
        """
        guest_session = self.guest_session_repo.create(
            session_token=self.generate_token(),
            name=registrant.full_name,
            email=registrant.email,
            phone=registrant.phone,
            event_id=event.id,
            attendee_id=attendee.id,
            expires_at=self.compute_expiry(event)
        )

        attendee.is_guest = True
        attendee.guest_session_id = guest_session.id
        self.db.flush()

        return guest_session

    def resolve(self, session_token: Optional[str], event_id: str) -> Optional[GuestSession]:
        """Return the live session for this event, refreshing its activity stamp."""
        if not session_token:
            return None

        now = utcnow()
        guest_session = self.guest_session_repo.get_valid_for_event(session_token, event_id, now)
        if guest_session is None:
            return None

        self.guest_session_repo.touch(guest_session, now)
        return guest_session

    def revoke_for_attendee(self, attendee_id: str) -> int:
        return self.guest_session_repo.deactivate_for_attendee(attendee_id)

    def cleanup_expired(self) -> int:
        """Delete sessions that are past expiry or were revoked."""
        deleted = self.guest_session_repo.delete_expired(utcnow())
        self.db.commit()
        logger.info(f"Removed {deleted} expired or inactive guest session(s)")
        return deleted

    @staticmethod
    def cookie_params(session_token: str) -> dict:
        """Keyword arguments for ``Response.set_cookie``."""
        return {
            "key": settings.GUEST_SESSION_COOKIE_NAME,
            "value": session_token,
            "max_age": cookie_max_age(),
            "httponly": True,
            "secure": not settings.is_development,
            "samesite": "lax",
            "path": "/",
        }


def purge_expired_guest_sessions() -> int:
    """
    Standalone cleanup with its own session. Runs at application startup;
    deployments schedule it periodically (cron or a job runner).
    """
    db = SessionLocal()
    try:
        return GuestIdentityService(db).cleanup_expired()
    finally:
        db.close()
