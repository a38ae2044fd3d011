from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_optional_user, get_guest_session_token
from app.core.database import get_db
from app.models.user import User
from app.schemas.attendee import AttendeeEnvelope
from app.services.registration_service import RegistrationService

router = APIRouter()


@router.get("/events/{event_id}/registration-status", response_model=AttendeeEnvelope)
def get_registration_status(
    event_id: str,
    user: Optional[User] = Depends(get_optional_user),
    session_token: Optional[str] = Depends(get_guest_session_token),
    db: Session = Depends(get_db)
):
    """The caller's own registration, via account or guest session cookie."""
    attendee = RegistrationService(db).get_registration_status(event_id, user, session_token)
    return AttendeeEnvelope(data=attendee.to_dict() if attendee else None)


@router.delete("/events/{event_id}/registration", response_model=AttendeeEnvelope)
def cancel_registration(
    event_id: str,
    user: Optional[User] = Depends(get_optional_user),
    session_token: Optional[str] = Depends(get_guest_session_token),
    db: Session = Depends(get_db)
):
    attendee = RegistrationService(db).cancel_own_registration(event_id, user, session_token)
    return AttendeeEnvelope(message="Registration cancelled", data=attendee.to_dict())
