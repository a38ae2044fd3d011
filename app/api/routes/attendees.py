from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.api.deps import get_optional_user
from app.core.database import get_db
from app.models.attendee import AttendeeStatus, AttendeeRole
from app.models.user import User
from app.schemas.attendee import (
    RegistrationCreate,
    AttendeeUpdate,
    AttendeeEnvelope,
    AttendeesListResponse,
)
from app.services.attendee_service import AttendeeService
from app.services.guest_identity_service import GuestIdentityService
from app.services.registration_service import RegistrationService

router = APIRouter()


@router.post("/events/{event_id}/attendees", response_model=AttendeeEnvelope)
def register_for_event(
    event_id: str,
    registration_data: RegistrationCreate,
    response: Response,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Register for an event.

    Account holders are identified by their bearer token. Anyone else
    registers as a guest and receives a `guest_session` cookie scoped to
    this event.
    """
    result = RegistrationService(db).register(event_id, user, registration_data)

    if result.session_token:
        response.set_cookie(**GuestIdentityService.cookie_params(result.session_token))

    return AttendeeEnvelope(
        message=f"Registration {result.attendee.status.value}",
        data=result.attendee.to_dict()
    )


@router.get("/events/{event_id}/attendees", response_model=AttendeesListResponse)
def list_attendees(
    event_id: str,
    status: Optional[AttendeeStatus] = Query(None),
    role: Optional[AttendeeRole] = Query(None),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    attendees, is_owner = AttendeeService(db).list_attendees(event_id, user, status=status, role=role)
    return AttendeesListResponse(data=attendees, isOwner=is_owner)


@router.post("/events/{event_id}/attendees/promote", response_model=AttendeeEnvelope)
def promote_from_waitlist(
    event_id: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Promote the longest-waiting waitlisted attendee when a slot is free."""
    attendee = AttendeeService(db).promote_from_waitlist(event_id, user)
    if attendee is None:
        return AttendeeEnvelope(message="No waitlisted attendee was promoted", data=None)
    return AttendeeEnvelope(message="Attendee promoted from waitlist", data=attendee.to_dict())


@router.get("/events/{event_id}/attendees/{attendee_id}", response_model=AttendeeEnvelope)
def get_attendee(
    event_id: str,
    attendee_id: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    attendee = AttendeeService(db).get_attendee(event_id, attendee_id, user)
    return AttendeeEnvelope(data=attendee.to_dict())


@router.put("/events/{event_id}/attendees/{attendee_id}", response_model=AttendeeEnvelope)
def update_attendee(
    event_id: str,
    attendee_id: str,
    update_data: AttendeeUpdate,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    attendee = AttendeeService(db).update_attendee(event_id, attendee_id, update_data, user)
    return AttendeeEnvelope(data=attendee.to_dict())


@router.delete("/events/{event_id}/attendees/{attendee_id}", response_model=AttendeeEnvelope)
def remove_attendee(
    event_id: str,
    attendee_id: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    AttendeeService(db).remove_attendee(event_id, attendee_id, user)
    return AttendeeEnvelope(message="Attendee removed")
