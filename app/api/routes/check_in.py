from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_optional_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.attendee import AttendeeEnvelope, CheckInRequest, CheckInStatsResponse
from app.services.attendee_service import AttendeeService

router = APIRouter()


@router.post("/events/{event_id}/check-in", response_model=AttendeeEnvelope)
def check_in_attendee(
    event_id: str,
    request: CheckInRequest,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    attendee = AttendeeService(db).check_in(event_id, request, user)
    return AttendeeEnvelope(message="Checked in", data=attendee.to_dict())


@router.get("/events/{event_id}/check-in", response_model=CheckInStatsResponse)
def get_check_in_stats(
    event_id: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return CheckInStatsResponse(data=AttendeeService(db).get_check_in_stats(event_id, user))
