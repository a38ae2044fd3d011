from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Any, Dict
from app.models.attendee import AttendeeStatus, AttendeeRole


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class RegistrationCreate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    job_title: Optional[str] = Field(None, max_length=255)
    registration_data: Dict[str, Any] = Field(default_factory=dict)
    networking_status: Optional[str] = Field(None, max_length=50)
    is_guest: Optional[bool] = None

    @field_validator('full_name', 'email', 'phone', 'company', 'job_title', 'networking_status', mode='before')
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v


class AttendeeUpdate(BaseModel):
    status: Optional[AttendeeStatus] = None
    role: Optional[AttendeeRole] = None
    notes: Optional[str] = None


class CheckInRequest(BaseModel):
    ticket_code: Optional[str] = None
    attendee_id: Optional[str] = None


class AttendeeEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class AttendeesListResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    isOwner: bool


class CheckInStatistics(BaseModel):
    total_approved: int
    checked_in: int
    not_checked_in: int


class CheckInStatsData(BaseModel):
    stats: CheckInStatistics
    recentCheckins: List[Dict[str, Any]]


class CheckInStatsResponse(BaseModel):
    success: bool = True
    data: CheckInStatsData
