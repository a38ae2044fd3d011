from typing import Optional

from fastapi import HTTPException, status


class RegistrationError(HTTPException):
    """
    Base class for errors raised by the registration core.

    Each subclass carries a stable ``code`` that clients can switch on,
    plus the HTTP status the API answers with.
    """
    code: str = "infrastructure_error"
    status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail: str = "Service temporarily unavailable"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.__class__.status_code,
            detail=detail or self.default_detail
        )


class NotFoundError(RegistrationError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Event not found"


class RegistrationClosedError(RegistrationError):
    code = "registration_closed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Event is not open for registration"


class DeadlinePassedError(RegistrationError):
    code = "deadline_passed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Registration deadline has passed"


class CapacityFullError(RegistrationError):
    code = "capacity_full"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Event is full"


class DuplicateRegistrationError(RegistrationError):
    code = "duplicate_registration"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Already registered for this event"


class ValidationError(RegistrationError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid registration data"


class InvalidTransitionError(RegistrationError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Status change not allowed"


class NotApprovedError(RegistrationError):
    code = "not_approved"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Attendee is not approved"


class AlreadyCheckedInError(RegistrationError):
    code = "already_checked_in"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Already checked in"


class UnauthorizedError(RegistrationError):
    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(RegistrationError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class InfrastructureError(RegistrationError):
    code = "infrastructure_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable"
