from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.core.security import decode_access_token
from app.models.user import User
from app.repositories.user_repository import UserRepository

# Anonymous callers are allowed through; routes decide what they may do
bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Resolve the account behind the bearer token, or None for anonymous
    callers. A token that is present but unusable is an error, not a guest.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise UnauthorizedError("Invalid or expired token")

    user = UserRepository(db).get_by_id(payload["sub"])
    if user is None or not user.is_active:
        raise UnauthorizedError("Account not found or inactive")

    return user


def get_guest_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.GUEST_SESSION_COOKIE_NAME)
