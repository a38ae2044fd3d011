import secrets
from typing import Optional
import string

from app.core.config import settings

TICKET_ALPHABET = string.ascii_uppercase + string.digits


def generate_ticket_code(event_slug: str, length: Optional[int] = None) -> str:
    """
    Build a check-in code of the form ``{SLUG}-{XXXXXXXX}``.

    The suffix is drawn from ``secrets`` over A-Z0-9; at 36^8 combinations a
    collision inside one event is rare enough that a single retry covers it.
    """
    length = length or settings.TICKET_CODE_LENGTH
    suffix = ''.join(secrets.choice(TICKET_ALPHABET) for _ in range(length))
    return f"{event_slug.upper()}-{suffix}"
