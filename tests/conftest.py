"""
Pytest configuration file.
"""
import os

# Point the application at the test database before anything imports it
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient
from app.core.database import Base, SessionLocal, engine, get_db
from app.core.security import create_access_token
from app.models.user import User
from app.models.event import Event, EventStatus
from app.models.attendee import Attendee, AttendeeStatus, AttendeeRole, PaymentStatus
from main import app
from datetime import datetime, timedelta, timezone
import uuid


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db():
    """Create test database."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create test client."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


def _create_user(db, email: str, first_name: str, last_name: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        first_name=first_name,
        last_name=last_name,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def sample_organizer(db):
    """Create the account that owns the sample events."""
    return _create_user(db, "organizer@example.com", "Olivia", "Organizer")


@pytest.fixture
def sample_member(db):
    """Create a regular account holder."""
    return _create_user(db, "member@example.com", "Mina", "Member")


@pytest.fixture
def another_member(db):
    return _create_user(db, "second@example.com", "Sam", "Second")


@pytest.fixture
def make_event(db, sample_organizer):
    """Factory for events; keyword arguments override the defaults."""
    def _make_event(**overrides) -> Event:
        start = datetime.now(timezone.utc) + timedelta(days=7)
        fields = {
            "id": str(uuid.uuid4()),
            "organizer_id": sample_organizer.id,
            "slug": f"event-{uuid.uuid4().hex[:6]}",
            "title": "Networking Night",
            "status": EventStatus.PUBLISHED,
            "start_date": start,
            "end_date": start + timedelta(hours=3),
            "registration_deadline": None,
            "max_attendees": None,
            "auto_approve": True,
            "allow_waitlist": True,
            "is_free": True,
            "registration_count": 0,
            "attendance_count": 0,
        }
        fields.update(overrides)
        event = Event(**fields)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    return _make_event


@pytest.fixture
def sample_published_event(make_event):
    """Published event with unlimited capacity and auto-approval."""
    return make_event(slug="tech-meetup", title="Tech Meetup")


@pytest.fixture
def sample_small_event(make_event):
    """Two seats, waitlist allowed, auto-approval on."""
    return make_event(slug="small-talk", title="Small Talk", max_attendees=2)


@pytest.fixture
def make_attendee(db):
    """Insert an attendee row directly, bypassing registration."""
    def _make_attendee(event: Event, **overrides) -> Attendee:
        fields = {
            "id": str(uuid.uuid4()),
            "event_id": event.id,
            "user_id": None,
            "full_name": "Direct Insert",
            "email": f"{uuid.uuid4().hex[:8]}@example.com",
            "phone": None,
            "status": AttendeeStatus.APPROVED,
            "role": AttendeeRole.ATTENDEE,
            "payment_status": PaymentStatus.NOT_REQUIRED,
            "ticket_code": f"{event.slug.upper()}-{uuid.uuid4().hex[:8].upper()}",
            "is_guest": False,
            "registered_at": datetime.now(timezone.utc),
        }
        fields.update(overrides)
        attendee = Attendee(**fields)
        db.add(attendee)
        db.commit()
        db.refresh(attendee)
        return attendee

    return _make_attendee


@pytest.fixture
def guest_payload():
    return {
        "full_name": "Gina Guest",
        "email": "gina@example.com",
        "phone": "+15550001111",
        "company": "Acme",
        "job_title": "Engineer",
    }

