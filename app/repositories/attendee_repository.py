from typing import Optional, List, Dict
from sqlalchemy import func, case
from sqlalchemy.orm import Session, joinedload
from app.models.attendee import Attendee, AttendeeStatus, AttendeeRole
import uuid


class AttendeeRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: str, attendee_id: str) -> Optional[Attendee]:
        return self.db.query(Attendee).filter(
            Attendee.id == attendee_id,
            Attendee.event_id == event_id
        ).options(joinedload(Attendee.user)).first()

    def get_by_ticket_code(self, event_id: str, ticket_code: str) -> Optional[Attendee]:
        return self.db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.ticket_code == ticket_code
        ).first()

    def get_active_by_user(self, event_id: str, user_id: str) -> Optional[Attendee]:
        return self.db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.user_id == user_id,
            Attendee.status != AttendeeStatus.CANCELLED
        ).first()

    def get_latest_by_user(self, event_id: str, user_id: str) -> Optional[Attendee]:
        return self.db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.user_id == user_id
        ).order_by(Attendee.registered_at.desc()).first()

    def exists_active_by_email(self, event_id: str, email: str) -> bool:
        return self.db.query(Attendee.id).filter(
            Attendee.event_id == event_id,
            Attendee.email == email,
            Attendee.status != AttendeeStatus.CANCELLED
        ).first() is not None

    def exists_active_by_phone(self, event_id: str, phone: str) -> bool:
        return self.db.query(Attendee.id).filter(
            Attendee.event_id == event_id,
            Attendee.phone == phone,
            Attendee.status != AttendeeStatus.CANCELLED
        ).first() is not None

    def count_by_status(self, event_id: str, status: AttendeeStatus) -> int:
        return self.db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.status == status
        ).count()

    def get_event_attendees(
        self,
        event_id: str,
        status: Optional[AttendeeStatus] = None,
        role: Optional[AttendeeRole] = None
    ) -> List[Attendee]:
        query = self.db.query(Attendee).filter(Attendee.event_id == event_id)

        if status:
            query = query.filter(Attendee.status == status)

        if role:
            query = query.filter(Attendee.role == role)

        return query.options(joinedload(Attendee.user)).order_by(
            Attendee.registered_at.desc()
        ).all()

    def get_first_waitlisted(self, event_id: str) -> Optional[Attendee]:
        return self.db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.status == AttendeeStatus.WAITLIST
        ).order_by(Attendee.registered_at, Attendee.id).first()

    def create(self, **fields) -> Attendee:
        attendee = Attendee(id=str(uuid.uuid4()), **fields)
        self.db.add(attendee)
        self.db.flush()
        return attendee

    def delete(self, attendee: Attendee) -> None:
        self.db.delete(attendee)
        self.db.flush()

    def get_check_in_stats(self, event_id: str) -> Dict[str, int]:
        approved = Attendee.status == AttendeeStatus.APPROVED
        total, checked_in = self.db.query(
            func.count(case((approved, 1))),
            func.count(case((approved & Attendee.checked_in.is_(True), 1)))
        ).filter(Attendee.event_id == event_id).one()

        return {
            "total_approved": total,
            "checked_in": checked_in,
            "not_checked_in": total - checked_in,
        }

    def get_recent_check_ins(self, event_id: str, limit: int = 10) -> List[Attendee]:
        return self.db.query(Attendee).filter(
            Attendee.event_id == event_id,
            Attendee.checked_in.is_(True)
        ).order_by(Attendee.checked_in_at.desc()).limit(limit).all()
