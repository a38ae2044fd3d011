from sqlalchemy import Column, String, Boolean, DateTime
from app.core.database import Base
from app.utils.timeutils import utcnow


class User(Base):
    """
    Account holder. Accounts are owned by the account service; this table
    only carries what registration needs (identity defaults, organizer
    ownership and notification targeting).
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
