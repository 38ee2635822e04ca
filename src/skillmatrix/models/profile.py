"""Profile database model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from skillmatrix.database import Base


class Profile(Base):
    """
    Profile of a person known to the identity service.

    ``user_id`` is the identifier issued by the identity service; every other
    table refers to people through it.

    Attributes:
        id: Primary key
        user_id: External identity id (unique)
        email: Login email
        full_name: Display name
        role: employee, tech_lead, manager or admin
        status: active or inactive
        department: Optional department name
        tech_lead_id: user_id of the assigned tech lead
        last_login: Last time the profile made an authenticated request
        created_at: Timestamp when record was created
        updated_at: Timestamp of the last change
    """

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    role = Column(String, default="employee", nullable=False)
    status = Column(String, default="active", nullable=False)
    department = Column(String, nullable=True)
    tech_lead_id = Column(String, ForeignKey("profiles.user_id"), nullable=True, index=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of Profile."""
        return f"<Profile(user_id='{self.user_id}', email='{self.email}', role='{self.role}')>"
