"""Profile and user administration schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skillmatrix.schemas.enums import UserRole, UserStatus

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(value: str) -> str:
    """Trim an email address and check its shape."""
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")
    return value


def validate_full_name(value: str) -> str:
    """Trim a full name and check its length."""
    value = value.strip()
    if len(value) < 2:
        raise ValueError("Full name must be at least 2 characters")
    if len(value) > 50:
        raise ValueError("Full name must be less than 50 characters")
    return value


class UserCreate(BaseModel):
    """Schema for creating a user in the identity service and its profile."""

    email: str
    password: str = Field(..., min_length=8)
    full_name: str
    role: UserRole = UserRole.EMPLOYEE
    department: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("full_name")
    @classmethod
    def check_full_name(cls, value: str) -> str:
        return validate_full_name(value)


class UserUpdate(BaseModel):
    """Schema for editing a profile. Omitted fields are left unchanged."""

    email: str | None = None
    full_name: str | None = None
    role: UserRole | None = None
    department: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return None if value is None else validate_email(value)

    @field_validator("full_name")
    @classmethod
    def check_full_name(cls, value: str | None) -> str | None:
        return None if value is None else validate_full_name(value)


class RoleUpdate(BaseModel):
    """Schema for changing a profile's role."""

    role: UserRole


class PasswordReset(BaseModel):
    """Schema for setting a new password."""

    password: str = Field(..., min_length=8)


class TechLeadAssignment(BaseModel):
    """Schema for assigning (or clearing, with None) a tech lead."""

    tech_lead_id: str | None = None


class TechLeadSummary(BaseModel):
    """Name and email of an assigned tech lead."""

    user_id: str
    full_name: str
    email: str


class Profile(BaseModel):
    """Profile response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    email: str
    full_name: str
    role: UserRole
    status: UserStatus
    department: str | None
    tech_lead_id: str | None
    last_login: datetime | None
    created_at: datetime


class ProfileWithTechLead(Profile):
    """Profile with its tech lead resolved."""

    tech_lead: TechLeadSummary | None = None
