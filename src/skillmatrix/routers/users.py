"""User administration API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, get_identity_client, require_roles
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.common import MessageResponse
from skillmatrix.schemas.enums import USER_MANAGER_ROLES, UserStatus
from skillmatrix.schemas.user import (
    PasswordReset,
    Profile as ProfileSchema,
    ProfileWithTechLead,
    RoleUpdate,
    TechLeadAssignment,
    UserCreate,
    UserUpdate,
)
from skillmatrix.services.identity_client import IdentityClient
from skillmatrix.services.user_service import UserService

router = APIRouter()

user_manager = require_roles(*USER_MANAGER_ROLES)


class StatusUpdate(BaseModel):
    """Schema for activating or deactivating a user."""

    status: UserStatus


@router.get("/users/me", response_model=ProfileSchema)
def get_me(profile: Profile = Depends(get_current_profile)):
    """Return the caller's own profile."""
    return profile


@router.get("/users", response_model=list[ProfileWithTechLead])
def list_users(db: Session = Depends(get_db), _: Profile = Depends(user_manager)):
    """
    List every profile, newest first.

    Returns:
        Profiles with their assigned tech lead resolved.
    """
    return UserService(db).list_users()


@router.get("/users/tech-leads", response_model=list[ProfileSchema])
def list_tech_leads(db: Session = Depends(get_db), _: Profile = Depends(get_current_profile)):
    return UserService(db).list_tech_leads()


@router.post("/users", response_model=ProfileSchema, status_code=201)
async def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
    _: Profile = Depends(user_manager),
):
    """
    Create an identity account and its profile.

    Raises:
        DuplicateEntityError: If the email is already in use.
        IdentityServiceError: If the identity service rejects the account.
    """
    return await UserService(db, identity).create_user(data)


@router.patch("/users/{user_id}", response_model=ProfileSchema)
async def update_user(
    user_id: str,
    data: UserUpdate,
    db: Session = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
    _: Profile = Depends(user_manager),
):
    profile = await UserService(db, identity).update_user(user_id, data)
    db.commit()
    db.refresh(profile)
    return profile


@router.patch("/users/{user_id}/role", response_model=ProfileSchema)
def update_role(
    user_id: str,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(user_manager),
):
    profile = UserService(db).update_role(user_id, data.role)
    db.commit()
    db.refresh(profile)
    return profile


@router.post("/users/{user_id}/password", response_model=MessageResponse)
async def reset_password(
    user_id: str,
    data: PasswordReset,
    db: Session = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
    _: Profile = Depends(user_manager),
):
    await UserService(db, identity).reset_password(user_id, data.password)
    return MessageResponse(message="Password updated")


@router.patch("/users/{user_id}/status", response_model=ProfileSchema)
async def set_status(
    user_id: str,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
    profile: Profile = Depends(user_manager),
):
    """
    Activate or deactivate a user; deactivation bans the identity account.

    Raises:
        PermissionDeniedError: If the caller deactivates their own account.
    """
    updated = await UserService(db, identity).set_status(user_id, data.status, profile)
    db.commit()
    db.refresh(updated)
    return updated


@router.put("/users/{user_id}/tech-lead", response_model=ProfileSchema)
def assign_tech_lead(
    user_id: str,
    data: TechLeadAssignment,
    db: Session = Depends(get_db),
    _: Profile = Depends(user_manager),
):
    profile = UserService(db).assign_tech_lead(user_id, data.tech_lead_id)
    db.commit()
    db.refresh(profile)
    return profile


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
    profile: Profile = Depends(user_manager),
):
    """Delete a profile with all its data, then its identity account."""
    await UserService(db, identity).delete_user(user_id, profile)
    db.commit()
    return MessageResponse(message="User deleted")
