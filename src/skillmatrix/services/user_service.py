"""User administration: profiles plus the matching identity-service accounts."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skillmatrix.exceptions import (
    DuplicateEntityError,
    NotFoundError,
    PermissionDeniedError,
    RuleViolationError,
)
from skillmatrix.models.gamification import LeaderboardHistory, UserAchievement, UserGamification
from skillmatrix.models.goal import GoalProgressHistory, PersonalGoal
from skillmatrix.models.notification import Notification, UserCategoryPreference
from skillmatrix.models.profile import Profile
from skillmatrix.models.project import Project, ProjectAssignment
from skillmatrix.models.rating import ApprovalLog, EmployeeRating, RatingHistory
from skillmatrix.schemas.enums import UserRole, UserStatus
from skillmatrix.schemas.user import UserCreate, UserUpdate
from skillmatrix.services.identity_client import IdentityClient

logger = logging.getLogger(__name__)


class UserService:
    """
    Service for managers and admins administering users.

    Identity-service calls and profile writes are paired: a failed profile
    write after creating an identity user removes that user again.
    """

    def __init__(self, db: Session, identity: IdentityClient | None = None) -> None:
        """
        Initialize the user service.

        Args:
            db: SQLAlchemy database session
            identity: Identity service client (a default client if not provided)
        """
        self.db = db
        self.identity = identity or IdentityClient()

    def get_profile(self, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if not profile:
            raise NotFoundError("User not found", context={"entity": "profile", "id": user_id})
        return profile

    def list_users(self) -> list[dict]:
        """
        List every profile, newest first, with its tech lead resolved.

        Returns:
            Dicts with the profile columns plus ``tech_lead`` (or None)
        """
        profiles = self.db.query(Profile).order_by(Profile.created_at.desc(), Profile.id.desc()).all()
        by_user_id = {p.user_id: p for p in profiles}
        users: list[dict] = []
        for profile in profiles:
            lead = by_user_id.get(profile.tech_lead_id) if profile.tech_lead_id else None
            users.append(
                {
                    "id": profile.id,
                    "user_id": profile.user_id,
                    "email": profile.email,
                    "full_name": profile.full_name,
                    "role": profile.role,
                    "status": profile.status,
                    "department": profile.department,
                    "tech_lead_id": profile.tech_lead_id,
                    "last_login": profile.last_login,
                    "created_at": profile.created_at,
                    "tech_lead": (
                        {"user_id": lead.user_id, "full_name": lead.full_name, "email": lead.email}
                        if lead
                        else None
                    ),
                }
            )
        return users

    def list_tech_leads(self) -> list[Profile]:
        return (
            self.db.query(Profile)
            .filter(Profile.role == UserRole.TECH_LEAD.value, Profile.status == UserStatus.ACTIVE.value)
            .order_by(Profile.full_name)
            .all()
        )

    def _check_email_free(self, email: str, user_id: str | None = None) -> None:
        query = self.db.query(Profile).filter(Profile.email.ilike(email))
        if user_id is not None:
            query = query.filter(Profile.user_id != user_id)
        if query.first():
            raise DuplicateEntityError(
                "A user with this email already exists", context={"entity": "profile", "email": email}
            )

    async def create_user(self, data: UserCreate) -> Profile:
        """
        Create an identity user and its profile.

        The profile is committed here so that a failed write can be undone in
        the identity service before the error propagates.

        Args:
            data: Validated user data

        Returns:
            The new Profile

        Raises:
            DuplicateEntityError: If the email is already used by a profile
            IdentityServiceError: If the identity service rejects the user
        """
        self._check_email_free(data.email)
        user_id = await self.identity.create_user(data.email, data.password, data.full_name)

        try:
            profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
            if profile is None:
                profile = Profile(user_id=user_id)
                self.db.add(profile)
            profile.email = data.email
            profile.full_name = data.full_name
            profile.role = data.role.value
            profile.status = UserStatus.ACTIVE.value
            profile.department = data.department
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Profile write for {user_id} failed, removing identity user: {e}")
            await self.identity.delete_user(user_id)
            raise

        self.db.refresh(profile)
        logger.info(f"Created user {user_id} ({data.email}) as {profile.role}")
        return profile

    async def update_user(self, user_id: str, data: UserUpdate) -> Profile:
        """
        Update profile fields; a changed email is also pushed to the identity service.

        Raises:
            NotFoundError: If the profile does not exist
            DuplicateEntityError: If the new email belongs to another profile
        """
        profile = self.get_profile(user_id)

        attributes: dict = {}
        if data.email is not None and data.email.lower() != profile.email.lower():
            self._check_email_free(data.email, user_id)
            attributes["email"] = data.email
        if data.full_name is not None and data.full_name != profile.full_name:
            attributes["user_metadata"] = {"full_name": data.full_name}

        if attributes:
            await self.identity.update_user(user_id, **attributes)

        if "email" in attributes:
            profile.email = data.email
        if data.full_name is not None:
            profile.full_name = data.full_name
        if data.role is not None:
            profile.role = data.role.value
        if data.department is not None:
            profile.department = data.department or None
        self.db.flush()
        logger.info(f"Updated user {user_id}")
        return profile

    def update_role(self, user_id: str, role: UserRole) -> Profile:
        profile = self.get_profile(user_id)
        profile.role = UserRole(role).value
        self.db.flush()
        logger.info(f"Changed role of {user_id} to {profile.role}")
        return profile

    async def reset_password(self, user_id: str, password: str) -> None:
        """Set a new password in the identity service."""
        self.get_profile(user_id)
        if len(password) < 8:
            raise RuleViolationError("Password must be at least 8 characters")
        await self.identity.update_user(user_id, password=password)
        logger.info(f"Reset password for {user_id}")

    async def set_status(self, user_id: str, status: UserStatus, acting: Profile) -> Profile:
        """
        Activate or deactivate a user.

        Deactivation bans the identity account; activation lifts the ban.

        Raises:
            PermissionDeniedError: If an admin tries to deactivate themselves
        """
        status = UserStatus(status)
        if acting.user_id == user_id and status == UserStatus.INACTIVE:
            raise PermissionDeniedError("You cannot deactivate your own account")

        profile = self.get_profile(user_id)
        if status == UserStatus.INACTIVE:
            await self.identity.ban_user(user_id)
        else:
            await self.identity.unban_user(user_id)
        profile.status = status.value
        self.db.flush()
        logger.info(f"Set status of {user_id} to {status.value}")
        return profile

    def assign_tech_lead(self, user_id: str, tech_lead_id: str | None) -> Profile:
        """
        Assign a tech lead to a profile, or clear the assignment with None.

        Raises:
            NotFoundError: If either profile does not exist
            RuleViolationError: If the lead is not a tech lead or is the profile itself
        """
        profile = self.get_profile(user_id)
        if tech_lead_id is not None:
            if tech_lead_id == user_id:
                raise RuleViolationError("A user cannot be their own tech lead")
            lead = self.get_profile(tech_lead_id)
            if lead.role != UserRole.TECH_LEAD.value:
                raise RuleViolationError(
                    "Assigned user is not a tech lead",
                    context={"tech_lead_id": tech_lead_id, "role": lead.role},
                )
        profile.tech_lead_id = tech_lead_id
        self.db.flush()
        return profile

    def _delete_profile_data(self, user_id: str) -> None:
        rating_ids = [
            r.id for r in self.db.query(EmployeeRating.id).filter(EmployeeRating.user_id == user_id)
        ]
        if rating_ids:
            self.db.query(ApprovalLog).filter(ApprovalLog.rating_id.in_(rating_ids)).delete(
                synchronize_session=False
            )
        goal_ids = [g.id for g in self.db.query(PersonalGoal.id).filter(PersonalGoal.user_id == user_id)]
        if goal_ids:
            self.db.query(GoalProgressHistory).filter(GoalProgressHistory.goal_id.in_(goal_ids)).delete(
                synchronize_session=False
            )

        for model in (
            EmployeeRating,
            RatingHistory,
            PersonalGoal,
            Notification,
            UserCategoryPreference,
            UserGamification,
            UserAchievement,
            LeaderboardHistory,
            ProjectAssignment,
        ):
            self.db.query(model).filter(model.user_id == user_id).delete(synchronize_session=False)

        self.db.query(Profile).filter(Profile.tech_lead_id == user_id).update(
            {Profile.tech_lead_id: None}, synchronize_session=False
        )
        self.db.query(Project).filter(Project.tech_lead_id == user_id).update(
            {Project.tech_lead_id: None}, synchronize_session=False
        )
        self.db.query(Project).filter(Project.created_by == user_id).update(
            {Project.created_by: None}, synchronize_session=False
        )

    async def delete_user(self, user_id: str, acting: Profile) -> None:
        """
        Delete a profile with its data, then the identity user.

        The profile deletion is flushed first; if the identity call fails the
        request's transaction is not committed.

        Raises:
            PermissionDeniedError: If a user tries to delete themselves
        """
        if acting.user_id == user_id:
            raise PermissionDeniedError("You cannot delete your own account")

        profile = self.get_profile(user_id)
        self._delete_profile_data(user_id)
        self.db.delete(profile)
        self.db.flush()

        await self.identity.delete_user(user_id)
        logger.info(f"Deleted user {user_id}")
