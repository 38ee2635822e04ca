"""Request dependencies: the calling profile and role checks."""

import logging
from collections.abc import Callable

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.exceptions import AuthenticationRequiredError, PermissionDeniedError
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.enums import UserStatus
from skillmatrix.services.identity_client import IdentityClient
from skillmatrix.utils.dates import utcnow

logger = logging.getLogger(__name__)


def get_current_profile(
    x_user_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> Profile:
    """
    Resolve the profile of the caller from the X-User-Id header.

    The gateway in front of this service authenticates the user and sets the
    header; this dependency only looks the id up.

    Args:
        x_user_id: Identity id forwarded by the gateway
        db: Database session

    Returns:
        The caller's Profile

    Raises:
        AuthenticationRequiredError: If the header is missing or unknown
        PermissionDeniedError: If the profile is inactive
    """
    if not x_user_id:
        raise AuthenticationRequiredError("Missing X-User-Id header")

    profile = db.query(Profile).filter(Profile.user_id == x_user_id).first()
    if not profile:
        raise AuthenticationRequiredError("Unknown user", context={"user_id": x_user_id})
    if profile.status != UserStatus.ACTIVE.value:
        raise PermissionDeniedError("Account is inactive", context={"user_id": x_user_id})

    now = utcnow()
    if profile.last_login is None or profile.last_login.date() < now.date():
        profile.last_login = now
        db.commit()
        db.refresh(profile)

    return profile


def require_roles(*roles: str) -> Callable[..., Profile]:
    """
    Build a dependency that only lets the given roles through.

    Args:
        *roles: Allowed role values (see UserRole)

    Returns:
        Dependency returning the caller's Profile

    Examples:
        >>> @router.get("/users", dependencies=[Depends(require_roles("manager", "admin"))])
    """
    allowed = frozenset(roles)

    def checker(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in allowed:
            logger.info(f"Denied {profile.user_id} with role {profile.role}; needs {sorted(allowed)}")
            raise PermissionDeniedError(
                "You do not have permission to perform this action",
                context={"role": profile.role, "required": sorted(allowed)},
            )
        return profile

    return checker


def get_identity_client() -> IdentityClient:
    """Identity service client built from settings."""
    return IdentityClient()
