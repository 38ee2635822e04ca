"""Dashboard headline statistics."""

from sqlalchemy.orm import Session

from skillmatrix.models.profile import Profile
from skillmatrix.models.rating import EmployeeRating
from skillmatrix.models.taxonomy import Skill
from skillmatrix.schemas.enums import RatingStatus, UserStatus
from skillmatrix.utils.numbers import percent


def get_dashboard_stats(db: Session) -> dict:
    """
    Count active members, tracked skills, approved share of ratings and pending reviews.

    Args:
        db: SQLAlchemy database session

    Returns:
        Dict matching DashboardStats
    """
    total_ratings = db.query(EmployeeRating).count()
    approved = db.query(EmployeeRating).filter(EmployeeRating.status == RatingStatus.APPROVED.value).count()
    return {
        "active_members": db.query(Profile).filter(Profile.status == UserStatus.ACTIVE.value).count(),
        "skills_tracked": db.query(Skill).count(),
        "completion_rate": percent(approved, total_ratings),
        "pending_reviews": (
            db.query(EmployeeRating).filter(EmployeeRating.status == RatingStatus.SUBMITTED.value).count()
        ),
    }


def system_health(pending: int) -> str:
    """Map the pending approval backlog to Good, Warning (> 10) or Critical (> 20)."""
    if pending > 20:
        return "Critical"
    if pending > 10:
        return "Warning"
    return "Good"


def get_admin_stats(db: Session) -> dict:
    """
    User totals and approval backlog for administrators.

    Returns:
        Dict matching AdminStats
    """
    pending = db.query(EmployeeRating).filter(EmployeeRating.status == RatingStatus.SUBMITTED.value).count()
    return {
        "total_users": db.query(Profile).count(),
        "active_users": db.query(Profile).filter(Profile.status == UserStatus.ACTIVE.value).count(),
        "pending_approvals": pending,
        "system_health": system_health(pending),
    }
