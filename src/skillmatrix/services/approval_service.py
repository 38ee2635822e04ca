"""Approval workflow for submitted ratings."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from skillmatrix.config import settings
from skillmatrix.exceptions import (
    InvalidStatusTransitionError,
    PermissionDeniedError,
    RuleViolationError,
)
from skillmatrix.models.profile import Profile
from skillmatrix.models.rating import ApprovalLog, EmployeeRating
from skillmatrix.models.taxonomy import Skill, Subskill
from skillmatrix.schemas.enums import (
    APPROVER_ROLES,
    ApprovalAction,
    NotificationType,
    RatingLevel,
    RatingStatus,
    UserRole,
)
from skillmatrix.services.gamification import GamificationService
from skillmatrix.services.goal_service import GoalService
from skillmatrix.services.notification_service import NotificationService
from skillmatrix.services.rating_service import RatingService
from skillmatrix.utils.dates import utcnow

logger = logging.getLogger(__name__)

PRIORITY_BY_RATING = {"high": "High", "medium": "Medium", "low": "Low"}
DECIDED_STATUSES = (RatingStatus.APPROVED.value, RatingStatus.REJECTED.value)


class ApprovalService:
    """
    Service for tech leads, managers and admins reviewing submitted ratings.

    Only ``submitted`` ratings can be decided. Approving may adjust the level;
    rejecting requires a comment. Every decision is written to
    ``approval_logs`` and announced to the employee.
    """

    def __init__(self, db: Session) -> None:
        """
        Initialize the approval service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.ratings = RatingService(db)
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # Shaping helpers
    # ------------------------------------------------------------------

    def _names(self, ratings: list[EmployeeRating]) -> tuple[dict[int, str], dict[int, str]]:
        skill_ids = {r.skill_id for r in ratings}
        subskill_ids = {r.subskill_id for r in ratings if r.subskill_id is not None}
        skills = (
            dict(self.db.query(Skill.id, Skill.name).filter(Skill.id.in_(skill_ids)).all())
            if skill_ids
            else {}
        )
        subskills = (
            dict(self.db.query(Subskill.id, Subskill.name).filter(Subskill.id.in_(subskill_ids)).all())
            if subskill_ids
            else {}
        )
        return skills, subskills

    def _profiles(self, user_ids: set[str]) -> dict[str, Profile]:
        if not user_ids:
            return {}
        return {p.user_id: p for p in self.db.query(Profile).filter(Profile.user_id.in_(user_ids)).all()}

    @staticmethod
    def _title(rating: EmployeeRating, skills: dict[int, str], subskills: dict[int, str]) -> str:
        title = skills.get(rating.skill_id, "Unknown Skill")
        if rating.subskill_id is not None:
            title = f"{title} - {subskills.get(rating.subskill_id, 'Unknown Subskill')}"
        return title

    def _to_request(
        self,
        rating: EmployeeRating,
        requester: Profile | None,
        skills: dict[int, str],
        subskills: dict[int, str],
        now: datetime,
    ) -> dict:
        is_tech_lead = requester is not None and requester.role == UserRole.TECH_LEAD.value
        description = (
            f"{'Tech Lead' if is_tech_lead else 'Employee'} self-rated as {rating.rating.upper()} level"
        )
        if rating.self_comment:
            description += f': "{rating.self_comment}"'
        submit_date = rating.submitted_at or rating.created_at
        due_date = submit_date + timedelta(days=settings.approval_due_days)
        return {
            "id": rating.id,
            "type": "Tech Lead Self-Assessment" if is_tech_lead else "Skill Assessment",
            "requester": requester.full_name if requester else "Unknown User",
            "requester_id": rating.user_id,
            "title": self._title(rating, skills, subskills),
            "description": description,
            "priority": PRIORITY_BY_RATING.get(rating.rating, "Low"),
            "submit_date": submit_date,
            "due_date": due_date,
            "overdue": due_date < now,
            "rating": rating.rating,
            "skill_id": rating.skill_id,
            "subskill_id": rating.subskill_id,
        }

    def _to_action(
        self,
        rating: EmployeeRating,
        profiles: dict[str, Profile],
        skills: dict[int, str],
        subskills: dict[int, str],
    ) -> dict:
        employee = profiles.get(rating.user_id)
        approver = profiles.get(rating.approved_by) if rating.approved_by else None
        return {
            "rating_id": rating.id,
            "action": rating.status,
            "employee_id": rating.user_id,
            "employee_name": employee.full_name if employee else "Unknown",
            "approver_id": rating.approved_by,
            "approver_name": approver.full_name if approver else None,
            "title": self._title(rating, skills, subskills),
            "rating": rating.rating,
            "approver_comment": rating.approver_comment,
            "decided_at": rating.approved_at,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def pending_requests(self, search: str | None = None) -> list[dict]:
        """
        List every submitted rating shaped as an approval request.

        Args:
            search: Optional case-insensitive filter on requester or title

        Returns:
            Approval request dicts, oldest submission first
        """
        ratings = (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.status == RatingStatus.SUBMITTED.value)
            .order_by(EmployeeRating.submitted_at, EmployeeRating.id)
            .all()
        )
        skills, subskills = self._names(ratings)
        profiles = self._profiles({r.user_id for r in ratings})
        now = utcnow()
        requests = [self._to_request(r, profiles.get(r.user_id), skills, subskills, now) for r in ratings]

        if search:
            needle = search.strip().lower()
            requests = [
                req
                for req in requests
                if needle in req["requester"].lower() or needle in req["title"].lower()
            ]
        return requests

    def pending_by_employee(self) -> list[dict]:
        """Group pending requests per employee, in order of their first submission."""
        groups: dict[str, dict] = {}
        requests = self.pending_requests()
        profiles = self._profiles({req["requester_id"] for req in requests})
        for req in requests:
            user_id = req["requester_id"]
            if user_id not in groups:
                profile = profiles.get(user_id)
                groups[user_id] = {
                    "user_id": user_id,
                    "full_name": profile.full_name if profile else "Unknown User",
                    "email": profile.email if profile else "",
                    "pending_count": 0,
                    "first_submitted_at": req["submit_date"],
                    "ratings": [],
                }
            groups[user_id]["pending_count"] += 1
            groups[user_id]["ratings"].append(req)
        return list(groups.values())

    def pending_count(self, profile: Profile) -> int:
        """Number of ratings awaiting review, 0 for profiles that cannot approve."""
        if profile.role not in APPROVER_ROLES:
            return 0
        return (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.status == RatingStatus.SUBMITTED.value)
            .count()
        )

    def recent_actions(self, limit: int = 20) -> list[dict]:
        """Most recent approve and reject decisions, newest first."""
        ratings = (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.status.in_(DECIDED_STATUSES))
            .order_by(EmployeeRating.approved_at.desc(), EmployeeRating.id.desc())
            .limit(limit)
            .all()
        )
        skills, subskills = self._names(ratings)
        user_ids = {r.user_id for r in ratings} | {r.approved_by for r in ratings if r.approved_by}
        profiles = self._profiles(user_ids)
        return [self._to_action(r, profiles, skills, subskills) for r in ratings]

    def today(self) -> dict:
        """Approvals and rejections decided since midnight UTC."""
        midnight = datetime.combine(utcnow().date(), datetime.min.time())
        ratings = (
            self.db.query(EmployeeRating)
            .filter(
                EmployeeRating.status.in_(DECIDED_STATUSES),
                EmployeeRating.approved_at >= midnight,
            )
            .order_by(EmployeeRating.approved_at.desc(), EmployeeRating.id.desc())
            .all()
        )
        skills, subskills = self._names(ratings)
        user_ids = {r.user_id for r in ratings} | {r.approved_by for r in ratings if r.approved_by}
        profiles = self._profiles(user_ids)
        actions = [self._to_action(r, profiles, skills, subskills) for r in ratings]
        approved = [a for a in actions if a["action"] == RatingStatus.APPROVED.value]
        rejected = [a for a in actions if a["action"] == RatingStatus.REJECTED.value]
        return {
            "approved_count": len(approved),
            "rejected_count": len(rejected),
            "approved": approved,
            "rejected": rejected,
        }

    def employee_history(self, user_id: str) -> list[dict]:
        """Every decided rating of one employee, newest decision first."""
        ratings = (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.user_id == user_id, EmployeeRating.status.in_(DECIDED_STATUSES))
            .order_by(EmployeeRating.approved_at.desc(), EmployeeRating.id.desc())
            .all()
        )
        skills, subskills = self._names(ratings)
        user_ids = {user_id} | {r.approved_by for r in ratings if r.approved_by}
        profiles = self._profiles(user_ids)
        return [self._to_action(r, profiles, skills, subskills) for r in ratings]

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def _check_decidable(self, rating: EmployeeRating, approver: Profile, action: ApprovalAction) -> None:
        if rating.status != RatingStatus.SUBMITTED.value:
            raise InvalidStatusTransitionError(
                f"Only submitted ratings can be {action.value}",
                context={
                    "rating_id": rating.id,
                    "current_status": rating.status,
                    "requested_status": action.value,
                },
            )
        if rating.user_id == approver.user_id:
            raise PermissionDeniedError(
                "You cannot review your own rating", context={"rating_id": rating.id}
            )

    def approve(
        self,
        rating_id: int,
        approver: Profile,
        comment: str | None = None,
        adjusted_rating: RatingLevel | None = None,
    ) -> EmployeeRating:
        """
        Approve a submitted rating.

        Args:
            rating_id: Rating to approve
            approver: Reviewing profile
            comment: Optional comment for the employee
            adjusted_rating: Level to approve instead of the self rating

        Returns:
            The approved rating

        Raises:
            NotFoundError: If the rating does not exist
            InvalidStatusTransitionError: If the rating is not submitted
            PermissionDeniedError: If the approver owns the rating
        """
        rating = self.ratings.get_rating(rating_id)
        self._check_decidable(rating, approver, ApprovalAction.APPROVED)

        previous = rating.rating
        new_rating = RatingLevel(adjusted_rating).value if adjusted_rating else previous
        comment = (comment or "").strip() or None

        rating.status = RatingStatus.APPROVED.value
        rating.rating = new_rating
        rating.approved_by = approver.user_id
        rating.approved_at = utcnow()
        rating.approver_comment = comment

        self.db.add(
            ApprovalLog(
                rating_id=rating.id,
                approver_id=approver.user_id,
                action=ApprovalAction.APPROVED.value,
                approver_comment=comment,
                employee_comment=rating.self_comment,
                previous_rating=previous,
                new_rating=new_rating,
                created_at=utcnow(),
            )
        )
        self.ratings.record_history(
            rating.user_id,
            rating.skill_id,
            rating.subskill_id,
            new_rating,
            "approved",
            approver.user_id,
            comment,
        )
        self.db.flush()

        skills, subskills = self._names([rating])
        title = self._title(rating, skills, subskills)
        message = f"Your rating for {title} was approved as {new_rating.upper()}."
        if new_rating != previous:
            message = (
                f"Your rating for {title} was approved and adjusted "
                f"from {previous.upper()} to {new_rating.upper()}."
            )
        self.notifications.notify(rating.user_id, "Skill Rating Approved", message, NotificationType.SUCCESS)

        GoalService(self.db).apply_approved_rating(rating.user_id, rating.skill_id, new_rating)
        GamificationService(self.db).recompute(rating.user_id)

        logger.info(f"{approver.user_id} approved rating {rating.id} ({previous} -> {new_rating})")
        return rating

    def reject(self, rating_id: int, approver: Profile, comment: str) -> EmployeeRating:
        """
        Reject a submitted rating with a required comment.

        Raises:
            NotFoundError: If the rating does not exist
            RuleViolationError: If the comment is empty
            InvalidStatusTransitionError: If the rating is not submitted
            PermissionDeniedError: If the approver owns the rating
        """
        comment = (comment or "").strip()
        if not comment:
            raise RuleViolationError("Comment is required when rejecting ratings")

        rating = self.ratings.get_rating(rating_id)
        self._check_decidable(rating, approver, ApprovalAction.REJECTED)

        rating.status = RatingStatus.REJECTED.value
        rating.approved_by = approver.user_id
        rating.approved_at = utcnow()
        rating.approver_comment = comment

        self.db.add(
            ApprovalLog(
                rating_id=rating.id,
                approver_id=approver.user_id,
                action=ApprovalAction.REJECTED.value,
                approver_comment=comment,
                employee_comment=rating.self_comment,
                previous_rating=rating.rating,
                new_rating=rating.rating,
                created_at=utcnow(),
            )
        )
        self.db.flush()

        skills, subskills = self._names([rating])
        self.notifications.notify(
            rating.user_id,
            "Skill Rating Rejected",
            f"Your rating for {self._title(rating, skills, subskills)} was rejected: {comment}",
            NotificationType.WARNING,
        )
        logger.info(f"{approver.user_id} rejected rating {rating.id}")
        return rating
