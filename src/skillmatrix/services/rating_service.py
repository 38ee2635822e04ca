"""Self-rating service: drafts, submissions and rating history."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from skillmatrix.exceptions import NotFoundError, RuleViolationError
from skillmatrix.models.profile import Profile
from skillmatrix.models.rating import EmployeeRating, RatingHistory
from skillmatrix.schemas.enums import NotificationType, RatingStatus
from skillmatrix.schemas.rating import RatingEntry
from skillmatrix.services.notification_service import NotificationService
from skillmatrix.services.skills_service import SkillsService
from skillmatrix.utils.dates import utcnow

logger = logging.getLogger(__name__)


class RatingService:
    """
    Service for an employee's own ratings.

    A rating unit is either a skill (``subskill_id`` is None) or a subskill.
    There is one EmployeeRating row per unit and employee; saving again
    overwrites it and sends it back through approval.
    """

    def __init__(self, db: Session) -> None:
        """
        Initialize the rating service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.skills = SkillsService(db)
        self.notifications = NotificationService(db)

    def get_rating(self, rating_id: int) -> EmployeeRating:
        rating = self.db.query(EmployeeRating).filter(EmployeeRating.id == rating_id).first()
        if not rating:
            raise NotFoundError("Rating not found", context={"entity": "rating", "id": rating_id})
        return rating

    def find_rating(self, user_id: str, skill_id: int, subskill_id: int | None) -> EmployeeRating | None:
        """Return the rating of one unit for one employee, if any."""
        query = self.db.query(EmployeeRating).filter(
            EmployeeRating.user_id == user_id,
            EmployeeRating.skill_id == skill_id,
        )
        if subskill_id is None:
            query = query.filter(EmployeeRating.subskill_id.is_(None))
        else:
            query = query.filter(EmployeeRating.subskill_id == subskill_id)
        return query.first()

    def _resolve_unit(self, entry: RatingEntry) -> tuple[int, int | None]:
        """Return (skill_id, subskill_id) for an entry, deriving the skill from the subskill."""
        if entry.subskill_id is not None:
            subskill = self.skills.get_subskill(entry.subskill_id)
            if entry.skill_id is not None and entry.skill_id != subskill.skill_id:
                raise RuleViolationError(
                    "Subskill does not belong to the given skill",
                    context={"skill_id": entry.skill_id, "subskill_id": entry.subskill_id},
                )
            return subskill.skill_id, subskill.id

        skill = self.skills.get_skill(entry.skill_id)
        return skill.id, None

    def record_history(
        self,
        user_id: str,
        skill_id: int,
        subskill_id: int | None,
        rating: str,
        rating_type: str,
        rated_by: str,
        comment: str | None = None,
    ) -> RatingHistory:
        """
        Append a rating history entry, superseding the active one of the same type.

        Args:
            user_id: Rated employee
            skill_id: Rated skill
            subskill_id: Rated subskill, None for a skill-level rating
            rating: high, medium or low
            rating_type: self or approved
            rated_by: Profile that gave the rating
            comment: Comment attached to the rating

        Returns:
            The new active RatingHistory entry
        """
        now = utcnow()
        query = self.db.query(RatingHistory).filter(
            RatingHistory.user_id == user_id,
            RatingHistory.skill_id == skill_id,
            RatingHistory.rating_type == rating_type,
            RatingHistory.status == "active",
        )
        if subskill_id is None:
            query = query.filter(RatingHistory.subskill_id.is_(None))
        else:
            query = query.filter(RatingHistory.subskill_id == subskill_id)
        query.update(
            {RatingHistory.status: "superseded", RatingHistory.superseded_at: now},
            synchronize_session=False,
        )

        entry = RatingHistory(
            user_id=user_id,
            skill_id=skill_id,
            subskill_id=subskill_id,
            rating=rating,
            rating_type=rating_type,
            status="active",
            rated_by=rated_by,
            rating_comment=comment,
            created_at=now,
        )
        self.db.add(entry)
        return entry

    def save_ratings(
        self, profile: Profile, entries: list[RatingEntry], submit: bool = True
    ) -> list[EmployeeRating]:
        """
        Save a batch of self ratings for the calling profile.

        Submitted ratings go to the approval queue and are recorded in the
        rating history; drafts are only stored. Re-rating an approved or
        rejected unit reopens it and clears the previous decision.

        Args:
            profile: The rating employee
            entries: Ratings to save
            submit: Submit for approval (True) or keep as draft (False)

        Returns:
            The saved EmployeeRating rows, in input order

        Raises:
            NotFoundError: If a skill or subskill does not exist
            RuleViolationError: If a subskill does not belong to the given skill
        """
        now = utcnow()
        status = RatingStatus.SUBMITTED.value if submit else RatingStatus.DRAFT.value
        saved: list[EmployeeRating] = []

        for entry in entries:
            skill_id, subskill_id = self._resolve_unit(entry)
            rating = self.find_rating(profile.user_id, skill_id, subskill_id)
            if rating is None:
                rating = EmployeeRating(user_id=profile.user_id, skill_id=skill_id, subskill_id=subskill_id)
                self.db.add(rating)

            rating.rating = entry.rating.value
            rating.self_comment = entry.self_comment
            rating.status = status
            rating.approver_comment = None
            rating.approved_by = None
            rating.approved_at = None
            if submit:
                rating.submitted_at = now
                self.record_history(
                    profile.user_id,
                    skill_id,
                    subskill_id,
                    entry.rating.value,
                    "self",
                    profile.user_id,
                    entry.self_comment,
                )
            self.db.flush()
            saved.append(rating)

        logger.info(f"{profile.user_id} saved {len(saved)} ratings as {status}")

        if submit and profile.tech_lead_id:
            self.notifications.notify(
                profile.tech_lead_id,
                "New Skill Ratings Submitted",
                f"{profile.full_name} has submitted {len(saved)} skill rating(s) for your review.",
                NotificationType.INFO,
            )
        return saved

    def list_for_user(self, user_id: str, status: RatingStatus | None = None) -> list[EmployeeRating]:
        query = self.db.query(EmployeeRating).filter(EmployeeRating.user_id == user_id)
        if status is not None:
            query = query.filter(EmployeeRating.status == RatingStatus(status).value)
        return query.order_by(EmployeeRating.updated_at.desc(), EmployeeRating.id.desc()).all()

    def history_for_user(self, user_id: str, skill_id: int | None = None) -> list[RatingHistory]:
        """Return a profile's rating history, newest first."""
        query = self.db.query(RatingHistory).filter(RatingHistory.user_id == user_id)
        if skill_id is not None:
            query = query.filter(RatingHistory.skill_id == skill_id)
        return query.order_by(RatingHistory.created_at.desc(), RatingHistory.id.desc()).all()
