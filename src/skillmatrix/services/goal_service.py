"""Personal goal service: progress, milestones, overdue marking and reminders."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from skillmatrix.config import settings
from skillmatrix.exceptions import InvalidStatusTransitionError, NotFoundError, RuleViolationError
from skillmatrix.models.goal import GoalProgressHistory, PersonalGoal
from skillmatrix.models.rating import EmployeeRating
from skillmatrix.schemas.enums import GoalStatus, NotificationType, RatingLevel, RatingStatus
from skillmatrix.services.notification_service import NotificationService
from skillmatrix.services.skills_service import SkillsService
from skillmatrix.utils.dates import utcnow
from skillmatrix.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

OPEN_GOAL_STATUSES = (GoalStatus.ACTIVE.value, GoalStatus.OVERDUE.value)


def calculate_progress(current_rating: str | None, target_rating: str) -> int:
    """
    Compute goal progress from the current and target rating.

    Args:
        current_rating: high, medium, low or None
        target_rating: high, medium or low

    Returns:
        Percentage between 0 and 100

    Examples:
        >>> calculate_progress("medium", "high")
        67
        >>> calculate_progress("high", "medium")
        100
    """
    if not current_rating:
        return 0
    current = RatingLevel(current_rating).value_score
    target = RatingLevel(target_rating).value_score
    return int(min(100, round_half_up(current / target * 100)))


def milestone_for(progress: int) -> str | None:
    """Return the milestone label reached at a progress value."""
    if progress >= 100:
        return "completed"
    if progress >= 80:
        return "80_percent"
    if progress >= 50:
        return "50_percent"
    return None


class GoalService:
    """Service for personal skill goals."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.notifications = NotificationService(db)

    def get_goal(self, goal_id: int, user_id: str | None = None) -> PersonalGoal:
        """
        Fetch a goal, optionally requiring that it belongs to ``user_id``.

        Raises:
            NotFoundError: If the goal does not exist or is someone else's
        """
        query = self.db.query(PersonalGoal).filter(PersonalGoal.id == goal_id)
        if user_id is not None:
            query = query.filter(PersonalGoal.user_id == user_id)
        goal = query.first()
        if not goal:
            raise NotFoundError("Goal not found", context={"entity": "goal", "id": goal_id})
        return goal

    def list_goals(self, user_id: str, status: GoalStatus | None = None) -> list[PersonalGoal]:
        query = self.db.query(PersonalGoal).filter(PersonalGoal.user_id == user_id)
        if status is not None:
            query = query.filter(PersonalGoal.status == GoalStatus(status).value)
        return query.order_by(PersonalGoal.created_at.desc(), PersonalGoal.id.desc()).all()

    def history(self, goal_id: int, user_id: str) -> list[GoalProgressHistory]:
        self.get_goal(goal_id, user_id)
        return (
            self.db.query(GoalProgressHistory)
            .filter(GoalProgressHistory.goal_id == goal_id)
            .order_by(GoalProgressHistory.created_at.desc(), GoalProgressHistory.id.desc())
            .all()
        )

    def _approved_rating(self, user_id: str, skill_id: int) -> str | None:
        rating = (
            self.db.query(EmployeeRating)
            .filter(
                EmployeeRating.user_id == user_id,
                EmployeeRating.skill_id == skill_id,
                EmployeeRating.subskill_id.is_(None),
                EmployeeRating.status == RatingStatus.APPROVED.value,
            )
            .first()
        )
        return rating.rating if rating else None

    def create_goal(
        self,
        user_id: str,
        skill_id: int,
        target_rating: RatingLevel,
        target_date: date,
        motivation_notes: str | None = None,
    ) -> PersonalGoal:
        """
        Create a goal, seeding the current rating from the approved skill rating.

        Raises:
            NotFoundError: If the skill does not exist
            RuleViolationError: If the target date is in the past
        """
        SkillsService(self.db).get_skill(skill_id)
        if target_date < utcnow().date():
            raise RuleViolationError(
                "Target date must not be in the past", context={"target_date": target_date.isoformat()}
            )

        target = RatingLevel(target_rating).value
        current = self._approved_rating(user_id, skill_id)
        progress = calculate_progress(current, target)
        goal = PersonalGoal(
            user_id=user_id,
            skill_id=skill_id,
            target_rating=target,
            current_rating=current,
            target_date=target_date,
            status=GoalStatus.COMPLETED.value if progress >= 100 else GoalStatus.ACTIVE.value,
            progress_percentage=progress,
            motivation_notes=motivation_notes,
            completed_at=utcnow() if progress >= 100 else None,
        )
        self.db.add(goal)
        self.db.flush()
        logger.info(f"{user_id} created goal {goal.id} on skill {skill_id} targeting {target}")
        return goal

    def update_progress(
        self,
        goal: PersonalGoal,
        new_rating: RatingLevel | str,
        notes: str | None = None,
    ) -> PersonalGoal:
        """
        Record a new current rating on an open goal.

        Writes a progress history row with the milestone reached and completes
        the goal when progress hits 100.

        Args:
            goal: Goal to update
            new_rating: The new current rating
            notes: Optional note, defaults to a description of the change

        Returns:
            The updated goal

        Raises:
            InvalidStatusTransitionError: If the goal is completed or cancelled
        """
        if goal.status not in OPEN_GOAL_STATUSES:
            raise InvalidStatusTransitionError(
                f"Cannot update a {goal.status} goal",
                context={"current_status": goal.status, "requested_status": "progress"},
            )

        new_value = RatingLevel(new_rating).value
        previous = goal.current_rating
        progress = calculate_progress(new_value, goal.target_rating)

        goal.current_rating = new_value
        goal.progress_percentage = progress
        if progress >= 100:
            goal.status = GoalStatus.COMPLETED.value
            goal.completed_at = utcnow()

        self.db.add(
            GoalProgressHistory(
                goal_id=goal.id,
                previous_rating=previous,
                new_rating=new_value,
                progress_percentage=progress,
                milestone=milestone_for(progress),
                notes=notes or f"Rating updated from {previous or 'unrated'} to {new_value}",
                created_at=utcnow(),
            )
        )
        self.db.flush()

        if goal.status == GoalStatus.COMPLETED.value:
            self.notifications.notify(
                goal.user_id,
                "Goal Completed!",
                "Congratulations! You've achieved your skill goal.",
                NotificationType.SUCCESS,
            )
        logger.info(f"Goal {goal.id} progress {progress}% ({previous} -> {new_value})")
        return goal

    def apply_approved_rating(self, user_id: str, skill_id: int, rating: str) -> int:
        """
        Move every open goal of a profile on a skill to a newly approved rating.

        Returns:
            Number of goals updated
        """
        goals = (
            self.db.query(PersonalGoal)
            .filter(
                PersonalGoal.user_id == user_id,
                PersonalGoal.skill_id == skill_id,
                PersonalGoal.status.in_(OPEN_GOAL_STATUSES),
            )
            .all()
        )
        for goal in goals:
            self.update_progress(goal, rating, notes=f"Approved rating: {rating}")
        return len(goals)

    def cancel_goal(self, goal: PersonalGoal) -> PersonalGoal:
        if goal.status not in OPEN_GOAL_STATUSES:
            raise InvalidStatusTransitionError(
                f"Cannot cancel a {goal.status} goal",
                context={"current_status": goal.status, "requested_status": GoalStatus.CANCELLED.value},
            )
        goal.status = GoalStatus.CANCELLED.value
        self.db.flush()
        return goal

    def mark_overdue(self, user_id: str | None = None, today: date | None = None) -> int:
        """
        Mark active goals whose target date has passed as overdue.

        Args:
            user_id: Limit to one profile (all profiles when None)
            today: Reference date (defaults to the current UTC date)

        Returns:
            Number of goals marked overdue
        """
        today = today or utcnow().date()
        query = self.db.query(PersonalGoal).filter(
            PersonalGoal.status == GoalStatus.ACTIVE.value,
            PersonalGoal.target_date < today,
        )
        if user_id is not None:
            query = query.filter(PersonalGoal.user_id == user_id)
        updated = query.update({PersonalGoal.status: GoalStatus.OVERDUE.value}, synchronize_session=False)
        if updated:
            logger.info(f"Marked {updated} goals overdue")
        return updated

    def send_reminders(self, days: int | None = None, today: date | None = None) -> int:
        """
        Notify owners of active goals due within the reminder window.

        Returns:
            Number of reminders sent
        """
        days = settings.goal_reminder_days if days is None else days
        today = today or utcnow().date()
        goals = (
            self.db.query(PersonalGoal)
            .filter(
                PersonalGoal.status == GoalStatus.ACTIVE.value,
                PersonalGoal.target_date >= today,
                PersonalGoal.target_date <= today + timedelta(days=days),
            )
            .all()
        )
        for goal in goals:
            remaining = (goal.target_date - today).days
            self.notifications.notify(
                goal.user_id,
                "Goal Deadline Approaching",
                f"Your goal is due in {remaining} day(s) and is {goal.progress_percentage}% complete.",
                NotificationType.WARNING,
            )
        logger.info(f"Sent {len(goals)} goal reminders")
        return len(goals)
