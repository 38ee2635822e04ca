"""Personal goals API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, require_roles
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.common import CountResponse
from skillmatrix.schemas.enums import USER_MANAGER_ROLES, GoalStatus
from skillmatrix.schemas.goal import Goal, GoalCreate, GoalProgress, GoalProgressUpdate
from skillmatrix.services.gamification import GamificationService
from skillmatrix.services.goal_service import GoalService

router = APIRouter()


@router.get("/goals", response_model=list[Goal])
def list_goals(
    status: GoalStatus | None = None,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    List the caller's goals, newest first.

    Overdue goals are marked before listing.
    """
    service = GoalService(db)
    if service.mark_overdue(profile.user_id):
        db.commit()
    return service.list_goals(profile.user_id, status)


@router.post("/goals", response_model=Goal, status_code=201)
def create_goal(
    data: GoalCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    Create a goal on a skill.

    Raises:
        NotFoundError: If the skill does not exist.
        RuleViolationError: If the target date is in the past.
    """
    goal = GoalService(db).create_goal(
        profile.user_id, data.skill_id, data.target_rating, data.target_date, data.motivation_notes
    )
    db.commit()
    db.refresh(goal)
    return goal


@router.patch("/goals/{goal_id}/progress", response_model=Goal)
def update_goal_progress(
    goal_id: int,
    data: GoalProgressUpdate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    service = GoalService(db)
    goal = service.get_goal(goal_id, profile.user_id)
    goal = service.update_progress(goal, data.current_rating, data.notes)
    if goal.status == GoalStatus.COMPLETED.value:
        GamificationService(db).recompute(profile.user_id)
    db.commit()
    db.refresh(goal)
    return goal


@router.post("/goals/{goal_id}/cancel", response_model=Goal)
def cancel_goal(goal_id: int, db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    service = GoalService(db)
    goal = service.cancel_goal(service.get_goal(goal_id, profile.user_id))
    db.commit()
    db.refresh(goal)
    return goal


@router.get("/goals/{goal_id}/history", response_model=list[GoalProgress])
def goal_history(
    goal_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return GoalService(db).history(goal_id, profile.user_id)


@router.post("/goals/maintenance/overdue", response_model=CountResponse)
def mark_overdue_goals(
    db: Session = Depends(get_db),
    _: Profile = Depends(require_roles(*USER_MANAGER_ROLES)),
):
    """Mark every active goal past its target date as overdue."""
    count = GoalService(db).mark_overdue()
    db.commit()
    return CountResponse(count=count)


@router.post("/goals/maintenance/reminders", response_model=CountResponse)
def send_goal_reminders(
    db: Session = Depends(get_db),
    _: Profile = Depends(require_roles(*USER_MANAGER_ROLES)),
):
    """Notify owners of active goals due within the reminder window."""
    count = GoalService(db).send_reminders()
    db.commit()
    return CountResponse(count=count)
