"""Self-rating API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.enums import RatingStatus
from skillmatrix.schemas.rating import Rating, RatingBatch, RatingHistoryEntry
from skillmatrix.services.rating_service import RatingService

router = APIRouter()


@router.get("/ratings/me", response_model=list[Rating])
def list_my_ratings(
    status: RatingStatus | None = None,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    List the caller's ratings, most recently updated first.

    Args:
        status: Only return ratings with this status.
    """
    return RatingService(db).list_for_user(profile.user_id, status)


@router.get("/ratings/me/history", response_model=list[RatingHistoryEntry])
def my_rating_history(
    skill_id: int | None = None,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return RatingService(db).history_for_user(profile.user_id, skill_id)


@router.post("/ratings", response_model=list[Rating])
def save_ratings(
    batch: RatingBatch,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    Save self ratings as drafts or submit them for approval.

    Each entry targets a skill or a subskill; an existing rating for the same
    unit is updated in place.

    Raises:
        NotFoundError: If a skill or subskill does not exist.
    """
    saved = RatingService(db).save_ratings(profile, batch.ratings, submit=batch.submit)
    db.commit()
    for rating in saved:
        db.refresh(rating)
    return saved
