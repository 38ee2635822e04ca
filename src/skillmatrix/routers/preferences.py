"""Category visibility preferences API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.notification import CategoryIds, CategoryVisibility
from skillmatrix.services.preference_service import PreferenceService

router = APIRouter()


@router.get("/preferences/categories", response_model=CategoryVisibility)
def get_visible_categories(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    return CategoryVisibility(visible_category_ids=PreferenceService(db).get_visible(profile.user_id))


@router.put("/preferences/categories", response_model=CategoryVisibility)
def set_visible_categories(
    data: CategoryVisibility,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Replace the caller's visible categories."""
    visible = PreferenceService(db).set_visible(profile.user_id, data.visible_category_ids)
    db.commit()
    return CategoryVisibility(visible_category_ids=visible)


@router.post("/preferences/categories", response_model=CategoryVisibility)
def add_visible_categories(
    data: CategoryIds,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    visible = PreferenceService(db).add_visible(profile.user_id, data.category_ids)
    db.commit()
    return CategoryVisibility(visible_category_ids=visible)


@router.delete("/preferences/categories/{category_id}", response_model=CategoryVisibility)
def hide_category(
    category_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    visible = PreferenceService(db).hide(profile.user_id, category_id)
    db.commit()
    return CategoryVisibility(visible_category_ids=visible)
