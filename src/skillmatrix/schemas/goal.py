"""Personal goal Pydantic schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from skillmatrix.schemas.enums import GoalStatus, RatingLevel


class GoalCreate(BaseModel):
    """Schema for creating a personal goal."""

    skill_id: int
    target_rating: RatingLevel
    target_date: date
    motivation_notes: str | None = None


class GoalProgressUpdate(BaseModel):
    """Schema for recording progress on a goal."""

    current_rating: RatingLevel
    notes: str | None = None


class Goal(BaseModel):
    """Personal goal response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    skill_id: int
    target_rating: RatingLevel
    current_rating: RatingLevel | None
    target_date: date
    status: GoalStatus
    progress_percentage: int
    motivation_notes: str | None
    completed_at: datetime | None
    created_at: datetime


class GoalProgress(BaseModel):
    """Goal progress history response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    goal_id: int
    previous_rating: RatingLevel | None
    new_rating: RatingLevel | None
    progress_percentage: int
    milestone: str | None
    notes: str | None
    created_at: datetime
