"""Notification and preference schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from skillmatrix.schemas.enums import NotificationType


class Notification(BaseModel):
    """Notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    created_at: datetime


class CategoryVisibility(BaseModel):
    """Categories a profile has chosen to see."""

    visible_category_ids: list[int] = Field(default_factory=list)


class CategoryIds(BaseModel):
    """Schema for adding categories to the visible set."""

    category_ids: list[int] = Field(..., min_length=1)
