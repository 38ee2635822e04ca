"""Skill meter, XP and leaderboard schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class RatingBreakdown(BaseModel):
    """Counts of rating units by level."""

    high: int = 0
    medium: int = 0
    low: int = 0
    unrated: int = 0
    total: int = 0


class CategoryMeter(BaseModel):
    """Completion meter for one skill category."""

    category_id: int
    category_name: str
    color: str
    breakdown: RatingBreakdown
    percentage: int
    level: str
    xp: int


class Badge(BaseModel):
    """An earned badge."""

    model_config = ConfigDict(from_attributes=True)

    achievement_type: str
    achievement_name: str
    description: str | None
    badge_icon: str | None
    earned_at: datetime | None = None


class SkillMeterSummary(BaseModel):
    """All meters of a profile with its XP and level."""

    user_id: str
    categories: list[CategoryMeter] = Field(default_factory=list)
    overall_percentage: int
    total_xp: int
    level: int
    badges: list[Badge] = Field(default_factory=list)
    new_badges: list[str] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    """One row of the leaderboard."""

    rank: int
    user_id: str
    full_name: str
    department: str | None
    total_xp: int
    level: int
    badge_count: int


class LeaderboardSnapshot(BaseModel):
    """Result of recording the weekly leaderboard."""

    week_start_date: date
    entries: int
