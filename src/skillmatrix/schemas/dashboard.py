"""Dashboard statistics schema."""

from typing import Literal

from pydantic import BaseModel


class DashboardStats(BaseModel):
    """Headline numbers of the dashboard."""

    active_members: int
    skills_tracked: int
    completion_rate: int
    pending_reviews: int


class AdminStats(BaseModel):
    """User totals and approval backlog shown to administrators."""

    total_users: int
    active_users: int
    pending_approvals: int
    system_health: Literal["Good", "Warning", "Critical"]
