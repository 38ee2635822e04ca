"""Dashboard API router - headline stats, skill meters and leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, require_roles
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.dashboard import AdminStats, DashboardStats
from skillmatrix.schemas.enums import USER_MANAGER_ROLES, UserRole
from skillmatrix.schemas.gamification import LeaderboardEntry, LeaderboardSnapshot, SkillMeterSummary
from skillmatrix.services.dashboard_service import get_admin_stats, get_dashboard_stats
from skillmatrix.services.gamification import GamificationService

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(db: Session = Depends(get_db), _: Profile = Depends(get_current_profile)):
    return get_dashboard_stats(db)


@router.get("/dashboard/admin-stats", response_model=AdminStats)
def admin_stats(db: Session = Depends(get_db), _: Profile = Depends(require_roles(UserRole.ADMIN.value))):
    """Total and active users, pending approvals and the health derived from the backlog."""
    return get_admin_stats(db)


@router.get("/dashboard/meters", response_model=SkillMeterSummary)
def my_skill_meters(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    """
    Compute the caller's skill meters, XP and level.

    Stored XP and badges are refreshed on every call; badge notifications are
    only sent for newly earned badges.
    """
    summary = GamificationService(db).recompute(profile.user_id)
    db.commit()
    return summary


@router.get("/dashboard/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(limit: int = 10, db: Session = Depends(get_db), _: Profile = Depends(get_current_profile)):
    return GamificationService(db).leaderboard(limit)


@router.post("/dashboard/leaderboard/snapshot", response_model=LeaderboardSnapshot)
def record_leaderboard_snapshot(
    db: Session = Depends(get_db),
    _: Profile = Depends(require_roles(*USER_MANAGER_ROLES)),
):
    """Store this week's leaderboard, replacing a snapshot taken earlier in the week."""
    monday, entries = GamificationService(db).record_weekly_snapshot()
    db.commit()
    return LeaderboardSnapshot(week_start_date=monday, entries=entries)
