"""Skill meters, XP, badges and the leaderboard."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from skillmatrix.config import GamificationConfig, gamification_config
from skillmatrix.models.gamification import LeaderboardHistory, UserAchievement, UserGamification
from skillmatrix.models.goal import PersonalGoal
from skillmatrix.models.profile import Profile
from skillmatrix.models.rating import EmployeeRating
from skillmatrix.models.taxonomy import Skill, SkillCategory, Subskill
from skillmatrix.schemas.enums import GoalStatus, NotificationType, RatingStatus, UserStatus
from skillmatrix.services.notification_service import NotificationService
from skillmatrix.utils.dates import utcnow, week_start
from skillmatrix.utils.numbers import percent

logger = logging.getLogger(__name__)

BADGE_ICONS = {
    "category_completion": "trophy",
    "skill_master": "crown",
    "multi_skilled": "target",
}


class GamificationService:
    """
    Service computing skill meters and the XP derived from them.

    Recomputing is idempotent: the XP total and level are overwritten with
    the freshly computed values and each badge is stored once per profile.
    """

    def __init__(self, db: Session, config: GamificationConfig | None = None) -> None:
        """
        Initialize the gamification service.

        Args:
            db: SQLAlchemy database session
            config: XP weights and thresholds (uses the loaded config if not provided)
        """
        self.db = db
        self.config = config or gamification_config
        self.notifications = NotificationService(db)

    def _level_for(self, percentage: int) -> str:
        if percentage >= self.config.expert_threshold:
            return "expert"
        if percentage >= self.config.on_track_threshold:
            return "on-track"
        return "developing"

    def category_meters(self, user_id: str) -> list[dict]:
        """
        Compute a completion meter per skill category from approved ratings.

        A skill with subskills contributes one rating unit per subskill;
        a skill without subskills is a unit itself.

        Args:
            user_id: Profile to compute meters for

        Returns:
            One dict per category (ordered by name) with breakdown, percentage,
            level and XP
        """
        approved = (
            self.db.query(EmployeeRating)
            .filter(
                EmployeeRating.user_id == user_id,
                EmployeeRating.status == RatingStatus.APPROVED.value,
            )
            .all()
        )
        subskill_ratings = {r.subskill_id: r.rating for r in approved if r.subskill_id is not None}
        skill_ratings = {r.skill_id: r.rating for r in approved if r.subskill_id is None}

        subskills_by_skill: dict[int, list[int]] = {}
        for subskill_id, skill_id in self.db.query(Subskill.id, Subskill.skill_id).all():
            subskills_by_skill.setdefault(skill_id, []).append(subskill_id)

        skills_by_category: dict[int, list[int]] = {}
        for skill_id, category_id in self.db.query(Skill.id, Skill.category_id).all():
            skills_by_category.setdefault(category_id, []).append(skill_id)

        meters: list[dict] = []
        for category in self.db.query(SkillCategory).order_by(SkillCategory.name).all():
            unit_ratings: list[str | None] = []
            for skill_id in skills_by_category.get(category.id, []):
                subskill_ids = subskills_by_skill.get(skill_id)
                if subskill_ids:
                    unit_ratings.extend(subskill_ratings.get(sid) for sid in subskill_ids)
                else:
                    unit_ratings.append(skill_ratings.get(skill_id))

            breakdown = {
                "high": unit_ratings.count("high"),
                "medium": unit_ratings.count("medium"),
                "low": unit_ratings.count("low"),
                "unrated": sum(1 for rating in unit_ratings if rating is None),
                "total": len(unit_ratings),
            }
            rated = breakdown["high"] + breakdown["medium"] + breakdown["low"]
            percentage = percent(rated, breakdown["total"])
            meters.append(
                {
                    "category_id": category.id,
                    "category_name": category.name,
                    "color": category.color or "#3B82F6",
                    "breakdown": breakdown,
                    "percentage": percentage,
                    "level": self._level_for(percentage),
                    "xp": sum(self.config.weight_for(rating) for rating in unit_ratings),
                }
            )
        return meters

    def compute(self, user_id: str) -> dict:
        """
        Compute meters, overall growth, XP and earned badges without saving.

        Returns:
            Dict with ``categories``, ``overall_percentage``, ``total_xp`` and
            ``badges`` (list of (type, name, description) tuples)
        """
        cfg = self.config
        meters = self.category_meters(user_id)
        total_xp = sum(meter["xp"] for meter in meters)
        badges: list[tuple[str, str, str]] = []

        for meter in meters:
            if meter["breakdown"]["total"] and meter["percentage"] == 100:
                total_xp += cfg.completion_bonus
                badges.append(
                    (
                        "category_completion",
                        f"{meter['category_name']} Champion",
                        f"Rated every skill in {meter['category_name']}",
                    )
                )

        total_units = sum(meter["breakdown"]["total"] for meter in meters)
        rated_units = sum(meter["breakdown"]["total"] - meter["breakdown"]["unrated"] for meter in meters)
        overall = percent(rated_units, total_units)

        if overall >= cfg.skill_master_threshold:
            total_xp += cfg.skill_master_bonus
            badges.append(
                (
                    "skill_master",
                    "Skill Master",
                    f"Rated at least {cfg.skill_master_threshold}% of all skills",
                )
            )

        strong_categories = sum(1 for meter in meters if meter["percentage"] >= cfg.multi_skilled_threshold)
        if strong_categories >= cfg.multi_skilled_categories:
            total_xp += cfg.multi_skilled_bonus
            badges.append(
                (
                    "multi_skilled",
                    "Multi-Skilled",
                    f"Reached {cfg.multi_skilled_threshold}% in "
                    f"{cfg.multi_skilled_categories} or more categories",
                )
            )

        completed_goals = (
            self.db.query(PersonalGoal)
            .filter(PersonalGoal.user_id == user_id, PersonalGoal.status == GoalStatus.COMPLETED.value)
            .count()
        )
        total_xp += completed_goals * cfg.goal_completion_xp

        return {
            "categories": meters,
            "overall_percentage": overall,
            "total_xp": total_xp,
            "badges": badges,
        }

    def level_for_xp(self, total_xp: int) -> int:
        """Level reached with a given XP total (level 1 starts at 0 XP)."""
        return total_xp // self.config.xp_per_level + 1

    def recompute(self, user_id: str) -> dict:
        """
        Recompute and store a profile's XP, level and badges.

        Newly earned badges are recorded and announced with a notification;
        badges already held are left untouched.

        Args:
            user_id: Profile to recompute

        Returns:
            Summary dict matching SkillMeterSummary
        """
        result = self.compute(user_id)
        total_xp = result["total_xp"]
        level = self.level_for_xp(total_xp)

        record = self.db.query(UserGamification).filter(UserGamification.user_id == user_id).first()
        if record is None:
            record = UserGamification(user_id=user_id)
            self.db.add(record)
        record.total_xp = total_xp
        record.level = level

        held = {
            name
            for (name,) in self.db.query(UserAchievement.achievement_name)
            .filter(UserAchievement.user_id == user_id)
            .all()
        }
        new_badges: list[str] = []
        for achievement_type, name, description in result["badges"]:
            if name in held:
                continue
            self.db.add(
                UserAchievement(
                    user_id=user_id,
                    achievement_type=achievement_type,
                    achievement_name=name,
                    description=description,
                    badge_icon=BADGE_ICONS.get(achievement_type, "star"),
                    earned_at=utcnow(),
                )
            )
            new_badges.append(name)
        self.db.flush()

        for name in new_badges:
            self.notifications.notify(
                user_id,
                "Achievement Unlocked!",
                f'You earned the "{name}" badge!',
                NotificationType.SUCCESS,
            )
        if new_badges:
            logger.info(f"{user_id} earned badges: {', '.join(new_badges)}")

        badges = (
            self.db.query(UserAchievement)
            .filter(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.earned_at, UserAchievement.id)
            .all()
        )
        return {
            "user_id": user_id,
            "categories": result["categories"],
            "overall_percentage": result["overall_percentage"],
            "total_xp": total_xp,
            "level": level,
            "badges": badges,
            "new_badges": new_badges,
        }

    def leaderboard(self, limit: int = 10) -> list[dict]:
        """
        Rank active profiles by stored XP.

        Profiles without a gamification record count as 0 XP, level 1.
        Ties are ordered by name.
        """
        badge_counts = dict(
            self.db.query(UserAchievement.user_id, func.count(UserAchievement.id))
            .group_by(UserAchievement.user_id)
            .all()
        )
        rows = (
            self.db.query(Profile, UserGamification)
            .outerjoin(UserGamification, UserGamification.user_id == Profile.user_id)
            .filter(Profile.status == UserStatus.ACTIVE.value)
            .order_by(func.coalesce(UserGamification.total_xp, 0).desc(), Profile.full_name)
            .limit(limit)
            .all()
        )
        return [
            {
                "rank": rank,
                "user_id": profile.user_id,
                "full_name": profile.full_name,
                "department": profile.department,
                "total_xp": stats.total_xp if stats else 0,
                "level": stats.level if stats else 1,
                "badge_count": badge_counts.get(profile.user_id, 0),
            }
            for rank, (profile, stats) in enumerate(rows, start=1)
        ]

    def record_weekly_snapshot(self, today: date | None = None) -> tuple[date, int]:
        """
        Store the full leaderboard for the week containing ``today``.

        Running again in the same week replaces that week's snapshot.

        Returns:
            (Monday of the week, number of rows written)
        """
        monday = week_start(today)
        self.db.query(LeaderboardHistory).filter(LeaderboardHistory.week_start_date == monday).delete(
            synchronize_session=False
        )
        entries = self.leaderboard(limit=self.db.query(Profile).count() or 1)
        for entry in entries:
            self.db.add(
                LeaderboardHistory(
                    user_id=entry["user_id"],
                    rank_position=entry["rank"],
                    total_xp=entry["total_xp"],
                    week_start_date=monday,
                )
            )
        self.db.flush()
        logger.info(f"Recorded leaderboard snapshot for week of {monday} ({len(entries)} entries)")
        return monday, len(entries)
