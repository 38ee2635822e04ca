"""Gamification models: XP totals, earned badges and weekly leaderboard snapshots."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from skillmatrix.database import Base


class UserGamification(Base):
    """Current XP total and level of a profile."""

    __tablename__ = "user_gamification"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, unique=True)
    total_xp = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of UserGamification."""
        return f"<UserGamification(user_id='{self.user_id}', xp={self.total_xp}, level={self.level})>"


class UserAchievement(Base):
    """
    A badge earned by a profile.

    Attributes:
        achievement_type: category_completion, skill_master or multi_skilled
        achievement_name: Badge title, unique per profile
        badge_icon: Short icon identifier for clients
    """

    __tablename__ = "user_achievements"
    __table_args__ = (UniqueConstraint("user_id", "achievement_name", name="uq_user_achievement"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    achievement_type = Column(String, nullable=False)
    achievement_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    badge_icon = Column(String, nullable=True)
    earned_at = Column(DateTime, server_default=func.now(), nullable=False)


class LeaderboardHistory(Base):
    """Rank of a profile in the snapshot taken for one week."""

    __tablename__ = "leaderboard_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    rank_position = Column(Integer, nullable=False)
    total_xp = Column(Integer, nullable=False)
    week_start_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
