"""Database models package."""

from skillmatrix.models.audit import ImportExportLog, ReportLog
from skillmatrix.models.gamification import LeaderboardHistory, UserAchievement, UserGamification
from skillmatrix.models.goal import GoalProgressHistory, PersonalGoal
from skillmatrix.models.notification import Notification, UserCategoryPreference
from skillmatrix.models.profile import Profile
from skillmatrix.models.project import Project, ProjectAssignment
from skillmatrix.models.rating import ApprovalLog, EmployeeRating, RatingHistory
from skillmatrix.models.taxonomy import Skill, SkillCategory, Subskill

__all__ = [
    "ApprovalLog",
    "EmployeeRating",
    "GoalProgressHistory",
    "ImportExportLog",
    "LeaderboardHistory",
    "Notification",
    "PersonalGoal",
    "Profile",
    "Project",
    "ProjectAssignment",
    "RatingHistory",
    "ReportLog",
    "Skill",
    "SkillCategory",
    "Subskill",
    "UserAchievement",
    "UserCategoryPreference",
    "UserGamification",
]
