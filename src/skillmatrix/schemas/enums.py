"""Enumerations shared by the API schemas and services."""

from enum import Enum


class UserRole(str, Enum):
    """Role tiers, in order of increasing privilege."""

    EMPLOYEE = "employee"
    TECH_LEAD = "tech_lead"
    MANAGER = "manager"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Profile status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class RatingLevel(str, Enum):
    """Proficiency level of a rating."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def value_score(self) -> int:
        """Numeric value used for goal progress and trend averages."""
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class RatingStatus(str, Enum):
    """Rating lifecycle status enumeration."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalAction(str, Enum):
    """Decision taken on a submitted rating."""

    APPROVED = "approved"
    REJECTED = "rejected"


class ProjectStatus(str, Enum):
    """Project status enumeration."""

    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GoalStatus(str, Enum):
    """Personal goal status enumeration."""

    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    """Notification severity enumeration."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ReportStatus(str, Enum):
    """Report generation status enumeration."""

    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportFormat(str, Enum):
    """Requested export format. Only CSV is produced; the others fall back to it."""

    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"


APPROVER_ROLES: frozenset[str] = frozenset(
    {UserRole.TECH_LEAD.value, UserRole.MANAGER.value, UserRole.ADMIN.value}
)
USER_MANAGER_ROLES: frozenset[str] = frozenset({UserRole.MANAGER.value, UserRole.ADMIN.value})
TAXONOMY_EDITOR_ROLES: frozenset[str] = USER_MANAGER_ROLES
