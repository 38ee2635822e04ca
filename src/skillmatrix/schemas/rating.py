"""Rating and approval Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from skillmatrix.schemas.enums import ApprovalAction, RatingLevel, RatingStatus


class RatingEntry(BaseModel):
    """One self rating, targeting a skill or a subskill."""

    skill_id: int | None = None
    subskill_id: int | None = None
    rating: RatingLevel
    self_comment: str | None = None

    @model_validator(mode="after")
    def check_target(self) -> "RatingEntry":
        """Require a skill or a subskill to rate."""
        if self.skill_id is None and self.subskill_id is None:
            raise ValueError("Either skill_id or subskill_id is required")
        return self


class RatingBatch(BaseModel):
    """Schema for saving a batch of self ratings."""

    ratings: list[RatingEntry] = Field(..., min_length=1)
    submit: bool = True


class Rating(BaseModel):
    """Employee rating response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    skill_id: int
    subskill_id: int | None
    rating: RatingLevel
    status: RatingStatus
    self_comment: str | None
    approver_comment: str | None
    approved_by: str | None
    approved_at: datetime | None
    submitted_at: datetime | None
    created_at: datetime
    updated_at: datetime


class RatingHistoryEntry(BaseModel):
    """Rating history response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    skill_id: int
    subskill_id: int | None
    rating: RatingLevel
    rating_type: str
    status: str
    rated_by: str | None
    rating_comment: str | None
    superseded_at: datetime | None
    created_at: datetime


class ApproveRequest(BaseModel):
    """Schema for approving a rating, optionally with an adjusted level."""

    comment: str | None = None
    adjusted_rating: RatingLevel | None = None


class RejectRequest(BaseModel):
    """Schema for rejecting a rating. A comment is required."""

    comment: str = Field(..., min_length=1)


class ApprovalRequest(BaseModel):
    """A submitted rating shaped for an approver's inbox."""

    id: int
    type: str
    requester: str
    requester_id: str
    title: str
    description: str
    priority: str
    submit_date: datetime
    due_date: datetime
    overdue: bool
    rating: RatingLevel
    skill_id: int
    subskill_id: int | None


class EmployeeApprovalGroup(BaseModel):
    """Pending approvals grouped per employee."""

    user_id: str
    full_name: str
    email: str
    pending_count: int
    first_submitted_at: datetime | None
    ratings: list[ApprovalRequest] = Field(default_factory=list)


class ApprovalActionItem(BaseModel):
    """A decided rating in the recent-actions and today lists."""

    rating_id: int
    action: ApprovalAction
    employee_id: str
    employee_name: str
    approver_id: str | None
    approver_name: str | None
    title: str
    rating: RatingLevel
    approver_comment: str | None
    decided_at: datetime | None


class TodayApprovals(BaseModel):
    """Approvals and rejections decided today."""

    approved_count: int
    rejected_count: int
    approved: list[ApprovalActionItem] = Field(default_factory=list)
    rejected: list[ApprovalActionItem] = Field(default_factory=list)
