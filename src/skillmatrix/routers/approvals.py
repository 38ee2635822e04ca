"""Approvals API router - review queue and approve / reject decisions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, require_roles
from skillmatrix.exceptions import PermissionDeniedError
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.common import CountResponse
from skillmatrix.schemas.enums import APPROVER_ROLES
from skillmatrix.schemas.rating import (
    ApprovalActionItem,
    ApprovalRequest,
    ApproveRequest,
    EmployeeApprovalGroup,
    Rating,
    RejectRequest,
    TodayApprovals,
)
from skillmatrix.services.approval_service import ApprovalService

router = APIRouter()

approver = require_roles(*APPROVER_ROLES)


@router.get("/approvals/pending", response_model=list[ApprovalRequest])
def list_pending(
    search: str | None = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(approver),
):
    """
    List every submitted rating, oldest submission first.

    Args:
        search: Case-insensitive match on requester name or skill title.
    """
    return ApprovalService(db).pending_requests(search)


@router.get("/approvals/pending/by-employee", response_model=list[EmployeeApprovalGroup])
def list_pending_by_employee(db: Session = Depends(get_db), _: Profile = Depends(approver)):
    return ApprovalService(db).pending_by_employee()


@router.get("/approvals/pending/count", response_model=CountResponse)
def pending_count(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    """Number of ratings awaiting review; zero for profiles that cannot approve."""
    return CountResponse(count=ApprovalService(db).pending_count(profile))


@router.get("/approvals/recent", response_model=list[ApprovalActionItem])
def recent_actions(limit: int = 20, db: Session = Depends(get_db), _: Profile = Depends(approver)):
    return ApprovalService(db).recent_actions(limit)


@router.get("/approvals/today", response_model=TodayApprovals)
def today(db: Session = Depends(get_db), _: Profile = Depends(approver)):
    return ApprovalService(db).today()


@router.get("/approvals/history/{user_id}", response_model=list[ApprovalActionItem])
def employee_history(
    user_id: str,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    Decided ratings of one employee.

    Employees may read their own history; approvers may read anyone's.
    """
    if profile.user_id != user_id and profile.role not in APPROVER_ROLES:
        raise PermissionDeniedError(
            "You do not have permission to perform this action",
            context={"role": profile.role},
        )
    return ApprovalService(db).employee_history(user_id)


@router.post("/approvals/{rating_id}/approve", response_model=Rating)
def approve_rating(
    rating_id: int,
    data: ApproveRequest,
    db: Session = Depends(get_db),
    profile: Profile = Depends(approver),
):
    """
    Approve a submitted rating, optionally adjusting its level.

    Raises:
        InvalidStatusTransitionError: If the rating is not submitted.
        PermissionDeniedError: If the caller owns the rating.
    """
    rating = ApprovalService(db).approve(rating_id, profile, data.comment, data.adjusted_rating)
    db.commit()
    db.refresh(rating)
    return rating


@router.post("/approvals/{rating_id}/reject", response_model=Rating)
def reject_rating(
    rating_id: int,
    data: RejectRequest,
    db: Session = Depends(get_db),
    profile: Profile = Depends(approver),
):
    rating = ApprovalService(db).reject(rating_id, profile, data.comment)
    db.commit()
    db.refresh(rating)
    return rating
