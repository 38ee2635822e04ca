"""Projects API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, require_roles
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.common import CountResponse, MessageResponse
from skillmatrix.schemas.enums import APPROVER_ROLES
from skillmatrix.schemas.project import Project, ProjectCreate, ProjectMembers, ProjectStatusUpdate
from skillmatrix.services.project_service import ProjectService

router = APIRouter()

project_editor = require_roles(*APPROVER_ROLES)


@router.get("/projects", response_model=list[Project])
def list_projects(
    search: str | None = None,
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    """
    List projects, newest first, with progress and team members.

    Args:
        search: Case-insensitive match on name or description.
    """
    return ProjectService(db).list_projects(search)


@router.get("/projects/{project_id}", response_model=Project)
def get_project(project_id: int, db: Session = Depends(get_db), _: Profile = Depends(get_current_profile)):
    service = ProjectService(db)
    return service.to_dict(service.get_project(project_id))


@router.post("/projects", response_model=Project, status_code=201)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(project_editor),
):
    service = ProjectService(db)
    project = service.create_project(data, profile)
    db.commit()
    db.refresh(project)
    return service.to_dict(project)


@router.patch("/projects/{project_id}/status", response_model=Project)
def update_project_status(
    project_id: int,
    data: ProjectStatusUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(project_editor),
):
    service = ProjectService(db)
    project = service.update_status(project_id, data.status)
    db.commit()
    db.refresh(project)
    return service.to_dict(project)


@router.post("/projects/{project_id}/members", response_model=CountResponse)
def assign_members(
    project_id: int,
    data: ProjectMembers,
    db: Session = Depends(get_db),
    profile: Profile = Depends(project_editor),
):
    """
    Assign profiles to a project. Already assigned profiles are skipped.

    Returns:
        Number of new assignments.
    """
    added = ProjectService(db).assign_members(project_id, data.user_ids, profile.user_id)
    db.commit()
    return CountResponse(count=added)


@router.delete("/projects/{project_id}/members/{user_id}", response_model=MessageResponse)
def unassign_member(
    project_id: int,
    user_id: str,
    db: Session = Depends(get_db),
    _: Profile = Depends(project_editor),
):
    ProjectService(db).unassign_member(project_id, user_id)
    db.commit()
    return MessageResponse(message="Member removed")
