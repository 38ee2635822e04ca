"""Project service: listing, creation, status and team membership."""

from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from skillmatrix.exceptions import NotFoundError, RuleViolationError
from skillmatrix.models.profile import Profile
from skillmatrix.models.project import Project, ProjectAssignment
from skillmatrix.schemas.enums import ProjectStatus, UserRole
from skillmatrix.schemas.project import ProjectCreate

logger = logging.getLogger(__name__)

PROGRESS_BY_STATUS = {
    ProjectStatus.PLANNING.value: 10,
    ProjectStatus.IN_PROGRESS.value: 50,
    ProjectStatus.ON_HOLD.value: 25,
    ProjectStatus.COMPLETED.value: 100,
}


def progress_for_status(status: str) -> int:
    """Return the progress percentage shown for a project status (0 when unknown)."""
    return PROGRESS_BY_STATUS.get(status, 0)


class ProjectService:
    """Service for projects and their assigned members."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_project(self, project_id: int) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFoundError("Project not found", context={"entity": "project", "id": project_id})
        return project

    def _members(self, project_ids: list[int]) -> dict[int, list[dict]]:
        if not project_ids:
            return {}
        rows = (
            self.db.query(ProjectAssignment.project_id, Profile.user_id, Profile.full_name)
            .join(Profile, Profile.user_id == ProjectAssignment.user_id)
            .filter(ProjectAssignment.project_id.in_(project_ids))
            .order_by(Profile.full_name)
            .all()
        )
        members: dict[int, list[dict]] = {}
        for project_id, user_id, full_name in rows:
            members.setdefault(project_id, []).append({"user_id": user_id, "full_name": full_name})
        return members

    def to_dict(self, project: Project, members: list[dict] | None = None) -> dict:
        """Shape a project for the API, with progress and team members."""
        if members is None:
            members = self._members([project.id]).get(project.id, [])
        return {
            "id": project.id,
            "name": project.name,
            "description": project.description,
            "status": project.status,
            "start_date": project.start_date,
            "end_date": project.end_date,
            "tech_lead_id": project.tech_lead_id,
            "created_by": project.created_by,
            "created_at": project.created_at,
            "progress": progress_for_status(project.status),
            "team_members": members,
        }

    def list_projects(self, search: str | None = None) -> list[dict]:
        """
        List projects, newest first.

        Args:
            search: Optional case-insensitive match on name or description

        Returns:
            Project dicts with progress and team members
        """
        query = self.db.query(Project)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Project.name.ilike(pattern), Project.description.ilike(pattern)))
        projects = query.order_by(Project.created_at.desc(), Project.id.desc()).all()
        members = self._members([p.id for p in projects])
        return [self.to_dict(p, members.get(p.id, [])) for p in projects]

    def _check_profiles(self, user_ids: list[str]) -> None:
        found = {
            user_id
            for (user_id,) in self.db.query(Profile.user_id).filter(Profile.user_id.in_(user_ids)).all()
        }
        missing = sorted(set(user_ids) - found)
        if missing:
            raise NotFoundError("Unknown users", context={"entity": "profile", "id": missing})

    def create_project(self, data: ProjectCreate, creator: Profile) -> Project:
        """
        Create a project and assign its initial members.

        Raises:
            NotFoundError: If the tech lead or a member does not exist
            RuleViolationError: If the tech lead is not a tech lead
        """
        if data.tech_lead_id:
            lead = self.db.query(Profile).filter(Profile.user_id == data.tech_lead_id).first()
            if not lead:
                raise NotFoundError(
                    "Tech lead not found", context={"entity": "profile", "id": data.tech_lead_id}
                )
            if lead.role != UserRole.TECH_LEAD.value:
                raise RuleViolationError(
                    "Assigned user is not a tech lead", context={"tech_lead_id": data.tech_lead_id}
                )

        project = Project(
            name=data.name,
            description=data.description,
            status=data.status.value,
            start_date=data.start_date,
            end_date=data.end_date,
            tech_lead_id=data.tech_lead_id,
            created_by=creator.user_id,
        )
        self.db.add(project)
        self.db.flush()

        if data.member_ids:
            self.assign_members(project.id, data.member_ids, creator.user_id)
        logger.info(f"{creator.user_id} created project {project.id} '{project.name}'")
        return project

    def update_status(self, project_id: int, status: ProjectStatus) -> Project:
        project = self.get_project(project_id)
        project.status = ProjectStatus(status).value
        self.db.flush()
        logger.info(f"Project {project_id} moved to {project.status}")
        return project

    def assign_members(self, project_id: int, user_ids: list[str], assigned_by: str | None = None) -> int:
        """
        Assign profiles to a project, skipping those already assigned.

        Returns:
            Number of new assignments
        """
        self.get_project(project_id)
        user_ids = list(dict.fromkeys(user_ids))
        self._check_profiles(user_ids)

        existing = {
            user_id
            for (user_id,) in self.db.query(ProjectAssignment.user_id)
            .filter(ProjectAssignment.project_id == project_id)
            .all()
        }
        added = 0
        for user_id in user_ids:
            if user_id in existing:
                continue
            self.db.add(ProjectAssignment(project_id=project_id, user_id=user_id, assigned_by=assigned_by))
            added += 1
        self.db.flush()
        return added

    def unassign_member(self, project_id: int, user_id: str) -> None:
        self.get_project(project_id)
        deleted = (
            self.db.query(ProjectAssignment)
            .filter(ProjectAssignment.project_id == project_id, ProjectAssignment.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise NotFoundError(
                "User is not assigned to this project",
                context={"entity": "project_assignment", "id": user_id, "project_id": project_id},
            )
