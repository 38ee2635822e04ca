"""Project Pydantic schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from skillmatrix.schemas.enums import ProjectStatus
from skillmatrix.schemas.skill import EntityName


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    name: EntityName
    description: str | None = None
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: date | None = None
    end_date: date | None = None
    tech_lead_id: str | None = None
    member_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self) -> "ProjectCreate":
        """Reject an end date before the start date."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectStatusUpdate(BaseModel):
    """Schema for updating a project's status."""

    status: ProjectStatus


class ProjectMembers(BaseModel):
    """Schema for assigning members to a project."""

    user_ids: list[str] = Field(..., min_length=1)


class TeamMember(BaseModel):
    """Assigned member of a project."""

    user_id: str
    full_name: str


class Project(BaseModel):
    """Project response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    status: ProjectStatus
    start_date: date | None
    end_date: date | None
    tech_lead_id: str | None
    created_by: str | None
    created_at: datetime
    progress: int = 0
    team_members: list[TeamMember] = Field(default_factory=list)
