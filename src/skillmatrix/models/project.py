"""Project and project assignment models."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from skillmatrix.database import Base


class Project(Base):
    """
    A project employees can be assigned to.

    Attributes:
        id: Primary key
        name: Project name
        description: Optional description
        status: planning, in_progress, on_hold, completed or cancelled
        start_date: Planned start
        end_date: Planned end
        tech_lead_id: user_id of the leading tech lead
        created_by: user_id of the creator
    """

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="planning", nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    tech_lead_id = Column(String, ForeignKey("profiles.user_id"), nullable=True)
    created_by = Column(String, ForeignKey("profiles.user_id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of Project."""
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"


class ProjectAssignment(Base):
    """Junction table linking profiles to projects."""

    __tablename__ = "project_assignments"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_assignment"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    assigned_by = Column(String, nullable=True)
    assigned_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<ProjectAssignment(project_id={self.project_id}, user_id='{self.user_id}')>"
