"""Personal goal models."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from skillmatrix.database import Base


class PersonalGoal(Base):
    """
    A target rating an employee wants to reach on a skill by a date.

    Attributes:
        id: Primary key
        user_id: Goal owner (profiles.user_id)
        skill_id: Foreign key to skills table
        target_rating: high, medium or low
        current_rating: Latest approved rating, if any
        target_date: Deadline
        status: active, completed, overdue or cancelled
        progress_percentage: 0..100
        motivation_notes: Free text from the owner
        completed_at: When the goal reached 100%
    """

    __tablename__ = "personal_goals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False, index=True)
    target_rating = Column(String, nullable=False)
    current_rating = Column(String, nullable=True)
    target_date = Column(Date, nullable=False)
    status = Column(String, default="active", nullable=False)
    progress_percentage = Column(Integer, default=0, nullable=False)
    motivation_notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of PersonalGoal."""
        return (
            f"<PersonalGoal(id={self.id}, user_id='{self.user_id}', skill_id={self.skill_id}, "
            f"status='{self.status}', progress={self.progress_percentage})>"
        )


class GoalProgressHistory(Base):
    """One row per progress update of a goal."""

    __tablename__ = "goal_progress_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    goal_id = Column(Integer, ForeignKey("personal_goals.id"), nullable=False, index=True)
    previous_rating = Column(String, nullable=True)
    new_rating = Column(String, nullable=True)
    progress_percentage = Column(Integer, nullable=False)
    milestone = Column(String, nullable=True)  # completed | 80_percent | 50_percent
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
