"""Employee rating, rating history and approval log models."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from skillmatrix.database import Base


class EmployeeRating(Base):
    """
    Current rating of one unit (skill or subskill) for one employee.

    There is at most one row per ``(user_id, skill_id, subskill_id)``; the
    rating service upserts on that key.

    Attributes:
        id: Primary key
        user_id: Rated employee (profiles.user_id)
        skill_id: Foreign key to skills table
        subskill_id: Foreign key to subskills table, None for a skill-level rating
        rating: high, medium or low
        status: draft, submitted, approved or rejected
        self_comment: Employee's comment on the self rating
        approver_comment: Comment left by the approver
        approved_by: user_id of the approver who decided the rating
        approved_at: When the rating was approved or rejected
        submitted_at: When the rating was last submitted
    """

    __tablename__ = "employee_ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False, index=True)
    subskill_id = Column(Integer, ForeignKey("subskills.id"), nullable=True, index=True)
    rating = Column(String, nullable=False)
    status = Column(String, default="draft", nullable=False, index=True)
    self_comment = Column(Text, nullable=True)
    approver_comment = Column(Text, nullable=True)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of EmployeeRating."""
        return (
            f"<EmployeeRating(id={self.id}, user_id='{self.user_id}', skill_id={self.skill_id}, "
            f"subskill_id={self.subskill_id}, rating='{self.rating}', status='{self.status}')>"
        )


class RatingHistory(Base):
    """
    Append-only trail of self and approved ratings.

    Only one ``self`` entry per unit is ``active``; older ones are marked
    ``superseded`` with a timestamp.
    """

    __tablename__ = "skill_rating_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False, index=True)
    subskill_id = Column(Integer, ForeignKey("subskills.id"), nullable=True)
    rating = Column(String, nullable=False)
    rating_type = Column(String, nullable=False)  # self | approved
    status = Column(String, default="active", nullable=False)  # active | superseded
    rated_by = Column(String, nullable=True)
    rating_comment = Column(Text, nullable=True)
    superseded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<RatingHistory(id={self.id}, user_id='{self.user_id}', skill_id={self.skill_id}, "
            f"type='{self.rating_type}', rating='{self.rating}')>"
        )


class ApprovalLog(Base):
    """Audit row written for every approve or reject decision."""

    __tablename__ = "approval_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rating_id = Column(Integer, ForeignKey("employee_ratings.id"), nullable=False, index=True)
    approver_id = Column(String, nullable=False)
    action = Column(String, nullable=False)  # approved | rejected
    approver_comment = Column(Text, nullable=True)
    employee_comment = Column(Text, nullable=True)
    previous_rating = Column(String, nullable=True)
    new_rating = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<ApprovalLog(id={self.id}, rating_id={self.rating_id}, action='{self.action}')>"
