"""Skill taxonomy database models: categories, skills and subskills."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from skillmatrix.database import Base


class SkillCategory(Base):
    """
    Top-level grouping of skills.

    Attributes:
        id: Primary key
        name: Category name (unique, case-insensitive by convention)
        description: Optional description
        color: Display colour as a hex string
        created_at: Timestamp when record was created
        updated_at: Timestamp of the last change
    """

    __tablename__ = "skill_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    color = Column(String(7), default="#3B82F6", nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of SkillCategory."""
        return f"<SkillCategory(id={self.id}, name='{self.name}')>"


class Skill(Base):
    """
    A skill within a category.

    Attributes:
        id: Primary key
        category_id: Foreign key to skill_categories table
        name: Skill name (unique within its category)
        description: Optional description
        created_at: Timestamp when record was created
    """

    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("skill_categories.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of Skill."""
        return f"<Skill(id={self.id}, name='{self.name}', category_id={self.category_id})>"


class Subskill(Base):
    """A finer-grained rating unit belonging to a skill."""

    __tablename__ = "subskills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Subskill(id={self.id}, name='{self.name}', skill_id={self.skill_id})>"
