"""Skill taxonomy Pydantic schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("name must not be empty")
    if len(value) > 100:
        raise ValueError("name must be at most 100 characters")
    return value


# Trimmed, non-empty, at most 100 characters
EntityName = Annotated[str, AfterValidator(_clean_name)]
HexColor = Annotated[str, Field(pattern=r"^#[0-9A-Fa-f]{6}$")]


class CategoryCreate(BaseModel):
    """Schema for creating a skill category."""

    name: EntityName
    description: str | None = None
    color: HexColor = "#3B82F6"


class CategoryUpdate(BaseModel):
    """Schema for updating a skill category. Omitted fields are left unchanged."""

    name: EntityName | None = None
    description: str | None = None
    color: HexColor | None = None


class SkillCreate(BaseModel):
    """Schema for creating a skill."""

    name: EntityName
    category_id: int
    description: str | None = None


class SubskillCreate(BaseModel):
    """Schema for creating a subskill."""

    name: EntityName
    skill_id: int
    description: str | None = None


class NameDescriptionUpdate(BaseModel):
    """Schema for renaming a skill or subskill."""

    name: EntityName | None = None
    description: str | None = None


class Category(BaseModel):
    """Skill category response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    color: str
    created_at: datetime


class Skill(BaseModel):
    """Skill response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    description: str | None
    created_at: datetime


class Subskill(BaseModel):
    """Subskill response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    skill_id: int
    name: str
    description: str | None
    created_at: datetime


class SkillNode(Skill):
    """Skill with its subskills."""

    subskills: list[Subskill] = Field(default_factory=list)


class CategoryNode(Category):
    """Category with its skills and their subskills."""

    skills: list[SkillNode] = Field(default_factory=list)


class ImportCreatedCounts(BaseModel):
    """Entities created by a taxonomy import."""

    categories: int = 0
    skills: int = 0
    subskills: int = 0


class ImportResult(BaseModel):
    """Result of a taxonomy CSV import."""

    success: int = 0
    errors: int = 0
    created: ImportCreatedCounts = Field(default_factory=ImportCreatedCounts)
