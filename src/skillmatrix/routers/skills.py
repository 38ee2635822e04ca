"""Skill taxonomy API router - categories, skills, subskills and CSV import/export."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import get_current_profile, require_roles
from skillmatrix.exceptions import CSVFormatError
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.common import MessageResponse
from skillmatrix.schemas.enums import TAXONOMY_EDITOR_ROLES
from skillmatrix.schemas.skill import (
    Category,
    CategoryCreate,
    CategoryNode,
    CategoryUpdate,
    ImportResult,
    NameDescriptionUpdate,
    Skill,
    SkillCreate,
    Subskill,
    SubskillCreate,
)
from skillmatrix.services.import_export import TaxonomyImportExportService
from skillmatrix.services.skills_service import SkillsService

router = APIRouter(dependencies=[Depends(get_current_profile)])

editor = require_roles(*TAXONOMY_EDITOR_ROLES)


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------


@router.get("/skills/categories", response_model=list[Category])
def list_categories(db: Session = Depends(get_db)):
    """List skill categories ordered by name."""
    return SkillsService(db).list_categories()


@router.get("/skills/tree", response_model=list[CategoryNode])
def get_tree(db: Session = Depends(get_db)):
    """
    Return the full taxonomy: categories with their skills and subskills.

    Returns:
        Categories ordered by name, each with nested skills and subskills.
    """
    return SkillsService(db).get_tree()


@router.get("/skills/subskills", response_model=list[Subskill])
def list_subskills(skill_id: int | None = None, db: Session = Depends(get_db)):
    return SkillsService(db).list_subskills(skill_id)


@router.get("/skills/export")
def export_taxonomy(
    db: Session = Depends(get_db),
    profile: Profile = Depends(editor),
) -> Response:
    """
    Download the taxonomy as CSV (Category, Skill, Subskill, Description).

    The export and its log entries are committed before the file is returned.
    """
    content = TaxonomyImportExportService(db, profile.user_id).export_csv()
    db.commit()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="skills-taxonomy.csv"'},
    )


@router.get("/skills", response_model=list[Skill])
def list_skills(category_id: int | None = None, db: Session = Depends(get_db)):
    return SkillsService(db).list_skills(category_id)


@router.get("/skills/{skill_id}", response_model=Skill)
def get_skill(skill_id: int, db: Session = Depends(get_db)):
    return SkillsService(db).get_skill(skill_id)


# ----------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------


@router.post("/skills/import", response_model=ImportResult)
async def import_taxonomy(
    request: Request,
    db: Session = Depends(get_db),
    profile: Profile = Depends(editor),
) -> ImportResult:
    """
    Import a taxonomy CSV sent as the raw request body.

    Rows that fail are counted in ``errors``; the rest are imported.

    Raises:
        CSVFormatError: If the body is not UTF-8 or lacks required columns
    """
    raw = await request.body()
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CSVFormatError("CSV file must be UTF-8 encoded", original_exception=exc) from exc

    result = TaxonomyImportExportService(db, profile.user_id).import_csv(content)
    db.commit()
    return result


@router.post("/skills/categories", response_model=Category, status_code=201)
def create_category(data: CategoryCreate, db: Session = Depends(get_db), _: Profile = Depends(editor)):
    category = SkillsService(db).create_category(data.name, data.description, data.color)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/skills/categories/{category_id}", response_model=Category)
def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(editor),
):
    category = SkillsService(db).update_category(category_id, data.name, data.description, data.color)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/skills/categories/{category_id}", response_model=MessageResponse)
def delete_category(category_id: int, db: Session = Depends(get_db), _: Profile = Depends(editor)):
    """Delete a category with its skills, subskills, ratings and goals."""
    SkillsService(db).delete_category(category_id)
    db.commit()
    return MessageResponse(message="Category deleted")


@router.post("/skills/subskills", response_model=Subskill, status_code=201)
def create_subskill(data: SubskillCreate, db: Session = Depends(get_db), _: Profile = Depends(editor)):
    subskill = SkillsService(db).create_subskill(data.skill_id, data.name, data.description)
    db.commit()
    db.refresh(subskill)
    return subskill


@router.patch("/skills/subskills/{subskill_id}", response_model=Subskill)
def update_subskill(
    subskill_id: int,
    data: NameDescriptionUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(editor),
):
    subskill = SkillsService(db).update_subskill(subskill_id, data.name, data.description)
    db.commit()
    db.refresh(subskill)
    return subskill


@router.delete("/skills/subskills/{subskill_id}", response_model=MessageResponse)
def delete_subskill(subskill_id: int, db: Session = Depends(get_db), _: Profile = Depends(editor)):
    SkillsService(db).delete_subskill(subskill_id)
    db.commit()
    return MessageResponse(message="Subskill deleted")


@router.post("/skills", response_model=Skill, status_code=201)
def create_skill(data: SkillCreate, db: Session = Depends(get_db), _: Profile = Depends(editor)):
    skill = SkillsService(db).create_skill(data.category_id, data.name, data.description)
    db.commit()
    db.refresh(skill)
    return skill


@router.patch("/skills/{skill_id}", response_model=Skill)
def update_skill(
    skill_id: int,
    data: NameDescriptionUpdate,
    db: Session = Depends(get_db),
    _: Profile = Depends(editor),
):
    skill = SkillsService(db).update_skill(skill_id, data.name, data.description)
    db.commit()
    db.refresh(skill)
    return skill


@router.delete("/skills/{skill_id}", response_model=MessageResponse)
def delete_skill(skill_id: int, db: Session = Depends(get_db), _: Profile = Depends(editor)):
    """Delete a skill with its subskills, ratings, rating history and goals."""
    SkillsService(db).delete_skill(skill_id)
    db.commit()
    return MessageResponse(message="Skill deleted")
