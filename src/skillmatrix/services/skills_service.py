"""Skill taxonomy service: categories, skills and subskills."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from skillmatrix.exceptions import DuplicateEntityError, NotFoundError, RuleViolationError
from skillmatrix.models.goal import GoalProgressHistory, PersonalGoal
from skillmatrix.models.rating import ApprovalLog, EmployeeRating, RatingHistory
from skillmatrix.models.taxonomy import Skill, SkillCategory, Subskill
from skillmatrix.services.preference_service import PreferenceService

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = "#3B82F6"
MAX_NAME_LENGTH = 100


class SkillsService:
    """
    Service for reading and editing the skill taxonomy.

    Handles:
    - Name normalization and case-insensitive duplicate checks per parent
    - Lookups used by the CSV importer
    - Cascading deletes down to ratings, rating history and goals
    """

    def __init__(self, db: Session) -> None:
        """
        Initialize the skills service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    @staticmethod
    def clean_name(name: str | None) -> str:
        """
        Trim a taxonomy name and check its length.

        Args:
            name: Raw name

        Returns:
            Trimmed name

        Raises:
            RuleViolationError: If the name is empty or longer than 100 characters
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise RuleViolationError("Name is required")
        if len(cleaned) > MAX_NAME_LENGTH:
            raise RuleViolationError(
                f"Name must be at most {MAX_NAME_LENGTH} characters",
                context={"length": len(cleaned)},
            )
        return cleaned

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_categories(self) -> list[SkillCategory]:
        return self.db.query(SkillCategory).order_by(SkillCategory.name).all()

    def list_skills(self, category_id: int | None = None) -> list[Skill]:
        query = self.db.query(Skill)
        if category_id is not None:
            query = query.filter(Skill.category_id == category_id)
        return query.order_by(Skill.name).all()

    def list_subskills(self, skill_id: int | None = None) -> list[Subskill]:
        query = self.db.query(Subskill)
        if skill_id is not None:
            query = query.filter(Subskill.skill_id == skill_id)
        return query.order_by(Subskill.name).all()

    def get_tree(self) -> list[dict]:
        """
        Return the whole taxonomy as nested dictionaries.

        Returns:
            Categories, each with ``skills``, each with ``subskills``
        """
        skills_by_category: dict[int, list[Skill]] = {}
        for skill in self.list_skills():
            skills_by_category.setdefault(skill.category_id, []).append(skill)

        subskills_by_skill: dict[int, list[Subskill]] = {}
        for subskill in self.list_subskills():
            subskills_by_skill.setdefault(subskill.skill_id, []).append(subskill)

        tree: list[dict] = []
        for category in self.list_categories():
            tree.append(
                {
                    "id": category.id,
                    "name": category.name,
                    "description": category.description,
                    "color": category.color,
                    "created_at": category.created_at,
                    "skills": [
                        {
                            "id": skill.id,
                            "category_id": skill.category_id,
                            "name": skill.name,
                            "description": skill.description,
                            "created_at": skill.created_at,
                            "subskills": subskills_by_skill.get(skill.id, []),
                        }
                        for skill in skills_by_category.get(category.id, [])
                    ],
                }
            )
        return tree

    def get_category(self, category_id: int) -> SkillCategory:
        category = self.db.query(SkillCategory).filter(SkillCategory.id == category_id).first()
        if not category:
            raise NotFoundError(
                "Skill category not found", context={"entity": "skill_category", "id": category_id}
            )
        return category

    def get_skill(self, skill_id: int) -> Skill:
        skill = self.db.query(Skill).filter(Skill.id == skill_id).first()
        if not skill:
            raise NotFoundError("Skill not found", context={"entity": "skill", "id": skill_id})
        return skill

    def get_subskill(self, subskill_id: int) -> Subskill:
        subskill = self.db.query(Subskill).filter(Subskill.id == subskill_id).first()
        if not subskill:
            raise NotFoundError("Subskill not found", context={"entity": "subskill", "id": subskill_id})
        return subskill

    def find_category(self, name: str) -> SkillCategory | None:
        """Find a category by name, ignoring case."""
        return (
            self.db.query(SkillCategory)
            .filter(func.lower(SkillCategory.name) == name.strip().lower())
            .first()
        )

    def find_skill(self, category_id: int, name: str) -> Skill | None:
        """Find a skill by name within a category, ignoring case."""
        return (
            self.db.query(Skill)
            .filter(Skill.category_id == category_id, func.lower(Skill.name) == name.strip().lower())
            .first()
        )

    def find_subskill(self, skill_id: int, name: str) -> Subskill | None:
        """Find a subskill by name within a skill, ignoring case."""
        return (
            self.db.query(Subskill)
            .filter(Subskill.skill_id == skill_id, func.lower(Subskill.name) == name.strip().lower())
            .first()
        )

    # ------------------------------------------------------------------
    # Creates and updates
    # ------------------------------------------------------------------

    def create_category(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> SkillCategory:
        """
        Create a skill category.

        Raises:
            RuleViolationError: If the name is empty or too long
            DuplicateEntityError: If a category with the same name exists
        """
        name = self.clean_name(name)
        if self.find_category(name):
            raise DuplicateEntityError(
                f"Category '{name}' already exists", context={"entity": "skill_category", "name": name}
            )
        category = SkillCategory(
            name=name,
            description=description or None,
            color=color or DEFAULT_CATEGORY_COLOR,
        )
        self.db.add(category)
        self.db.flush()
        logger.info(f"Created skill category '{name}' ({category.id})")
        return category

    def create_skill(self, category_id: int, name: str, description: str | None = None) -> Skill:
        """
        Create a skill inside a category.

        Raises:
            NotFoundError: If the category does not exist
            DuplicateEntityError: If the category already has a skill with that name
        """
        self.get_category(category_id)
        name = self.clean_name(name)
        if self.find_skill(category_id, name):
            raise DuplicateEntityError(
                f"Skill '{name}' already exists in this category",
                context={"entity": "skill", "name": name, "category_id": category_id},
            )
        skill = Skill(category_id=category_id, name=name, description=description or None)
        self.db.add(skill)
        self.db.flush()
        logger.info(f"Created skill '{name}' ({skill.id}) in category {category_id}")
        return skill

    def create_subskill(self, skill_id: int, name: str, description: str | None = None) -> Subskill:
        """
        Create a subskill under a skill.

        Raises:
            NotFoundError: If the skill does not exist
            DuplicateEntityError: If the skill already has a subskill with that name
        """
        self.get_skill(skill_id)
        name = self.clean_name(name)
        if self.find_subskill(skill_id, name):
            raise DuplicateEntityError(
                f"Subskill '{name}' already exists for this skill",
                context={"entity": "subskill", "name": name, "skill_id": skill_id},
            )
        subskill = Subskill(skill_id=skill_id, name=name, description=description or None)
        self.db.add(subskill)
        self.db.flush()
        logger.info(f"Created subskill '{name}' ({subskill.id}) under skill {skill_id}")
        return subskill

    def update_category(
        self,
        category_id: int,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> SkillCategory:
        category = self.get_category(category_id)
        if name is not None:
            name = self.clean_name(name)
            existing = self.find_category(name)
            if existing and existing.id != category.id:
                raise DuplicateEntityError(
                    f"Category '{name}' already exists", context={"entity": "skill_category", "name": name}
                )
            category.name = name
        if description is not None:
            category.description = description or None
        if color is not None:
            category.color = color
        self.db.flush()
        return category

    def update_skill(self, skill_id: int, name: str | None = None, description: str | None = None) -> Skill:
        skill = self.get_skill(skill_id)
        if name is not None:
            name = self.clean_name(name)
            existing = self.find_skill(skill.category_id, name)
            if existing and existing.id != skill.id:
                raise DuplicateEntityError(
                    f"Skill '{name}' already exists in this category",
                    context={"entity": "skill", "name": name, "category_id": skill.category_id},
                )
            skill.name = name
        if description is not None:
            skill.description = description or None
        self.db.flush()
        return skill

    def update_subskill(
        self, subskill_id: int, name: str | None = None, description: str | None = None
    ) -> Subskill:
        subskill = self.get_subskill(subskill_id)
        if name is not None:
            name = self.clean_name(name)
            existing = self.find_subskill(subskill.skill_id, name)
            if existing and existing.id != subskill.id:
                raise DuplicateEntityError(
                    f"Subskill '{name}' already exists for this skill",
                    context={"entity": "subskill", "name": name, "skill_id": subskill.skill_id},
                )
            subskill.name = name
        if description is not None:
            subskill.description = description or None
        self.db.flush()
        return subskill

    # ------------------------------------------------------------------
    # Cascading deletes
    # ------------------------------------------------------------------

    def _delete_ratings(self, *criteria) -> int:
        """Delete ratings matching the criteria together with their approval logs."""
        rating_ids = [row.id for row in self.db.query(EmployeeRating.id).filter(*criteria).all()]
        if rating_ids:
            self.db.query(ApprovalLog).filter(ApprovalLog.rating_id.in_(rating_ids)).delete(
                synchronize_session=False
            )
            self.db.query(EmployeeRating).filter(EmployeeRating.id.in_(rating_ids)).delete(
                synchronize_session=False
            )
        return len(rating_ids)

    def delete_subskill(self, subskill_id: int) -> None:
        """Delete a subskill with its ratings and rating history."""
        subskill = self.get_subskill(subskill_id)
        ratings = self._delete_ratings(EmployeeRating.subskill_id == subskill_id)
        self.db.query(RatingHistory).filter(RatingHistory.subskill_id == subskill_id).delete(
            synchronize_session=False
        )
        self.db.delete(subskill)
        self.db.flush()
        logger.info(f"Deleted subskill {subskill_id} and {ratings} ratings")

    def delete_skill(self, skill_id: int) -> None:
        """Delete a skill with its subskills, ratings, rating history and goals."""
        skill = self.get_skill(skill_id)
        ratings = self._delete_ratings(EmployeeRating.skill_id == skill_id)
        self.db.query(RatingHistory).filter(RatingHistory.skill_id == skill_id).delete(
            synchronize_session=False
        )

        goal_ids = [
            row.id for row in self.db.query(PersonalGoal.id).filter(PersonalGoal.skill_id == skill_id)
        ]
        if goal_ids:
            self.db.query(GoalProgressHistory).filter(GoalProgressHistory.goal_id.in_(goal_ids)).delete(
                synchronize_session=False
            )
            self.db.query(PersonalGoal).filter(PersonalGoal.id.in_(goal_ids)).delete(
                synchronize_session=False
            )

        self.db.query(Subskill).filter(Subskill.skill_id == skill_id).delete(synchronize_session=False)
        self.db.delete(skill)
        self.db.flush()
        logger.info(f"Deleted skill {skill_id} with {ratings} ratings and {len(goal_ids)} goals")

    def delete_category(self, category_id: int) -> None:
        """Delete a category, everything under it, and its id from visibility preferences."""
        category = self.get_category(category_id)
        for skill in self.list_skills(category_id):
            self.delete_skill(skill.id)
        PreferenceService(self.db).forget_category(category_id)
        self.db.delete(category)
        self.db.flush()
        logger.info(f"Deleted skill category {category_id}")
