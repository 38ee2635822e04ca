"""Skill category visibility preferences."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from skillmatrix.exceptions import NotFoundError
from skillmatrix.models.notification import UserCategoryPreference
from skillmatrix.models.taxonomy import SkillCategory

logger = logging.getLogger(__name__)


class PreferenceService:
    """
    Read and change which skill categories a profile sees.

    A profile without a stored preference sees an empty selection.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _get_row(self, user_id: str) -> UserCategoryPreference | None:
        return (
            self.db.query(UserCategoryPreference)
            .filter(UserCategoryPreference.user_id == user_id)
            .first()
        )

    def _check_categories(self, category_ids: list[int]) -> None:
        if not category_ids:
            return
        found = {
            row.id
            for row in self.db.query(SkillCategory.id).filter(SkillCategory.id.in_(category_ids)).all()
        }
        missing = sorted(set(category_ids) - found)
        if missing:
            raise NotFoundError(
                "Unknown skill categories", context={"entity": "skill_category", "id": missing}
            )

    def get_visible(self, user_id: str) -> list[int]:
        row = self._get_row(user_id)
        return list(row.visible_category_ids or []) if row else []

    def set_visible(self, user_id: str, category_ids: list[int]) -> list[int]:
        """
        Replace the visible categories of a profile.

        Args:
            user_id: Profile to update
            category_ids: New selection (order kept, duplicates dropped)

        Returns:
            The stored selection

        Raises:
            NotFoundError: If any category id does not exist
        """
        ids = list(dict.fromkeys(category_ids))
        self._check_categories(ids)

        row = self._get_row(user_id)
        if row is None:
            row = UserCategoryPreference(user_id=user_id, visible_category_ids=ids)
            self.db.add(row)
        else:
            # Reassign so the JSON column is marked dirty
            row.visible_category_ids = ids
        self.db.flush()
        return ids

    def add_visible(self, user_id: str, category_ids: list[int]) -> list[int]:
        """Append categories to the visible selection."""
        current = self.get_visible(user_id)
        return self.set_visible(user_id, current + list(category_ids))

    def hide(self, user_id: str, category_id: int) -> list[int]:
        """Remove one category from the visible selection."""
        current = self.get_visible(user_id)
        return self.set_visible(user_id, [cid for cid in current if cid != category_id])

    def forget_category(self, category_id: int) -> int:
        """
        Remove a deleted category from every stored selection.

        Returns:
            Number of preference rows that changed
        """
        changed = 0
        for row in self.db.query(UserCategoryPreference).all():
            ids = list(row.visible_category_ids or [])
            if category_id in ids:
                row.visible_category_ids = [cid for cid in ids if cid != category_id]
                changed += 1
        if changed:
            self.db.flush()
            logger.info(f"Removed category {category_id} from {changed} visibility preferences")
        return changed
