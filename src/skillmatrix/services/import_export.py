"""Skill taxonomy CSV import and export."""

from __future__ import annotations

import csv
import io
import logging
from typing import Any

from sqlalchemy.orm import Session

from skillmatrix.exceptions import CSVFormatError, SkillMatrixError
from skillmatrix.models.audit import ImportExportLog
from skillmatrix.schemas.skill import ImportCreatedCounts, ImportResult
from skillmatrix.services.skills_service import SkillsService

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Category", "Skill", "Subskill", "Description"]
REQUIRED_COLUMNS = ("Category", "Skill")


class TaxonomyImportExportService:
    """
    Service for moving the skill taxonomy in and out as CSV.

    Every decision (created, reused, failed) and the start and end of each
    run is appended to ``import_export_logs``.
    """

    def __init__(self, db: Session, user_id: str | None = None) -> None:
        """
        Initialize the import/export service.

        Args:
            db: SQLAlchemy database session
            user_id: Profile running the operation, recorded on the logs
        """
        self.db = db
        self.user_id = user_id
        self.skills = SkillsService(db)

    def _log(
        self,
        operation_type: str,
        action: str,
        log_level: str = "success",
        entity_type: str | None = None,
        entity_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.db.add(
            ImportExportLog(
                operation_type=operation_type,
                log_level=log_level,
                entity_type=entity_type,
                entity_name=entity_name,
                action=action,
                details=details,
                created_by=self.user_id,
            )
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_rows(self) -> list[dict[str, str]]:
        """
        Flatten the taxonomy into CSV rows.

        One row per subskill; a skill without subskills gets a row with an
        empty Subskill, and a category without skills a row with empty Skill
        and Subskill. Description is that of the deepest populated level.
        """
        rows: list[dict[str, str]] = []
        for category in self.skills.list_categories():
            category_skills = self.skills.list_skills(category.id)
            if not category_skills:
                rows.append(
                    {
                        "Category": category.name,
                        "Skill": "",
                        "Subskill": "",
                        "Description": category.description or "",
                    }
                )
                continue
            for skill in category_skills:
                subskills = self.skills.list_subskills(skill.id)
                if not subskills:
                    rows.append(
                        {
                            "Category": category.name,
                            "Skill": skill.name,
                            "Subskill": "",
                            "Description": skill.description or "",
                        }
                    )
                    continue
                for subskill in subskills:
                    rows.append(
                        {
                            "Category": category.name,
                            "Skill": skill.name,
                            "Subskill": subskill.name,
                            "Description": subskill.description or "",
                        }
                    )
        return rows

    def export_csv(self) -> str:
        """
        Export the taxonomy as CSV text with every field quoted.

        Returns:
            CSV content including the header row
        """
        self._log("export", "started", log_level="info", entity_name="export_started")
        rows = self.export_rows()

        buffer = io.StringIO()
        writer = csv.DictWriter(
            buffer, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator="\n"
        )
        writer.writeheader()
        writer.writerows(rows)

        self._log(
            "export",
            "completed",
            entity_name="export_completed",
            details={"total_rows": len(rows)},
        )
        self.db.flush()
        logger.info(f"Exported {len(rows)} taxonomy rows")
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    @staticmethod
    def parse_csv(content: str) -> list[dict[str, str]]:
        """
        Parse CSV text into rows keyed by column name.

        Args:
            content: CSV text (a leading byte-order mark is ignored)

        Returns:
            List of row dictionaries with all four columns present

        Raises:
            CSVFormatError: If the header lacks a required column
        """
        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        header = [name.strip() for name in (reader.fieldnames or [])]
        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            raise CSVFormatError(
                f"CSV is missing required columns: {', '.join(missing)}",
                context={"missing_columns": missing, "header": header},
            )

        rows: list[dict[str, str]] = []
        for raw in reader:
            row = {(key or "").strip(): (value or "") for key, value in raw.items()}
            rows.append({column: row.get(column, "") for column in CSV_COLUMNS})
        return rows

    def _find_or_create(
        self, entity_type: str, name: str, parent_id: int | None, description: str | None
    ):
        if entity_type == "category":
            existing = self.skills.find_category(name)
        elif entity_type == "skill":
            existing = self.skills.find_skill(parent_id, name)
        else:
            existing = self.skills.find_subskill(parent_id, name)

        if existing:
            self._log(
                "import",
                "reused",
                entity_type=entity_type,
                entity_name=name,
                details={"existing_id": existing.id},
            )
            return existing, False

        if entity_type == "category":
            created = self.skills.create_category(name, description)
        elif entity_type == "skill":
            created = self.skills.create_skill(parent_id, name, description)
        else:
            created = self.skills.create_subskill(parent_id, name, description)
        self._log(
            "import",
            "created",
            entity_type=entity_type,
            entity_name=name,
            details={"new_id": created.id},
        )
        return created, True

    def import_rows(self, rows: list[dict[str, str]]) -> ImportResult:
        """
        Import taxonomy rows, reusing existing entities case-insensitively.

        A row that fails is counted and logged; the remaining rows still run.
        The row's description is stored only on the deepest level the row
        names, and only when that entity is created. Parent levels the same
        row creates get no description, so a subskill row never copies its
        text onto a new skill or category.

        Args:
            rows: Row dictionaries as returned by parse_csv

        Returns:
            Success and error counts plus the number of created entities
        """
        self._log(
            "import",
            "started",
            log_level="info",
            entity_name="import_started",
            details={"total_rows": len(rows)},
        )
        result = ImportResult(created=ImportCreatedCounts())

        for index, row in enumerate(rows, start=1):
            category_name = (row.get("Category") or "").strip()
            skill_name = (row.get("Skill") or "").strip()
            subskill_name = (row.get("Subskill") or "").strip()
            description = (row.get("Description") or "").strip() or None

            if not category_name:
                self._log(
                    "import",
                    "failed",
                    log_level="error",
                    entity_type="category",
                    entity_name="unknown",
                    details={"error": "Missing category name", "row": index},
                )
                result.errors += 1
                continue

            try:
                category, created = self._find_or_create(
                    "category", category_name, None, description if not skill_name else None
                )
                result.created.categories += int(created)

                if skill_name:
                    skill, created = self._find_or_create(
                        "skill", skill_name, category.id, description if not subskill_name else None
                    )
                    result.created.skills += int(created)

                    if subskill_name:
                        _, created = self._find_or_create(
                            "subskill", subskill_name, skill.id, description
                        )
                        result.created.subskills += int(created)

                result.success += 1
            except SkillMatrixError as exc:
                logger.warning(f"Import row {index} failed: {exc.message}")
                self._log(
                    "import",
                    "failed",
                    log_level="error",
                    entity_type="category",
                    entity_name=category_name,
                    details={"error": exc.message, "row": index},
                )
                result.errors += 1

        self._log(
            "import",
            "completed",
            entity_name="import_completed",
            details={
                "success_count": result.success,
                "error_count": result.errors,
                "total_rows": len(rows),
            },
        )
        self.db.flush()
        logger.info(
            f"Imported {len(rows)} taxonomy rows: {result.success} ok, {result.errors} failed, "
            f"created {result.created.model_dump()}"
        )
        return result

    def import_csv(self, content: str) -> ImportResult:
        """Parse CSV text and import its rows."""
        return self.import_rows(self.parse_csv(content))
