"""Report generation, logging and CSV export."""

from __future__ import annotations

import csv
import io
import logging
import os
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from skillmatrix.exceptions import NotFoundError
from skillmatrix.models.audit import ReportLog
from skillmatrix.models.profile import Profile
from skillmatrix.models.project import ProjectAssignment
from skillmatrix.models.rating import EmployeeRating, RatingHistory
from skillmatrix.models.taxonomy import Skill, SkillCategory, Subskill
from skillmatrix.schemas.enums import ExportFormat, RatingLevel, RatingStatus, ReportStatus
from skillmatrix.schemas.report import ReportFilters
from skillmatrix.utils.dates import utcnow
from skillmatrix.utils.file_storage import file_exists, load_file, save_file
from skillmatrix.utils.numbers import round_half_up
from skillmatrix.utils.slug import create_slug

logger = logging.getLogger(__name__)

REQUIRED_RATING = RatingLevel.HIGH


def rating_value(rating: str | None) -> int:
    """Numeric value of a rating level (0 for None or unknown)."""
    try:
        return RatingLevel(rating).value_score
    except ValueError:
        return 0


def gap_text(current: str | None, required: RatingLevel = REQUIRED_RATING) -> str:
    """
    Describe the gap between a rating and the required level.

    Examples:
        >>> gap_text("low")
        '2 levels'
        >>> gap_text("medium")
        '1 level'
        >>> gap_text("high")
        'None'
    """
    gap = required.value_score - rating_value(current)
    if gap <= 0:
        return "None"
    return f"{gap} level{'s' if gap != 1 else ''}"


def improvement_text(approved_ratings: list[str]) -> str:
    """Describe the change between the first and latest approved rating."""
    if len(approved_ratings) < 2:
        return "N/A"
    change = rating_value(approved_ratings[-1]) - rating_value(approved_ratings[0])
    if change > 0:
        return f"+{change}"
    if change == 0:
        return "No change"
    return str(change)


def productivity_score(projects: int, skills: int) -> float:
    """Weighted score of project assignments and approved skills, one decimal."""
    return round_half_up(projects * 0.6 + skills * 0.4, 1)


class ReportService:
    """
    Service generating the analytics reports.

    Each generation writes a ``report_logs`` row that moves from
    ``generating`` to ``completed`` or ``failed``. The log row is committed
    on its own so failures stay recorded.
    """

    def __init__(self, db: Session, user_id: str | None = None) -> None:
        """
        Initialize the report service.

        Args:
            db: SQLAlchemy database session
            user_id: Profile requesting the reports, recorded on the logs
        """
        self.db = db
        self.user_id = user_id
        self.reports: dict[str, tuple[str, str, str, Callable[[ReportFilters], dict]]] = {
            "skills-gap-analysis": (
                "Skills Gap Analysis",
                "Skills Analytics",
                "Required skills vs approved skills",
                self._skills_gap,
            ),
            "proficiency-trends": (
                "Proficiency Trends",
                "Skills Analytics",
                "Historical ratings over time (self vs approved)",
                self._proficiency_trends,
            ),
            "team-productivity": (
                "Team Productivity",
                "Team Performance",
                "Skills applied vs project needs",
                self._team_productivity,
            ),
        }

    def definitions(self) -> list[dict]:
        return [
            {"key": key, "name": name, "report_type": report_type, "description": description}
            for key, (name, report_type, description, _) in self.reports.items()
        ]

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    @staticmethod
    def _matches(profile: Profile, created_at: datetime | None, filters: ReportFilters) -> bool:
        if filters.employee_ids and profile.user_id not in filters.employee_ids:
            return False
        # Profiles without a department are never excluded by the department filter
        if filters.departments and profile.department and profile.department not in filters.departments:
            return False
        if created_at is not None:
            if filters.start_date and created_at.date() < filters.start_date:
                return False
            if filters.end_date and created_at.date() > filters.end_date:
                return False
        return True

    def _profiles(self) -> dict[str, Profile]:
        return {p.user_id: p for p in self.db.query(Profile).all()}

    def _skill_lookup(self) -> tuple[dict[int, Skill], dict[int, SkillCategory], dict[int, str]]:
        skills = {s.id: s for s in self.db.query(Skill).all()}
        categories = {c.id: c for c in self.db.query(SkillCategory).all()}
        subskills = dict(self.db.query(Subskill.id, Subskill.name).all())
        return skills, categories, subskills

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def _skills_gap(self, filters: ReportFilters) -> dict:
        headers = [
            "Employee",
            "Department",
            "Skill Category",
            "Skill",
            "Current Rating",
            "Required Rating",
            "Gap",
        ]
        profiles = self._profiles()
        skills, categories, subskills = self._skill_lookup()
        ratings = (
            self.db.query(EmployeeRating)
            .filter(EmployeeRating.status == RatingStatus.APPROVED.value)
            .order_by(EmployeeRating.id)
            .all()
        )

        rows: list[list[Any]] = []
        gap_counts: dict[str, int] = {}
        for rating in ratings:
            profile = profiles.get(rating.user_id)
            skill = skills.get(rating.skill_id)
            if profile is None or not self._matches(profile, rating.created_at, filters):
                continue
            if filters.skill_category_ids and (
                skill is None or skill.category_id not in filters.skill_category_ids
            ):
                continue

            category = categories.get(skill.category_id) if skill else None
            category_name = category.name if category else "Unknown"
            skill_name = skill.name if skill else "Unknown"
            if rating.subskill_id is not None:
                skill_name = f"{skill_name} - {subskills.get(rating.subskill_id, 'Unknown')}"

            gap = gap_text(rating.rating)
            rows.append(
                [
                    profile.full_name,
                    profile.department or "N/A",
                    category_name,
                    skill_name,
                    rating.rating,
                    REQUIRED_RATING.value,
                    gap,
                ]
            )
            if gap != "None":
                gap_counts[category_name] = gap_counts.get(category_name, 0) + 1

        return {
            "headers": headers,
            "rows": rows,
            "chart": {
                "title": "Skills Gap by Category",
                "type": "bar",
                "x_key": "category",
                "y_key": "gap_count",
                "data": [{"category": name, "gap_count": count} for name, count in gap_counts.items()],
            },
        }

    def _proficiency_trends(self, filters: ReportFilters) -> dict:
        headers = ["Employee", "Skill", "Self Rating", "Approved Rating", "Improvement", "Date"]
        profiles = self._profiles()
        skills, _, _ = self._skill_lookup()
        history = (
            self.db.query(RatingHistory)
            .order_by(RatingHistory.created_at, RatingHistory.id)
            .all()
        )

        grouped: dict[tuple[str, int], dict[str, list[RatingHistory]]] = {}
        for entry in history:
            bucket = grouped.setdefault((entry.user_id, entry.skill_id), {"self": [], "approved": []})
            bucket.setdefault(entry.rating_type, []).append(entry)

        rows: list[list[Any]] = []
        totals: dict[str, list[int]] = {}
        for (user_id, skill_id), entries in grouped.items():
            profile = profiles.get(user_id)
            approved = entries["approved"]
            if profile is None or not approved:
                continue
            latest_approved = approved[-1]
            if not self._matches(profile, latest_approved.created_at, filters):
                continue
            skill = skills.get(skill_id)
            if filters.skill_category_ids and (
                skill is None or skill.category_id not in filters.skill_category_ids
            ):
                continue

            skill_name = skill.name if skill else "Unknown"
            latest_self = entries["self"][-1].rating if entries["self"] else "N/A"
            rows.append(
                [
                    profile.full_name,
                    skill_name,
                    latest_self,
                    latest_approved.rating,
                    improvement_text([e.rating for e in approved]),
                    latest_approved.created_at.date().isoformat(),
                ]
            )
            totals.setdefault(skill_name, []).append(rating_value(latest_approved.rating))

        return {
            "headers": headers,
            "rows": rows,
            "chart": {
                "title": "Skill Proficiency Over Time",
                "type": "line",
                "x_key": "skill",
                "y_key": "avg_rating",
                "data": [
                    {"skill": name, "avg_rating": round_half_up(sum(values) / len(values), 1)}
                    for name, values in totals.items()
                ],
            },
        }

    def _team_productivity(self, filters: ReportFilters) -> dict:
        headers = ["Employee", "Department", "Projects Assigned", "Skills Applied", "Productivity Score"]
        profiles = self._profiles()
        approved_counts: dict[str, int] = {}
        for (user_id,) in (
            self.db.query(EmployeeRating.user_id)
            .filter(EmployeeRating.status == RatingStatus.APPROVED.value)
            .all()
        ):
            approved_counts[user_id] = approved_counts.get(user_id, 0) + 1

        project_counts: dict[str, int] = {}
        for assignment in self.db.query(ProjectAssignment).order_by(ProjectAssignment.id).all():
            profile = profiles.get(assignment.user_id)
            if profile is None or not self._matches(profile, assignment.assigned_at, filters):
                continue
            project_counts[assignment.user_id] = project_counts.get(assignment.user_id, 0) + 1

        rows: list[list[Any]] = []
        department_scores: dict[str, list[float]] = {}
        for user_id, projects in project_counts.items():
            profile = profiles[user_id]
            skills_applied = approved_counts.get(user_id, 0)
            score = productivity_score(projects, skills_applied)
            department = profile.department or "N/A"
            rows.append([profile.full_name, department, projects, skills_applied, score])
            department_scores.setdefault(department, []).append(score)

        return {
            "headers": headers,
            "rows": rows,
            "chart": {
                "title": "Team Productivity by Department",
                "type": "bar",
                "x_key": "department",
                "y_key": "avg_productivity",
                "data": [
                    {"department": name, "avg_productivity": round_half_up(sum(scores) / len(scores), 1)}
                    for name, scores in department_scores.items()
                ],
            },
        }

    # ------------------------------------------------------------------
    # Generation, export and history
    # ------------------------------------------------------------------

    def generate(self, report_key: str, filters: ReportFilters | None = None) -> dict:
        """
        Generate a report and record the run in ``report_logs``.

        Args:
            report_key: One of skills-gap-analysis, proficiency-trends, team-productivity
            filters: Optional filters

        Returns:
            Dict matching ReportData

        Raises:
            NotFoundError: If the report key is unknown
        """
        if report_key not in self.reports:
            raise NotFoundError("Unknown report", context={"entity": "report", "id": report_key})
        name, report_type, _, builder = self.reports[report_key]
        filters = filters or ReportFilters()

        log = ReportLog(
            report_type=report_type,
            report_name=name,
            filters=filters.model_dump(mode="json"),
            status=ReportStatus.GENERATING.value,
            records_processed=0,
            generated_by=self.user_id,
        )
        self.db.add(log)
        self.db.commit()
        log_id = log.id

        start_time = time.perf_counter()
        try:
            data = builder(filters)
        except Exception as e:
            self.db.rollback()
            failed = self.db.query(ReportLog).filter(ReportLog.id == log_id).one()
            failed.status = ReportStatus.FAILED.value
            failed.error_message = str(e)
            failed.execution_time_ms = int((time.perf_counter() - start_time) * 1000)
            failed.completed_at = utcnow()
            self.db.commit()
            logger.error(f"Report '{name}' ({log_id}) failed: {e}")
            raise

        log.status = ReportStatus.COMPLETED.value
        log.records_processed = len(data["rows"])
        log.execution_time_ms = int((time.perf_counter() - start_time) * 1000)
        log.completed_at = utcnow()
        self.db.commit()
        logger.info(f"Report '{name}' ({log_id}) completed with {log.records_processed} rows")

        return {
            "report_id": log_id,
            "report_name": name,
            "report_type": report_type,
            "headers": data["headers"],
            "rows": data["rows"],
            "chart": data["chart"],
            "generated_at": log.completed_at,
        }

    @staticmethod
    def to_csv(headers: list[str], rows: list[list[Any]]) -> str:
        """Render a report table as CSV text."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(headers)
        writer.writerows(rows)
        return buffer.getvalue()

    def export(
        self,
        report_key: str,
        filters: ReportFilters | None = None,
        export_format: ExportFormat = ExportFormat.CSV,
    ) -> dict:
        """
        Generate a report and write it to ``<data_root>/reports``.

        Spreadsheet and PDF requests are written as CSV.

        Returns:
            Dict matching ReportExport
        """
        report = self.generate(report_key, filters)
        if ExportFormat(export_format) != ExportFormat.CSV:
            logger.info(f"{export_format} export is written as CSV")

        relative_path = f"reports/{create_slug(report['report_name'])}-{report['report_id']}.csv"
        file_path = save_file(self.to_csv(report["headers"], report["rows"]), relative_path)

        log = self.db.query(ReportLog).filter(ReportLog.id == report["report_id"]).one()
        log.file_path = file_path
        self.db.commit()
        return {
            "report_id": report["report_id"],
            "file_path": file_path,
            "format": ExportFormat.CSV,
            "records": len(report["rows"]),
        }

    def history(self, limit: int = 50) -> list[ReportLog]:
        """Return report logs, newest first."""
        return (
            self.db.query(ReportLog)
            .order_by(ReportLog.created_at.desc(), ReportLog.id.desc())
            .limit(limit)
            .all()
        )

    def get_log(self, log_id: int) -> ReportLog:
        log = self.db.query(ReportLog).filter(ReportLog.id == log_id).first()
        if not log:
            raise NotFoundError("Report log not found", context={"entity": "report_log", "id": log_id})
        return log

    def read_export(self, log_id: int) -> tuple[str, str]:
        """
        Read back the CSV written by an export.

        Returns:
            (file name, CSV content)

        Raises:
            NotFoundError: If the log has no export or the file is gone
        """
        log = self.get_log(log_id)
        if not log.file_path or not file_exists(log.file_path):
            raise NotFoundError(
                "Report export not found", context={"entity": "report_export", "id": log_id}
            )
        return os.path.basename(log.file_path), load_file(log.file_path)
