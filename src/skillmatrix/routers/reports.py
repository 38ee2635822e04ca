"""Reports API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from skillmatrix.database import get_db
from skillmatrix.deps import require_roles
from skillmatrix.models.profile import Profile
from skillmatrix.schemas.enums import APPROVER_ROLES
from skillmatrix.schemas.report import (
    ReportData,
    ReportDefinition,
    ReportExport,
    ReportExportRequest,
    ReportFilters,
    ReportLog,
)
from skillmatrix.services.report_service import ReportService

router = APIRouter()

report_viewer = require_roles(*APPROVER_ROLES)


@router.get("/reports", response_model=list[ReportDefinition])
def list_reports(db: Session = Depends(get_db), profile: Profile = Depends(report_viewer)):
    return ReportService(db, profile.user_id).definitions()


@router.get("/reports/history", response_model=list[ReportLog])
def report_history(limit: int = 50, db: Session = Depends(get_db), profile: Profile = Depends(report_viewer)):
    """Report runs, newest first."""
    return ReportService(db, profile.user_id).history(limit)


@router.post("/reports/{report_key}", response_model=ReportData)
def generate_report(
    report_key: str,
    filters: ReportFilters | None = None,
    db: Session = Depends(get_db),
    profile: Profile = Depends(report_viewer),
):
    """
    Generate a report table and chart.

    Args:
        report_key: skills-gap-analysis, proficiency-trends or team-productivity.
        filters: Optional employee, department, category and date filters.

    Raises:
        NotFoundError: If the report key is unknown.
    """
    return ReportService(db, profile.user_id).generate(report_key, filters)


@router.post("/reports/{report_key}/export", response_model=ReportExport)
def export_report(
    report_key: str,
    request: ReportExportRequest,
    db: Session = Depends(get_db),
    profile: Profile = Depends(report_viewer),
):
    """Generate a report and store it as CSV under the data directory."""
    return ReportService(db, profile.user_id).export(report_key, request.filters, request.format)


@router.get("/reports/logs/{log_id}", response_model=ReportLog)
def get_report_log(log_id: int, db: Session = Depends(get_db), profile: Profile = Depends(report_viewer)):
    return ReportService(db, profile.user_id).get_log(log_id)


@router.get("/reports/logs/{log_id}/download")
def download_report(log_id: int, db: Session = Depends(get_db), profile: Profile = Depends(report_viewer)):
    """Return an exported report's CSV file."""
    filename, content = ReportService(db, profile.user_id).read_export(log_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
