"""Report Pydantic schemas."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from skillmatrix.schemas.enums import ExportFormat, ReportStatus


class ReportFilters(BaseModel):
    """Filters applied to a report. Empty lists mean no filtering."""

    employee_ids: list[str] = Field(default_factory=list)
    departments: list[str] = Field(default_factory=list)
    skill_category_ids: list[int] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None


class ChartSpec(BaseModel):
    """Description of the chart a client should draw for a report."""

    title: str
    type: str
    x_key: str
    y_key: str
    data: list[dict[str, Any]] = Field(default_factory=list)


class ReportData(BaseModel):
    """A generated report: table plus chart."""

    report_id: int
    report_name: str
    report_type: str
    headers: list[str]
    rows: list[list[Any]]
    chart: ChartSpec
    generated_at: datetime


class ReportExportRequest(BaseModel):
    """Schema for exporting a report."""

    filters: ReportFilters = Field(default_factory=ReportFilters)
    format: ExportFormat = ExportFormat.CSV


class ReportExport(BaseModel):
    """Result of a report export."""

    report_id: int
    file_path: str
    format: ExportFormat
    records: int


class ReportLog(BaseModel):
    """Report log response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    report_type: str
    report_name: str
    filters: dict[str, Any] | None
    status: ReportStatus
    records_processed: int
    file_path: str | None
    error_message: str | None
    execution_time_ms: int | None
    generated_by: str | None
    created_at: datetime
    completed_at: datetime | None


class ReportDefinition(BaseModel):
    """A report that can be generated."""

    key: str
    name: str
    report_type: str
    description: str
