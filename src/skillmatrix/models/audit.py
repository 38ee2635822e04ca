"""Report and import/export audit log models."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from skillmatrix.database import Base


class ReportLog(Base):
    """
    One report generation run.

    Attributes:
        report_type: Skills Analytics or Team Performance
        report_name: Name of the concrete report
        filters: Filters the report was generated with
        status: generating, completed or failed
        records_processed: Number of table rows produced
        file_path: Where the exported CSV was written, if exported
        error_message: Failure message when status is failed
        execution_time_ms: Wall time of the generation
        generated_by: user_id of the requester
        completed_at: When the run finished (successfully or not)
    """

    __tablename__ = "report_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_type = Column(String, nullable=False)
    report_name = Column(String, nullable=False)
    filters = Column(JSON, nullable=True)
    status = Column(String, default="generating", nullable=False)
    records_processed = Column(Integer, default=0, nullable=False)
    file_path = Column(String, nullable=True)
    error_message = Column(Text, nullable=True)
    execution_time_ms = Column(Integer, nullable=True)
    generated_by = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        """String representation of ReportLog."""
        return f"<ReportLog(id={self.id}, report_name='{self.report_name}', status='{self.status}')>"


class ImportExportLog(Base):
    """Audit line for a single taxonomy import or export decision."""

    __tablename__ = "import_export_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation_type = Column(String, nullable=False)  # import | export
    log_level = Column(String, default="info", nullable=False)  # info | warning | error
    entity_type = Column(String, nullable=True)  # category | skill | subskill
    entity_name = Column(String, nullable=True)
    action = Column(String, nullable=False)  # created | reused | failed | started | finished
    details = Column(JSON, nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
