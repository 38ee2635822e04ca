"""Tests for the taxonomy CSV import and export."""

import csv
import io

import pytest

from skillmatrix.exceptions import CSVFormatError
from skillmatrix.models.audit import ImportExportLog
from skillmatrix.models.taxonomy import Skill, SkillCategory, Subskill
from skillmatrix.services.import_export import TaxonomyImportExportService
from skillmatrix.services.skills_service import SkillsService


class TestExport:
    """Tests for flattening the taxonomy into CSV."""

    def test_export_rows(self, db, taxonomy):
        SkillsService(db).create_category("Empty", "Nothing yet")
        rows = TaxonomyImportExportService(db).export_rows()

        assert rows == [
            {"Category": "Cloud", "Skill": "AWS", "Subskill": "", "Description": ""},
            {"Category": "Empty", "Skill": "", "Subskill": "", "Description": "Nothing yet"},
            {"Category": "Programming", "Skill": "Go", "Subskill": "", "Description": "Go language"},
            {
                "Category": "Programming",
                "Skill": "Python",
                "Subskill": "Django",
                "Description": "Web framework",
            },
            {"Category": "Programming", "Skill": "Python", "Subskill": "FastAPI", "Description": ""},
        ]

    def test_export_csv_quotes_every_field(self, db, taxonomy):
        content = TaxonomyImportExportService(db).export_csv()
        lines = content.splitlines()

        assert lines[0] == '"Category","Skill","Subskill","Description"'
        assert lines[1] == '"Cloud","AWS","",""'

    def test_export_is_logged(self, db, taxonomy):
        TaxonomyImportExportService(db, "admin-1").export_csv()
        actions = [log.action for log in db.query(ImportExportLog).order_by(ImportExportLog.id)]
        assert actions == ["started", "completed"]
        assert db.query(ImportExportLog).filter_by(created_by="admin-1").count() == 2


class TestImport:
    """Tests for importing taxonomy rows."""

    def test_parse_csv_requires_columns(self):
        with pytest.raises(CSVFormatError) as exc_info:
            TaxonomyImportExportService.parse_csv("Name,Description\nPython,x\n")
        assert exc_info.value.context["missing_columns"] == ["Category", "Skill"]

    def test_parse_csv_strips_bom_and_fills_columns(self):
        rows = TaxonomyImportExportService.parse_csv("\ufeffCategory,Skill\nData,SQL\n")
        assert rows == [{"Category": "Data", "Skill": "SQL", "Subskill": "", "Description": ""}]

    def test_import_creates_and_reuses(self, db, taxonomy):
        content = (
            "Category,Skill,Subskill,Description\n"
            "programming,Python,Flask,Micro framework\n"
            "Programming,Rust,,Systems language\n"
            "Data,,,Data work\n"
            "Data,SQL,Joins,\n"
        )
        result = TaxonomyImportExportService(db).import_csv(content)
        db.commit()

        assert result.success == 4
        assert result.errors == 0
        assert result.created.model_dump() == {"categories": 1, "skills": 2, "subskills": 2}

        flask = db.query(Subskill).filter_by(name="Flask").one()
        assert flask.skill_id == taxonomy["python"]
        assert flask.description == "Micro framework"
        assert db.query(Skill).filter_by(name="Rust").one().description == "Systems language"
        assert db.query(SkillCategory).filter_by(name="Data").one().description == "Data work"

    def test_description_only_on_deepest_level(self, db):
        TaxonomyImportExportService(db).import_csv(
            "Category,Skill,Subskill,Description\nOps,Docker,Compose,Multi-container\n"
        )
        assert db.query(SkillCategory).filter_by(name="Ops").one().description is None
        assert db.query(Skill).filter_by(name="Docker").one().description is None

    def test_missing_category_counts_as_error(self, db):
        result = TaxonomyImportExportService(db).import_csv(
            "Category,Skill,Subskill,Description\n,Orphan,,\nOps,Docker,,\n"
        )
        assert result.success == 1
        assert result.errors == 1
        failed = db.query(ImportExportLog).filter_by(action="failed").one()
        assert failed.details == {"error": "Missing category name", "row": 1}

    def test_bad_row_does_not_abort(self, db):
        long_name = "x" * 150
        result = TaxonomyImportExportService(db).import_csv(
            f"Category,Skill,Subskill,Description\nOps,{long_name},,\nOps,Docker,,\n"
        )
        assert result.success == 1
        assert result.errors == 1
        assert db.query(Skill).filter_by(name="Docker").count() == 1

    def test_import_logs_decisions(self, db, taxonomy):
        TaxonomyImportExportService(db, "admin-1").import_csv(
            "Category,Skill,Subskill,Description\nCloud,AWS,Lambda,\n"
        )
        logs = db.query(ImportExportLog).order_by(ImportExportLog.id).all()
        assert [(log.action, log.entity_type) for log in logs] == [
            ("started", None),
            ("reused", "category"),
            ("reused", "skill"),
            ("created", "subskill"),
            ("completed", None),
        ]

    def test_round_trip(self, db, taxonomy):
        """Re-importing an export creates nothing new."""
        service = TaxonomyImportExportService(db)
        content = service.export_csv()

        result = service.import_csv(content)

        assert result.errors == 0
        assert result.success == len(list(csv.DictReader(io.StringIO(content))))
        assert result.created.model_dump() == {"categories": 0, "skills": 0, "subskills": 0}


class TestImportExportAPI:
    """Tests for the CSV endpoints."""

    def test_export_endpoint(self, client, admin, taxonomy):
        response = client.get("/api/skills/export", headers={"X-User-Id": admin.user_id})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "skills-taxonomy.csv" in response.headers["content-disposition"]
        assert '"Programming","Python","Django","Web framework"' in response.text

    def test_import_endpoint(self, client, db, admin):
        response = client.post(
            "/api/skills/import",
            content="Category,Skill,Subskill,Description\nData,SQL,,\n".encode(),
            headers={"X-User-Id": admin.user_id, "Content-Type": "text/csv"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": 1,
            "errors": 0,
            "created": {"categories": 1, "skills": 1, "subskills": 0},
        }
        assert db.query(Skill).filter_by(name="SQL").count() == 1

    def test_import_missing_columns_is_400(self, client, admin):
        response = client.post(
            "/api/skills/import",
            content=b"Name\nPython\n",
            headers={"X-User-Id": admin.user_id, "Content-Type": "text/csv"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "CSVFormatError"

    def test_import_requires_editor(self, client, employee):
        response = client.post(
            "/api/skills/import",
            content=b"Category,Skill\nData,SQL\n",
            headers={"X-User-Id": employee.user_id, "Content-Type": "text/csv"},
        )
        assert response.status_code == 403
