"""Tests for projects and team membership."""

from datetime import date

import pytest
from pydantic import ValidationError

from skillmatrix.exceptions import NotFoundError, RuleViolationError
from skillmatrix.models.project import ProjectAssignment
from skillmatrix.schemas.project import ProjectCreate
from skillmatrix.services.project_service import ProjectService, progress_for_status


@pytest.mark.parametrize(
    "status, expected",
    [
        ("planning", 10),
        ("in_progress", 50),
        ("on_hold", 25),
        ("completed", 100),
        ("cancelled", 0),
    ],
)
def test_progress_for_status(status, expected):
    assert progress_for_status(status) == expected


def test_end_date_before_start_is_rejected():
    with pytest.raises(ValidationError):
        ProjectCreate(name="Apollo", start_date=date(2025, 5, 1), end_date=date(2025, 4, 1))


class TestProjectService:
    """Tests for ProjectService."""

    def test_create_with_members(self, db, admin, lead, employee):
        service = ProjectService(db)
        project = service.create_project(
            ProjectCreate(
                name="Apollo",
                description="Moon",
                tech_lead_id=lead.user_id,
                member_ids=[employee.user_id, employee.user_id, lead.user_id],
            ),
            admin,
        )
        db.commit()

        data = service.to_dict(project)
        assert data["status"] == "planning"
        assert data["progress"] == 10
        assert data["created_by"] == admin.user_id
        assert [m["full_name"] for m in data["team_members"]] == ["Eve Employee", "Lee Lead"]

    def test_create_with_non_lead_is_rejected(self, db, admin, employee):
        with pytest.raises(RuleViolationError):
            ProjectService(db).create_project(
                ProjectCreate(name="Apollo", tech_lead_id=employee.user_id), admin
            )

    def test_create_with_unknown_member(self, db, admin):
        with pytest.raises(NotFoundError):
            ProjectService(db).create_project(ProjectCreate(name="Apollo", member_ids=["ghost"]), admin)

    def test_search_matches_name_and_description(self, db, admin):
        service = ProjectService(db)
        service.create_project(ProjectCreate(name="Apollo", description="Moon landing"), admin)
        service.create_project(ProjectCreate(name="Gemini"), admin)
        db.commit()

        assert [p["name"] for p in service.list_projects("apol")] == ["Apollo"]
        assert [p["name"] for p in service.list_projects("LANDING")] == ["Apollo"]
        assert len(service.list_projects("  ")) == 2

    def test_assign_skips_existing(self, db, admin, employee, lead):
        service = ProjectService(db)
        project = service.create_project(ProjectCreate(name="Apollo", member_ids=[employee.user_id]), admin)

        assert service.assign_members(project.id, [employee.user_id, lead.user_id], admin.user_id) == 1
        assert db.query(ProjectAssignment).filter_by(project_id=project.id).count() == 2

    def test_update_status(self, db, admin):
        service = ProjectService(db)
        project = service.create_project(ProjectCreate(name="Apollo"), admin)
        assert service.update_status(project.id, "completed").status == "completed"

    def test_unassign(self, db, admin, employee):
        service = ProjectService(db)
        project = service.create_project(ProjectCreate(name="Apollo", member_ids=[employee.user_id]), admin)

        service.unassign_member(project.id, employee.user_id)
        assert db.query(ProjectAssignment).count() == 0

        with pytest.raises(NotFoundError):
            service.unassign_member(project.id, employee.user_id)

    def test_missing_project(self, db):
        with pytest.raises(NotFoundError):
            ProjectService(db).get_project(999)


class TestProjectsAPI:
    """Tests for the /api/projects endpoints."""

    def test_create_and_get(self, client, lead, employee):
        headers = {"X-User-Id": lead.user_id}
        response = client.post(
            "/api/projects",
            json={"name": "Apollo", "status": "in_progress", "member_ids": [employee.user_id]},
            headers=headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["progress"] == 50
        assert body["team_members"] == [{"user_id": employee.user_id, "full_name": "Eve Employee"}]

        fetched = client.get(f"/api/projects/{body['id']}", headers={"X-User-Id": employee.user_id})
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Apollo"

    def test_employee_can_list_but_not_create(self, client, employee):
        headers = {"X-User-Id": employee.user_id}
        assert client.get("/api/projects", headers=headers).json() == []
        assert client.post("/api/projects", json={"name": "Apollo"}, headers=headers).status_code == 403

    def test_members_and_status(self, client, lead, employee):
        headers = {"X-User-Id": lead.user_id}
        project_id = client.post("/api/projects", json={"name": "Apollo"}, headers=headers).json()["id"]

        added = client.post(
            f"/api/projects/{project_id}/members", json={"user_ids": [employee.user_id]}, headers=headers
        )
        assert added.json() == {"count": 1}

        status = client.patch(
            f"/api/projects/{project_id}/status", json={"status": "on_hold"}, headers=headers
        )
        assert status.json()["progress"] == 25

        removed = client.delete(f"/api/projects/{project_id}/members/{employee.user_id}", headers=headers)
        assert removed.status_code == 200

    def test_unknown_project_is_404(self, client, employee):
        response = client.get("/api/projects/42", headers={"X-User-Id": employee.user_id})
        assert response.status_code == 404
