"""Tests for the approval workflow."""

from datetime import timedelta

import pytest

from skillmatrix.exceptions import (
    InvalidStatusTransitionError,
    PermissionDeniedError,
    RuleViolationError,
)
from skillmatrix.models.gamification import UserGamification
from skillmatrix.models.goal import PersonalGoal
from skillmatrix.models.notification import Notification
from skillmatrix.models.rating import ApprovalLog, EmployeeRating, RatingHistory
from skillmatrix.schemas.rating import RatingEntry
from skillmatrix.services.approval_service import ApprovalService
from skillmatrix.services.goal_service import GoalService
from skillmatrix.services.rating_service import RatingService
from skillmatrix.utils.dates import utcnow


@pytest.fixture
def submitted(db, taxonomy, employee):
    """Two submitted ratings of the employee: Go (skill) and Django (subskill)."""
    saved = RatingService(db).save_ratings(
        employee,
        [
            RatingEntry(skill_id=taxonomy["go"], rating="medium", self_comment="Used it at work"),
            RatingEntry(subskill_id=taxonomy["django"], rating="high"),
        ],
    )
    db.commit()
    return {"go": saved[0].id, "django": saved[1].id}


class TestPendingQueue:
    """Tests for the review queue."""

    def test_pending_requests_shape(self, db, submitted):
        requests = ApprovalService(db).pending_requests()

        assert len(requests) == 2
        go = next(r for r in requests if r["id"] == submitted["go"])
        assert go["type"] == "Skill Assessment"
        assert go["requester"] == "Eve Employee"
        assert go["title"] == "Go"
        assert go["description"] == 'Employee self-rated as MEDIUM level: "Used it at work"'
        assert go["priority"] == "Medium"
        assert go["due_date"] - go["submit_date"] == timedelta(days=7)
        assert go["overdue"] is False

        django = next(r for r in requests if r["id"] == submitted["django"])
        assert django["title"] == "Python - Django"
        assert django["priority"] == "High"

    def test_tech_lead_submission_type(self, db, taxonomy, lead):
        RatingService(db).save_ratings(lead, [RatingEntry(skill_id=taxonomy["aws"], rating="low")])
        request = ApprovalService(db).pending_requests()[0]
        assert request["type"] == "Tech Lead Self-Assessment"
        assert request["description"] == "Tech Lead self-rated as LOW level"

    def test_overdue_flag(self, db, submitted):
        rating = db.query(EmployeeRating).filter_by(id=submitted["go"]).one()
        rating.submitted_at = utcnow() - timedelta(days=10)
        db.commit()

        go = next(r for r in ApprovalService(db).pending_requests() if r["id"] == submitted["go"])
        assert go["overdue"] is True

    def test_search(self, db, submitted):
        service = ApprovalService(db)
        assert [r["title"] for r in service.pending_requests("django")] == ["Python - Django"]
        assert len(service.pending_requests("eve")) == 2
        assert service.pending_requests("nobody") == []

    def test_grouped_by_employee(self, db, submitted, employee):
        groups = ApprovalService(db).pending_by_employee()
        assert len(groups) == 1
        assert groups[0]["user_id"] == employee.user_id
        assert groups[0]["pending_count"] == 2
        assert groups[0]["email"] == "emp-1@example.com"

    def test_pending_count(self, db, submitted, employee, lead):
        service = ApprovalService(db)
        assert service.pending_count(lead) == 2
        assert service.pending_count(employee) == 0


class TestDecisions:
    """Tests for approve and reject."""

    def test_approve(self, db, submitted, lead, employee):
        rating = ApprovalService(db).approve(submitted["go"], lead, comment="Agreed")
        db.commit()

        assert rating.status == "approved"
        assert rating.approved_by == lead.user_id
        assert rating.approved_at is not None
        assert rating.approver_comment == "Agreed"

        log = db.query(ApprovalLog).one()
        assert (log.action, log.previous_rating, log.new_rating) == ("approved", "medium", "medium")

        approved_history = db.query(RatingHistory).filter_by(rating_type="approved").one()
        assert approved_history.rated_by == lead.user_id

        notification = db.query(Notification).filter_by(user_id=employee.user_id).one()
        assert notification.title == "Skill Rating Approved"
        assert notification.type == "success"

    def test_approve_with_adjustment(self, db, submitted, lead, employee):
        rating = ApprovalService(db).approve(submitted["django"], lead, adjusted_rating="medium")

        assert rating.rating == "medium"
        log = db.query(ApprovalLog).one()
        assert (log.previous_rating, log.new_rating) == ("high", "medium")
        message = db.query(Notification).filter_by(user_id=employee.user_id).one().message
        assert "adjusted from HIGH to MEDIUM" in message

    def test_approve_updates_goals_and_xp(self, db, submitted, taxonomy, lead, employee):
        goal = GoalService(db).create_goal(
            employee.user_id, taxonomy["go"], "high", utcnow().date() + timedelta(days=30)
        )
        db.commit()

        ApprovalService(db).approve(submitted["go"], lead)
        db.commit()
        db.refresh(goal)

        assert goal.current_rating == "medium"
        assert goal.progress_percentage == 67
        stats = db.query(UserGamification).filter_by(user_id=employee.user_id).one()
        assert stats.total_xp == 3

    def test_reject_requires_comment(self, db, submitted, lead):
        with pytest.raises(RuleViolationError):
            ApprovalService(db).reject(submitted["go"], lead, "   ")

    def test_reject(self, db, submitted, lead, employee):
        rating = ApprovalService(db).reject(submitted["go"], lead, "Needs more evidence")

        assert rating.status == "rejected"
        assert rating.approver_comment == "Needs more evidence"
        assert db.query(ApprovalLog).one().action == "rejected"
        assert db.query(RatingHistory).filter_by(rating_type="approved").count() == 0
        notification = db.query(Notification).filter_by(user_id=employee.user_id).one()
        assert notification.title == "Skill Rating Rejected"

    def test_cannot_decide_twice(self, db, submitted, lead):
        service = ApprovalService(db)
        service.approve(submitted["go"], lead)
        with pytest.raises(InvalidStatusTransitionError):
            service.reject(submitted["go"], lead, "Changed my mind")

    def test_cannot_approve_draft(self, db, taxonomy, employee, lead):
        saved = RatingService(db).save_ratings(
            employee, [RatingEntry(skill_id=taxonomy["aws"], rating="low")], submit=False
        )
        with pytest.raises(InvalidStatusTransitionError):
            ApprovalService(db).approve(saved[0].id, lead)

    def test_cannot_approve_own_rating(self, db, taxonomy, lead):
        saved = RatingService(db).save_ratings(lead, [RatingEntry(skill_id=taxonomy["aws"], rating="low")])
        with pytest.raises(PermissionDeniedError):
            ApprovalService(db).approve(saved[0].id, lead)


class TestDecisionLists:
    """Tests for recent actions, today's counts and employee history."""

    def test_recent_and_today(self, db, submitted, lead):
        service = ApprovalService(db)
        service.approve(submitted["go"], lead)
        service.reject(submitted["django"], lead, "Not yet")
        db.commit()

        recent = service.recent_actions()
        assert {a["action"] for a in recent} == {"approved", "rejected"}
        assert all(a["approver_name"] == "Lee Lead" for a in recent)
        assert all(a["employee_name"] == "Eve Employee" for a in recent)

        today = service.today()
        assert today["approved_count"] == 1
        assert today["rejected_count"] == 1

    def test_employee_history(self, db, submitted, lead, employee):
        ApprovalService(db).approve(submitted["go"], lead)
        db.commit()

        history = ApprovalService(db).employee_history(employee.user_id)
        assert [h["rating_id"] for h in history] == [submitted["go"]]


class TestApprovalsAPI:
    """Tests for the /api/approvals endpoints."""

    def test_approve_and_reject(self, client, submitted, lead):
        headers = {"X-User-Id": lead.user_id}
        assert len(client.get("/api/approvals/pending", headers=headers).json()) == 2
        assert client.get("/api/approvals/pending/count", headers=headers).json() == {"count": 2}

        response = client.post(
            f"/api/approvals/{submitted['go']}/approve",
            json={"comment": "ok", "adjusted_rating": "high"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["rating"] == "high"

        response = client.post(
            f"/api/approvals/{submitted['django']}/reject", json={"comment": ""}, headers=headers
        )
        assert response.status_code == 422

        response = client.post(
            f"/api/approvals/{submitted['django']}/reject", json={"comment": "Too high"}, headers=headers
        )
        assert response.status_code == 200
        assert client.get("/api/approvals/today", headers=headers).json()["rejected_count"] == 1

    def test_approve_twice_is_409(self, client, submitted, lead):
        headers = {"X-User-Id": lead.user_id}
        client.post(f"/api/approvals/{submitted['go']}/approve", json={}, headers=headers)
        response = client.post(f"/api/approvals/{submitted['go']}/approve", json={}, headers=headers)
        assert response.status_code == 409
        assert response.json()["context"]["current_status"] == "approved"

    def test_pending_count_for_employee_is_zero(self, client, submitted, employee):
        response = client.get("/api/approvals/pending/count", headers={"X-User-Id": employee.user_id})
        assert response.json() == {"count": 0}

    def test_employee_reads_own_history_only(self, client, submitted, employee, make_profile):
        make_profile("emp-2")
        headers = {"X-User-Id": employee.user_id}
        own = client.get(f"/api/approvals/history/{employee.user_id}", headers=headers)
        assert own.status_code == 200
        other = client.get("/api/approvals/history/emp-2", headers=headers)
        assert other.status_code == 403
