"""Tests for user administration."""

from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from skillmatrix.exceptions import (
    DuplicateEntityError,
    IdentityServiceError,
    PermissionDeniedError,
    RuleViolationError,
)
from skillmatrix.models.notification import Notification
from skillmatrix.models.profile import Profile
from skillmatrix.models.rating import EmployeeRating
from skillmatrix.schemas.user import UserCreate, UserUpdate
from skillmatrix.services.user_service import UserService


def _new_user(**overrides) -> UserCreate:
    data = {
        "email": "new@example.com",
        "password": "password1",
        "full_name": "New Person",
        "role": "employee",
    }
    data.update(overrides)
    return UserCreate(**data)


class TestUserSchemas:
    """Tests for user input validation."""

    def test_trims_and_accepts(self):
        user = _new_user(email="  new@example.com ", full_name="  Al  ")
        assert user.email == "new@example.com"
        assert user.full_name == "Al"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "not-an-email"},
            {"password": "short"},
            {"full_name": "A"},
            {"full_name": "x" * 51},
            {"role": "owner"},
        ],
    )
    def test_rejects(self, overrides):
        with pytest.raises(ValidationError):
            _new_user(**overrides)

    def test_update_allows_partial(self):
        assert UserUpdate(department="Sales").email is None


class TestUserService:
    """Tests for UserService."""

    @pytest.mark.asyncio
    async def test_create_user(self, db, identity):
        profile = await UserService(db, identity).create_user(_new_user(department="Sales"))

        assert profile.user_id == "new-user-id"
        assert profile.role == "employee"
        assert profile.status == "active"
        assert profile.department == "Sales"
        identity.create_user.assert_awaited_once_with("new@example.com", "password1", "New Person")

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, db, identity, employee):
        with pytest.raises(DuplicateEntityError):
            await UserService(db, identity).create_user(_new_user(email="EMP-1@example.com"))
        identity.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_user_identity_failure(self, db, identity):
        identity.create_user.side_effect = IdentityServiceError("rejected")
        with pytest.raises(IdentityServiceError):
            await UserService(db, identity).create_user(_new_user())
        assert db.query(Profile).count() == 0

    @pytest.mark.asyncio
    async def test_create_user_profile_failure_removes_identity_user(self, db, identity, monkeypatch):
        monkeypatch.setattr(db, "commit", Mock(side_effect=SQLAlchemyError("disk full")))

        with pytest.raises(SQLAlchemyError):
            await UserService(db, identity).create_user(_new_user())

        identity.delete_user.assert_awaited_once_with("new-user-id")

    @pytest.mark.asyncio
    async def test_update_user_pushes_email_and_name(self, db, identity, employee):
        profile = await UserService(db, identity).update_user(
            employee.user_id, UserUpdate(email="eve@example.com", full_name="Eve E", department="Ops")
        )

        assert profile.email == "eve@example.com"
        assert profile.full_name == "Eve E"
        assert profile.department == "Ops"
        identity.update_user.assert_awaited_once_with(
            employee.user_id, email="eve@example.com", user_metadata={"full_name": "Eve E"}
        )

    @pytest.mark.asyncio
    async def test_update_department_only_skips_identity(self, db, identity, employee):
        await UserService(db, identity).update_user(employee.user_id, UserUpdate(department="Ops"))
        identity.update_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reset_password(self, db, identity, employee):
        await UserService(db, identity).reset_password(employee.user_id, "newpassword")
        identity.update_user.assert_awaited_once_with(employee.user_id, password="newpassword")

    @pytest.mark.asyncio
    async def test_reset_password_too_short(self, db, identity, employee):
        with pytest.raises(RuleViolationError):
            await UserService(db, identity).reset_password(employee.user_id, "short")

    @pytest.mark.asyncio
    async def test_deactivate_bans_and_activate_unbans(self, db, identity, employee, admin):
        service = UserService(db, identity)

        profile = await service.set_status(employee.user_id, "inactive", admin)
        assert profile.status == "inactive"
        identity.ban_user.assert_awaited_once_with(employee.user_id)

        profile = await service.set_status(employee.user_id, "active", admin)
        assert profile.status == "active"
        identity.unban_user.assert_awaited_once_with(employee.user_id)

    @pytest.mark.asyncio
    async def test_cannot_deactivate_self(self, db, identity, admin):
        with pytest.raises(PermissionDeniedError):
            await UserService(db, identity).set_status(admin.user_id, "inactive", admin)

    def test_update_role(self, db, employee):
        assert UserService(db, AsyncMock()).update_role(employee.user_id, "manager").role == "manager"

    def test_assign_tech_lead(self, db, make_profile, lead):
        other = make_profile("emp-9")
        profile = UserService(db, AsyncMock()).assign_tech_lead(other.user_id, lead.user_id)
        assert profile.tech_lead_id == lead.user_id

    def test_assign_non_lead_is_rejected(self, db, employee, admin):
        with pytest.raises(RuleViolationError):
            UserService(db, AsyncMock()).assign_tech_lead(employee.user_id, admin.user_id)

    def test_list_users_resolves_tech_lead(self, db, employee, lead):
        users = {u["user_id"]: u for u in UserService(db, AsyncMock()).list_users()}
        assert users[employee.user_id]["tech_lead"] == {
            "user_id": lead.user_id,
            "full_name": "Lee Lead",
            "email": "lead-1@example.com",
        }
        assert users[lead.user_id]["tech_lead"] is None

    def test_list_tech_leads(self, db, employee, lead, make_profile):
        make_profile("lead-2", role="tech_lead", status="inactive")
        assert [p.user_id for p in UserService(db, AsyncMock()).list_tech_leads()] == [lead.user_id]

    @pytest.mark.asyncio
    async def test_delete_user(self, db, identity, employee, lead, admin, taxonomy):
        db.add(EmployeeRating(user_id=employee.user_id, skill_id=taxonomy["go"], rating="low"))
        db.add(Notification(user_id=employee.user_id, title="t", message="m"))
        db.commit()

        await UserService(db, identity).delete_user(lead.user_id, admin)
        await UserService(db, identity).delete_user(employee.user_id, admin)
        db.commit()

        assert db.query(Profile).filter_by(user_id=employee.user_id).count() == 0
        assert db.query(EmployeeRating).count() == 0
        assert db.query(Notification).count() == 0
        assert identity.delete_user.await_count == 2

    @pytest.mark.asyncio
    async def test_delete_user_clears_tech_lead_links(self, db, identity, employee, lead, admin):
        await UserService(db, identity).delete_user(lead.user_id, admin)
        db.commit()
        db.expire_all()
        assert db.query(Profile).filter_by(user_id=employee.user_id).one().tech_lead_id is None

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, db, identity, admin):
        with pytest.raises(PermissionDeniedError):
            await UserService(db, identity).delete_user(admin.user_id, admin)
        identity.delete_user.assert_not_awaited()


class TestUsersAPI:
    """Tests for the /api/users endpoints."""

    def test_create_user(self, client, admin, identity):
        response = client.post(
            "/api/users",
            json={"email": "new@example.com", "password": "password1", "full_name": "New Person"},
            headers={"X-User-Id": admin.user_id},
        )
        assert response.status_code == 201
        assert response.json()["user_id"] == "new-user-id"

    def test_create_user_identity_error_is_502(self, client, admin, identity):
        identity.create_user.side_effect = IdentityServiceError(
            "Identity service rejected create", context={"operation": "create", "status_code": 422}
        )
        response = client.post(
            "/api/users",
            json={"email": "new@example.com", "password": "password1", "full_name": "New Person"},
            headers={"X-User-Id": admin.user_id},
        )
        assert response.status_code == 502
        assert response.json()["error"] == "IdentityServiceError"

    def test_list_users(self, client, admin, employee):
        response = client.get("/api/users", headers={"X-User-Id": admin.user_id})
        assert response.status_code == 200
        by_id = {u["user_id"]: u for u in response.json()}
        assert by_id[employee.user_id]["tech_lead"]["full_name"] == "Lee Lead"

    def test_deactivate_user(self, client, admin, employee, identity):
        response = client.patch(
            f"/api/users/{employee.user_id}/status",
            json={"status": "inactive"},
            headers={"X-User-Id": admin.user_id},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "inactive"
        identity.ban_user.assert_awaited_once_with(employee.user_id)

        blocked = client.get("/api/users/me", headers={"X-User-Id": employee.user_id})
        assert blocked.status_code == 403

    def test_assign_tech_lead(self, client, admin, make_profile, lead):
        make_profile("emp-5")
        response = client.put(
            "/api/users/emp-5/tech-lead",
            json={"tech_lead_id": lead.user_id},
            headers={"X-User-Id": admin.user_id},
        )
        assert response.status_code == 200
        assert response.json()["tech_lead_id"] == lead.user_id

    def test_delete_user(self, client, admin, employee, identity):
        response = client.delete(f"/api/users/{employee.user_id}", headers={"X-User-Id": admin.user_id})
        assert response.status_code == 200
        identity.delete_user.assert_awaited_once_with(employee.user_id)

    def test_delete_user_identity_failure_keeps_profile(self, client, db, admin, employee, identity):
        identity.delete_user.side_effect = IdentityServiceError(
            "Identity service rejected delete", context={"operation": "delete", "status_code": 500}
        )

        response = client.delete(f"/api/users/{employee.user_id}", headers={"X-User-Id": admin.user_id})

        assert response.status_code == 502
        db.expire_all()
        assert db.query(Profile).filter_by(user_id=employee.user_id).count() == 1

    def test_employee_cannot_manage_users(self, client, employee):
        response = client.delete("/api/users/admin-1", headers={"X-User-Id": employee.user_id})
        assert response.status_code == 403
