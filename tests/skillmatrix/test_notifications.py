"""Tests for notifications and category visibility preferences."""

from datetime import timedelta

import pytest

from skillmatrix.exceptions import NotFoundError
from skillmatrix.models.notification import Notification
from skillmatrix.services.notification_service import NotificationService
from skillmatrix.services.preference_service import PreferenceService
from skillmatrix.utils.dates import utcnow


class TestNotificationService:
    """Tests for NotificationService."""

    def test_notify_and_list(self, db, employee):
        service = NotificationService(db)
        first = service.notify(employee.user_id, "First", "one")
        second = service.notify(employee.user_id, "Second", "two", "warning")

        assert first.type == "info"
        assert second.type == "warning"
        assert [n.title for n in service.list_for_user(employee.user_id)] == ["Second", "First"]
        assert len(service.list_for_user(employee.user_id, limit=1)) == 1

    def test_invalid_type_is_rejected(self, db, employee):
        with pytest.raises(ValueError):
            NotificationService(db).notify(employee.user_id, "Title", "Body", "urgent")

    def test_mark_read_and_unread_count(self, db, employee, lead):
        service = NotificationService(db)
        note = service.notify(employee.user_id, "Title", "Body")
        service.notify(employee.user_id, "Other", "Body")

        service.mark_read(employee.user_id, note.id)

        assert service.unread_count(employee.user_id) == 1
        assert [n.title for n in service.list_for_user(employee.user_id, unread_only=True)] == ["Other"]
        with pytest.raises(NotFoundError):
            service.mark_read(lead.user_id, note.id)

    def test_mark_all_read(self, db, employee, lead):
        service = NotificationService(db)
        service.notify(employee.user_id, "A", "a")
        service.notify(employee.user_id, "B", "b")
        service.notify(lead.user_id, "C", "c")

        assert service.mark_all_read(employee.user_id) == 2
        assert service.unread_count(employee.user_id) == 0
        assert service.unread_count(lead.user_id) == 1

    def test_cleanup_removes_old_read_only(self, db, employee):
        old = utcnow() - timedelta(days=40)
        db.add_all(
            [
                Notification(
                    user_id=employee.user_id, title="old read", message="m", read=True, created_at=old
                ),
                Notification(user_id=employee.user_id, title="old unread", message="m", created_at=old),
                Notification(user_id=employee.user_id, title="new read", message="m", read=True),
            ]
        )
        db.commit()

        assert NotificationService(db).cleanup(retention_days=30) == 1
        remaining = sorted(n.title for n in db.query(Notification).all())
        assert remaining == ["new read", "old unread"]


class TestPreferenceService:
    """Tests for PreferenceService."""

    def test_defaults_to_empty(self, db, employee):
        assert PreferenceService(db).get_visible(employee.user_id) == []

    def test_set_add_and_hide(self, db, employee, taxonomy):
        service = PreferenceService(db)
        programming, cloud = taxonomy["programming"], taxonomy["cloud"]

        assert service.set_visible(employee.user_id, [cloud, cloud]) == [cloud]
        assert service.add_visible(employee.user_id, [programming, cloud]) == [cloud, programming]
        assert service.hide(employee.user_id, cloud) == [programming]
        db.commit()
        db.expire_all()
        assert service.get_visible(employee.user_id) == [programming]

    def test_unknown_category(self, db, employee):
        with pytest.raises(NotFoundError):
            PreferenceService(db).set_visible(employee.user_id, [999])

    def test_forget_category(self, db, employee, lead, taxonomy):
        service = PreferenceService(db)
        service.set_visible(employee.user_id, [taxonomy["programming"], taxonomy["cloud"]])
        service.set_visible(lead.user_id, [taxonomy["programming"]])

        assert service.forget_category(taxonomy["cloud"]) == 1
        assert service.get_visible(employee.user_id) == [taxonomy["programming"]]


class TestNotificationsAPI:
    """Tests for the /api/notifications and /api/preferences endpoints."""

    def test_list_read_and_count(self, client, db, employee):
        note = NotificationService(db).notify(employee.user_id, "Hello", "World")
        db.commit()
        headers = {"X-User-Id": employee.user_id}

        assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 1}
        listed = client.get("/api/notifications", headers=headers).json()
        assert listed[0]["title"] == "Hello"
        assert listed[0]["type"] == "info"

        read = client.post(f"/api/notifications/{note.id}/read", headers=headers)
        assert read.json()["read"] is True
        assert client.get("/api/notifications?unread_only=true", headers=headers).json() == []

    def test_read_all(self, client, db, employee):
        service = NotificationService(db)
        service.notify(employee.user_id, "A", "a")
        service.notify(employee.user_id, "B", "b")
        db.commit()

        response = client.post("/api/notifications/read-all", headers={"X-User-Id": employee.user_id})
        assert response.json() == {"count": 2}

    def test_cannot_read_someone_elses(self, client, db, employee, lead):
        note = NotificationService(db).notify(lead.user_id, "Private", "x")
        db.commit()
        response = client.post(f"/api/notifications/{note.id}/read", headers={"X-User-Id": employee.user_id})
        assert response.status_code == 404

    def test_cleanup_requires_manager(self, client, employee, admin):
        denied = client.post("/api/notifications/cleanup", headers={"X-User-Id": employee.user_id})
        assert denied.status_code == 403
        assert client.post("/api/notifications/cleanup", headers={"X-User-Id": admin.user_id}).json() == {
            "count": 0
        }

    def test_preferences(self, client, employee, taxonomy):
        headers = {"X-User-Id": employee.user_id}
        programming, cloud = taxonomy["programming"], taxonomy["cloud"]

        initial = client.get("/api/preferences/categories", headers=headers)
        assert initial.json() == {"visible_category_ids": []}

        put = client.put(
            "/api/preferences/categories", json={"visible_category_ids": [programming]}, headers=headers
        )
        assert put.json() == {"visible_category_ids": [programming]}

        added = client.post("/api/preferences/categories", json={"category_ids": [cloud]}, headers=headers)
        assert added.json() == {"visible_category_ids": [programming, cloud]}

        hidden = client.delete(f"/api/preferences/categories/{programming}", headers=headers)
        assert hidden.json() == {"visible_category_ids": [cloud]}

    def test_preferences_unknown_category(self, client, employee):
        response = client.put(
            "/api/preferences/categories",
            json={"visible_category_ids": [999]},
            headers={"X-User-Id": employee.user_id},
        )
        assert response.status_code == 404
