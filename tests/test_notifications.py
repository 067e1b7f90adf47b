# Overview: Pytest coverage for in-app notifications.

from boutique_pos.extensions import db
from boutique_pos.models import Notification, Product
from boutique_pos.services import notification_service


class TestNotifications:

    def test_create_and_list(self, client):
        response = client.post("/api/notifications", json={"title": "Cash count", "message": "Close the till"})

        assert response.status_code == 201
        assert response.get_json()["data"]["title"] == "CASH COUNT"

        body = client.get("/api/notifications").get_json()
        assert body["unreadCount"] == 1
        assert body["data"][0]["message"] == "Close the till"

    def test_create_validation(self, client):
        assert client.post("/api/notifications", json={"title": "x"}).status_code == 400
        assert client.post("/api/notifications", json={
            "title": "x", "message": "y", "type": "spam",
        }).status_code == 400

    def test_mark_one_read(self, client):
        note = notification_service.create_notification("One", "first")
        notification_service.create_notification("Two", "second")

        response = client.patch("/api/notifications", json={"id": note.id})

        assert response.status_code == 200
        body = client.get("/api/notifications?unread=true").get_json()
        assert [n["message"] for n in body["data"]] == ["second"]
        assert body["unreadCount"] == 1

    def test_mark_all_read(self, client):
        for i in range(3):
            notification_service.create_notification(f"N{i}", "body")

        response = client.patch("/api/notifications", json={"markAllAsRead": True})

        assert response.get_json()["data"]["updated"] == 3
        db.session.expire_all()
        assert db.session.query(Notification).filter_by(is_read=False).count() == 0

    def test_mark_missing(self, client):
        assert client.patch("/api/notifications", json={"id": 999}).status_code == 404
        assert client.patch("/api/notifications", json={}).status_code == 400

    def test_only_low_products_notify(self, db_session, make_product):
        make_product("Low", stock=2, min_stock_level=5)
        make_product("Fine", stock=20, min_stock_level=5)

        notification_service.notify_low_stock(db.session.query(Product).all())

        notes = notification_service.list_notifications()
        assert len(notes) == 1
        assert notes[0].type == "low_stock"
        assert "Low" in notes[0].message
