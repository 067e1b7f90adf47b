# Overview: Pytest coverage for staff administration and password handling.

import pytest

from boutique_pos.extensions import db
from boutique_pos.models import User
from boutique_pos.services import staff_service
from boutique_pos.services.auth_service import (
    PasswordValidationError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from tests.conftest import TEST_PASSWORD


NEW_STAFF = {
    "full_name": "Alice Uwase",
    "email": "Alice@Boutique.test",
    "username": "alice",
    "password": TEST_PASSWORD,
}


class TestPasswords:

    def test_hash_and_verify(self, db_session):
        hashed = hash_password(TEST_PASSWORD)
        assert hashed != TEST_PASSWORD
        assert verify_password(TEST_PASSWORD, hashed)
        assert not verify_password("Wrong123!", hashed)

    def test_malformed_hash(self):
        assert verify_password(TEST_PASSWORD, "not-a-bcrypt-hash") is False

    @pytest.mark.parametrize("password", [
        "Short1!",
        "alllowercase1!",
        "ALLUPPERCASE1!",
        "NoDigitsHere!",
        "NoSpecial123",
        None,
    ])
    def test_weak_passwords(self, password):
        with pytest.raises(PasswordValidationError):
            validate_password_strength(password)


class TestStaffRoutes:

    def test_create_hides_hash_and_defaults_role(self, client):
        response = client.post("/api/staff", json=NEW_STAFF)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["role"] == "cashier"
        assert data["email"] == "alice@boutique.test"
        assert "password_hash" not in data
        user = db.session.get(User, data["id"])
        assert verify_password(TEST_PASSWORD, user.password_hash)

    def test_missing_fields(self, client):
        response = client.post("/api/staff", json={"username": "bob"})
        assert response.status_code == 400

    def test_weak_password_rejected(self, client):
        response = client.post("/api/staff", json={**NEW_STAFF, "password": "password"})

        assert response.status_code == 400
        assert response.get_json()["code"] == "WEAK_PASSWORD"

    @pytest.mark.parametrize("field, value, code", [
        ("username", "ALICE", "DUPLICATE_USERNAME"),
        ("email", "alice@boutique.test", "DUPLICATE_EMAIL"),
    ])
    def test_duplicates(self, client, field, value, code):
        client.post("/api/staff", json=NEW_STAFF)
        other = {**NEW_STAFF, "username": "alice2", "email": "alice2@boutique.test", field: value}

        response = client.post("/api/staff", json=other)

        assert response.status_code == 409
        assert response.get_json()["code"] == code

    def test_unknown_role(self, client):
        response = client.post("/api/staff", json={**NEW_STAFF, "role": "owner"})
        assert response.status_code == 400

    def test_list_filters(self, client, make_user):
        make_user("cashier1", role="cashier", full_name="Jean Cashier")
        make_user("manager1", role="manager", full_name="Marie Manager")
        make_user("gone", role="cashier", full_name="Old Cashier", is_active=False)

        body = client.get("/api/staff?role=cashier&status=active").get_json()
        assert [u["username"] for u in body["data"]] == ["cashier1"]

        body = client.get("/api/staff?search=marie").get_json()
        assert [u["username"] for u in body["data"]] == ["manager1"]

    def test_update(self, client, make_user):
        user = make_user()

        response = client.put(f"/api/staff/{user.id}", json={"role": "manager", "full_name": "Promoted"})

        assert response.status_code == 200
        assert response.get_json()["data"]["role"] == "manager"

    def test_status_and_delete_deactivate(self, client, make_user):
        user = make_user()

        response = client.patch(f"/api/staff/{user.id}/status", json={"is_active": "no"})
        assert response.status_code == 400

        client.patch(f"/api/staff/{user.id}/status", json={"is_active": False})
        client.patch(f"/api/staff/{user.id}/status", json={"is_active": True})
        response = client.delete(f"/api/staff/{user.id}")

        assert response.status_code == 200
        db.session.expire_all()
        assert db.session.get(User, user.id).is_active is False

    def test_missing_staff(self, client):
        assert client.get("/api/staff/999").status_code == 404
        assert client.delete("/api/staff/999").status_code == 404


class TestStaffStats:

    def test_counts(self, db_session, make_user):
        make_user("a1", role="admin")
        make_user("c1", role="cashier")
        make_user("c2", role="cashier", is_active=False)

        stats = staff_service.staff_stats()

        assert stats["total"] == 3
        assert stats["active"] == 2
        assert stats["inactive"] == 1
        assert stats["newThisMonth"] == 3
        assert stats["byRole"] == {"admin": 1, "manager": 0, "cashier": 2, "inventory_manager": 0}
