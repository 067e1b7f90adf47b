# Overview: Pytest coverage for the health endpoint, CLI commands and request body handling.

import pytest

from boutique_pos.extensions import db
from boutique_pos.models import Barcode, User
from boutique_pos.services.auth_service import verify_password


class TestHealth:

    def test_degraded_without_barcodes(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "degraded"

    def test_healthy(self, client, make_barcodes):
        make_barcodes(1)

        body = client.get("/health").get_json()

        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["available_barcodes"] == 1

    def test_cors_header_for_dashboard_origin(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

        response = client.get("/health", headers={"Origin": "http://evil.test"})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestJsonBodies:

    @pytest.mark.parametrize("method, url", [
        ("post", "/api/categories"),
        ("put", "/api/categories/1"),
        ("post", "/api/barcodes/generate"),
        ("patch", "/api/barcodes/1"),
        ("post", "/api/barcodes/download"),
        ("post", "/api/staff"),
        ("put", "/api/staff/1"),
        ("patch", "/api/staff/1/status"),
        ("post", "/api/notifications"),
        ("patch", "/api/notifications"),
        ("post", "/api/products"),
        ("put", "/api/products/1"),
        ("post", "/api/products/1/restock"),
        ("post", "/api/transactions"),
        ("patch", "/api/transactions/1/status"),
        ("put", "/api/settings"),
    ])
    def test_array_body_is_a_validation_error(self, client, method, url):
        response = getattr(client, method)(url, json=[1, 2])

        assert response.status_code == 400
        body = response.get_json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"


class TestCli:

    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init", "--barcodes", "60"])
        assert result.exit_code == 0, result.output
        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output

        admin = db.session.query(User).one()
        assert admin.role == "admin"
        assert verify_password("Password123!", admin.password_hash)
        assert db.session.query(Barcode).count() == 60

    def test_generate_and_status(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["barcodes", "generate", "--count", "2"])
        assert "0000000001 .. 0000000002" in result.output

        result = runner.invoke(args=["barcodes", "status"])
        assert "Available: 2 (CRITICAL)" in result.output

    def test_generate_rejects_large_batch(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["barcodes", "generate", "--count", "51"])

        assert result.exit_code != 0
        assert db.session.query(Barcode).count() == 0

    def test_staff_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "staff", "create", "--username", "jane", "--email", "jane@boutique.test",
            "--full-name", "Jane Doe", "--password", "Password123!", "--role", "manager",
        ])
        assert result.exit_code == 0, result.output

        result = runner.invoke(args=["staff", "list"])
        assert "jane" in result.output
        assert "manager" in result.output
