# Overview: Pytest coverage for barcode pool generation, listing and label download.

import pytest

from boutique_pos.extensions import db
from boutique_pos.models import Barcode
from boutique_pos.services import barcode_service
from boutique_pos.validation import ValidationError


class TestGenerate:

    def test_generation_continues_after_highest_id(self, client, make_barcodes):
        make_barcodes(5, start=1, status="used")

        response = client.post("/api/barcodes/generate", json={"count": 3})

        assert response.status_code == 201
        codes = [b["barcode"] for b in response.get_json()["data"]]
        assert codes == ["0000000006", "0000000007", "0000000008"]
        assert all(b["status"] == "available" for b in response.get_json()["data"])

    def test_first_batch_starts_at_one(self, db_session):
        rows = barcode_service.generate_barcodes(2)
        assert [r.barcode_id for r in rows] == [1, 2]

    @pytest.mark.parametrize("count", [0, 51, -1, "many", 2.5, None])
    def test_count_bounds(self, client, count):
        response = client.post("/api/barcodes/generate", json={"count": count})

        assert response.status_code == 400
        assert db.session.query(Barcode).count() == 0

    def test_service_rejects_bool(self, db_session):
        with pytest.raises(ValidationError):
            barcode_service.generate_barcodes(True)

    def test_max_batch(self, db_session):
        assert len(barcode_service.generate_barcodes(50)) == 50


class TestListing:

    def test_filter_by_status(self, client, make_barcodes):
        make_barcodes(3, start=1, status="used")
        make_barcodes(2, start=4)

        body = client.get("/api/barcodes?status=available").get_json()
        assert [b["barcode_id"] for b in body["data"]] == [5, 4]

        body = client.get("/api/barcodes?status=all").get_json()
        assert body["pagination"]["total"] == 5

    def test_unknown_status(self, client):
        assert client.get("/api/barcodes?status=lost").status_code == 400

    def test_search(self, client, make_barcodes):
        make_barcodes(12, start=1)

        body = client.get("/api/barcodes?search=0000000011").get_json()

        assert [b["barcode_id"] for b in body["data"]] == [11]

    def test_pagination(self, client, make_barcodes):
        make_barcodes(25)

        body = client.get("/api/barcodes?page=2&limit=10").get_json()

        assert body["pagination"] == {"page": 2, "limit": 10, "total": 25, "totalPages": 3}
        assert body["data"][0]["barcode_id"] == 15


class TestAvailability:

    def test_empty_pool(self, client):
        data = client.get("/api/barcode/available").get_json()["data"]
        assert data == {
            "available_count": 0,
            "next_available_barcode": None,
            "warning_level": True,
            "critical_level": True,
        }

    def test_low_pool(self, client, make_barcodes):
        make_barcodes(2, start=1, status="used")
        make_barcodes(5, start=3)

        data = client.get("/api/barcode/available").get_json()["data"]

        assert data["available_count"] == 5
        assert data["next_available_barcode"] == "0000000003"
        assert data["warning_level"] is True
        assert data["critical_level"] is False

    def test_healthy_pool(self, db_session, make_barcodes):
        make_barcodes(10)

        data = barcode_service.get_availability()

        assert data["warning_level"] is False
        assert data["critical_level"] is False


class TestStatusChange:

    def test_void_available_barcode(self, client, make_barcodes):
        row = make_barcodes(1)[0]

        response = client.patch(f"/api/barcodes/{row.id}", json={"status": "void"})

        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "void"

    def test_used_barcode_is_frozen(self, client, make_barcodes):
        row = make_barcodes(1, status="used")[0]

        response = client.patch(f"/api/barcodes/{row.id}", json={"status": "available"})

        assert response.status_code == 409
        assert response.get_json()["code"] == "BARCODE_IN_USE"

    def test_cannot_mark_used_by_hand(self, client, make_barcodes):
        row = make_barcodes(1)[0]

        response = client.patch(f"/api/barcodes/{row.id}", json={"status": "used"})

        assert response.status_code == 400

    def test_missing_barcode(self, client):
        response = client.patch("/api/barcodes/999", json={"status": "void"})
        assert response.status_code == 404


class TestDownload:

    def test_label_sheet_pdf(self, client, make_barcodes):
        rows = make_barcodes(30)

        response = client.post("/api/barcodes/download", json={"barcodeIds": [r.id for r in rows]})

        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")
        assert "attachment" in response.headers["Content-Disposition"]

    def test_empty_id_list(self, client):
        response = client.post("/api/barcodes/download", json={"barcodeIds": []})
        assert response.status_code == 400

    def test_unknown_ids(self, client):
        response = client.post("/api/barcodes/download", json={"barcodeIds": [404, 405]})
        assert response.status_code == 404
