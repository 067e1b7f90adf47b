# Overview: Pytest coverage for shop settings.

import pytest

from boutique_pos.services import settings_service


class TestSettings:

    def test_defaults(self, client):
        data = client.get("/api/settings").get_json()["data"]

        assert data == {
            "shopName": "Oscar's Boutique",
            "currency": "FRW",
            "taxRate": 0,
            "receiptFooter": "Thank you for shopping with us!",
        }

    def test_update_overlays_defaults(self, client):
        response = client.put("/api/settings", json={"shopName": "  Maison Oscar ", "taxRate": 18})

        assert response.status_code == 200
        data = client.get("/api/settings").get_json()["data"]
        assert data["shopName"] == "Maison Oscar"
        assert data["taxRate"] == 18
        assert data["currency"] == "FRW"

    def test_values_keep_their_json_type(self, db_session):
        settings_service.update_settings({"openingHours": {"mon": "09:00-18:00"}, "showLogo": False})

        settings = settings_service.get_settings()

        assert settings["openingHours"] == {"mon": "09:00-18:00"}
        assert settings["showLogo"] is False

    def test_second_update_replaces_value(self, db_session):
        settings_service.update_settings({"receiptFooter": "Merci!"})
        settings_service.update_settings({"receiptFooter": "Murakoze!"})

        assert settings_service.get_settings()["receiptFooter"] == "Murakoze!"

    @pytest.mark.parametrize("payload", [
        {},
        {"taxRate": 101},
        {"taxRate": "18"},
        {"shopName": "   "},
        {"bad key": 1},
        {"1st": 1},
    ])
    def test_rejected(self, client, payload):
        response = client.post("/api/settings", json=payload)
        assert response.status_code == 400

    def test_receipt_uses_settings(self, client, make_product):
        client.post("/api/settings", json={"shopName": "Maison Oscar", "receiptFooter": "See you soon"})
        product = make_product("Hat", stock=3)
        tx_id = client.post("/api/transactions", json={
            "items": [{"product_id": product.id, "quantity": 1, "unit_price": 500}],
        }).get_json()["transactionId"]

        shop = client.get(f"/api/transactions/{tx_id}/receipt").get_json()["data"]["shop"]

        assert shop == {"name": "Maison Oscar", "currency": "FRW", "footer": "See you soon"}
