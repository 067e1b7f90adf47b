# Overview: Pytest coverage for categories and best-selling categories.

from datetime import datetime

from boutique_pos.extensions import db
from boutique_pos.models import Category, Product
from boutique_pos.services import category_service


NOW = datetime(2026, 3, 10, 15, 0)


class TestCategoryRoutes:

    def test_create_and_list_with_counts(self, client, make_product):
        response = client.post("/api/categories", json={"name": "Dresses", "description": "Evening wear"})
        assert response.status_code == 201
        category_id = response.get_json()["data"]["id"]

        make_product("Gown", category=db.session.get(Category, category_id))
        make_product("Retired gown", category=db.session.get(Category, category_id), is_active=False)
        client.post("/api/categories", json={"name": "Accessories"})

        data = client.get("/api/categories").get_json()["data"]

        assert [c["name"] for c in data] == ["Accessories", "Dresses"]
        assert data[1]["product_count"] == 1

    def test_duplicate_name_case_insensitive(self, client, make_category):
        make_category("Shoes")

        response = client.post("/api/categories", json={"name": "shoes"})

        assert response.status_code == 409
        assert response.get_json()["code"] == "DUPLICATE_CATEGORY"

    def test_blank_name(self, client):
        assert client.post("/api/categories", json={"name": "  "}).status_code == 400

    def test_rename(self, client, make_category):
        category = make_category("Tops")

        response = client.patch(f"/api/categories/{category.id}", json={"name": "Blouses"})

        assert response.status_code == 200
        assert response.get_json()["data"]["name"] == "Blouses"

    def test_cannot_parent_itself(self, client, make_category):
        category = make_category("Tops")

        response = client.put(f"/api/categories/{category.id}", json={"parent_id": category.id})

        assert response.status_code == 400

    def test_delete_detaches_products(self, client, make_category, make_product):
        category = make_category("Bags")
        product = make_product("Tote", category=category)

        response = client.delete(f"/api/categories/{category.id}")

        assert response.status_code == 200
        db.session.expire_all()
        assert db.session.get(Category, category.id) is None
        assert db.session.get(Product, product.id).category_id is None

    def test_delete_missing(self, client):
        assert client.delete("/api/categories/999").status_code == 404

    def test_top_rejects_unknown_range(self, client):
        assert client.get("/api/categories/top?range=year").status_code == 400


class TestTopCategories:

    def test_ranking_share_and_change(self, db_session, make_category, make_product, make_sale):
        dresses = make_category("Dresses")
        shoes = make_category("Shoes")
        gown = make_product("Gown", category=dresses, stock=50)
        heels = make_product("Heels", category=shoes, stock=50)

        make_sale([(gown, 2, 1500)], created_at=datetime(2026, 3, 10, 10, 0))
        make_sale([(heels, 1, 1000)], created_at=datetime(2026, 3, 10, 11, 0))
        make_sale([(gown, 1, 1500)], created_at=datetime(2026, 3, 9, 12, 0))
        make_sale([(heels, 5, 1000)], created_at=datetime(2026, 3, 10, 12, 0), status="refunded")

        result = category_service.top_categories("today", now=NOW)

        assert result["total_revenue"] == 4000.0
        top = result["categories"]
        assert [c["name"] for c in top] == ["Dresses", "Shoes"]
        assert top[0] == {
            "id": dresses.id,
            "name": "Dresses",
            "revenue": 3000.0,
            "items_sold": 2,
            "transactions": 1,
            "share": 75.0,
            "change": 100.0,
        }
        assert top[1]["change"] == 100.0
        assert top[1]["share"] == 25.0

    def test_limit(self, db_session, make_category, make_product, make_sale):
        for i in range(4):
            category = make_category(f"Cat {i}")
            product = make_product(f"P{i}", category=category)
            make_sale([(product, 1, 100 * (i + 1))], created_at=datetime(2026, 3, 10, 9, i))

        result = category_service.top_categories("week", limit=2, now=NOW)

        assert [c["name"] for c in result["categories"]] == ["Cat 3", "Cat 2"]

    def test_no_sales(self, db_session):
        result = category_service.top_categories("month", now=NOW)
        assert result == {"range": "month", "categories": [], "total_revenue": 0}
