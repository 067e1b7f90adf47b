# Overview: Pytest coverage for dashboards, statistics, customers and exports.

from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import load_workbook

from boutique_pos.services import reporting_service


NOW = datetime(2026, 3, 7, 18, 0)


@pytest.fixture
def week_of_sales(db_session, make_category, make_product, make_user, make_sale):
    """Two sales in the first week of March 2026 and one the week before."""
    dresses = make_category("Dresses")
    cashier = make_user()
    scarf = make_product("Scarf", price=500, stock=8)
    gown = make_product("Gown", price=3000, stock=20, category=dresses)

    make_sale([(scarf, 2, 500)], created_at=datetime(2026, 3, 2, 10, 15), created_by=cashier,
              customer_name="Grace", customer_phone="0788000001")
    make_sale([(gown, 1, 3000)], created_at=datetime(2026, 3, 7, 14, 30), payment_method="momo",
              discount="200", customer_name="Eric")
    make_sale([(scarf, 2, 500)], created_at=datetime(2026, 2, 25, 9, 0))
    make_sale([(gown, 3, 3000)], created_at=datetime(2026, 3, 3, 9, 0), status="cancelled")
    return {"cashier": cashier, "scarf": scarf, "gown": gown}


class TestAdminStatistics:

    def test_summary_and_changes(self, week_of_sales):
        stats = reporting_service.admin_statistics("2026-03-01", "2026-03-07")

        assert stats["period"] == {"start": "2026-03-01T00:00:00Z", "end": "2026-03-07T23:59:59Z"}
        assert stats["summary"] == {
            "totalRevenue": 3800.0,
            "totalTransactions": 2,
            "avgOrderValue": 1900.0,
            "totalDiscounts": 200.0,
            "itemsSold": 3,
            "activeStaff": 1,
            "revenueChange": 280.0,
            "transactionChange": 100.0,
            "avgOrderChange": 90.0,
        }

    def test_series(self, week_of_sales):
        stats = reporting_service.admin_statistics("2026-03-01", "2026-03-07")

        assert len(stats["hourly"]) == 24
        assert stats["hourly"][10] == {"hour": "10:00", "revenue": 1000.0, "transactions": 1}
        assert stats["hourly"][14]["revenue"] == 2800.0

        assert [d["date"] for d in stats["dailyData"]][0] == "2026-03-01"
        assert len(stats["dailyData"]) == 7
        assert stats["dailyData"][1]["revenue"] == 1000.0
        assert stats["dailyData"][2]["revenue"] == 0.0

    def test_breakdowns(self, week_of_sales):
        stats = reporting_service.admin_statistics("2026-03-01", "2026-03-07")

        methods = {m["method"]: m for m in stats["paymentMethods"]}
        assert list(methods) == ["cash", "momo", "card", "bank"]
        assert methods["cash"] == {"method": "cash", "count": 1, "revenue": 1000.0, "percentage": 26.32}
        assert methods["momo"]["revenue"] == 2800.0
        assert methods["card"]["count"] == 0

        assert [c["name"] for c in stats["categories"]] == ["Dresses", "Uncategorized"]
        assert stats["categories"][0]["percentage"] == 75.0

        top = stats["topProducts"]
        assert [p["name"] for p in top] == ["Gown", "Scarf"]
        assert top[1]["quantity"] == 2

    def test_invalid_range(self, client):
        response = client.get("/api/admin/statistics?startDate=2026-03-07&endDate=2026-03-01")
        assert response.status_code == 400

        response = client.get("/api/admin/statistics?startDate=yesterday")
        assert response.status_code == 400

    def test_route(self, client, week_of_sales):
        body = client.get("/api/admin/statistics?startDate=2026-03-01&endDate=2026-03-07").get_json()
        assert body["success"] is True
        assert body["data"]["summary"]["totalTransactions"] == 2


class TestDashboards:

    def test_dashboard_cards(self, week_of_sales, make_product):
        make_product("Retired", stock=0, is_active=False)

        stats = reporting_service.dashboard_stats(now=NOW)

        assert stats == {
            "todaySales": 2800.0,
            "todayOrders": 1,
            "totalOrders": 3,
            "totalIncome": 4800.0,
            "lowStockItems": 1,
        }

    def test_cashier_statistics(self, week_of_sales):
        cashier = week_of_sales["cashier"]

        stats = reporting_service.cashier_statistics(cashier.id, now=datetime(2026, 3, 2, 20, 0))

        assert stats["revenue"] == 1000.0
        assert stats["transactions"] == 1
        assert stats["itemsSold"] == 2
        assert stats["payments"] == {"cash": 1000.0, "momo": 0.0, "card": 0.0, "bank": 0.0}
        assert stats["hourly"][10]["transactions"] == 1

    def test_cashier_route_requires_id(self, client):
        assert client.get("/api/cashier/statistics").status_code == 400

    def test_dashboard_route(self, client):
        body = client.get("/api/stats/dashboard").get_json()
        assert body["data"]["totalOrders"] == 0


class TestCustomers:

    def test_aggregates_named_customers(self, week_of_sales):
        rows = reporting_service.customers()

        assert [c["name"] for c in rows] == ["Eric", "Grace"]
        assert rows[1]["phone"] == "0788000001"
        assert rows[1]["visits"] == 1
        assert rows[0]["total_spent"] == 2800.0

    def test_route_search_and_pagination(self, client, week_of_sales):
        body = client.get("/api/customers?search=grace").get_json()

        assert [c["name"] for c in body["data"]] == ["Grace"]
        assert body["pagination"]["total"] == 1


class TestExports:

    def test_workbook(self, client, week_of_sales):
        response = client.get("/api/admin/statistics/export?startDate=2026-03-01&endDate=2026-03-07")

        assert response.status_code == 200
        assert "sales-report-2026-03-01-to-2026-03-07.xlsx" in response.headers["Content-Disposition"]
        wb = load_workbook(BytesIO(response.data))
        assert wb.sheetnames == ["Summary", "Daily Sales", "Top Products", "Category Analysis", "Payment Methods"]
        assert wb["Summary"].cell(row=5, column=2).value == 3800.0
        assert wb["Top Products"].cell(row=5, column=2).value == "Gown"

    def test_pdf(self, client, week_of_sales):
        response = client.get("/api/admin/statistics/export/pdf?startDate=2026-03-01&endDate=2026-03-07")

        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")

    def test_pdf_with_no_sales(self, client):
        response = client.get("/api/admin/statistics/export/pdf")
        assert response.status_code == 200
