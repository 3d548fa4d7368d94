"""
Web API 통합 테스트

임시 settings.yaml + 임시 SQLite로 전체 앱을 띄워 HTTP 경계 동작 확인
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from core.config.loader import get_settings
from web.app import app

pytestmark = pytest.mark.integration


@pytest.fixture
def client(temp_settings_file: Path) -> TestClient:
    """임시 DB를 사용하는 TestClient (lifespan에서 스키마 생성)"""
    get_settings(temp_settings_file)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def customer_id(client: TestClient) -> int:
    response = client.post(
        "/api/customers",
        json={"name": "Ali Khan", "phone": "0300-1234567"},
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def farmer_id(client: TestClient) -> int:
    response = client.post("/api/farmers", json={"name": "Bashir Ahmed"})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def rohu_id(client: TestClient) -> int:
    response = client.post("/api/fish-categories", json={"name": "Rohu", "price_per_unit": "1000"})
    assert response.status_code == 201
    return response.json()["id"]


def _sale(client: TestClient, customer_id: int, fish_id: int, weight: str, paid: str):
    return client.post(
        "/api/transactions",
        json={
            "customer_id": customer_id,
            "line_items": [{"fish_category_id": fish_id, "weight": weight}],
            "paid_amount": paid,
            "transaction_date": "2026-01-15",
        },
    )


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["mode"] == "demo"


class TestParties:
    """고객/어민 API"""

    def test_create_and_get(self, client: TestClient, customer_id: int) -> None:
        response = client.get(f"/api/customers/{customer_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Ali Khan"
        assert body["kind"] == "customer"
        assert body["balance"] == "0.00"

    def test_duplicate(self, client: TestClient, customer_id: int) -> None:
        response = client.post(
            "/api/customers",
            json={"name": "ali khan", "phone": "03001234567"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "duplicate_entity"
        assert body["details"]["existing_id"] == customer_id

    def test_invalid_phone(self, client: TestClient) -> None:
        response = client.post("/api/farmers", json={"name": "Bashir", "phone": "555"})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"]["field"] == "phone"

    def test_missing_name(self, client: TestClient) -> None:
        """요청 스키마 오류도 같은 본문 형식"""
        response = client.post("/api/customers", json={"phone": "0300-1234567"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "name"

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/api/farmers/404")

        assert response.status_code == 404
        assert response.json()["details"] == {"kind": "farmer", "id": 404}

    def test_list_search_update_delete(self, client: TestClient, customer_id: int) -> None:
        client.post("/api/customers", json={"name": "Sana Malik"})

        page = client.get("/api/customers", params={"limit": 1}).json()
        assert page["total"] == 2
        assert [p["name"] for p in page["items"]] == ["Ali Khan"]

        found = client.get("/api/customers/search", params={"q": "sana"}).json()
        assert [p["name"] for p in found] == ["Sana Malik"]

        updated = client.put(
            f"/api/customers/{customer_id}",
            json={"name": "Ali Khan", "phone": "0300-1234567", "address": "Keamari"},
        )
        assert updated.json()["address"] == "Keamari"

        assert client.delete(f"/api/customers/{customer_id}").status_code == 204
        assert client.get(f"/api/customers/{customer_id}").status_code == 404

    def test_delete_with_history(
        self,
        client: TestClient,
        customer_id: int,
        rohu_id: int,
    ) -> None:
        _sale(client, customer_id, rohu_id, "40", "0")

        response = client.delete(f"/api/customers/{customer_id}")

        assert response.status_code == 422


class TestFishCategories:
    """어종 API"""

    def test_crud(self, client: TestClient, rohu_id: int) -> None:
        updated = client.put(f"/api/fish-categories/{rohu_id}", json={"price_per_unit": "1200.5"})
        assert updated.json()["price_per_unit"] == "1200.50"

        deactivated = client.post(f"/api/fish-categories/{rohu_id}/active", json={"active": False})
        assert deactivated.json()["active"] is False

        active = client.get("/api/fish-categories", params={"active_only": True}).json()
        assert active == []
        assert len(client.get("/api/fish-categories").json()) == 1

    def test_duplicate(self, client: TestClient, rohu_id: int) -> None:
        response = client.post(
            "/api/fish-categories", json={"name": "ROHU", "price_per_unit": "900"}
        )

        assert response.status_code == 409


class TestSales:
    """판매 거래 API"""

    def test_record_edit_void(self, client: TestClient, customer_id: int, rohu_id: int) -> None:
        created = _sale(client, customer_id, rohu_id, "80", "1500")
        assert created.status_code == 201
        tx = created.json()
        assert tx["total_amount"] == "2000.00"
        assert tx["balance_change"] == "-500.00"
        assert tx["payment_status"] == "partial"
        assert tx["line_items"][0]["fish_name"] == "Rohu"

        balance = client.get(f"/api/customers/{customer_id}/balance").json()
        assert balance == {"kind": "customer", "id": customer_id, "balance": "-500.00"}

        edited = client.put(f"/api/transactions/{tx['id']}", json={"paid_amount": "2000"})
        assert edited.status_code == 200
        assert edited.json()["payment_status"] == "paid"
        assert client.get(f"/api/customers/{customer_id}/balance").json()["balance"] == "0.00"

        voided = client.post(f"/api/transactions/{tx['id']}/void")
        assert voided.json()["status"] == "voided"
        assert client.post(f"/api/transactions/{tx['id']}/void").status_code == 404

        # 취소된 거래도 조회는 가능
        assert client.get(f"/api/transactions/{tx['id']}").json()["status"] == "voided"

    def test_history(self, client: TestClient, customer_id: int, rohu_id: int) -> None:
        _sale(client, customer_id, rohu_id, "40", "0")
        _sale(client, customer_id, rohu_id, "80", "0")

        history = client.get(f"/api/customers/{customer_id}/transactions").json()
        listed = client.get("/api/transactions", params={"customer_id": customer_id}).json()

        assert history["total"] == 2
        assert listed["total"] == 2
        assert history["items"][0]["total_amount"] == "2000.00"

    def test_unknown_customer_filter(self, client: TestClient) -> None:
        response = client.get("/api/transactions", params={"customer_id": 77})

        assert response.status_code == 404

    def test_nan_weight(self, client: TestClient, customer_id: int, rohu_id: int) -> None:
        response = _sale(client, customer_id, rohu_id, "NaN", "0")

        assert response.status_code == 422
        assert response.json()["error"] in {"validation_error", "invalid_amount"}

    def test_overpaid(self, client: TestClient, customer_id: int, rohu_id: int) -> None:
        response = _sale(client, customer_id, rohu_id, "40", "2000.01")

        assert response.status_code == 422
        assert response.json()["details"]["field"] == "paid_amount"


class TestPurchases:
    """매입 거래 API"""

    def test_record_and_pay(self, client: TestClient, farmer_id: int) -> None:
        created = client.post(
            "/api/purchases",
            json={
                "farmer_id": farmer_id,
                "fish": {"name": "Tilapia"},
                "weight": "80",
                "price_per_unit": "1000",
                "commission_percent": "5",
                "deductions": [{"kind": "ice", "amount": "100"}],
                "paid_amount": "800",
                "transaction_date": "2026-01-15",
            },
        )
        assert created.status_code == 201
        tx = created.json()
        assert tx["total_amount"] == "1800.00"
        assert tx["deductions"]["ice"] == "100.00"
        assert tx["balance_change"] == "-1000.00"

        fish = client.get("/api/fish-categories").json()
        assert [f["name"] for f in fish] == ["Tilapia"]

        paid = client.put(f"/api/purchases/{tx['id']}", json={"paid_amount": "1800"})
        assert paid.json()["payment_status"] == "paid"

        history = client.get(f"/api/farmers/{farmer_id}/transactions").json()
        assert history["items"][0]["farmer_id"] == farmer_id

    def test_negative_net(self, client: TestClient, farmer_id: int, rohu_id: int) -> None:
        response = client.post(
            "/api/purchases",
            json={
                "farmer_id": farmer_id,
                "fish": {"category_id": rohu_id},
                "weight": "40",
                "price_per_unit": "1000",
                "deductions": [{"kind": "extra", "amount": "1000.01"}],
            },
        )

        assert response.status_code == 422

    def test_unknown_deduction_kind(self, client: TestClient, farmer_id: int, rohu_id: int) -> None:
        response = client.post(
            "/api/purchases",
            json={
                "farmer_id": farmer_id,
                "fish": {"category_id": rohu_id},
                "weight": "40",
                "price_per_unit": "1000",
                "deductions": [{"kind": "tax", "amount": "1"}],
            },
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"


class TestReports:
    """리포트/유지보수 API"""

    def test_dashboard(
        self,
        client: TestClient,
        customer_id: int,
        farmer_id: int,
        rohu_id: int,
    ) -> None:
        _sale(client, customer_id, rohu_id, "80", "1500")

        stats = client.get("/api/dashboard", params={"day": "2026-01-15"}).json()

        assert stats["today_sales"]["total_amount"] == "2000.00"
        assert stats["pending_customers_total"] == "500.00"
        assert stats["customers_count"] == 1
        assert stats["farmers_count"] == 1
        assert stats["active_fish_categories"] == 1

    def test_daily_and_summary(self, client: TestClient, customer_id: int, rohu_id: int) -> None:
        _sale(client, customer_id, rohu_id, "80", "1500")
        params = {"stream": "sales", "start": "2026-01-01", "end": "2026-01-31"}

        daily = client.get("/api/reports/daily", params=params).json()
        summary = client.get("/api/reports/summary", params=params).json()

        assert [d["date"] for d in daily] == ["2026-01-15"]
        assert summary["total_cash"] == "1500.00"
        assert summary["current_outstanding"] == "500.00"

    def test_range_reversed(self, client: TestClient) -> None:
        response = client.get(
            "/api/reports/daily", params={"start": "2026-02-01", "end": "2026-01-01"}
        )

        assert response.status_code == 422

    def test_reconcile_and_rebuild(
        self,
        client: TestClient,
        customer_id: int,
        rohu_id: int,
    ) -> None:
        _sale(client, customer_id, rohu_id, "80", "1500")

        reconcile = client.post("/api/maintenance/reconcile", json={}).json()
        assert reconcile == {"fixed": False, "drifts": []}

        rebuild = client.post("/api/maintenance/rebuild-summaries", json={"stream": "sales"})
        assert rebuild.json() == {"days": {"sales": 1}}
