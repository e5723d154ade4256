import gspread
import pytest
from fastapi.testclient import TestClient

from sales_league import config
from sales_league.achievements_catalog import ACHIEVEMENTS_CATALOG
from sales_league.achievements_store import AchievementRecord
from sales_league.routers import achievements as achievements_router
from sales_league.sheets_client import DealRow, SheetsConfigError


def test_root(client):
    assert client.get("/").json() == {"status": "Sales League is running!"}


class TestMetricsEndpoint:
    def test_user_id_is_required(self, client):
        response = client.get("/api/metrics")
        assert response.status_code == 400
        assert response.json()["detail"] == "user_id is required"

    def test_metrics(self, client):
        response = client.get("/api/metrics", params={"user_id": "Петров Пётр Сергеевич"})
        assert response.status_code == 200
        data = response.json()
        assert data["companies_count"] == 10
        assert data["league"]["id"] == "bronze"
        assert data["totals"]["paid_total"] == 1
        assert len(data["buckets"]) == 5

    def test_data_source_errors_become_500(self, client):
        from sales_league.main import app
        from sales_league.routers.deps import get_invoices

        def broken():
            raise SheetsConfigError("PUBLIC_CSV_INVOICES_URL is required for MODE=public_csv")

        app.dependency_overrides[get_invoices] = broken
        response = client.get("/api/metrics", params={"user_id": "x"})
        assert response.status_code == 500
        assert response.json() == {"error": "PUBLIC_CSV_INVOICES_URL is required for MODE=public_csv"}

    def test_gspread_errors_become_500(self, client):
        from sales_league.main import app
        from sales_league.routers.deps import get_invoices

        def broken():
            raise gspread.exceptions.GSpreadException("Quota exceeded for quota metric 'Read requests'")

        app.dependency_overrides[get_invoices] = broken
        response = client.get("/api/metrics", params={"user_id": "x"})
        assert response.status_code == 500
        assert response.json() == {"error": "Quota exceeded for quota metric 'Read requests'"}

    def test_unexpected_errors_become_json_500(self, companies, store):
        from sales_league.main import app
        from sales_league.routers.deps import get_companies, get_invoices, get_store

        def broken():
            raise RuntimeError("worksheet went away")

        app.dependency_overrides[get_companies] = lambda: companies
        app.dependency_overrides[get_invoices] = broken
        app.dependency_overrides[get_store] = lambda: store
        try:
            response = TestClient(app, raise_server_exceptions=False).get("/api/metrics", params={"user_id": "x"})
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"error": "worksheet went away"}


def test_employees(client):
    response = client.get("/api/employees")
    assert response.status_code == 200
    employees = response.json()["employees"]
    assert [e["user_id"] for e in employees] == ["Иванов Иван Петрович", "Петров Пётр Сергеевич"]
    assert employees[0]["league_name"] == "Silver"


def test_leaderboard(client):
    response = client.get("/api/leaderboard")
    assert response.status_code == 200
    data = response.json()
    for key in ("total_current_month_margin", "total_previous_month_margin", "department_plan"):
        assert key in data
    assert data["current_month"] != data["previous_month"]


class TestAchievementsEndpoint:
    def test_user_id_is_required(self, client):
        assert client.get("/api/achievements").status_code == 400

    def test_merges_stored_flags(self, client, store):
        store.upsert_batch([AchievementRecord(user_id="u1", achievement_id="ms-5", month_key="2025-05", achieved=True)])
        data = client.get("/api/achievements", params={"user_id": "u1", "month": "2025-05"}).json()
        assert data["month"] == "2025-05"
        assert len(data["achievements"]) == len(ACHIEVEMENTS_CATALOG)
        achieved = [a["id"] for a in data["achievements"] if a["achieved"]]
        assert achieved == ["ms-5"]

    def test_lifetime_month(self, client):
        data = client.get("/api/achievements", params={"user_id": "u1", "month": "all"}).json()
        assert data["month"] == "all"

    def test_invalid_month_falls_back_to_current(self, client):
        data = client.get("/api/achievements", params={"user_id": "u1", "month": "May"}).json()
        assert data["month"] == achievements_router.current_month_key()


class TestCronEndpoint:
    @pytest.fixture
    def fake_deals(self, monkeypatch):
        deals = [DealRow(user_id="u1", status=config.PAID_STATUS, completion_date="2025-05-0%d" % d) for d in range(1, 6)]
        monkeypatch.setattr("sales_league.achievements_job.fetch_deals_for_achievements", lambda: (deals, 7))

    def test_requires_secret(self, client, monkeypatch, fake_deals):
        monkeypatch.setattr(config, "CRON_SECRET", "s3cret")
        assert client.post("/api/cron/achievements").status_code == 401
        response = client.post("/api/cron/achievements", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401

    def test_runs_job(self, client, store, monkeypatch, fake_deals):
        monkeypatch.setattr(config, "CRON_SECRET", "s3cret")
        response = client.get("/api/cron/achievements", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        assert response.json() == {
            "ok": True, "rowsRead": 7, "rowsFiltered": 5, "achievementsUpdated": 5 + 21, "errors": [],
        }
        flags = {r.achievement_id: r.achieved for r in store.get("u1", "2025-05")}
        assert flags["ms-5"] is True

    def test_open_without_secret(self, client, monkeypatch, fake_deals):
        monkeypatch.setattr(config, "CRON_SECRET", None)
        assert client.post("/api/cron/achievements").json()["ok"] is True
