from datetime import date, datetime

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from stockbook.db.database import Database
from stockbook.models.inventory import Sale


def _add(client, name, quantity, buying_rate, selling_rate):
    return client.post(
        "/items",
        json={"name": name, "quantity": quantity, "buying_rate": buying_rate, "selling_rate": selling_rate},
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/db").json() == {"status": "ok", "database": "reachable"}


def test_health_db_reports_unreachable_store(client, monkeypatch):
    def _fail(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(Database, "ping", _fail)

    response = client.get("/health/db")

    assert response.status_code == 503
    assert response.json()["database"] == "unreachable"


@pytest.mark.parametrize("path", ["/items/names", "/items/report", "/analytics/summary", "/debts"])
def test_endpoints_require_authentication(client, path):
    response = client.get(path)

    assert response.status_code == 401


def test_rice_scenario_over_http(auth_client):
    created = _add(auth_client, "Rice", 10, 40, 52)
    restocked = _add(auth_client, "rice", 5, 42, 55)

    assert created.status_code == 201
    assert created.json()["message"] == "New item added"
    assert restocked.status_code == 200
    assert restocked.json()["message"] == "Stock updated"

    sale = auth_client.post("/sales", json={"item_name": "Rice", "quantity": 3, "selling_price": 55})
    assert sale.status_code == 201
    assert float(sale.json()["available_qty"]) == 12

    [row] = auth_client.get("/items/report").json()
    assert row["item_name"] == "Rice"
    assert float(row["available_qty"]) == 12
    assert float(row["sold_qty"]) == 3

    info = auth_client.get("/items/info", params={"name": "RICE"}).json()
    assert float(info["selling_rate"]) == 55
    assert auth_client.get("/items/names").json() == ["Rice"]


def test_item_info_errors(auth_client):
    assert auth_client.get("/items/info").status_code == 400
    missing = auth_client.get("/items/info", params={"name": "Ghee"})
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Item not found"}


def test_invalid_body_maps_to_bad_request(auth_client):
    response = _add(auth_client, "Rice", -1, 40, 52)

    assert response.status_code == 400


def test_oversell_is_a_conflict(auth_client):
    _add(auth_client, "Oil", 2, 100, 120)

    response = auth_client.post("/sales", json={"item_name": "Oil", "quantity": 3})

    assert response.status_code == 409
    assert "Insufficient stock" in response.json()["detail"]


def test_owners_do_not_see_each_other(auth_client, login):
    _add(auth_client, "Rice", 10, 40, 52)
    other_token = login("other@example.com", name="Other Keeper")

    response = auth_client.get("/items/names", headers={"Authorization": f"Bearer {other_token}"})

    assert response.json() == []


def _backdate_sales(database, created_at):
    with database.session() as session:
        session.execute(update(Sale).values(created_at=created_at))
        session.commit()


def test_sales_report_endpoints(auth_client, database):
    _add(auth_client, "Rice", 10, 40, 50)
    auth_client.post("/sales", json={"item_name": "Rice", "quantity": 2})
    # 20:00 UTC on March 10th is March 11th in the reporting timezone.
    _backdate_sales(database, datetime(2026, 3, 10, 20, 0))
    params = {"from": "2026-03-11", "to": "2026-03-11"}

    rows = auth_client.get("/sales/report", params=params).json()
    assert len(rows) == 1
    assert rows[0]["sale_date"] == "2026-03-11"

    missing = auth_client.get("/sales/report", params={"from": "2026-03-11"})
    assert missing.status_code == 400
    assert missing.json() == {"detail": "Missing date range"}

    pdf = auth_client.get("/sales/report/pdf", params=params)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    excel = auth_client.get("/sales/report/excel", params=params)
    assert excel.status_code == 200
    assert excel.headers["content-disposition"] == 'attachment; filename="sales_report.xlsx"'


def test_item_report_downloads(auth_client):
    _add(auth_client, "Rice", 10, 40, 50)

    assert auth_client.get("/items/report/pdf").content.startswith(b"%PDF")
    excel = auth_client.get("/items/report/excel")
    assert excel.headers["content-type"].startswith("application/vnd.openxmlformats")


def test_monthly_sales_endpoints(auth_client):
    assert len(auth_client.get("/sales/last-13-months").json()) == 13
    assert len(auth_client.get("/sales/last-12-months").json()) == 12
    assert len(auth_client.get("/sales/monthly", params={"months": 6}).json()) == 6
    assert auth_client.get("/sales/monthly", params={"months": 0}).status_code == 400

    current = auth_client.get("/sales/monthly", params={"months": 1}).json()[0]
    assert date.fromisoformat(current["month_start"]).day == 1


def test_analytics_summary_endpoint(auth_client):
    _add(auth_client, "Rice", 10, 40, 50)
    auth_client.post("/sales", json={"item_name": "Rice", "quantity": 2})

    summary = auth_client.get("/analytics/summary").json()

    assert float(summary["total_stock"]) == 400
    assert float(summary["total_sales"]) == 100
    assert float(summary["monthly_sales"]) == 100


def test_debt_endpoints(auth_client):
    first = auth_client.post(
        "/debts", json={"customer_name": "Asha", "customer_number": "9876543210", "total": 100, "credit": 30}
    )
    auth_client.post("/debts", json={"customer_name": "Asha", "customer_number": "9876543210", "total": 50, "credit": 20})

    assert first.status_code == 201
    ledger = auth_client.get("/debts/9876543210").json()
    assert [float(entry["balance"]) for entry in ledger] == [70, 100]

    [dues] = auth_client.get("/debts").json()
    assert dues["customer_name"] == "Asha"
    assert float(dues["balance"]) == 100

    pdf = auth_client.get("/debts/9876543210/pdf")
    assert pdf.content.startswith(b"%PDF")


@pytest.mark.parametrize("number", ["987654321", "98765432101"])
def test_debt_number_validation(auth_client, number):
    response = auth_client.post("/debts", json={"customer_name": "Asha", "customer_number": number, "total": 10})

    assert response.status_code == 400
    assert auth_client.get("/debts").json() == []
    assert auth_client.get(f"/debts/{number}").status_code == 400


def test_sale_time_cannot_be_chosen_by_the_caller(auth_client):
    _add(auth_client, "Rice", 10, 40, 50)

    response = auth_client.post(
        "/sales", json={"item_name": "Rice", "quantity": 1, "sold_at": "2020-01-01T00:00:00Z"}
    )

    assert response.status_code == 201
    assert datetime.fromisoformat(response.json()["created_at"]).year != 2020


def test_storage_failure_is_opaque_server_error(auth_client, monkeypatch):
    _add(auth_client, "Rice", 10, 40, 50)

    def _fail(self):
        raise OperationalError("COMMIT", {}, Exception("could not write to table items"))

    monkeypatch.setattr(Session, "commit", _fail)
    response = auth_client.post("/sales", json={"item_name": "Rice", "quantity": 3})
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.json() == {"detail": "Server error"}
    [row] = auth_client.get("/items/report").json()
    assert float(row["available_qty"]) == 10
    assert float(row["sold_qty"]) == 0
