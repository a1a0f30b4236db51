"""Integration tests for balance endpoints"""

from datetime import datetime
from fastapi.testclient import TestClient


def test_deposit_creates_completed_credit(client: TestClient):
    """Test POST /v1/balances/deposit"""
    response = client.post(
        "/v1/balances/deposit",
        json={"user_id": 1, "amount": 1000, "payment_method": "bank_transfer"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == 1000
    assert data["transaction_type"] == "deposit"
    assert data["status"] == "completed"
    assert data["description"] == "Deposit"
    assert data["reference_id"].startswith("DEP_20240215120000_")
    assert data["metadata"]["payment_method"] == "bank_transfer"
    assert data["created_at"] == "2024-02-15T12:00:00"


def test_deposit_below_minimum_rejected(client: TestClient):
    response = client.post("/v1/balances/deposit", json={"user_id": 1, "amount": 0.5})
    assert response.status_code == 422


def test_withdrawal_is_pending_and_held(client: TestClient):
    """Pending withdrawals reduce the available balance but not the current one"""
    client.post("/v1/balances/deposit", json={"user_id": 1, "amount": 1000})

    response = client.post("/v1/balances/withdraw", json={"user_id": 1, "amount": 300})

    assert response.status_code == 201
    assert response.json()["amount"] == -300
    assert response.json()["status"] == "pending"
    assert response.json()["reference_id"].startswith("WIT_")

    balance = client.get("/v1/balances/my-balance", params={"user_id": 1}).json()
    assert balance["current_balance"] == 1000
    assert balance["pending_balance"] == 300
    assert balance["available_balance"] == 700
    assert balance["currency"] == "EUR"
    assert len(balance["recent_transactions"]) == 2
    assert balance["updated_at"] == "2024-02-15T12:00:00"


def test_withdrawal_insufficient_funds(client: TestClient):
    """Test 400 with the balance and the requested amount"""
    client.post("/v1/balances/deposit", json={"user_id": 1, "amount": 100})

    response = client.post("/v1/balances/withdraw", json={"user_id": 1, "amount": 150})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Insufficient funds"
    assert detail["current_balance"] == 100
    assert detail["requested_amount"] == 150


def test_investment_insufficient_funds(client: TestClient):
    response = client.post("/v1/balances/investment", json={"user_id": 2, "amount": 50, "product_id": 4})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Insufficient funds for the investment"
    assert detail["investment_amount"] == 50


def test_investment_and_yield(client: TestClient):
    client.post("/v1/balances/deposit", json={"user_id": 1, "amount": 2000})

    investment = client.post(
        "/v1/balances/investment",
        json={"user_id": 1, "amount": 1500, "product_id": 4, "user_asset_id": 11},
    )
    assert investment.status_code == 201
    assert investment.json()["amount"] == -1500
    assert investment.json()["metadata"]["product_id"] == 4

    yielded = client.post("/v1/balances/yield", json={"user_id": 1, "amount": 25.5, "user_asset_id": 11})
    assert yielded.status_code == 201
    assert yielded.json()["reference_id"].startswith("YLD_")

    balance = client.get("/v1/balances/my-balance", params={"user_id": 1}).json()
    assert balance["available_balance"] == 525.5


def test_yield_requires_asset(client: TestClient):
    response = client.post("/v1/balances/yield", json={"user_id": 1, "amount": 10})
    assert response.status_code == 422


def test_list_balances_newest_first(client: TestClient, add_balance):
    add_balance(1, 100, "deposit", datetime(2024, 1, 1))
    add_balance(1, 50, "yield", datetime(2024, 2, 1))
    add_balance(2, 70, "deposit", datetime(2024, 1, 15))

    response = client.get("/v1/balances", params={"user_id": 1})

    assert response.status_code == 200
    body = response.json()
    assert [b["amount"] for b in body["data"]] == [50, 100]
    assert body["meta"] == {"current_page": 1, "total": 2, "per_page": 15, "last_page": 1}


def test_list_balances_date_and_type_filters(client: TestClient, add_balance):
    add_balance(1, 100, "deposit", datetime(2024, 1, 1, 9, 0))
    add_balance(1, 50, "yield", datetime(2024, 1, 31, 23, 30))
    add_balance(1, 70, "yield", datetime(2024, 2, 1, 0, 0))

    january = client.get("/v1/balances", params={"date_from": "2024-01-01", "date_to": "2024-01-31"}).json()
    assert january["meta"]["total"] == 2

    yields = client.get("/v1/balances", params={"type": "yield"}).json()
    assert yields["meta"]["total"] == 2


def test_list_balances_unknown_type_matches_nothing(client: TestClient, add_balance):
    add_balance(1, 100, "deposit", datetime(2024, 1, 1))

    response = client.get("/v1/balances", params={"type": "bogus"})

    assert response.status_code == 200
    assert response.json()["data"] == []


def test_list_balances_invalid_user_id(client: TestClient):
    response = client.get("/v1/balances", params={"user_id": "abc"})

    assert response.status_code == 422
    assert "user_id" in response.json()["detail"]["errors"]


def test_list_balances_pagination(client: TestClient, add_balance):
    for day in range(1, 6):
        add_balance(1, day, "deposit", datetime(2024, 1, day))

    body = client.get("/v1/balances", params={"per_page": 2, "page": 3}).json()

    assert body["meta"]["last_page"] == 3
    assert [b["amount"] for b in body["data"]] == [1]


def test_get_balance_not_found(client: TestClient):
    response = client.get("/v1/balances/999")

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Balance not found"


def test_transaction_history(client: TestClient, add_balance):
    add_balance(1, 500, "deposit", datetime(2023, 12, 5))
    add_balance(1, -200, "withdrawal", datetime(2024, 1, 5))
    add_balance(1, 30, "yield", datetime(2024, 2, 1))
    add_balance(1, 999, "deposit", datetime(2022, 1, 1))

    response = client.get("/v1/balances/transaction-history", params={"user_id": 1, "months": 6})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 3
    assert body["data"][0]["transaction_type"] == "yield"
    assert body["summary"]["total_deposits"] == 500
    assert body["summary"]["total_withdrawals"] == 200
    assert body["summary"]["net_flow"] == 330
    assert [m["month"] for m in body["summary"]["by_month"]] == ["2024-02", "2024-01", "2023-12"]
    assert body["period"] == {"from": "2023-08-15", "to": "2024-02-15", "months": 6}


def test_transaction_history_type_filter(client: TestClient, add_balance):
    add_balance(1, 500, "deposit", datetime(2024, 1, 5))
    add_balance(1, 30, "yield", datetime(2024, 2, 1))

    body = client.get("/v1/balances/transaction-history", params={"user_id": 1, "type": "yield"}).json()

    assert [b["transaction_type"] for b in body["data"]] == ["yield"]
    assert body["summary"]["total_transactions"] == 1


def test_analytics(client: TestClient, add_balance):
    """Test GET /v1/balances/analytics over three months"""
    add_balance(1, 1000, "yield", datetime(2024, 1, 10))
    add_balance(1, -200, "investment", datetime(2024, 1, 20))
    add_balance(1, 1500, "yield", datetime(2024, 2, 5))

    response = client.get("/v1/balances/analytics", params={"user_id": 1, "period": "3m"})

    assert response.status_code == 200
    data = response.json()
    assert data["period"] == "3m"

    flows = data["income_vs_expenses"]
    assert flows["total_income"] == 2500
    assert flows["total_expenses"] == 200
    assert flows["net_flow"] == 2300
    assert flows["income_sources"] == [{"type": "yield", "total": 2500, "count": 2, "percentage": 100.0}]
    assert flows["expense_categories"][0]["type"] == "investment"

    performance = data["yield_performance"]
    assert performance["average_monthly_yield"] == 833.33
    assert performance["yield_growth_rate"] == 50.0
    assert performance["yield_consistency"] == 80.0

    assert [t["month"] for t in data["monthly_trends"]] == ["2023-12", "2024-01", "2024-02"]
    assert data["monthly_trends"][0]["transaction_count"] == 0
    assert data["monthly_trends"][1]["net_flow"] == 800

    assert data["performance_score"] == 77
    assert data["recommendations"] == []


def test_analytics_empty_user(client: TestClient):
    data = client.get("/v1/balances/analytics", params={"user_id": 42}).json()

    assert data["performance_score"] == 0
    assert [r["type"] for r in data["recommendations"]] == ["suggestion", "tip"]
    assert len(data["monthly_trends"]) == 3


def test_analytics_unknown_period_uses_three_months(client: TestClient):
    data = client.get("/v1/balances/analytics", params={"user_id": 42, "period": "2w"}).json()

    assert data["period"] == "2w"
    assert len(data["monthly_trends"]) == 3


def test_analytics_one_month_window(client: TestClient, add_balance):
    add_balance(1, 1000, "yield", datetime(2024, 1, 10))
    add_balance(1, 400, "yield", datetime(2024, 2, 5))

    data = client.get("/v1/balances/analytics", params={"user_id": 1, "period": "1m"}).json()

    assert data["yield_performance"]["total_yield"] == 400
    assert len(data["monthly_trends"]) == 1
