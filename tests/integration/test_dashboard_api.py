"""Integration tests for the dashboard summary"""

from datetime import date
from decimal import Decimal
from fastapi.testclient import TestClient

DASHBOARD_URL = "/api/transactions/summary/dashboard"


def test_dashboard_current_month(client: TestClient, auth_headers, create_account, create_transaction):
    """Test monthly figures, breakdown and account-based total balance"""
    account = create_account("100.00")
    create_transaction(accountId=account["id"], type="income", amount="1000.00", category="Salário")
    create_transaction(accountId=account["id"], amount="200.00", category="Moradia")
    create_transaction(accountId=account["id"], amount="50.00", category="Alimentação")
    create_transaction(accountId=account["id"], amount="25.00", category="Alimentação")
    create_transaction(accountId=account["id"], amount="999.00", category="Lazer", status="pending")

    response = client.get(DASHBOARD_URL, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["totalBalance"]) == Decimal("825.00")
    assert Decimal(data["monthlyIncome"]) == Decimal("1000.00")
    assert Decimal(data["monthlyExpenses"]) == Decimal("275.00")
    assert Decimal(data["monthlyBalance"]) == Decimal("725.00")

    expenses = data["categoriesBreakdown"]["expenses"]
    assert [c["category"] for c in expenses] == ["Moradia", "Alimentação"]
    assert expenses[1]["count"] == 2
    assert sum(Decimal(c["total"]) for c in expenses) == Decimal(data["monthlyExpenses"])
    assert data["categoriesBreakdown"]["income"][0]["category"] == "Salário"


def test_dashboard_trend(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account("0.00")
    create_transaction(accountId=account["id"], type="income", amount="10.00", category="Vendas")

    data = client.get(DASHBOARD_URL, params={"months": 3}, headers=auth_headers).json()

    trend = data["monthlyTrend"]
    assert len(trend) == 3
    assert trend[-1]["month"] == date.today().strftime("%Y-%m")
    assert Decimal(trend[-1]["balance"]) == Decimal("10.00")
    assert Decimal(trend[0]["income"]) == Decimal("0.00")
    for point in trend:
        assert Decimal(point["income"]) - Decimal(point["expenses"]) == Decimal(point["balance"])


def test_dashboard_default_trend_length(client: TestClient, auth_headers):
    data = client.get(DASHBOARD_URL, headers=auth_headers).json()

    assert len(data["monthlyTrend"]) == 6
    assert Decimal(data["totalBalance"]) == Decimal("0.00")


def test_dashboard_rejects_bad_months(client: TestClient, auth_headers):
    assert client.get(DASHBOARD_URL, params={"months": 0}, headers=auth_headers).status_code == 400
    assert client.get(DASHBOARD_URL, params={"months": 25}, headers=auth_headers).status_code == 400


def test_group_dashboard(client: TestClient, auth_headers, register, create_account, create_transaction):
    """Test group scope: group transactions and every member's accounts"""
    group = client.post("/api/groups", json={"name": "Family"}, headers=auth_headers).json()["group"]
    bob = register("bob")
    client.post(f"/api/groups/{group['id']}/members", json={"username": "bob"}, headers=auth_headers)

    alice_account = create_account("100.00")
    bob_account = create_account("300.00", headers=bob)
    create_transaction(accountId=alice_account["id"], groupId=group["id"], amount="40.00")
    create_transaction(headers=bob, accountId=bob_account["id"], groupId=group["id"], amount="60.00")
    create_transaction(accountId=alice_account["id"], amount="5.00")

    data = client.get(DASHBOARD_URL, params={"groupId": group["id"]}, headers=bob).json()

    assert Decimal(data["monthlyExpenses"]) == Decimal("100.00")
    assert Decimal(data["totalBalance"]) == Decimal("295.00")


def test_group_dashboard_requires_membership(client: TestClient, auth_headers, register):
    group = client.post("/api/groups", json={"name": "Private"}, headers=auth_headers).json()["group"]
    outsider = register("carol")

    response = client.get(DASHBOARD_URL, params={"groupId": group["id"]}, headers=outsider)

    assert response.status_code == 404
