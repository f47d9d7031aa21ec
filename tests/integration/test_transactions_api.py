"""Integration tests for the transaction lifecycle and balance consistency"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient


def account_balance(client: TestClient, headers: dict, account_id: str) -> Decimal:
    response = client.get(f"/api/accounts/{account_id}", headers=headers)
    assert response.status_code == 200
    return Decimal(response.json()["balance"])


def card_balance(client: TestClient, headers: dict, card_id: str) -> Decimal:
    response = client.get(f"/api/credit-cards/{card_id}", headers=headers)
    assert response.status_code == 200
    return Decimal(response.json()["currentBalance"])


def test_paid_expense_debits_account_and_delete_restores(
    client: TestClient, auth_headers, create_account, create_transaction
):
    """Test account 100.00, expense 30.00 -> 70.00; delete -> 100.00"""
    account = create_account("100.00")
    transaction = create_transaction(accountId=account["id"])

    assert Decimal(transaction["amount"]) == Decimal("30.00")
    assert transaction["status"] == "paid"
    assert account_balance(client, auth_headers, account["id"]) == Decimal("70.00")

    response = client.delete(f"/api/transactions/{transaction['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert account_balance(client, auth_headers, account["id"]) == Decimal("100.00")

    response = client.get(f"/api/transactions/{transaction['id']}", headers=auth_headers)
    assert response.status_code == 404


def test_income_credits_account(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account("0.00")
    create_transaction(accountId=account["id"], type="income", amount="1500.50", category="Salário")

    assert account_balance(client, auth_headers, account["id"]) == Decimal("1500.50")


def test_pending_transaction_leaves_balance(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account("100.00")
    create_transaction(accountId=account["id"], status="pending")

    assert account_balance(client, auth_headers, account["id"]) == Decimal("100.00")


def test_card_limit_exceeded_rejected(client: TestClient, auth_headers, create_card):
    """Test limit 500.00, expense 500.01 -> 409 and nothing changes"""
    card = create_card(limit="500.00")

    response = client.post(
        "/api/transactions",
        json={
            "description": "TV",
            "amount": "500.01",
            "type": "expense",
            "category": "Compras",
            "creditCardId": card["id"],
        },
        headers=auth_headers,
    )

    assert response.status_code == 409
    assert "limit" in response.json()["error"]
    assert card_balance(client, auth_headers, card["id"]) == Decimal("0.00")
    listing = client.get("/api/transactions", headers=auth_headers).json()
    assert listing["pagination"]["total"] == 0


def test_card_expense_at_exact_limit(client: TestClient, auth_headers, create_card, create_transaction):
    card = create_card(limit="500.00")
    create_transaction(creditCardId=card["id"], amount="500.00")

    assert card_balance(client, auth_headers, card["id"]) == Decimal("500.00")


def test_account_and_card_failure_is_atomic(client: TestClient, auth_headers, create_account, create_card):
    """Test the account is not debited when the card half of the write fails"""
    account = create_account("100.00")
    card = create_card(limit="10.00")

    response = client.post(
        "/api/transactions",
        json={
            "description": "Split",
            "amount": "20.00",
            "type": "expense",
            "category": "Compras",
            "accountId": account["id"],
            "creditCardId": card["id"],
        },
        headers=auth_headers,
    )

    assert response.status_code == 409
    assert account_balance(client, auth_headers, account["id"]) == Decimal("100.00")
    assert card_balance(client, auth_headers, card["id"]) == Decimal("0.00")


def test_transaction_requires_account_or_card(client: TestClient, auth_headers):
    response = client.post(
        "/api/transactions",
        json={"description": "Lost", "amount": "10.00", "type": "expense", "category": "Outros"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"]
    assert data["details"]


def test_invalid_fields_listed_in_details(client: TestClient, auth_headers, create_account):
    account = create_account()

    response = client.post(
        "/api/transactions",
        json={"description": "", "amount": "-5", "type": "transfer", "category": "X", "accountId": account["id"]},
        headers=auth_headers,
    )

    assert response.status_code == 400
    details = response.json()["details"]
    assert any(d.startswith("description") for d in details)
    assert any(d.startswith("amount") for d in details)
    assert any(d.startswith("type") for d in details)


def test_foreign_account_not_found(client: TestClient, register, create_account):
    """Test another user's account cannot be referenced"""
    alice_account = create_account()
    bob = register("bob")

    response = client.post(
        "/api/transactions",
        json={
            "description": "Sneaky",
            "amount": "10.00",
            "type": "expense",
            "category": "Outros",
            "accountId": alice_account["id"],
        },
        headers=bob,
    )

    assert response.status_code == 404


def test_update_with_identical_values_keeps_balance(
    client: TestClient, auth_headers, create_account, create_transaction
):
    account = create_account("100.00")
    transaction = create_transaction(accountId=account["id"])

    response = client.put(
        f"/api/transactions/{transaction['id']}",
        json={"amount": "30.00", "type": "expense", "status": "paid", "accountId": account["id"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert account_balance(client, auth_headers, account["id"]) == Decimal("70.00")


def test_pending_paid_pending_round_trip(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account("100.00")
    transaction = create_transaction(accountId=account["id"], status="pending")
    url = f"/api/transactions/{transaction['id']}"

    client.put(url, json={"status": "paid"}, headers=auth_headers)
    assert account_balance(client, auth_headers, account["id"]) == Decimal("70.00")

    client.put(url, json={"status": "pending"}, headers=auth_headers)
    assert account_balance(client, auth_headers, account["id"]) == Decimal("100.00")


def test_update_moves_amount_between_accounts(client: TestClient, auth_headers, create_account, create_transaction):
    """Test the original account is restored and the new one debited"""
    first = create_account("100.00")
    second = create_account("50.00", name="Savings", type="savings")
    transaction = create_transaction(accountId=first["id"])

    response = client.put(
        f"/api/transactions/{transaction['id']}",
        json={"accountId": second["id"], "amount": "45.00"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert Decimal(response.json()["transaction"]["amount"]) == Decimal("45.00")
    assert account_balance(client, auth_headers, first["id"]) == Decimal("100.00")
    assert account_balance(client, auth_headers, second["id"]) == Decimal("5.00")


def test_update_type_flips_effect(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account("100.00")
    transaction = create_transaction(accountId=account["id"])

    client.put(f"/api/transactions/{transaction['id']}", json={"type": "income"}, headers=auth_headers)

    assert account_balance(client, auth_headers, account["id"]) == Decimal("130.00")


def test_update_clearing_both_references_rejected(
    client: TestClient, auth_headers, create_account, create_transaction
):
    account = create_account("100.00")
    transaction = create_transaction(accountId=account["id"])

    response = client.put(
        f"/api/transactions/{transaction['id']}",
        json={"accountId": None},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert account_balance(client, auth_headers, account["id"]) == Decimal("70.00")


def test_update_to_card_over_limit_rolls_back(
    client: TestClient, auth_headers, create_account, create_card, create_transaction
):
    """Test a rejected update leaves the transaction and every balance untouched"""
    account = create_account("100.00")
    card = create_card(limit="40.00")
    transaction = create_transaction(accountId=account["id"])

    response = client.put(
        f"/api/transactions/{transaction['id']}",
        json={"accountId": None, "creditCardId": card["id"], "amount": "41.00"},
        headers=auth_headers,
    )

    assert response.status_code == 409
    assert account_balance(client, auth_headers, account["id"]) == Decimal("70.00")
    assert card_balance(client, auth_headers, card["id"]) == Decimal("0.00")
    current = client.get(f"/api/transactions/{transaction['id']}", headers=auth_headers).json()
    assert current["accountId"] == account["id"]
    assert Decimal(current["amount"]) == Decimal("30.00")


def test_update_required_field_cannot_be_null(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account()
    transaction = create_transaction(accountId=account["id"])

    response = client.put(f"/api/transactions/{transaction['id']}", json={"amount": None}, headers=auth_headers)

    assert response.status_code == 400


def test_card_expense_delete_restores_card(client: TestClient, auth_headers, create_card, create_transaction):
    card = create_card(limit="1000.00")
    transaction = create_transaction(creditCardId=card["id"], amount="250.00")
    assert card_balance(client, auth_headers, card["id"]) == Decimal("250.00")

    client.delete(f"/api/transactions/{transaction['id']}", headers=auth_headers)

    assert card_balance(client, auth_headers, card["id"]) == Decimal("0.00")


def test_reversal_below_zero_rejected(client: TestClient, auth_headers, create_card, create_transaction):
    """Test undoing an expense on a card already paid off is a conflict"""
    card = create_card(limit="1000.00")
    transaction = create_transaction(creditCardId=card["id"], amount="50.00")
    paid_off = client.put(
        f"/api/credit-cards/{card['id']}/balance",
        json={"amount": "50.00", "operation": "subtract"},
        headers=auth_headers,
    )
    assert paid_off.status_code == 200
    url = f"/api/transactions/{transaction['id']}"

    deleted = client.delete(url, headers=auth_headers)
    assert deleted.status_code == 409
    assert "error" in deleted.json()

    to_pending = client.put(url, json={"status": "pending"}, headers=auth_headers)
    assert to_pending.status_code == 409

    remaining = client.get(url, headers=auth_headers)
    assert remaining.status_code == 200
    assert remaining.json()["status"] == "paid"
    assert card_balance(client, auth_headers, card["id"]) == Decimal("0.00")


def test_balance_equals_initial_plus_paid_effects(
    client: TestClient, auth_headers, create_account, create_transaction
):
    """Test the balance invariant after a mix of creates, updates and deletes"""
    account = create_account("200.00")
    salary = create_transaction(accountId=account["id"], type="income", amount="1000.00", category="Salário")
    rent = create_transaction(accountId=account["id"], amount="700.00", category="Moradia")
    food = create_transaction(accountId=account["id"], amount="55.55")
    create_transaction(accountId=account["id"], amount="99.99", status="pending")

    client.put(f"/api/transactions/{rent['id']}", json={"amount": "650.00"}, headers=auth_headers)
    client.delete(f"/api/transactions/{food['id']}", headers=auth_headers)
    client.put(f"/api/transactions/{salary['id']}", json={"status": "pending"}, headers=auth_headers)
    client.put(f"/api/transactions/{salary['id']}", json={"status": "paid"}, headers=auth_headers)

    assert account_balance(client, auth_headers, account["id"]) == Decimal("550.00")


def test_list_filters_and_sorts(client: TestClient, auth_headers, register, create_account, create_transaction):
    """Test category and type filters are owner-scoped and sorted by date desc"""
    account = create_account("1000.00")
    create_transaction(accountId=account["id"], date="2024-01-10", category="Alimentação")
    create_transaction(accountId=account["id"], date="2024-03-05", category="Alimentação")
    create_transaction(accountId=account["id"], date="2024-02-01", category="Alimentação")
    create_transaction(accountId=account["id"], date="2024-02-15", category="Transporte")
    create_transaction(accountId=account["id"], date="2024-02-20", category="Alimentação", type="income")

    bob = register("bob")
    bob_account = create_account(headers=bob)
    create_transaction(headers=bob, accountId=bob_account["id"], category="Alimentação")

    response = client.get(
        "/api/transactions",
        params={"category": "Alimentação", "type": "expense"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert [t["date"] for t in data["transactions"]] == ["2024-03-05", "2024-02-01", "2024-01-10"]
    assert data["pagination"] == {"page": 1, "limit": 20, "total": 3, "pages": 1}


def test_list_date_range_and_pagination(client: TestClient, auth_headers, create_account, create_transaction):
    account = create_account("1000.00")
    for day in ("2024-05-01", "2024-05-15", "2024-05-31", "2024-06-01"):
        create_transaction(accountId=account["id"], date=day)

    response = client.get(
        "/api/transactions",
        params={"startDate": "2024-05-01", "endDate": "2024-05-31", "limit": 2, "page": 2},
        headers=auth_headers,
    )

    data = response.json()
    assert [t["date"] for t in data["transactions"]] == ["2024-05-01"]
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["pages"] == 2


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 101}, {"type": "transfer"}])
def test_list_rejects_bad_query(client: TestClient, auth_headers, params):
    response = client.get("/api/transactions", params=params, headers=auth_headers)
    assert response.status_code == 400


def test_transactions_require_auth(client: TestClient):
    response = client.get("/api/transactions")
    assert response.status_code == 401
    assert "error" in response.json()
