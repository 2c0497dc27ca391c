"""HTTP contract tests for /transactions."""

from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from conftest import signup


def _body(**overrides) -> dict:
    data = {
        "description": "  Coffee  ",
        "category": "Food & Dining",
        "type": "expense",
        "amount": 3.5,
        "date": "2024-01-15",
    }
    data.update(overrides)
    return data


def _create(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    response = client.post("/transactions", json=_body(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["transaction"]


def test_routes_require_bearer_token(client: TestClient) -> None:
    response = client.get("/transactions")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authenticated"}
    assert response.headers["www-authenticate"] == "Bearer"


def test_garbage_token_is_rejected(client: TestClient) -> None:
    response = client.get("/transactions/statistics", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["message"] == "Could not validate credentials"


def test_create_then_list_round_trip(client: TestClient, auth_headers) -> None:
    created = _create(client, auth_headers, userId=999)

    response = client.get("/transactions", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    listed = body["data"]["transactions"][0]
    assert listed["id"] == created["id"]
    assert listed["userId"] == created["userId"] != 999
    assert (listed["description"], listed["category"], listed["type"], listed["amount"]) == (
        "Coffee", "Food & Dining", "expense", 3.5,
    )
    assert body["data"]["pagination"] == {
        "currentPage": 1, "totalPages": 1, "totalTransactions": 1, "limit": 10,
    }


def test_create_validation_errors_are_listed(client: TestClient, auth_headers) -> None:
    response = client.post("/transactions", json={"description": "x", "amount": 0}, headers=auth_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation error"
    assert body["errors"] == [
        "Category is required",
        "Type is required",
        "Amount must be greater than 0",
    ]


def test_wrongly_typed_body_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.post("/transactions", json=_body(description=["a"]), headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["errors"] == ["Description must be text"]


def test_non_object_body_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.post("/transactions", json=[_body()], headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_create_with_overflowing_amount_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.post("/transactions", json=_body(amount=10 ** 400), headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["errors"] == ["Amount must be a valid positive number"]


def test_create_with_date_past_utc_range_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.post(
        "/transactions", json=_body(date="9999-12-31T23:00:00-05:00"), headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["errors"] == ["Date must be a valid ISO date"]


def test_pagination_last_page(client: TestClient, auth_headers) -> None:
    rows = [_body(description=f"row {i}", date=f"2024-02-{i + 1:02d}") for i in range(25)]
    assert client.post("/transactions/bulk", json={"transactions": rows}, headers=auth_headers).status_code == 201

    response = client.get("/transactions", params={"page": 3, "limit": 10}, headers=auth_headers)

    data = response.json()["data"]
    assert data["pagination"]["totalPages"] == 3
    assert data["pagination"]["totalTransactions"] == 25
    assert len(data["transactions"]) == 5


def test_list_query_params_use_camel_case(client: TestClient, auth_headers) -> None:
    _create(client, auth_headers, description="in range", date="2024-01-12")
    _create(client, auth_headers, description="february", date="2024-02-12")

    response = client.get(
        "/transactions",
        params={"startDate": "2024-01-10", "endDate": "2024-01-20", "month": 2, "year": 2024},
        headers=auth_headers,
    )

    assert [t["description"] for t in response.json()["data"]["transactions"]] == ["in range"]


def test_non_numeric_page_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.get("/transactions", params={"page": "two"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_bad_month_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.get("/transactions/statistics", params={"month": 13, "year": 2024}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_huge_year_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.get("/transactions", params={"year": 10 ** 20}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_page_far_past_the_end_is_empty(client: TestClient, auth_headers) -> None:
    _create(client, auth_headers)

    response = client.get("/transactions", params={"page": 10 ** 19}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["transactions"] == []
    assert data["pagination"]["totalTransactions"] == 1


def test_update_partial_fields(client: TestClient, auth_headers) -> None:
    created = _create(client, auth_headers)

    response = client.put(f"/transactions/{created['id']}", json={"amount": 9}, headers=auth_headers)

    assert response.status_code == 200
    updated = response.json()["data"]["transaction"]
    assert updated["amount"] == 9
    assert updated["description"] == "Coffee"


def test_update_with_invalid_amount_is_rejected(client: TestClient, auth_headers) -> None:
    created = _create(client, auth_headers)

    response = client.put(f"/transactions/{created['id']}", json={"amount": -1}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["errors"] == ["Amount must be greater than 0"]


def test_other_users_record_is_not_found(client: TestClient, auth_headers) -> None:
    created = _create(client, auth_headers)
    intruder = signup(client)

    foreign = client.put(f"/transactions/{created['id']}", json={"amount": 1}, headers=intruder)
    missing = client.put(f"/transactions/{uuid4().hex}", json={"amount": 1}, headers=intruder)
    deleted = client.delete(f"/transactions/{created['id']}", headers=intruder)

    assert foreign.status_code == missing.status_code == deleted.status_code == 404
    assert foreign.json() == missing.json() == deleted.json()
    assert client.get("/transactions", headers=auth_headers).json()["data"]["transactions"][0]["amount"] == 3.5


def test_malformed_id_is_a_400(client: TestClient, auth_headers) -> None:
    response = client.delete("/transactions/abc", headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid transaction ID"}


def test_delete_removes_record(client: TestClient, auth_headers) -> None:
    created = _create(client, auth_headers)

    response = client.delete(f"/transactions/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Transaction deleted successfully"
    assert client.get("/transactions", headers=auth_headers).json()["data"]["transactions"] == []


def test_bulk_empty_batch(client: TestClient, auth_headers) -> None:
    for body in ({}, {"transactions": []}):
        response = client.post("/transactions/bulk", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Please provide an array of transactions"


def test_bulk_partial_failure_is_207(client: TestClient, auth_headers) -> None:
    rows = [_body(description=f"ok {i}") for i in range(3)] + [_body(amount=-5)]

    response = client.post("/transactions/bulk", json={"transactions": rows}, headers=auth_headers)

    assert response.status_code == 207
    data = response.json()["data"]
    assert data["created"] == 3
    assert data["failed"] == 1
    assert data["errors"] == [{"index": 3, "errors": ["Amount must be greater than 0"]}]
    assert client.get("/transactions", headers=auth_headers).json()["data"]["pagination"]["totalTransactions"] == 3


def test_bulk_overflowing_amount_only_fails_its_row(client: TestClient, auth_headers) -> None:
    rows = [_body(description="ok"), _body(amount=10 ** 400)]

    response = client.post("/transactions/bulk", json={"transactions": rows}, headers=auth_headers)

    assert response.status_code == 207
    data = response.json()["data"]
    assert (data["created"], data["failed"]) == (1, 1)
    assert data["errors"] == [{"index": 1, "errors": ["Amount must be a valid positive number"]}]


def test_bulk_all_failed_is_400(client: TestClient, auth_headers) -> None:
    response = client.post(
        "/transactions/bulk", json={"transactions": [_body(type="gift")]}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["data"]["failed"] == 1


def test_statistics(client: TestClient, auth_headers) -> None:
    _create(client, auth_headers, type="income", category="Income", amount=100)
    _create(client, auth_headers, amount=40)

    response = client.get("/transactions/statistics", params={"year": 2024}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {
        "totalIncome": 100,
        "totalExpense": 40,
        "incomeCount": 1,
        "expenseCount": 1,
        "netAmount": 60,
    }


def test_statistics_without_data_is_zero(client: TestClient, auth_headers) -> None:
    response = client.get("/transactions/statistics", headers=auth_headers)

    assert response.json()["data"] == {
        "totalIncome": 0,
        "totalExpense": 0,
        "incomeCount": 0,
        "expenseCount": 0,
        "netAmount": 0,
    }
