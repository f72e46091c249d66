"""Integration tests for API endpoints"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from finance_tracker.domain.exceptions import FinanceAPIError, QuoteNotFoundError
from finance_tracker.infrastructure.database.repositories import QuoteRepository


def _create_quote(client: TestClient, **overrides) -> dict:
    body = {
        "job_title": "Logo Design",
        "job_description": "Brand identity refresh",
        "amount": "100.00",
        "client_id": 1,
    }
    body.update(overrides)
    response = client.post("/v1/quotes", json=body)
    assert response.status_code == 201
    return response.json()


def _echo_revenue(payload):
    return {"id": 1, **payload}


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_duration_seconds" in response.text


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_and_get_quote(client: TestClient, quote_payload: dict):
    created = client.post("/v1/quotes", json=quote_payload)

    assert created.status_code == 201
    data = created.json()
    assert data["status"] == "Pending"
    assert Decimal(data["amount"]) == Decimal("100.00")

    fetched = client.get(f"/v1/quotes/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["job_title"] == "Logo Design"


def test_create_quote_validation(client: TestClient, quote_payload: dict):
    quote_payload["amount"] = "-5"
    response = client.post("/v1/quotes", json=quote_payload)
    assert response.status_code == 422


def test_get_quote_not_found(client: TestClient):
    response = client.get("/v1/quotes/999")
    assert response.status_code == 404


def test_list_quotes_status_filter(client: TestClient):
    first = _create_quote(client, job_title="First")
    _create_quote(client, job_title="Second")
    client.patch(f"/v1/quotes/{first['id']}", json={"status": "Accepted"})

    accepted = client.get("/v1/quotes?status=Accepted").json()
    everything = client.get("/v1/quotes?status=all").json()

    assert [q["job_title"] for q in accepted] == ["First"]
    assert len(everything) == 2


def test_update_quote_status(client: TestClient):
    quote = _create_quote(client)

    response = client.patch(f"/v1/quotes/{quote['id']}", json={"status": "Converted"})

    assert response.status_code == 200
    assert response.json()["status"] == "Converted"


def test_update_quote_status_rejects_unknown_status(client: TestClient):
    quote = _create_quote(client)
    response = client.patch(f"/v1/quotes/{quote['id']}", json={"status": "Archived"})
    assert response.status_code == 422


def test_conversion_rate_endpoint(client: TestClient):
    accepted = _create_quote(client, amount="300.00")
    declined = _create_quote(client, amount="200.00")
    _create_quote(client, amount="50.00")
    client.patch(f"/v1/quotes/{accepted['id']}", json={"status": "Accepted"})
    client.patch(f"/v1/quotes/{declined['id']}", json={"status": "Declined"})

    response = client.get("/v1/quotes/conversion-rate")

    assert response.status_code == 200
    data = response.json()
    assert data["conversion_rate"] == 33
    assert data["accepted"]["count"] == 1
    assert Decimal(data["accepted"]["value"]) == Decimal("300.00")
    assert data["total"]["count"] == 3
    assert Decimal(data["total"]["value"]) == Decimal("550.00")


def test_create_and_list_revenues(client: TestClient):
    quote = _create_quote(client)
    body = {
        "description": "Payment for Logo Design",
        "amount": "100.00",
        "client_id": 1,
        "category": "Sales",
        "date": "2024-01-31",
        "due_date": "2024-01-31",
        "currency": "EUR",
        "is_paid": False,
        "quote_id": quote["id"],
    }

    created = client.post("/v1/revenues", json=body)
    client.post("/v1/revenues", json={**body, "quote_id": None, "date": "2024-03-01"})

    assert created.status_code == 201
    assert created.json()["currency"] == "EUR"

    linked = client.get(f"/v1/revenues?quote_id={quote['id']}").json()
    assert len(linked) == 1
    assert linked[0]["date"] == "2024-01-31"

    everything = client.get("/v1/revenues").json()
    assert [r["date"] for r in everything] == ["2024-03-01", "2024-01-31"]


def test_create_revenue_rejects_zero_amount(client: TestClient):
    response = client.post(
        "/v1/revenues",
        json={"description": "x", "amount": "0", "client_id": 1, "category": "Sales", "date": "2024-01-01"},
    )
    assert response.status_code == 422


def test_preview_plan(client: TestClient):
    quote = _create_quote(client, amount="1500.00", job_title="Website Redesign")

    response = client.post(
        f"/v1/quotes/{quote['id']}/installment-plan",
        json={"count": 3, "start_date": "2024-01-31"},
    )

    assert response.status_code == 200
    data = response.json()
    assert [inst["due_date"] for inst in data["installments"]] == ["2024-01-31", "2024-02-29", "2024-03-31"]
    assert {Decimal(inst["amount"]) for inst in data["installments"]} == {Decimal("500.00")}
    assert data["installments"][0]["description"] == "Installment 1 for Website Redesign"
    assert data["reconciliation"]["ok"] is True


def test_preview_plan_reports_rounding_mismatch(client: TestClient):
    quote = _create_quote(client, amount="100.00")

    response = client.post(f"/v1/quotes/{quote['id']}/installment-plan", json={"count": 3})

    data = response.json()["reconciliation"]
    assert data["ok"] is False
    assert Decimal(data["actual"]) == Decimal("99.99")
    assert Decimal(data["difference"]) == Decimal("0.01")


def test_preview_plan_rejects_zero_count(client: TestClient):
    quote = _create_quote(client)
    response = client.post(f"/v1/quotes/{quote['id']}/installment-plan", json={"count": 0})
    assert response.status_code == 422


def test_resize_plan_endpoint(client: TestClient):
    quote = _create_quote(client, amount="100.00")
    rows = [
        {"amount": "60.00", "due_date": "2024-01-15", "description": "Installment 1 for Logo Design"},
        {"amount": "40.00", "due_date": "2024-02-15", "description": "Installment 2 for Logo Design"},
    ]

    grown = client.post(
        f"/v1/quotes/{quote['id']}/installment-plan/resize",
        json={"installments": rows, "new_count": 3},
    ).json()
    shrunk = client.post(
        f"/v1/quotes/{quote['id']}/installment-plan/resize",
        json={"installments": grown["installments"], "new_count": 2},
    ).json()

    assert [Decimal(i["amount"]) for i in grown["installments"]] == [
        Decimal("60.00"),
        Decimal("40.00"),
        Decimal("33.33"),
    ]
    assert grown["installments"][2]["due_date"] == "2024-03-15"
    assert [Decimal(i["amount"]) for i in shrunk["installments"]] == [Decimal("50.00"), Decimal("50.00")]


@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.update_quote_status")
@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.create_revenue")
def test_convert_single_installment(
    mock_create: AsyncMock,
    mock_status: AsyncMock,
    client: TestClient,
):
    """Test POST /v1/quotes/{id}/conversion with one installment"""
    quote = _create_quote(client, amount="100.00")
    mock_create.side_effect = _echo_revenue
    mock_status.return_value = {"id": quote["id"], "status": "Converted"}

    response = client.post(
        f"/v1/quotes/{quote['id']}/conversion",
        json={"installments": [{"amount": "100.00", "due_date": "2024-01-31", "description": "Payment for Logo Design"}]},
        headers={"X-Display-Currency": "EUR"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["quote_status"] == "Converted"
    assert data["currency"] == "EUR"
    assert data["failures"] == []

    assert mock_create.await_count == 1
    payload = mock_create.await_args.args[0]
    assert payload["description"] == "Payment for Logo Design"
    assert payload["amount"] == "100.00"
    assert payload["date"] == "2024-01-31"
    assert payload["category"] == "Sales"
    assert payload["currency"] == "EUR"
    assert payload["quote_id"] == quote["id"]
    mock_status.assert_awaited_once_with(quote["id"], "Converted")


@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.update_quote_status")
@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.create_revenue")
def test_convert_defaults_display_currency(
    mock_create: AsyncMock,
    mock_status: AsyncMock,
    client: TestClient,
):
    quote = _create_quote(client, amount="100.00")
    mock_create.side_effect = _echo_revenue

    response = client.post(
        f"/v1/quotes/{quote['id']}/conversion",
        json={"installments": [{"amount": "100.00", "due_date": "2024-01-31"}]},
    )

    assert response.status_code == 200
    assert mock_create.await_args.args[0]["currency"] == "USD"


@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.update_quote_status")
@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.create_revenue")
def test_convert_rejects_mismatched_total(
    mock_create: AsyncMock,
    mock_status: AsyncMock,
    client: TestClient,
):
    """Three rows of 33.33 against 100.00 are blocked before any call"""
    quote = _create_quote(client, amount="100.00")
    rows = [
        {"amount": "33.33", "due_date": f"2024-0{month}-15", "description": f"Installment {month} for Logo Design"}
        for month in (1, 2, 3)
    ]

    response = client.post(f"/v1/quotes/{quote['id']}/conversion", json={"installments": rows})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["expected"] == "100.00"
    assert detail["actual"] == "99.99"
    assert detail["difference"] == "0.01"
    mock_create.assert_not_awaited()
    mock_status.assert_not_awaited()


def test_convert_rejects_non_positive_amount(client: TestClient):
    quote = _create_quote(client, amount="100.00")
    rows = [
        {"amount": "100.00", "due_date": "2024-01-15"},
        {"amount": "0", "due_date": "2024-02-15"},
    ]

    response = client.post(f"/v1/quotes/{quote['id']}/conversion", json={"installments": rows})

    assert response.status_code == 422


def test_convert_unknown_quote(client: TestClient):
    response = client.post(
        "/v1/quotes/999/conversion",
        json={"installments": [{"amount": "1.00", "due_date": "2024-01-15"}]},
    )
    assert response.status_code == 404


@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.update_quote_status")
@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.create_revenue")
def test_convert_partial_failure_still_converts_quote(
    mock_create: AsyncMock,
    mock_status: AsyncMock,
    client: TestClient,
):
    """One failed creation: others stay created and the quote is still marked Converted"""
    quote = _create_quote(client, amount="100.00")

    def create(payload):
        if payload["description"] == "Installment 2 for Logo Design":
            raise FinanceAPIError("Finance API error: 500")
        return _echo_revenue(payload)

    mock_create.side_effect = create
    mock_status.return_value = {"id": quote["id"], "status": "Converted"}
    rows = [
        {"amount": "50.00", "due_date": "2024-01-15", "description": "Installment 1 for Logo Design"},
        {"amount": "50.00", "due_date": "2024-02-15", "description": "Installment 2 for Logo Design"},
    ]

    response = client.post(f"/v1/quotes/{quote['id']}/conversion", json={"installments": rows})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["quote_status"] == "Converted"
    assert len(detail["installments_persisted"]) == 1
    assert [f["index"] for f in detail["failures"]] == [1]
    mock_status.assert_awaited_once_with(quote["id"], "Converted")


@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.update_quote_status")
@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.create_revenue")
def test_convert_status_update_failure(
    mock_create: AsyncMock,
    mock_status: AsyncMock,
    client: TestClient,
):
    quote = _create_quote(client, amount="100.00")
    mock_create.side_effect = _echo_revenue
    mock_status.side_effect = FinanceAPIError("Finance API timeout after 5.0s")

    response = client.post(
        f"/v1/quotes/{quote['id']}/conversion",
        json={"installments": [{"amount": "100.00", "due_date": "2024-01-31"}]},
    )

    assert response.status_code == 503
    assert mock_create.await_count == 1


@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.update_quote_status")
@patch("finance_tracker.infrastructure.clients.finance_api.FinanceAPIClient.create_revenue")
def test_convert_rejects_sub_cent_rows(
    mock_create: AsyncMock,
    mock_status: AsyncMock,
    client: TestClient,
):
    """33.335 + 33.335 + 33.33 would reconcile but persist as 100.01"""
    quote = _create_quote(client, amount="100.00")
    rows = [
        {"amount": "33.335", "due_date": "2024-01-15"},
        {"amount": "33.335", "due_date": "2024-02-15"},
        {"amount": "33.33", "due_date": "2024-03-15"},
    ]

    response = client.post(f"/v1/quotes/{quote['id']}/conversion", json={"installments": rows})

    assert response.status_code == 422
    mock_create.assert_not_awaited()
    mock_status.assert_not_awaited()


@patch("finance_tracker.infrastructure.database.repositories.QuoteRepository.create_quote")
def test_create_quote_unexpected_error(mock_create, client: TestClient, quote_payload: dict):
    mock_create.side_effect = RuntimeError("disk full")

    response = client.post("/v1/quotes", json=quote_payload)

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
    # Session was rolled back and is still usable
    assert client.get("/v1/quotes").status_code == 200


@patch("finance_tracker.infrastructure.database.repositories.QuoteRepository.update_status")
def test_update_quote_status_unexpected_error(mock_update, client: TestClient):
    quote = _create_quote(client)
    mock_update.side_effect = RuntimeError("connection reset")

    response = client.patch(f"/v1/quotes/{quote['id']}", json={"status": "Accepted"})

    assert response.status_code == 500
    assert client.get(f"/v1/quotes/{quote['id']}").json()["status"] == "Pending"


@patch("finance_tracker.infrastructure.database.repositories.RevenueRepository.create_revenue")
def test_create_revenue_unexpected_error(mock_create, client: TestClient):
    mock_create.side_effect = RuntimeError("connection reset")

    response = client.post(
        "/v1/revenues",
        json={"description": "x", "amount": "10.00", "client_id": 1, "category": "Sales", "date": "2024-01-01"},
    )

    assert response.status_code == 500
    assert client.get("/v1/revenues").json() == []


@patch("finance_tracker.api.v1.conversion.submit_plan")
def test_convert_unexpected_error(mock_submit: AsyncMock, client: TestClient):
    quote = _create_quote(client, amount="100.00")
    mock_submit.side_effect = RuntimeError("event loop closed")

    response = client.post(
        f"/v1/quotes/{quote['id']}/conversion",
        json={"installments": [{"amount": "100.00", "due_date": "2024-01-31"}]},
    )

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"


def test_require_quote(db):
    repo = QuoteRepository(db)
    created = repo.create_quote("Logo Design", "Brand refresh", Decimal("99.90"), client_id=4)
    db.commit()

    quote = repo.require_quote(created.id)

    assert quote.job_title == "Logo Design"
    assert quote.amount == Decimal("99.90")
    with pytest.raises(QuoteNotFoundError):
        repo.require_quote(created.id + 100)
