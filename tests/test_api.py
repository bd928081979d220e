"""Tests for the REST layer."""

import logging
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from nasiya.api import create_app
from nasiya.config import NasiyaConfig, RateLimitConfig
from nasiya.logging import LedgerContextFilter
from nasiya.services import build_services

MANAGER = {"X-Employee-Id": "mgr-001"}
KASSA = {"X-Employee-Id": "kassa-001"}
SELLER = {"X-Employee-Id": "seller-001"}


@pytest.fixture
def client(services) -> TestClient:
    return TestClient(create_app(services))


@pytest.fixture
def contract_body() -> dict:
    return {
        "customer_id": "cust-001",
        "product_name": "iPhone 15 Pro",
        "price": "1000",
        "initial_payment": "0",
        "period": 12,
        "monthly_payment": "100",
        "total_price": "1200",
        "start_date": "2026-02-15",
        "info": {"box": True},
    }


class TestHealthAndAuth:
    """Tests for the health route and actor resolution."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["entities"]["employees"] == 4

    def test_missing_header(self, client: TestClient, contract) -> None:
        response = client.get("/api/payments/pending")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_unknown_employee(self, client: TestClient) -> None:
        response = client.get("/api/payments/pending", headers={"X-Employee-Id": "ghost"})

        assert response.status_code == 401

    def test_request_log_carries_ledger_context(self, client: TestClient, caplog) -> None:
        caplog.handler.addFilter(LedgerContextFilter())

        with caplog.at_level(logging.INFO, logger="nasiya.api.app"):
            client.get("/health", headers=MANAGER)

        records = [r for r in caplog.records if r.getMessage().startswith("GET /health 200")]
        assert len(records) == 1
        assert records[0].ledger == {"employee": "mgr-001", "request": "GET /health"}


class TestPaymentRoutes:
    """Tests for payment intake and the cash office."""

    def test_receive_payment(self, client: TestClient, contract) -> None:
        response = client.post(
            "/api/payments/receive",
            json={"contract_id": contract.contract_id, "amount": 60},
            headers=MANAGER,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["status"] == "UNDERPAID"
        assert body["data"]["remaining_amount"] == "40.00"
        assert body["data"]["extra_payment_id"]

    def test_receive_with_currency_details(self, client: TestClient, services, contract) -> None:
        response = client.post(
            "/api/payments/receive",
            json={
                "contract_id": contract.contract_id,
                "amount": "100",
                "currency_details": {"dollar": 50, "sum": 625000},
            },
            headers=MANAGER,
        )

        assert response.status_code == 200
        assert services.store.balances["mgr-001"].dollar == Decimal("100.00")
        assert services.store.balances["mgr-001"].sum == Decimal("1250000.00")

    def test_currency_details_must_match_amount(self, client: TestClient, contract) -> None:
        response = client.post(
            "/api/payments/receive",
            json={
                "contract_id": contract.contract_id,
                "amount": "100",
                "currency_details": {"dollar": 50, "sum": 100000},
            },
            headers=MANAGER,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "currency_details"

    def test_missing_amount(self, client: TestClient, contract) -> None:
        response = client.post("/api/payments/receive", json={"contract_id": contract.contract_id}, headers=MANAGER)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["errors"][0]["field"] == "amount"

    def test_unreadable_amount(self, client: TestClient, contract) -> None:
        response = client.post(
            "/api/payments/receive",
            json={"contract_id": contract.contract_id, "amount": "lots"},
            headers=MANAGER,
        )

        assert response.status_code == 400

    def test_unknown_contract(self, client: TestClient) -> None:
        response = client.post("/api/payments/receive", json={"contract_id": "missing", "amount": 100}, headers=MANAGER)

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_bot_payment_confirm_flow(self, client: TestClient, contract) -> None:
        received = client.post(
            "/api/payments/receive",
            json={"contract_id": contract.contract_id, "amount": 100, "source": "BOT"},
            headers=MANAGER,
        ).json()["data"]
        assert received["is_pending"] is True

        pending = client.get("/api/payments/pending", headers=KASSA).json()["data"]
        assert [row["payment"]["payment_id"] for row in pending] == [received["payment_id"]]

        confirmed = client.post(f"/api/payments/{received['payment_id']}/confirm", headers=KASSA)
        assert confirmed.status_code == 200
        assert confirmed.json()["data"]["status"] == "PAID"

        again = client.post(f"/api/payments/{received['payment_id']}/confirm", headers=KASSA)
        assert again.status_code == 400
        assert again.json()["code"] == "ALREADY_PROCESSED"

    def test_reject_requires_reason(self, client: TestClient, contract) -> None:
        received = client.post(
            "/api/payments/receive",
            json={"contract_id": contract.contract_id, "amount": 100, "source": "BOT"},
            headers=MANAGER,
        ).json()["data"]

        empty = client.post(f"/api/payments/{received['payment_id']}/reject", json={"reason": ""}, headers=KASSA)
        assert empty.status_code == 400

        rejected = client.post(
            f"/api/payments/{received['payment_id']}/reject", json={"reason": "No cash"}, headers=KASSA
        )
        assert rejected.status_code == 200
        assert rejected.json()["data"]["status"] == "REJECTED"

    def test_confirm_batch(self, client: TestClient, contract) -> None:
        received = client.post(
            "/api/payments/receive",
            json={"contract_id": contract.contract_id, "amount": 100, "source": "BOT"},
            headers=MANAGER,
        ).json()["data"]

        response = client.post(
            "/api/payments/confirm-batch",
            json={"payment_ids": [received["payment_id"], "missing"]},
            headers=KASSA,
        )

        assert response.status_code == 200
        assert [r["success"] for r in response.json()["data"]] == [True, False]
        assert response.json()["message"] == "1 of 2 payments confirmed"

    def test_pay_remaining(self, client: TestClient, contract) -> None:
        received = client.post(
            "/api/payments/receive",
            json={"contract_id": contract.contract_id, "amount": 60},
            headers=MANAGER,
        ).json()["data"]

        response = client.post(
            f"/api/payments/{received['extra_payment_id']}/pay-remaining",
            json={"amount": 40},
            headers=MANAGER,
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "PAID"

    def test_pay_all_and_history(self, client: TestClient, contract) -> None:
        response = client.post(
            "/api/payments/pay-all",
            json={"contract_id": contract.contract_id, "amount": 1200},
            headers=MANAGER,
        )
        assert response.status_code == 200
        assert len(response.json()["data"]) == 12

        history = client.get(
            "/api/payments/history", params={"contract_id": contract.contract_id}, headers=MANAGER
        ).json()["data"]
        assert len(history) == 12

        summary = client.get(f"/api/contracts/{contract.contract_id}/summary", headers=MANAGER).json()["data"]
        assert summary["status"] == "COMPLETED"
        assert summary["total_paid"] == "1200.00"


class TestContractRoutes:
    """Tests for contract lifecycle, edits and postponement."""

    def test_create_contract(self, client: TestClient, contract_body: dict) -> None:
        response = client.post("/api/contracts", json=contract_body, headers=MANAGER)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["is_active"] is True
        assert data["next_payment_date"] == "2026-03-15"
        assert data["info"]["box"] is True

    def test_seller_contract_needs_approval(self, client: TestClient, contract_body: dict) -> None:
        created = client.post("/api/contracts", json=contract_body, headers=SELLER).json()["data"]
        assert created["is_active"] is False

        forbidden = client.post(f"/api/contracts/{created['contract_id']}/approve", headers=SELLER)
        assert forbidden.status_code == 403

        approved = client.post(f"/api/contracts/{created['contract_id']}/approve", headers=MANAGER)
        assert approved.status_code == 200
        assert approved.json()["data"]["is_active"] is True

        conflict = client.post(f"/api/contracts/{created['contract_id']}/approve", headers=MANAGER)
        assert conflict.status_code == 409

    def test_update_contract(self, client: TestClient, services, contract, manager) -> None:
        services.payments.receive_payment(contract.contract_id, 100, manager)

        response = client.put(
            f"/api/contracts/{contract.contract_id}", json={"monthly_payment": 120}, headers=MANAGER
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["impact_summary"]["underpaid_count"] == 1
        assert data["changes"][0]["difference"] == "20.00"

    def test_update_drift_rejected(self, client: TestClient, contract) -> None:
        response = client.put(
            f"/api/contracts/{contract.contract_id}", json={"monthly_payment": 500}, headers=MANAGER
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "monthly_payment"

    def test_impact_preview(self, client: TestClient, contract) -> None:
        response = client.post(
            f"/api/contracts/{contract.contract_id}/impact", json={"total_price": 1300}, headers=MANAGER
        )

        assert response.status_code == 200
        assert response.json()["data"]["changes"][0]["field"] == "total_price"

    def test_postpone(self, client: TestClient, contract) -> None:
        response = client.post(
            f"/api/contracts/{contract.contract_id}/postpone",
            json={"new_date": "2026-03-25", "reason": "Salary delayed"},
            headers=MANAGER,
        )

        assert response.status_code == 200
        assert response.json()["data"]["next_payment_date"] == "2026-03-25"
        assert response.json()["data"]["previous_payment_date"] == "2026-03-15"

    def test_postpone_past_date(self, client: TestClient, contract) -> None:
        response = client.post(
            f"/api/contracts/{contract.contract_id}/postpone", json={"new_date": "2026-01-01"}, headers=MANAGER
        )

        assert response.status_code == 400

    def test_delete_contract(self, client: TestClient, contract) -> None:
        response = client.delete(f"/api/contracts/{contract.contract_id}", headers=MANAGER)
        assert response.status_code == 200

        missing = client.get(f"/api/contracts/{contract.contract_id}/summary", headers=MANAGER)
        assert missing.status_code == 404


class TestDebtorRoutes:
    """Tests for the debtor list and manual sweep."""

    def test_sweep_and_list(self, client: TestClient, contract, clock) -> None:
        clock.advance(days=6)

        sweep = client.post("/api/debtors/sweep", headers=MANAGER)
        assert sweep.status_code == 200
        assert sweep.json()["data"]["debtors_created"] == 1

        debtors = client.get("/api/debtors", headers=MANAGER).json()["data"]
        assert len(debtors) == 1
        assert debtors[0]["overdue_days"] == 6
        assert debtors[0]["debt_amount"] == "100.00"


class TestErrorHandling:
    """Tests for throttling and unexpected failures."""

    def test_rate_limited_edit(self, store, clock, manager, contract_terms) -> None:
        config = NasiyaConfig(rate_limit=RateLimitConfig(max_edits=1, window_seconds=60))
        services = build_services(config=config, store=store, clock=clock)
        client = TestClient(create_app(services))
        contract = services.contracts.create_contract(contract_terms(), manager)

        first = client.put(f"/api/contracts/{contract.contract_id}", json={"product_name": "A"}, headers=MANAGER)
        second = client.put(f"/api/contracts/{contract.contract_id}", json={"product_name": "B"}, headers=MANAGER)

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["code"] == "RATE_LIMITED"
        assert int(second.headers["Retry-After"]) >= 1

    def test_unhandled_error_is_generic(self, services, contract, monkeypatch) -> None:
        def explode(contract_id):
            raise RuntimeError("database password is hunter2")

        monkeypatch.setattr(services.payments, "get_contract_summary", explode)
        client = TestClient(create_app(services), raise_server_exceptions=False)

        response = client.get(f"/api/contracts/{contract.contract_id}/summary", headers=MANAGER)

        assert response.status_code == 500
        assert response.json() == {"status": "error", "code": "INTERNAL_ERROR", "message": "Internal server error"}
