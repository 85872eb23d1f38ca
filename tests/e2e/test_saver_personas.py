"""
E2E tests for saver personas walking full challenge lifecycles through the API.

Saver personas:
- saver_salary: 5K template over a year, pays on schedule after each payday
- saver_sprint: 10K inverse template over 13 weeks, finishes the challenge
- saver_custom: custom progression, overpays early weeks
- saver_quitter: pauses, resumes, then gives up
- saver_linked: books every deposit in a linked account on the mock ledger
"""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from mocks.ledger_server.main import app as ledger_app, TRANSACTIONS
from savings_gateway.infrastructure.clients.ledger import build_payload


def _create(client: TestClient, body: dict) -> dict:
    response = client.post("/v1/challenges", json={"start_date": "2025-01-06", **body})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
def test_saver_salary_on_schedule(client: TestClient):
    """
    saver_salary: 5K template, 52 weeks, standard direction
    Expected: 8 paid weeks track the schedule and the calendar exactly
    """
    challenge = _create(client, {"user_id": "saver_salary", "total_weeks": 52, "template": "5k", "icon": "gem"})
    base = f"/v1/challenges/{challenge['id']}"

    for week in range(1, 9):
        response = client.post(f"{base}/deposits", json={"week": week})
        assert response.status_code == 200

    progress = client.get(f"{base}/progress").json()
    paid = sum(challenge["weekly_amounts"][:8])

    assert progress["current_week"] == 9
    assert progress["next_unpaid_week"] == 9, "Saver is exactly on schedule"
    assert progress["percent"] == pytest.approx(100 * paid / 500000)
    assert progress["remaining_amount_cents"] == 500000 - paid
    assert progress["next_deposit_amount_cents"] == challenge["weekly_amounts"][8]


@pytest.mark.integration
def test_saver_sprint_completes(client: TestClient):
    """
    saver_sprint: 10K inverse over 13 weeks (short final month)
    Expected: completed after the 13th distinct paid week, then closed
    """
    challenge = _create(
        client,
        {"user_id": "saver_sprint", "total_weeks": 13, "template": "10k", "direction": "inverse"},
    )
    base = f"/v1/challenges/{challenge['id']}"
    assert sum(challenge["weekly_amounts"]) == 1000000

    for week in reversed(range(1, 14)):
        data = client.post(f"{base}/deposits", json={"week": week}).json()["challenge"]

    assert data["status"] == "completed"
    assert data["total_deposited_cents"] == 1000000

    progress = client.get(f"{base}/progress").json()
    assert progress["is_complete"] is True
    assert progress["percent"] == 100.0

    assert client.post(f"{base}/deposits", json={"week": 1}).status_code == 409


@pytest.mark.integration
def test_saver_custom_overpays(client: TestClient):
    """
    saver_custom: 1.00 start, +1.00 each week for 10 weeks
    Expected: overpayment shows up as progress beyond the schedule, unclamped
    """
    challenge = _create(
        client,
        {"user_id": "saver_custom", "mode": "custom", "total_weeks": 10, "start_amount_cents": 100, "step_amount_cents": 100},
    )
    base = f"/v1/challenges/{challenge['id']}"
    assert challenge["target_amount_cents"] == 5500
    assert challenge["weekly_amounts"][0] == 100

    client.post(f"{base}/deposits", json={"week": 1, "amount_cents": 6000})

    progress = client.get(f"{base}/progress").json()
    assert progress["percent"] > 100
    assert progress["is_complete"] is False
    assert progress["next_unpaid_week"] == 2


@pytest.mark.integration
def test_saver_quitter(client: TestClient):
    """
    saver_quitter: pauses, resumes, cancels
    Expected: projection unchanged by the pause; no deposits after cancelling
    """
    challenge = _create(client, {"user_id": "saver_quitter", "total_weeks": 26, "target_amount_cents": 260000})
    base = f"/v1/challenges/{challenge['id']}"
    before = client.get(f"{base}/progress").json()["projected_completion_date"]

    assert client.post(f"{base}/pause").json()["status"] == "paused"
    assert client.get(f"{base}/progress").json()["projected_completion_date"] == before
    assert client.post(f"{base}/pause").json()["status"] == "active"
    assert client.post(f"{base}/cancel").json()["status"] == "cancelled"

    assert client.post(f"{base}/deposits", json={"week": 1}).status_code == 409


@pytest.mark.integration
def test_saver_linked_account_bookings(client: TestClient):
    """
    saver_linked: every paid deposit is booked on the mock ledger
    Expected: one expense per paid week, none for pending weeks
    """
    ledger = TestClient(ledger_app)
    TRANSACTIONS.clear()

    async def deliver(event):
        ledger.post("/mock-ledger/transactions", json=build_payload(event))

    with patch("savings_gateway.infrastructure.clients.ledger.LedgerClient.send_linked_transaction", side_effect=deliver):
        challenge = _create(
            client,
            {"user_id": "saver_linked", "total_weeks": 8, "target_amount_cents": 80000, "linked_account_ref": "acct_77"},
        )
        base = f"/v1/challenges/{challenge['id']}"

        client.post(f"{base}/deposits", json={"week": 1, "create_transaction": True})
        client.post(f"{base}/deposits", json={"week": 2, "create_transaction": True})
        client.post(f"{base}/deposits", json={"week": 3, "status": "pending", "create_transaction": True})

    booked = ledger.get("/mock-ledger/transactions", params={"account_ref": "acct_77"}).json()["transactions"]
    assert [t["week"] for t in booked] == [1, 2]
    assert [t["amount_cents"] for t in booked] == challenge["weekly_amounts"][:2]
    assert all(t["category"] == "Poupança" for t in booked)
