"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from savings_gateway.domain.exceptions import VersionConflict


def _create(client: TestClient, **overrides) -> dict:
    body = {
        "mode": "template",
        "direction": "standard",
        "total_weeks": 4,
        "target_amount_cents": 10000,
        "start_date": "2025-01-06",
        "title": "Trip",
        "icon": "plane",
        "user_id": "saver_1",
    }
    body.update(overrides)
    response = client.post("/v1/challenges", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    _create(client)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "savings_challenge_created_total" in response.text


def test_preview_template(client: TestClient):
    response = client.post(
        "/v1/challenges/preview",
        json={"total_weeks": 52, "template": "5k"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["target_amount_cents"] == 500000
    assert len(data["weekly_amounts"]) == 52
    assert sum(data["weekly_amounts"]) == 500000


def test_preview_custom(client: TestClient):
    response = client.post(
        "/v1/challenges/preview",
        json={"mode": "custom", "direction": "inverse", "total_weeks": 4, "start_amount_cents": 100, "step_amount_cents": 100},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["weekly_amounts"] == [400, 300, 200, 100]
    assert data["first_week_amount_cents"] == 400
    assert data["last_week_amount_cents"] == 100


def test_preview_rejects_target_below_floor(client: TestClient):
    response = client.post("/v1/challenges/preview", json={"total_weeks": 10, "target_amount_cents": 49})
    assert response.status_code == 422


def test_create_challenge(client: TestClient):
    data = _create(client)

    assert data["status"] == "active"
    assert data["total_deposited_cents"] == 0
    assert data["ledger"] == []
    assert sum(data["weekly_amounts"]) == 10000
    assert [w["due_date"] for w in data["schedule"]] == ["2025-01-06", "2025-01-13", "2025-01-20", "2025-01-27"]
    assert data["version"] == 0


def test_create_rejects_invalid_params(client: TestClient):
    response = client.post(
        "/v1/challenges",
        json={"total_weeks": 4, "start_date": "2025-01-06"},
    )
    assert response.status_code == 422

    response = client.post(
        "/v1/challenges",
        json={"total_weeks": 0, "target_amount_cents": 1000, "start_date": "2025-01-06"},
    )
    assert response.status_code == 422


def test_get_and_list_challenges(client: TestClient):
    created = _create(client)
    _create(client, title="Car", total_weeks=8, target_amount_cents=80000)

    response = client.get(f"/v1/challenges/{created['id']}")
    assert response.status_code == 200
    assert response.json()["weekly_amounts"] == created["weekly_amounts"]

    response = client.get("/v1/challenges?user_id=saver_1")
    assert response.status_code == 200
    assert len(response.json()["challenges"]) == 2


def test_get_challenge_not_found(client: TestClient):
    fake_uuid = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/v1/challenges/{fake_uuid}").status_code == 404
    assert client.get("/v1/challenges/not-a-uuid").status_code == 404


def test_record_deposit_defaults_to_scheduled_amount(client: TestClient):
    created = _create(client)

    response = client.post(f"/v1/challenges/{created['id']}/deposits", json={"week": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["duplicate"] is False
    challenge = data["challenge"]
    assert challenge["total_deposited_cents"] == created["weekly_amounts"][0]
    assert challenge["ledger"][0]["date"] == "2025-03-03"
    assert challenge["version"] == 1


def test_duplicate_deposit_is_idempotent(client: TestClient):
    created = _create(client)
    url = f"/v1/challenges/{created['id']}/deposits"

    first = client.post(url, json={"week": 2, "amount_cents": 3100})
    second = client.post(url, json={"week": 2, "amount_cents": 3100})

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["challenge"]["total_deposited_cents"] == 3100
    assert client.get(f"/v1/challenges/{created['id']}").json()["total_deposited_cents"] == 3100


def test_deposit_errors(client: TestClient):
    created = _create(client)
    url = f"/v1/challenges/{created['id']}/deposits"

    assert client.post(url, json={"week": 5}).status_code == 422
    assert client.post(url, json={"week": 1, "amount_cents": -5}).status_code == 422
    assert client.post(url, json={"week": 1, "expected_version": 7}).status_code == 409


def test_challenge_completes_and_closes(client: TestClient):
    created = _create(client)
    url = f"/v1/challenges/{created['id']}/deposits"

    for week in (1, 2, 3):
        assert client.post(url, json={"week": week}).json()["challenge"]["status"] == "active"

    data = client.post(url, json={"week": 4}).json()["challenge"]
    assert data["status"] == "completed"
    assert data["completed_on"] == "2025-03-03"
    assert data["total_deposited_cents"] == 10000

    assert client.post(url, json={"week": 4}).status_code == 409
    assert client.post(f"/v1/challenges/{created['id']}/pause").status_code == 409


def test_pause_resume_and_cancel(client: TestClient):
    created = _create(client)
    base = f"/v1/challenges/{created['id']}"

    assert client.post(f"{base}/pause").json()["status"] == "paused"
    assert client.post(f"{base}/pause").json()["status"] == "active"
    assert client.post(f"{base}/cancel").json()["status"] == "cancelled"
    assert client.post(f"{base}/cancel").status_code == 409
    assert client.post(f"{base}/deposits", json={"week": 1}).status_code == 409


def test_progress_endpoint(client: TestClient):
    created = _create(client, total_weeks=12, target_amount_cents=120000)
    base = f"/v1/challenges/{created['id']}"
    client.post(f"{base}/deposits", json={"week": 1, "amount_cents": 30000})

    response = client.get(f"{base}/progress")
    assert response.status_code == 200
    data = response.json()
    assert data["current_week"] == 9  # Fixed "today" is 8 weeks after the start
    assert data["next_unpaid_week"] == 2
    assert data["percent"] == 25.0
    assert data["projected_completion_date"] == "2025-03-31"
    assert data["is_complete"] is False
    assert data["weeks_remaining"] == 11

    data = client.get(f"{base}/progress?now=2025-01-07").json()
    assert data["current_week"] == 1


def test_delete_challenge(client: TestClient):
    created = _create(client)
    client.post(f"/v1/challenges/{created['id']}/deposits", json={"week": 1})

    assert client.delete(f"/v1/challenges/{created['id']}").status_code == 204
    assert client.get(f"/v1/challenges/{created['id']}").status_code == 404
    assert client.delete(f"/v1/challenges/{created['id']}").status_code == 404


@patch("savings_gateway.infrastructure.clients.ledger.LedgerClient.send_linked_transaction")
async def test_deposit_schedules_linked_transaction(mock_ledger: AsyncMock, client: TestClient):
    mock_ledger.return_value = None
    created = _create(client, linked_account_ref="acct_42")

    response = client.post(
        f"/v1/challenges/{created['id']}/deposits",
        json={"week": 1, "amount_cents": 2500, "create_transaction": True},
    )

    assert response.status_code == 200
    assert response.json()["linked_transaction_scheduled"] is True
    mock_ledger.assert_called_once()
    event = mock_ledger.call_args.args[0]
    assert event.account_ref == "acct_42"
    assert event.amount_cents == 2500
    assert event.week == 1


@patch("savings_gateway.infrastructure.clients.ledger.LedgerClient.send_linked_transaction")
async def test_deposit_without_link_sends_nothing(mock_ledger: AsyncMock, client: TestClient):
    created = _create(client)

    response = client.post(
        f"/v1/challenges/{created['id']}/deposits",
        json={"week": 1, "create_transaction": True},
    )

    assert response.json()["linked_transaction_scheduled"] is False
    mock_ledger.assert_not_called()


@patch("savings_gateway.infrastructure.database.repositories.ChallengeRepository.save")
def test_deposit_version_conflict_on_save(mock_save, client: TestClient):
    """A writer that commits between load and save turns the deposit into a 409"""
    created = _create(client)
    mock_save.side_effect = VersionConflict("stale")

    response = client.post(f"/v1/challenges/{created['id']}/deposits", json={"week": 1})

    assert response.status_code == 409
    assert response.json()["detail"] == "Challenge was modified; reload and retry"
    mock_save.side_effect = None
    assert client.get(f"/v1/challenges/{created['id']}").json()["ledger"] == []


@patch("savings_gateway.infrastructure.database.repositories.ChallengeRepository.save")
def test_pause_version_conflict_on_save(mock_save, client: TestClient):
    created = _create(client)
    mock_save.side_effect = VersionConflict("stale")

    assert client.post(f"/v1/challenges/{created['id']}/pause").status_code == 409


def test_target_buckets_are_currency_neutral(client: TestClient):
    _create(client, target_amount_cents=10000)

    text = client.get("/metrics").text
    assert 'savings_challenge_target_bucket_total{bucket="<1000"}' in text
    assert 'bucket="<$' not in text
