"""HTTP surface: payload shapes and error status mapping."""

import importlib
import warnings

from creditledger.interfaces.http import errors
from creditledger.interfaces.http.deps import get_adjustment_service
from creditledger.modules.ledger import (
    InsufficientBalance,
    LedgerError,
    RetryExhausted,
    StorageUnavailable,
    ValidationError,
)


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_adjust_then_read_account(client):
    response = await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 120})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["previous_balance"], body["new_balance"], body["adjustment"]) == (0, 120, 120)

    response = await client.get("/api/credits/accounts/alice")
    assert response.status_code == 200
    view = response.json()
    assert view["credits"]["balance"] == 120
    assert view["transactions"][0]["type"] == "admin_adjustment"
    assert view["transactions"][0]["description"] == "Admin adjustment: +120 credits"


async def test_insufficient_balance_is_a_conflict(client):
    await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 50})

    response = await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": -100})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "insufficient_balance"
    balance = (await client.get("/api/credits/accounts/alice/balance")).json()
    assert balance["balance"] == 50


async def test_override_flag_allows_negative(client):
    response = await client.post(
        "/api/credits/adjust",
        json={"account_id": "alice", "delta": -5, "override": True},
    )

    assert response.status_code == 200
    assert response.json()["new_balance"] == -5


async def test_malformed_requests_are_unprocessable(client):
    bad_type = await client.post(
        "/api/credits/adjust", json={"account_id": "alice", "delta": 5, "type": "gift"}
    )
    zero = await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 0})
    bad_id = await client.post("/api/credits/adjust", json={"account_id": "no spaces", "delta": 5})

    assert bad_type.status_code == 422
    assert zero.status_code == 422
    assert bad_id.status_code == 422
    assert bad_id.json()["detail"]["code"] == "validation_error"


async def test_out_of_range_delta_is_unprocessable(client):
    response = await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 2**63})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "validation_error"
    balance = (await client.get("/api/credits/accounts/alice/balance")).json()
    assert balance["version"] == 0


async def test_idempotency_key_header_replays(client):
    headers = {"Idempotency-Key": "order-42"}
    payload = {"account_id": "alice", "delta": 10, "type": "purchase"}

    first = await client.post("/api/credits/adjust", json=payload, headers=headers)
    second = await client.post("/api/credits/adjust", json=payload, headers=headers)

    assert first.json() == second.json()
    assert "idempotent-replayed" not in first.headers
    assert second.headers["idempotent-replayed"] == "true"
    balance = (await client.get("/api/credits/accounts/alice/balance")).json()
    assert balance["balance"] == 10


async def test_bulk_adjust_reports_each_account(client):
    await client.post("/api/credits/adjust", json={"account_id": "bob", "delta": 3})

    response = await client.patch(
        "/api/credits/bulk",
        json={"account_ids": ["alice", "bob", "bad id"], "delta": -5},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert (body["succeeded"], body["failed"]) == (2, 1)
    by_id = {item["account_id"]: item for item in body["results"]}
    assert by_id["alice"]["new_balance"] == 0
    assert by_id["bob"]["applied_delta"] == -3
    assert by_id["bad id"]["error_code"] == "validation_error"


async def test_low_balance_listing(client):
    for account_id, delta in [("alice", 80), ("bob", 20), ("carol", 300)]:
        await client.post("/api/credits/adjust", json={"account_id": account_id, "delta": delta})

    response = await client.get("/api/credits/low-balance", params={"threshold": 100})

    body = response.json()
    assert [a["account_id"] for a in body["accounts"]] == ["bob", "alice"]
    assert body["accounts"][0]["display_name"] == "Bob"
    assert (body["threshold"], body["total"], body["page"]) == (100, 2, 1)


async def test_transaction_feed_filters(client):
    await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 10, "type": "purchase"})
    await client.post("/api/credits/adjust", json={"account_id": "bob", "delta": 10})

    feed = await client.get("/api/credits/transactions", params={"type": "purchase"})
    alice = await client.get("/api/credits/accounts/alice/transactions", params={"page_size": 1})
    history = await client.get("/api/credits/accounts/bob/history")

    assert [t["account_id"] for t in feed.json()["transactions"]] == ["alice"]
    assert alice.json()["total"] == 1
    assert history.json()[0]["account_id"] == "bob"


async def test_reconcile_endpoints(client):
    await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 10})

    check = await client.get("/api/credits/accounts/alice/reconcile")
    repair = await client.post("/api/credits/accounts/alice/reconcile")

    assert check.json()["consistent"] is True
    assert repair.json()["repaired"] is False


async def test_storage_failure_is_service_unavailable(app, client):
    class DownService:
        async def adjust(self, *args, **kwargs):
            raise StorageUnavailable("database is locked")

    app.dependency_overrides[get_adjustment_service] = lambda: DownService()

    response = await client.post("/api/credits/adjust", json={"account_id": "alice", "delta": 1})

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"
    assert response.json()["detail"]["code"] == "storage_unavailable"


def test_status_mapping_without_deprecated_constants():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        importlib.reload(errors)

    assert errors.status_for(ValidationError("bad")) == 422
    assert errors.status_for(InsufficientBalance("alice", 1, -2)) == 409
    assert errors.status_for(RetryExhausted("alice", 3)) == 409
    assert errors.status_for(StorageUnavailable("down")) == 503
    assert errors.status_for(LedgerError("other")) == 500
