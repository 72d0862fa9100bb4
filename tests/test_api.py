"""Tests for the HTTP surface over the ledger."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from trade_ledger.api.deps import get_rpc, get_settler, get_store
from trade_ledger.config import settings
from trade_ledger.engine.settle_job import SettleOutcome
from trade_ledger.errors import OwnerMismatchError, SettlementFailedError
from trade_ledger.main import app
from trade_ledger.models.past_trade import PastTrade

TOKEN = "test-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(settings, "api_token", TOKEN)
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _open(client, token="MINT1", **extra):
    resp = client.post("/api/trades", json={"token_address": token, "amount_invested": 1.0, **extra}, headers=AUTH)
    assert resp.status_code == 201
    return resp.json()["trade_id"]


def test_requires_token(client):
    assert client.get("/api/trades", headers={"Authorization": "Bearer wrong"}).status_code == 401


def test_open_and_list(client):
    trade_id = _open(client)
    resp = client.get("/api/trades", headers=AUTH)
    assert resp.status_code == 200
    assert [t["trade_id"] for t in resp.json()] == [trade_id]
    assert client.get(f"/api/trades/{trade_id}", headers=AUTH).json()["status"] == "ACTIVE"


def test_open_rejects_second_active_trade_for_token(client):
    _open(client)
    resp = client.post("/api/trades", json={"token_address": "MINT1"}, headers=AUTH)
    assert resp.status_code == 409


def test_open_rejects_blank_token(client):
    resp = client.post("/api/trades", json={"token_address": "  "}, headers=AUTH)
    assert resp.status_code == 422


def test_get_missing_trade(client):
    assert client.get("/api/trades/nope", headers=AUTH).status_code == 404


def test_buy_in_and_targets(client):
    trade_id = _open(client)
    resp = client.post(
        f"/api/trades/{trade_id}/buy-in",
        json={"amount_invested": 0.5, "tokens_received": 10},
        headers=AUTH,
    )
    assert resp.status_code == 200
    assert resp.json()["amount_invested"] == pytest.approx(1.5)

    resp = client.put(
        f"/api/trades/{trade_id}/targets",
        json={"target_percentage_gain": 40, "target_percentage_loss": 10},
        headers=AUTH,
    )
    assert resp.json()["target_percentage_gain"] == 40


def test_recent_exit(client, store):
    store.put(PastTrade(
        trade_id="p1",
        token_address="MINT9",
        status="COMPLETED",
        completed_at=(datetime.now(timezone.utc) - timedelta(hours=1)).isoformat(),
    ))
    resp = client.get("/api/tokens/MINT9/recent-exit", headers=AUTH)
    assert resp.json()["recently_settled"] is True
    resp = client.get("/api/tokens/OTHER/recent-exit", headers=AUTH)
    assert resp.json()["recently_settled"] is False


class _StubSettler:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    async def settle(self, trade_id, info):
        if self.error:
            raise self.error
        return self.result


@pytest.mark.parametrize("error,status", [
    (OwnerMismatchError("A", "B"), 400),
    (SettlementFailedError(3, RuntimeError("rpc down")), 502),
])
def test_settle_maps_errors(client, error, status):
    trade_id = _open(client)
    app.dependency_overrides[get_settler] = lambda: _StubSettler(error=error)
    resp = client.post(f"/api/trades/{trade_id}/settle", json={"exit_price_sol": 1.0}, headers=AUTH)
    assert resp.status_code == status


def test_settle_already_archived(client):
    app.dependency_overrides[get_settler] = lambda: _StubSettler(
        result=SettleOutcome(trade_id="t1", already_archived=True)
    )
    resp = client.post("/api/trades/t1/settle", json={}, headers=AUTH)
    assert resp.status_code == 200
    assert resp.json()["already_archived"] is True


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


# ---------------------------------------------------------------------------
# On-chain balances
# ---------------------------------------------------------------------------

class _StubRpc:
    def __init__(self, token_balance=0, sol_balance=0.0, error=None):
        self.token_balance = token_balance
        self.sol_balance = sol_balance
        self.error = error
        self.calls = []

    async def get_owner_token_balance(self, owner, mint):
        self.calls.append(("token", owner, mint))
        if self.error:
            raise self.error
        return self.token_balance

    async def get_sol_balance(self, owner):
        self.calls.append(("sol", owner))
        if self.error:
            raise self.error
        return self.sol_balance


def test_token_balance_uses_configured_wallet(client, monkeypatch):
    monkeypatch.setattr(settings, "wallet_public_key", "OWNER1")
    rpc = _StubRpc(token_balance=1234)
    app.dependency_overrides[get_rpc] = lambda: rpc

    resp = client.get("/api/tokens/MINT1/balance", headers=AUTH)

    assert resp.status_code == 200
    assert resp.json() == {"token_address": "MINT1", "owner": "OWNER1", "balance": 1234}
    assert rpc.calls == [("token", "OWNER1", "MINT1")]


def test_token_balance_owner_query_overrides_wallet(client, monkeypatch):
    monkeypatch.setattr(settings, "wallet_public_key", "OWNER1")
    rpc = _StubRpc(token_balance=0)
    app.dependency_overrides[get_rpc] = lambda: rpc

    resp = client.get("/api/tokens/MINT1/balance", params={"owner": "OWNER2"}, headers=AUTH)

    assert resp.json()["balance"] == 0
    assert rpc.calls == [("token", "OWNER2", "MINT1")]


def test_token_balance_without_owner(client, monkeypatch):
    monkeypatch.setattr(settings, "wallet_public_key", "")
    app.dependency_overrides[get_rpc] = lambda: _StubRpc()
    assert client.get("/api/tokens/MINT1/balance", headers=AUTH).status_code == 400


@pytest.mark.parametrize("error,status", [
    (ValueError("bad pubkey"), 400),
    (asyncio.TimeoutError(), 504),
])
def test_token_balance_maps_rpc_errors(client, monkeypatch, error, status):
    monkeypatch.setattr(settings, "wallet_public_key", "OWNER1")
    app.dependency_overrides[get_rpc] = lambda: _StubRpc(error=error)
    assert client.get("/api/tokens/MINT1/balance", headers=AUTH).status_code == status


def test_wallet_sol_balance(client, monkeypatch):
    monkeypatch.setattr(settings, "wallet_public_key", "OWNER1")
    rpc = _StubRpc(sol_balance=2.5)
    app.dependency_overrides[get_rpc] = lambda: rpc

    resp = client.get("/api/wallet/balance", headers=AUTH)

    assert resp.status_code == 200
    assert resp.json() == {"owner": "OWNER1", "balance_sol": 2.5}
    assert rpc.calls == [("sol", "OWNER1")]


def test_wallet_sol_balance_requires_token(client):
    app.dependency_overrides[get_rpc] = lambda: _StubRpc()
    assert client.get("/api/wallet/balance").status_code in (401, 403)
