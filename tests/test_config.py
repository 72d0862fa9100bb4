"""Tests for settings loading and the database engine factory."""

import threading

from trade_ledger import config, database
from trade_ledger.config import Settings
from trade_ledger.database import build_engine, create_db_and_tables
from trade_ledger.models.trade import Trade
from trade_ledger.store import LedgerStore


def test_settings_read_tl_prefixed_env(monkeypatch):
    monkeypatch.setenv("TL_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("TL_SETTLE_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("RPC_URL", "https://ignored.example")

    loaded = Settings(_env_file=None)

    assert loaded.rpc_url == "https://rpc.example"
    assert loaded.settle_max_attempts == 5


def test_modules_expose_only_the_live_surface():
    # Routes reach the database through LedgerStore, never a session dependency
    assert not hasattr(config, "PROJECT_ROOT")
    assert not hasattr(database, "get_session")


def test_sqlite_engine_is_shared_across_threads(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'threads.db'}")
    create_db_and_tables(eng)
    store = LedgerStore(eng)
    store.put(Trade(trade_id="t1", token_address="MINT1"))
    errors = []

    def worker():
        try:
            store.increment(Trade, "t1", amount_invested=1.0)
        except Exception as e:  # surfaced via the assertion below
            errors.append(e)

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()

    assert errors == []
    assert store.get(Trade, "t1").amount_invested == 1.0
    eng.dispose()
