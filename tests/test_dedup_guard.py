"""Tests for the re-entry cool-down window."""

from datetime import datetime, timedelta, timezone

import pytest

from trade_ledger.models.past_trade import PastTrade
from trade_ledger.services.dedup_guard import DedupGuard

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _archive(store, trade_id, token, completed_at, timestamp=None):
    store.put(PastTrade(
        trade_id=trade_id,
        token_address=token,
        status="COMPLETED",
        timestamp=(timestamp or completed_at - timedelta(hours=1)).isoformat(),
        completed_at=completed_at.isoformat(),
    ))


def _guard(store, now):
    return DedupGuard(store, clock=lambda: now)


def test_no_history_is_not_recent(store):
    assert _guard(store, T0).check_recent_settlement("NEW") is False


@pytest.mark.parametrize("offset", [
    timedelta(0),
    timedelta(minutes=1),
    timedelta(hours=12),
    timedelta(hours=23, minutes=59, seconds=59),
])
def test_inside_window_is_recent(store, offset):
    _archive(store, "t1", "MINT", T0)
    assert _guard(store, T0 + offset).check_recent_settlement("MINT", 24) is True


@pytest.mark.parametrize("offset", [timedelta(hours=24), timedelta(hours=30), timedelta(days=7)])
def test_at_or_after_window_is_not_recent(store, offset):
    _archive(store, "t1", "MINT", T0)
    assert _guard(store, T0 + offset).check_recent_settlement("MINT", 24) is False


def test_uses_most_recent_completion(store):
    _archive(store, "old", "MINT", T0 - timedelta(days=3))
    _archive(store, "new", "MINT", T0)
    guard = _guard(store, T0 + timedelta(hours=2))
    assert guard.last_settlement_time("MINT") == T0
    assert guard.check_recent_settlement("MINT") is True


def test_other_tokens_do_not_count(store):
    _archive(store, "t1", "OTHER", T0)
    assert _guard(store, T0).check_recent_settlement("MINT") is False


def test_custom_window(store):
    _archive(store, "t1", "MINT", T0)
    guard = _guard(store, T0 + timedelta(hours=2))
    assert guard.check_recent_settlement("MINT", window_hours=1) is False
    assert guard.check_recent_settlement("MINT", window_hours=3) is True
