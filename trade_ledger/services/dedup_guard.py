"""Re-entry cool-down based on archived trade history."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from trade_ledger.models.past_trade import PastTrade
from trade_ledger.store import LedgerStore
from trade_ledger.utils.constants import DEDUP_WINDOW_HOURS

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DedupGuard:
    """Answers "did we exit this token recently?" before re-entering it."""

    def __init__(self, store: LedgerStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def last_settlement_time(self, token_address: str) -> datetime | None:
        past = self.store.scan(PastTrade, PastTrade.token_address == token_address)
        if not past:
            return None
        # Same-format ISO-8601 strings sort chronologically
        most_recent = max(p.completed_at or p.timestamp for p in past)
        return _parse_iso(most_recent)

    def check_recent_settlement(self, token_address: str, window_hours: float = DEDUP_WINDOW_HOURS) -> bool:
        last = self.last_settlement_time(token_address)
        if last is None:
            return False
        elapsed = self.clock() - last
        recent = elapsed < timedelta(hours=window_hours)
        if recent:
            hours = elapsed.total_seconds() / 3600
            logger.info(f"{token_address} settled {hours:.1f}h ago (window {window_hours}h)")
        return recent
