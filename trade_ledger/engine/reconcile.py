"""Archive reconciliation — repair trades left in both tables.

Archiving writes the past-trade row and then deletes the active row in a
separate commit. A crash between the two leaves the trade in both places.
The archived row is authoritative: the active copy is removed, never
re-archived.

Called once on startup before the API starts serving, and from the CLI.
"""

import logging

from trade_ledger.models.past_trade import PastTrade
from trade_ledger.models.trade import Trade
from trade_ledger.store import LedgerStore

logger = logging.getLogger(__name__)


def reconcile_archive(store: LedgerStore) -> list[str]:
    """Delete active rows whose trade_id is already archived. Returns repaired ids."""
    active = store.scan(Trade)
    if not active:
        logger.info("Archive reconcile: no active trades, all clear")
        return []

    active_ids = [t.trade_id for t in active]
    archived = store.scan(PastTrade, PastTrade.trade_id.in_(active_ids))  # type: ignore[attr-defined]

    repaired = []
    for past in archived:
        logger.warning(
            f"Archive reconcile: trade {past.trade_id} ({past.token_address}) present in both "
            f"tables, archived {past.completed_at} as {past.status}; removing active copy"
        )
        store.delete(Trade, past.trade_id)
        repaired.append(past.trade_id)

    logger.info(f"Archive reconcile complete: {len(active)} active, {len(repaired)} repaired")
    return repaired
