"""Incremental buy-ins into an already-open position."""

import logging
from typing import Any, Mapping

from trade_ledger.errors import NotFoundError
from trade_ledger.models.trade import Trade
from trade_ledger.services.trade_ledger import TradeLedger
from trade_ledger.utils.constants import TradeStatus

logger = logging.getLogger(__name__)


class PositionUpdater:
    """Applies repeat buys to an ACTIVE trade.

    Deltas and any recomputed thresholds come from the caller; averaging
    the entry price is a strategy decision and is not done here.
    """

    def __init__(self, ledger: TradeLedger):
        self.ledger = ledger

    def apply_buy_in(
        self,
        trade_id: str,
        delta_invested: float,
        delta_tokens: float,
        new_gain: float | None = None,
        new_loss: float | None = None,
    ) -> Trade:
        if delta_invested < 0 or delta_tokens < 0:
            raise ValueError("buy-in deltas must be non-negative")

        trade = self.ledger.get_trade(trade_id)
        if trade is None or trade.status != TradeStatus.ACTIVE.value:
            raise NotFoundError(trade_id, what="Active trade")

        trade = self.ledger.update_trade_amounts(trade_id, delta_invested, delta_tokens)
        if new_gain is not None and new_loss is not None:
            trade = self.ledger.update_trade_targets(trade_id, new_gain, new_loss)
        return trade

    def open_or_add(self, data: Mapping[str, Any]) -> tuple[Trade, bool]:
        """Add to the token's active trade if there is one, else open a new trade.

        Returns the trade and whether it was newly created.
        """
        existing = self.ledger.find_active_trade_by_token(data.get("token_address", ""))
        if existing is not None:
            logger.info(f"Adding to existing trade {existing.trade_id} for {existing.token_address}")
            trade = self.apply_buy_in(
                existing.trade_id,
                data.get("amount_invested") or 0.0,
                data.get("tokens_received") or 0.0,
                data.get("target_percentage_gain"),
                data.get("target_percentage_loss"),
            )
            return trade, False

        trade_id = self.ledger.create_trade(data)
        return self.ledger.get_trade(trade_id), True
