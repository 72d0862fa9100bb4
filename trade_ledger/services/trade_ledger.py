"""Trade ledger — active positions and their archived history.

Active trades live in the ``trade`` table, archived ones in ``past_trade``.
Moving a trade between them is two separate writes (insert archive row,
then delete active row). If the process dies in between, the trade exists
in both tables; the archive row wins and ``reconcile_archive`` or a repeat
``archive_trade`` call removes the stale active row.
"""

import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Mapping

from trade_ledger.errors import NotFoundError
from trade_ledger.models.past_trade import PastTrade
from trade_ledger.models.trade import Trade
from trade_ledger.schemas.trade import SettlementInfo
from trade_ledger.store import LedgerStore
from trade_ledger.utils.constants import TradeStatus

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_trade_id() -> str:
    """Millisecond timestamp plus a short random suffix. Unique, not secret."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"{int(time.time() * 1000)}-{suffix}"


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class TradeLedger:
    """CRUD and archive operations over Trade and PastTrade records."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def create_trade(self, data: Mapping[str, Any]) -> str:
        token_address = (data.get("token_address") or "").strip()
        if not token_address:
            raise ValueError("token_address is required")

        fields = {k: v for k, v in data.items() if k in Trade.model_fields}
        fields.update(
            trade_id=generate_trade_id(),
            token_address=token_address,
            status=TradeStatus.ACTIVE.value,
            exit_price_sol=None,
            exit_price_usd=None,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        trade = self.store.put(Trade(**fields))
        logger.info(f"Trade {trade.trade_id} opened for {token_address} ({trade.token_name})")
        return trade.trade_id

    def get_trade(self, trade_id: str) -> Trade | None:
        trade = self.store.get(Trade, trade_id)
        if trade is None:
            logger.debug(f"Trade {trade_id} not found - it may have been completed or removed")
        return trade

    def get_active_trades(self) -> list[Trade]:
        return self.store.scan(Trade, Trade.status == TradeStatus.ACTIVE.value)

    def find_active_trade_by_token(self, token_address: str) -> Trade | None:
        matches = self.store.scan(
            Trade,
            Trade.status == TradeStatus.ACTIVE.value,
            Trade.token_address == token_address,
        )
        if len(matches) > 1:
            logger.warning(
                f"{len(matches)} active trades for {token_address}; returning {matches[0].trade_id}"
            )
        return matches[0] if matches else None

    def update_trade_amounts(self, trade_id: str, delta_invested: Any, delta_tokens: Any) -> Trade:
        amount = _as_number(delta_invested)
        tokens = _as_number(delta_tokens)
        trade = self.store.increment(
            Trade, trade_id, amount_invested=amount, tokens_received=tokens
        )
        if trade is None:
            raise NotFoundError(trade_id)
        logger.info(
            f"Trade {trade_id} amounts +{amount} invested, +{tokens} tokens "
            f"(now {trade.amount_invested} / {trade.tokens_received})"
        )
        return trade

    def update_trade_targets(self, trade_id: str, new_gain: float | None, new_loss: float | None) -> Trade:
        trade = self.store.update(
            Trade, trade_id,
            target_percentage_gain=new_gain,
            target_percentage_loss=new_loss,
        )
        if trade is None:
            raise NotFoundError(trade_id)
        logger.info(f"Trade {trade_id} targets updated: gain={new_gain} loss={new_loss}")
        return trade

    def archive_trade(self, trade: Trade, settlement_info: SettlementInfo | Mapping[str, Any]) -> bool:
        """Copy ``trade`` into the archive with its exit data, then drop the active row.

        A pre-existing archive row for the same id means an earlier move was
        interrupted after the insert; it is kept as-is and only the delete runs.
        """
        if not isinstance(settlement_info, SettlementInfo):
            settlement_info = SettlementInfo.model_validate(settlement_info)

        existing = self.store.get(PastTrade, trade.trade_id)
        if existing is None:
            record = trade.model_dump()
            record.update(
                exit_price_sol=settlement_info.exit_price_sol,
                exit_price_usd=settlement_info.exit_price_usd,
                sell_percentage_gain=settlement_info.sell_percentage_gain,
                sell_percentage_loss=settlement_info.sell_percentage_loss,
                status=settlement_info.status,
                reason=settlement_info.reason,
                completed_at=datetime.now(timezone.utc).isoformat(),
            )
            self.store.put(PastTrade(**record))
            logger.info(f"Trade {trade.trade_id} archived to past trades")
        else:
            logger.warning(
                f"Trade {trade.trade_id} already archived at {existing.completed_at}; "
                f"keeping existing record"
            )

        if self.store.delete(Trade, trade.trade_id):
            logger.info(f"Trade {trade.trade_id} removed from active trades")
        return True

    def settle_trade_record(self, trade_id: str, settlement_info: SettlementInfo | Mapping[str, Any]) -> bool:
        """Archive an active trade by id."""
        trade = self.get_trade(trade_id)
        if trade is None:
            raise NotFoundError(trade_id)
        return self.archive_trade(trade, settlement_info)

    def get_past_trade(self, trade_id: str) -> PastTrade | None:
        return self.store.get(PastTrade, trade_id)

    def get_past_trades(self, token_address: str | None = None) -> list[PastTrade]:
        conditions = []
        if token_address is not None:
            conditions.append(PastTrade.token_address == token_address)
        return self.store.scan(PastTrade, *conditions)
