"""Settle-position flow: on-chain settlement followed by archival.

The ledger is only touched after the chain confirms the token account is
gone, so a failed settlement leaves the active trade in place for a retry.
Ledger and wallet reads/writes are synchronous SQLModel calls and run in
the default executor so the event loop stays free during settlement.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, TypeVar

from trade_ledger.config import settings
from trade_ledger.engine.settlement import SettlementEngine, SettlementResult
from trade_ledger.errors import NotFoundError
from trade_ledger.models.trade import Trade
from trade_ledger.models.wallet import Wallet
from trade_ledger.schemas.trade import SettlementInfo
from trade_ledger.services.trade_ledger import TradeLedger
from trade_ledger.services.wallets import WalletRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SettleOutcome:
    trade_id: str
    already_archived: bool = False
    settlement: SettlementResult | None = None


async def _blocking(func: Callable[..., T], *args) -> T:
    return await asyncio.get_running_loop().run_in_executor(None, func, *args)


class TradeSettler:
    def __init__(
        self,
        ledger: TradeLedger,
        wallets: WalletRegistry,
        engine: SettlementEngine,
        owner_address: str | None = None,
    ):
        self.ledger = ledger
        self.wallets = wallets
        self.engine = engine
        self.owner_address = owner_address or settings.wallet_public_key

    def _load(self, trade_id: str) -> tuple[Trade | None, Wallet | None, str | None]:
        """Active trade plus the owner's wallet and secret; (None, None, None) if already archived."""
        trade = self.ledger.get_trade(trade_id)
        if trade is None:
            if self.ledger.get_past_trade(trade_id) is not None:
                return None, None, None
            raise NotFoundError(trade_id)

        if not self.owner_address:
            raise ValueError("No wallet configured; set TL_WALLET_PUBLIC_KEY")
        wallet = self.wallets.get_wallet(self.owner_address)
        return trade, wallet, self.wallets.reveal_secret(wallet)

    async def settle(self, trade_id: str, settlement_info: SettlementInfo | Mapping[str, Any]) -> SettleOutcome:
        if not isinstance(settlement_info, SettlementInfo):
            settlement_info = SettlementInfo.model_validate(settlement_info)

        trade, wallet, secret = await _blocking(self._load, trade_id)
        if trade is None:
            logger.info(f"[{trade_id}] Already archived, nothing to settle")
            return SettleOutcome(trade_id=trade_id, already_archived=True)

        logger.info(f"[{trade_id}] Settling {trade.token_address} for {wallet.public_key[:8]}...")
        result = await self.engine.settle(
            trade.token_address,
            wallet.public_key,
            secret,
            wallet.secret_encoding,
        )

        await _blocking(self.ledger.archive_trade, trade, settlement_info)
        logger.info(
            f"[{trade_id}] Settled ({result.outcome.value}, burned={result.burned_amount}) "
            f"and archived as {settlement_info.status}"
        )
        return SettleOutcome(trade_id=trade_id, settlement=result)
