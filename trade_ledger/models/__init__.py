"""Database models."""

from trade_ledger.models.trade import Trade, TradeBase
from trade_ledger.models.past_trade import PastTrade
from trade_ledger.models.wallet import Wallet

__all__ = [
    "TradeBase",
    "Trade",
    "PastTrade",
    "Wallet",
]
