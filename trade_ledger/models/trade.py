"""Trade model — an open position in a single token."""

from datetime import datetime, timezone

from sqlalchemy import Index
from sqlmodel import SQLModel, Field

from trade_ledger.utils.constants import TradeStatus


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TradeBase(SQLModel):
    """Columns shared by active and archived trades."""

    trade_id: str = Field(primary_key=True)
    token_address: str = Field(index=True)
    token_name: str = ""
    amount_invested: float = 0.0
    tokens_received: float = 0.0
    entry_price_sol: float | None = None
    entry_price_usd: float | None = None
    exit_price_sol: float | None = None
    exit_price_usd: float | None = None
    target_percentage_gain: float | None = None
    target_percentage_loss: float | None = None
    sell_percentage_gain: float | None = None
    sell_percentage_loss: float | None = None
    status: str = TradeStatus.ACTIVE.value
    trade_type: str | None = None  # "INVEST", "QUICK_PROFIT", "DEGEN"
    timestamp: str = Field(default_factory=utc_now_iso)  # ISO-8601 creation time


class Trade(TradeBase, table=True):
    __tablename__ = "trade"
    __table_args__ = (Index("ix_trade_status_token_address", "status", "token_address"),)
